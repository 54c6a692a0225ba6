"""
Data models for the contact form domain.

Both entities live for a single request; nothing is persisted.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

REQUIRED_FIELDS = ('firstName', 'lastName', 'email', 'message')

MISSING_FIELDS_MESSAGE = 'Missing required fields: firstName, lastName, email, message'
INVALID_EMAIL_MESSAGE = 'Invalid email address'


def is_valid_email(address: str) -> bool:
    """Check an address against the local@domain.tld pattern."""
    return EMAIL_PATTERN.fullmatch(address) is not None


@dataclass(frozen=True)
class Submission:
    """
    Contact form payload sent by the website.

    Attributes:
        first_name: Submitter's first name
        last_name: Submitter's last name
        email: Submitter's address, used as Reply-To
        message: Free-text message body
    """
    first_name: str
    last_name: str
    email: str
    message: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_payload(cls, payload: Any) -> 'Submission':
        """
        Build a validated submission from a decoded JSON body.

        Args:
            payload: Decoded request body (expected to be a JSON object)

        Returns:
            Submission: Validated submission

        Raises:
            ValidationError: If a field is missing/empty or the email is malformed
        """
        if not isinstance(payload, dict):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        values = {}
        for name in REQUIRED_FIELDS:
            value = payload.get(name)
            if not isinstance(value, str) or not value:
                raise ValidationError(MISSING_FIELDS_MESSAGE)
            values[name] = value

        if not is_valid_email(values['email']):
            raise ValidationError(INVALID_EMAIL_MESSAGE)

        return cls(
            first_name=values['firstName'],
            last_name=values['lastName'],
            email=values['email'],
            message=values['message']
        )


@dataclass
class DeliveryResult:
    """
    Outcome of one contact form request.

    This explicit result type keeps success/failure handling out of
    exceptions at the HTTP boundary.

    Attributes:
        success: Whether the message was accepted by the relay
        message: Human-readable status text
        status_code: HTTP status returned to the caller
        message_id: Message-ID of the delivered email (success only)
        error_detail: Technical or generic error text (delivery failures only)
    """
    success: bool
    message: str
    status_code: int = 200
    message_id: Optional[str] = None
    error_detail: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        """Render the JSON response body."""
        body: Dict[str, Any] = {
            'success': self.success,
            'message': self.message,
        }
        if self.success and self.message_id is not None:
            body['messageId'] = self.message_id
        if not self.success and self.error_detail is not None:
            body['error'] = self.error_detail
        return body

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"DeliveryResult(success=True, message_id={self.message_id})"
        return f"DeliveryResult(success=False, status={self.status_code}, message={self.message})"
