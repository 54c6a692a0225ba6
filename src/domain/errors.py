"""
Error taxonomy for the contact form pipeline.

Each error carries the HTTP status and the public message returned to the
caller. Nothing here is retried; every error ends the current request.
"""

from typing import Optional


class ContactFormError(Exception):
    """Base class for errors that end a contact form request."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContactFormError):
    """Raised when a submission is malformed or incomplete (client-caused)."""

    status_code = 400


class ConfigError(ContactFormError):
    """Raised when a required delivery setting is missing (operator-caused)."""

    status_code = 500

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message)
        self.missing = missing or []


class DeliveryError(ContactFormError):
    """Raised when the SMTP relay rejects the message or cannot be reached."""

    status_code = 500

    def __init__(self, message: str, detail: str = ''):
        super().__init__(message)
        self.detail = detail
