"""
Contact form email composition.

This module turns a validated submission into a plain-text EmailMessage
ready to hand to the SMTP transport.
"""

import logging
from datetime import datetime, timezone
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from domain.errors import ValidationError
from domain.models import INVALID_EMAIL_MESSAGE, Submission
from services.config import SmtpSettings

logger = logging.getLogger(__name__)

# Characters that cannot appear in an unquoted domain
DOMAIN_SPECIALS = frozenset('()<>[]:;@\\,"')

SUBJECT_TEMPLATE = 'Contact Form: New Message from {full_name}'

BODY_TEMPLATE = """New Contact Form Submission

Name: {full_name}
Email: {email}
Message: {message}

Timestamp: {timestamp}"""


def sanitize_header_value(value: str) -> str:
    """Strip CR/LF so submitted text cannot inject extra headers."""
    return (value or '').replace('\r', '').replace('\n', ' ').strip()


def format_timestamp(moment: datetime) -> str:
    """
    Format the server-side timestamp shown in the message body.

    Example:
        >>> format_timestamp(datetime(2025, 3, 1, 14, 5, 9, tzinfo=timezone.utc))
        '2025-03-01 14:05:09 UTC'
    """
    return moment.strftime('%Y-%m-%d %H:%M:%S %Z').strip()


def render_body(submission: Submission, moment: datetime) -> str:
    """Render the plain-text body of a contact form message."""
    return BODY_TEMPLATE.format(
        full_name=submission.full_name,
        email=submission.email,
        message=submission.message,
        timestamp=format_timestamp(moment)
    )


def build_contact_message(
    submission: Submission,
    settings: SmtpSettings,
    now: Optional[datetime] = None
) -> EmailMessage:
    """
    Compose the outgoing email for a submission.

    From carries the submitter's name with the service's fixed sender
    address; Reply-To points at the submitter.

    Args:
        submission: Validated contact form submission
        settings: Delivery settings (sender, recipient, mailer name)
        now: Timestamp to embed (defaults to current UTC time)

    Returns:
        EmailMessage: Message with a freshly generated Message-ID

    Raises:
        ValidationError: If the submitter's address cannot be used as Reply-To
    """
    moment = now or datetime.now(timezone.utc)
    full_name = sanitize_header_value(submission.full_name)

    msg = EmailMessage()
    msg['From'] = formataddr((full_name, settings.sender))
    msg['To'] = settings.recipient
    _set_reply_to(msg, submission.email)
    msg['Subject'] = SUBJECT_TEMPLATE.format(full_name=full_name)
    msg['Message-ID'] = make_msgid(domain=_sender_domain(settings.sender))
    msg['X-Mailer'] = sanitize_header_value(settings.mailer_name)
    msg['X-Priority'] = '3'
    msg.set_content(render_body(submission, moment))

    logger.info(f"Composed contact message {msg['Message-ID']} for {settings.recipient}")
    return msg


def _sender_domain(address: str) -> Optional[str]:
    """Domain part of the sender, used to qualify the Message-ID."""
    if '@' in address:
        return address.rsplit('@', 1)[1] or None
    return None


def reply_to_address(address: str) -> Address:
    """
    Build the Reply-To address from the literal submitted text.

    The local part is kept verbatim (quoted when needed) instead of being
    reparsed, so 'a,b@example.com' stays one mailbox.

    Raises:
        ValidationError: If the domain cannot be written in a header
    """
    local, _, domain = address.rpartition('@')
    if not local or not domain or not DOMAIN_SPECIALS.isdisjoint(domain):
        raise ValidationError(INVALID_EMAIL_MESSAGE)

    try:
        return Address(username=local, domain=domain)
    except ValueError:
        raise ValidationError(INVALID_EMAIL_MESSAGE)


def _set_reply_to(msg: EmailMessage, address: str) -> None:
    try:
        msg['Reply-To'] = reply_to_address(address)
    # the header parser raises AttributeError on some malformed addresses
    except (HeaderParseError, ValueError, AttributeError):
        raise ValidationError(INVALID_EMAIL_MESSAGE)
