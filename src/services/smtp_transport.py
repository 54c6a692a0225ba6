"""
Single-use SMTP transport.

One transport opens one connection, sends one message and is closed.
Transports are never pooled or shared between requests.

Usage:
    from services.smtp_transport import open_transport

    with open_transport(settings) as transport:
        message_id = transport.send(message)
"""

import logging
import smtplib
import ssl
from contextlib import contextmanager
from email.message import EmailMessage
from typing import Iterator, Optional

from domain.errors import DeliveryError
from services.config import SmtpSettings

logger = logging.getLogger(__name__)

DELIVERY_FAILED_MESSAGE = 'Failed to send email. Please try again later.'


def _tls_context(verify: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class SmtpTransport:
    """
    Wraps one smtplib connection to the relay.

    close() is idempotent and never raises, so it can run on every exit
    path without masking the original error.
    """

    def __init__(self, settings: SmtpSettings):
        self.settings = settings
        self._smtp: Optional[smtplib.SMTP] = None

    @property
    def is_open(self) -> bool:
        return self._smtp is not None

    def open(self) -> None:
        """
        Connect and authenticate.

        Implicit TLS when settings.secure, otherwise a plain connection
        upgraded with STARTTLS if the relay offers it.

        Raises:
            DeliveryError: If the relay cannot be reached or rejects the login
        """
        settings = self.settings
        context = _tls_context(settings.verify_tls)
        logger.info(
            f"Connecting to SMTP relay {settings.host}:{settings.port} "
            f"(secure={settings.secure})"
        )

        try:
            if settings.secure:
                self._smtp = smtplib.SMTP_SSL(settings.host, settings.port, context=context)
            else:
                self._smtp = smtplib.SMTP(settings.host, settings.port)

            self._smtp.ehlo()
            if not settings.secure and self._smtp.has_extn('starttls'):
                self._smtp.starttls(context=context)
                self._smtp.ehlo()

            self._smtp.login(settings.user, settings.password)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(DELIVERY_FAILED_MESSAGE, detail=str(e)) from e

    def send(self, message: EmailMessage) -> str:
        """
        Send one message.

        Returns:
            str: The message's Message-ID

        Raises:
            DeliveryError: If the transport is not open or the relay rejects the message
        """
        if self._smtp is None:
            raise DeliveryError(DELIVERY_FAILED_MESSAGE, detail='SMTP transport is not open')

        try:
            refused = self._smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(DELIVERY_FAILED_MESSAGE, detail=str(e)) from e

        if refused:
            logger.warning(f"Relay refused recipients: {sorted(refused)}")

        return message['Message-ID']

    def close(self) -> None:
        """Release the connection; secondary errors are logged and ignored."""
        smtp, self._smtp = self._smtp, None
        if smtp is None:
            return

        try:
            smtp.quit()
        except Exception as e:
            logger.warning(f"SMTP QUIT failed, closing socket: {e}")
            try:
                smtp.close()
            except Exception as close_error:
                logger.warning(f"Ignoring SMTP close error: {close_error}")


@contextmanager
def open_transport(settings: SmtpSettings) -> Iterator[SmtpTransport]:
    """
    Open a transport for exactly one delivery and always release it.

    Args:
        settings: Delivery settings for this request

    Yields:
        SmtpTransport: An open, authenticated transport
    """
    transport = SmtpTransport(settings)
    try:
        transport.open()
        yield transport
    finally:
        transport.close()
