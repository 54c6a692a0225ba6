"""
Contact form pipeline - core business logic.

Each request runs linearly:
1. Validate the submission shape and email address (no I/O)
2. Check that the delivery configuration is present
3. Compose the message (an address unusable as Reply-To is a validation error)
4. Open a single-use SMTP transport and send the message
5. Release the transport and report a DeliveryResult

All expected failures are returned as DeliveryResult with success=False.
Nothing is retried; the submitter is expected to resubmit.
"""

import logging
import time
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any, Callable, Optional

from .errors import ConfigError, ContactFormError, DeliveryError, ValidationError
from .models import Submission, DeliveryResult
from services import config as config_service
from services import email as email_service
from services.metrics import InMemoryMetrics
from services.smtp_transport import DELIVERY_FAILED_MESSAGE, open_transport

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = 'Thank you for your message! We will get back to you soon.'
GENERIC_ERROR_DETAIL = 'Internal server error'


class ContactFormService:
    """
    Validates contact form submissions and relays them by email.

    Collaborators are injected so tests can replace the relay and the
    configuration source without touching the network.
    """

    def __init__(
        self,
        metrics: Optional[InMemoryMetrics] = None,
        transport_factory: Callable = open_transport,
        settings_loader: Callable = config_service.load_settings,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.metrics = metrics if metrics is not None else InMemoryMetrics()
        self.transport_factory = transport_factory
        self.settings_loader = settings_loader
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def handle(self, payload: Any) -> DeliveryResult:
        """
        Process one decoded contact form body.

        Args:
            payload: Decoded JSON body of the POST request

        Returns:
            DeliveryResult with status 200, 400 or 500
        """
        try:
            submission = Submission.from_payload(payload)
            settings = self.settings_loader()
            message = email_service.build_contact_message(submission, settings, now=self.clock())
        except ValidationError as e:
            logger.info(f"Rejected submission: {e.message}")
            return self._failure(e)
        except ConfigError as e:
            logger.error(f"Email configuration missing: {', '.join(e.missing)}")
            return self._failure(e)

        return self._deliver(submission, settings, message)

    def _deliver(
        self,
        submission: Submission,
        settings: config_service.SmtpSettings,
        message: EmailMessage
    ) -> DeliveryResult:
        """Send one message; the transport is released on every path."""
        self.metrics.record_attempt()
        logger.info(f"Delivering contact message from {submission.full_name}")
        started = time.time()

        try:
            with self.transport_factory(settings) as transport:
                message_id = transport.send(message)
        except DeliveryError as e:
            logger.error(f"Email sending error: {e.detail}", exc_info=True)
            self.metrics.record_failure()
            return self._failure(e, detail=e.detail)
        except Exception as e:
            logger.error(f"Unexpected email sending error: {e}", exc_info=True)
            self.metrics.record_failure()
            return self._failure(DeliveryError(DELIVERY_FAILED_MESSAGE, detail=str(e)), detail=str(e))

        self.metrics.record_success()
        logger.info(f"Email sent: {message_id} ({time.time() - started:.3f}s)")

        return DeliveryResult(
            success=True,
            message=SUCCESS_MESSAGE,
            status_code=200,
            message_id=message_id
        )

    def _failure(self, error: ContactFormError, detail: Optional[str] = None) -> DeliveryResult:
        """
        Convert an error to a failed result.

        Only delivery failures carry an error field: the literal text in
        development, a fixed phrase otherwise.
        """
        error_detail = None
        if detail is not None:
            error_detail = detail if config_service.is_development() else GENERIC_ERROR_DETAIL

        return DeliveryResult(
            success=False,
            message=error.message,
            status_code=error.status_code,
            error_detail=error_detail
        )
