"""Best-effort reporting of quarantined events."""

from aws_lambda_powertools import Logger

from core.models.delivery import DeliveryEnvelope
from core.models.notification import NotificationPayload
from core.notifications.dispatcher import NotificationDispatcher
from core.utils.constants import (
    NOTIFICATION_SENDER_NAME,
    QUARANTINE_EMAIL_MESSAGE,
    QUARANTINE_EMAIL_SUBJECT,
)

logger = Logger(UTC=True)


class QuarantineNotifier:
    """Reports each quarantined envelope to the operator.

    The subject and body are fixed; nothing from the quarantined message
    is rendered into the email.
    """

    def __init__(self, *, dispatcher: NotificationDispatcher) -> None:
        self.dispatcher = dispatcher

    def notify(self, envelope: DeliveryEnvelope) -> bool:
        """Return True if the notification was sent. Never raises."""
        payload = NotificationPayload(
            name=NOTIFICATION_SENDER_NAME,
            email=self.dispatcher.from_address,
            message=QUARANTINE_EMAIL_MESSAGE,
        )

        try:
            self.dispatcher.dispatch(subject=QUARANTINE_EMAIL_SUBJECT, payload=payload)
        except Exception:
            logger.exception(
                "Quarantine notification failed",
                extra={"message_id": envelope.message_id},
            )
            return False

        logger.info("Quarantine reported", extra={"message_id": envelope.message_id})
        return True
