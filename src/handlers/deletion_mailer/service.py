"""Best-effort confirmation of metadata deletions."""

from aws_lambda_powertools import Logger

from core.models.events import ChangeRecord
from core.models.notification import NotificationPayload
from core.notifications.dispatcher import NotificationDispatcher
from core.utils.constants import (
    DELETION_EMAIL_MESSAGE,
    DELETION_EMAIL_SUBJECT,
    NOTIFICATION_SENDER_NAME,
)

logger = Logger(UTC=True)


class DeletionConfirmationNotifier:
    """Consumes change-stream batches and confirms each removal.

    Insert and modify records are skipped. Send failures are logged and
    swallowed so the stream cursor keeps advancing.
    """

    def __init__(self, *, dispatcher: NotificationDispatcher) -> None:
        self.dispatcher = dispatcher

    def handle(self, records: list[ChangeRecord]) -> int:
        """Return the number of confirmations sent."""
        sent = 0

        for record in records:
            if not record.is_removal:
                continue

            payload = NotificationPayload(
                name=NOTIFICATION_SENDER_NAME,
                email=self.dispatcher.from_address,
                message=DELETION_EMAIL_MESSAGE,
            )

            try:
                self.dispatcher.dispatch(subject=DELETION_EMAIL_SUBJECT, payload=payload)
            except Exception:
                logger.exception(
                    "Deletion confirmation failed",
                    extra={"image_name": record.key, "sequence_number": record.sequence_number},
                )
                continue

            sent += 1

        return sent
