"""Best-effort notification of newly created images."""

from typing import Any

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.idempotency import (
    BasePersistenceLayer,
    IdempotencyConfig,
    idempotent_function,
)

from core.infrastructure.memory.idempotency import InMemoryPersistenceLayer
from core.models.events import NormalizedEvent
from core.models.notification import NotificationPayload
from core.notifications.dispatcher import NotificationDispatcher
from core.utils.constants import (
    CREATION_EMAIL_SUBJECT,
    IDEMPOTENCY_EXPIRY_SECONDS,
    NOTIFICATION_SENDER_NAME,
)

logger = Logger(UTC=True)


class CreationNotifier:
    """Sends a summary of each new object. Never raises.

    Sends are idempotent on (event name, bucket, key): a redelivered event
    gets the recorded outcome back instead of a second email. A failed send
    leaves no record, so the next delivery tries again.
    """

    def __init__(
        self,
        *,
        dispatcher: NotificationDispatcher,
        persistence_store: BasePersistenceLayer | None = None,
        config: IdempotencyConfig | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self._send_once = idempotent_function(
            data_keyword_argument="notice",
            persistence_store=persistence_store or InMemoryPersistenceLayer(),
            config=config or IdempotencyConfig(expires_after_seconds=IDEMPOTENCY_EXPIRY_SECONDS),
        )(self._send)

    def _send(self, notice: dict[str, Any]) -> str:
        payload = NotificationPayload(
            name=NOTIFICATION_SENDER_NAME,
            email=self.dispatcher.from_address,
            message=(
                f"We received your image {notice['object_key']}. "
                f"Its URL is s3://{notice['container_id']}/{notice['object_key']}"
            ),
        )
        return self.dispatcher.dispatch(subject=CREATION_EMAIL_SUBJECT, payload=payload)

    def notify(self, event: NormalizedEvent) -> bool:
        """Return True if the notification was sent, now or on an earlier delivery."""
        notice = {
            "event_name": event.event_name,
            "container_id": event.container_id,
            "object_key": event.object_key,
        }

        try:
            self._send_once(notice=notice)
        except Exception:
            logger.exception(
                "Creation notification failed",
                extra={"object_key": event.object_key},
            )
            return False

        return True
