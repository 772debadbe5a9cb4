"""Buffered delivery queues.

A queue holds raw message bodies for asynchronous batched consumption.
Received envelopes stay invisible for a visibility timeout; an envelope
that is neither acknowledged nor quarantined becomes visible again and
its receive count increments on the next receive.
"""

import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable

from aws_lambda_powertools import Logger

from core.models.delivery import DeliveryEnvelope
from core.utils.constants import DEFAULT_VISIBILITY_TIMEOUT_SECONDS

logger = Logger(UTC=True)


class BufferedDeliveryQueue(ABC):
    """Contract for a batch-receive queue with visibility timeouts."""

    @abstractmethod
    def enqueue(self, body: str) -> str:
        """Add a message body and return its message id. Returns immediately."""

    @abstractmethod
    def drain(self, batch_size: int, max_wait_seconds: float) -> list[DeliveryEnvelope]:
        """Receive up to `batch_size` envelopes.

        Waits up to `max_wait_seconds` for the batch to fill and returns
        whatever is available once the window closes.
        """

    @abstractmethod
    def acknowledge(self, envelope: DeliveryEnvelope) -> None:
        """Remove a received envelope from the queue permanently."""

    @abstractmethod
    def release(self, envelope: DeliveryEnvelope) -> None:
        """Give up a received envelope so it is redelivered after its visibility timeout."""


class InMemoryDeliveryQueue(BufferedDeliveryQueue):
    """Thread-safe in-process queue for local runs and tests."""

    def __init__(
        self,
        *,
        name: str = "queue",
        visibility_timeout_seconds: float = DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._visibility_timeout = visibility_timeout_seconds
        self._clock = clock
        self._messages: dict[str, DeliveryEnvelope] = {}
        self._condition = threading.Condition()

    def __len__(self) -> int:
        with self._condition:
            return len(self._messages)

    def enqueue(self, body: str) -> str:
        message_id = uuid.uuid4().hex
        with self._condition:
            self._messages[message_id] = DeliveryEnvelope(
                message_id=message_id,
                body=body,
                visible_at=self._clock(),
            )
            self._condition.notify_all()

        logger.debug("Message enqueued", extra={"queue": self.name, "message_id": message_id})
        return message_id

    def _visible(self, now: float) -> list[DeliveryEnvelope]:
        return [env for env in self._messages.values() if env.visible_at <= now]

    def _next_visible_in(self, now: float) -> float | None:
        hidden = [env.visible_at - now for env in self._messages.values() if env.visible_at > now]
        return min(hidden) if hidden else None

    def drain(self, batch_size: int, max_wait_seconds: float) -> list[DeliveryEnvelope]:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        with self._condition:
            deadline = self._clock() + max_wait_seconds

            while True:
                now = self._clock()
                visible = self._visible(now)
                remaining = deadline - now

                if len(visible) >= batch_size or remaining <= 0:
                    break

                timeout = remaining
                next_visible = self._next_visible_in(now)
                if next_visible is not None:
                    timeout = min(timeout, next_visible)
                self._condition.wait(timeout=timeout)

            batch = visible[:batch_size]
            for envelope in batch:
                envelope.receive_count += 1
                envelope.visible_at = now + self._visibility_timeout
                envelope.receipt_handle = uuid.uuid4().hex

        if batch:
            logger.debug(
                "Batch drained",
                extra={"queue": self.name, "count": len(batch)},
            )
        return [self._copy(envelope) for envelope in batch]

    @staticmethod
    def _copy(envelope: DeliveryEnvelope) -> DeliveryEnvelope:
        return DeliveryEnvelope(
            message_id=envelope.message_id,
            body=envelope.body,
            receive_count=envelope.receive_count,
            visible_at=envelope.visible_at,
            receipt_handle=envelope.receipt_handle,
        )

    def acknowledge(self, envelope: DeliveryEnvelope) -> None:
        with self._condition:
            stored = self._messages.get(envelope.message_id)
            # A stale receipt means the message was received again meanwhile
            if stored is not None and stored.receipt_handle == envelope.receipt_handle:
                del self._messages[envelope.message_id]

    def release(self, envelope: DeliveryEnvelope) -> None:
        logger.debug(
            "Message released for redelivery",
            extra={
                "queue": self.name,
                "message_id": envelope.message_id,
                "receive_count": envelope.receive_count,
            },
        )
