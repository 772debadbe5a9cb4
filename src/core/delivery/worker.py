"""Batch consumption of buffered-queue envelopes with dead-lettering."""

from collections.abc import Callable
from enum import Enum
from typing import Any

from aws_lambda_powertools import Logger

from core.delivery.buffered_queue import BufferedDeliveryQueue
from core.delivery.dead_letter import DeadLetterPolicy
from core.models.delivery import BatchOutcome, DeliveryEnvelope
from core.models.errors import ParseError
from core.models.events import NormalizedEvent
from core.parsing.envelope_parser import parse_queue_message
from core.utils.constants import DEFAULT_QUEUE_BATCH_SIZE, DEFAULT_QUEUE_BATCH_WINDOW_SECONDS

logger = Logger(UTC=True)

EventConsumer = Callable[[NormalizedEvent], Any]
EnvelopeConsumer = Callable[[DeliveryEnvelope], Any]


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    QUARANTINED = "quarantined"


class QueueDeliveryWorker:
    """Delivers queued events to one consumer under a retry budget.

    For each envelope the body is parsed and every event in it is passed to
    the consumer. When the consumer fails and the envelope's receive count
    has exhausted the budget, or the body can never be parsed, the body is
    forwarded unmodified to the quarantine queue and the envelope counts as
    handled. Otherwise the failure propagates and the envelope is retried.
    """

    def __init__(
        self,
        *,
        queue: BufferedDeliveryQueue | None,
        consumer: EventConsumer,
        quarantine: BufferedDeliveryQueue,
        policy: DeadLetterPolicy | None = None,
    ) -> None:
        self._queue = queue
        self._consumer = consumer
        self._quarantine = quarantine
        self.policy = policy or DeadLetterPolicy()

    def deliver(self, envelope: DeliveryEnvelope) -> DeliveryOutcome:
        """Deliver one envelope.

        Raises:
            Exception: The consumer's error, when the envelope should be retried
        """
        try:
            events = parse_queue_message(envelope.body)
        except ParseError as exc:
            logger.error(
                "Unparseable queue message",
                extra={"message_id": envelope.message_id, "error": exc.message},
            )
            self._move_to_quarantine(envelope, reason=exc.message)
            return DeliveryOutcome.QUARANTINED

        try:
            for event in events:
                self._consumer(event)

        except Exception as exc:
            if self.policy.is_exhausted(envelope.receive_count):
                logger.warning(
                    "Retry budget exhausted",
                    extra={
                        "message_id": envelope.message_id,
                        "receive_count": envelope.receive_count,
                        "error": str(exc),
                    },
                )
                self._move_to_quarantine(envelope, reason=str(exc))
                return DeliveryOutcome.QUARANTINED
            raise

        return DeliveryOutcome.DELIVERED

    def _move_to_quarantine(self, envelope: DeliveryEnvelope, *, reason: str) -> None:
        self._quarantine.enqueue(envelope.body)
        logger.info(
            "Message moved to quarantine",
            extra={"message_id": envelope.message_id, "reason": reason},
        )

    def process(self, envelopes: list[DeliveryEnvelope]) -> BatchOutcome:
        """Deliver a drained batch sequentially, acknowledging or releasing each envelope."""
        if self._queue is None:
            raise RuntimeError("process() requires a worker bound to a queue")

        outcome = BatchOutcome()

        for envelope in envelopes:
            try:
                result = self.deliver(envelope)
            except Exception:
                logger.exception(
                    "Delivery failed, message will be retried",
                    extra={
                        "message_id": envelope.message_id,
                        "receive_count": envelope.receive_count,
                    },
                )
                self._queue.release(envelope)
                outcome.retried.append(envelope.message_id)
                continue

            self._queue.acknowledge(envelope)
            if result is DeliveryOutcome.QUARANTINED:
                outcome.quarantined.append(envelope.message_id)
            else:
                outcome.succeeded.append(envelope.message_id)

        logger.info(
            "Batch processed",
            extra={
                "succeeded": len(outcome.succeeded),
                "retried": len(outcome.retried),
                "quarantined": len(outcome.quarantined),
            },
        )
        return outcome

    def run_once(
        self,
        *,
        batch_size: int = DEFAULT_QUEUE_BATCH_SIZE,
        max_wait_seconds: float = DEFAULT_QUEUE_BATCH_WINDOW_SECONDS,
    ) -> BatchOutcome:
        """Drain one batch from the queue and process it."""
        if self._queue is None:
            raise RuntimeError("run_once() requires a worker bound to a queue")

        envelopes = self._queue.drain(batch_size, max_wait_seconds)
        if not envelopes:
            return BatchOutcome()
        return self.process(envelopes)


class QuarantineDrain:
    """Drains the quarantine queue into a report-only consumer.

    Quarantined envelopes are never retried: each is acknowledged whether
    or not the consumer succeeded.
    """

    def __init__(self, *, queue: BufferedDeliveryQueue, consumer: EnvelopeConsumer) -> None:
        self._queue = queue
        self._consumer = consumer

    def run_once(
        self,
        *,
        batch_size: int = DEFAULT_QUEUE_BATCH_SIZE,
        max_wait_seconds: float = DEFAULT_QUEUE_BATCH_WINDOW_SECONDS,
    ) -> int:
        """Process one batch and return the number of envelopes handled."""
        envelopes = self._queue.drain(batch_size, max_wait_seconds)

        for envelope in envelopes:
            try:
                self._consumer(envelope)
            except Exception:
                logger.exception(
                    "Quarantine consumer failed",
                    extra={"message_id": envelope.message_id},
                )
            self._queue.acknowledge(envelope)

        return len(envelopes)
