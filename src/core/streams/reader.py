"""Change-stream reader with batch bisection on persistent failure."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from aws_lambda_powertools import Logger

from core.models.events import ChangeRecord
from core.streams.change_log import ChangeLog
from core.streams.checkpoint import CheckpointStore
from core.utils.constants import DEFAULT_STREAM_BATCH_SIZE, DEFAULT_STREAM_MAX_ATTEMPTS

logger = Logger(UTC=True)

BatchConsumer = Callable[[list[ChangeRecord]], Any]


@dataclass
class StreamOutcome:
    """Sequence numbers acknowledged by the consumer or skipped as poisoned."""

    acknowledged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def last_sequence(self) -> str | None:
        handled = self.acknowledged + self.skipped
        return max(handled) if handled else None


class ChangeStreamReader:
    """Tails a change log and delivers ordered batches to one consumer.

    A batch that keeps failing after `max_attempts` is split in half and
    each half is retried on its own, recursively, until the poisoned record
    is isolated. A single record that still fails is skipped so the shard
    keeps moving. The cursor advances only once the whole batch has been
    acknowledged or skipped.
    """

    def __init__(
        self,
        *,
        consumer: BatchConsumer,
        log: ChangeLog | None = None,
        checkpoints: CheckpointStore | None = None,
        shard_id: str = "shard-0",
        batch_size: int = DEFAULT_STREAM_BATCH_SIZE,
        max_attempts: int = DEFAULT_STREAM_MAX_ATTEMPTS,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self._consumer = consumer
        self._log = log
        self._checkpoints = checkpoints
        self.shard_id = shard_id
        self.batch_size = batch_size
        self.max_attempts = max_attempts

    def poll(self) -> StreamOutcome:
        """Read the next batch after the cursor, deliver it, then advance the cursor."""
        if self._log is None or self._checkpoints is None:
            raise RuntimeError("poll() requires a change log and a checkpoint store")

        cursor = self._checkpoints.load(self.shard_id)
        records = self._log.read(after_sequence=cursor, limit=self.batch_size)
        if not records:
            return StreamOutcome()

        outcome = self.deliver(records)
        self._checkpoints.save(self.shard_id, records[-1].sequence_number)

        logger.debug(
            "Stream cursor advanced",
            extra={"shard_id": self.shard_id, "sequence_number": records[-1].sequence_number},
        )
        return outcome

    def drain(self) -> StreamOutcome:
        """Poll until the log is exhausted."""
        total = StreamOutcome()
        while True:
            outcome = self.poll()
            if outcome.last_sequence is None:
                return total
            total.acknowledged.extend(outcome.acknowledged)
            total.skipped.extend(outcome.skipped)

    def deliver(self, records: Sequence[ChangeRecord]) -> StreamOutcome:
        """Deliver records in order, bisecting on persistent failure."""
        outcome = StreamOutcome()
        if records:
            self._deliver(list(records), outcome)
        return outcome

    def _deliver(self, records: list[ChangeRecord], outcome: StreamOutcome) -> None:
        sequences = [record.sequence_number for record in records]

        for attempt in range(1, self.max_attempts + 1):
            try:
                self._consumer(records)
            except Exception:
                logger.exception(
                    "Stream batch failed",
                    extra={
                        "shard_id": self.shard_id,
                        "attempt": attempt,
                        "first_sequence": sequences[0],
                        "size": len(records),
                    },
                )
                continue

            outcome.acknowledged.extend(sequences)
            return

        if len(records) == 1:
            logger.error(
                "Skipping poisoned stream record",
                extra={"shard_id": self.shard_id, "sequence_number": sequences[0]},
            )
            outcome.skipped.append(sequences[0])
            return

        middle = len(records) // 2
        logger.warning(
            "Bisecting failing stream batch",
            extra={"shard_id": self.shard_id, "size": len(records)},
        )
        self._deliver(records[:middle], outcome)
        self._deliver(records[middle:], outcome)
