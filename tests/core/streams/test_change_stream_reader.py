import pytest

from core.models.events import ChangeOperation, ChangeRecord
from core.streams.change_log import InMemoryChangeLog
from core.streams.checkpoint import InMemoryCheckpointStore
from core.streams.reader import ChangeStreamReader


class BatchRecorder:
    """Records every batch; fails any batch containing a poisoned key."""

    def __init__(self, poisoned: set[str] | None = None) -> None:
        self.poisoned = poisoned or set()
        self.batches: list[list[str]] = []

    def __call__(self, records: list[ChangeRecord]) -> None:
        keys = [record.key for record in records]
        self.batches.append(keys)
        if self.poisoned.intersection(keys):
            raise RuntimeError("poisoned batch")

    @property
    def delivered(self) -> list[str]:
        return [
            key
            for batch in self.batches
            if not self.poisoned.intersection(batch)
            for key in batch
        ]


def fill(log: InMemoryChangeLog, keys: list[str]) -> None:
    for key in keys:
        log.append(operation=ChangeOperation.INSERT, key=key, new_image={"ImageName": key})


class TestInMemoryChangeLog:
    def test_sequence_numbers_sort_in_log_order(self) -> None:
        log = InMemoryChangeLog()
        fill(log, [f"k{n}" for n in range(12)])

        sequences = [record.sequence_number for record in log.read(after_sequence=None, limit=20)]

        assert sequences == sorted(sequences)
        assert len(sequences) == 12

    def test_read_after_cursor(self) -> None:
        log = InMemoryChangeLog()
        fill(log, ["a", "b", "c"])
        [first, *_] = log.read(after_sequence=None, limit=1)

        assert [r.key for r in log.read(after_sequence=first.sequence_number, limit=5)] == ["b", "c"]


class TestCheckpointStore:
    def test_cursor_only_moves_forward(self) -> None:
        store = InMemoryCheckpointStore()
        store.save("shard", "00000000000000000005")
        store.save("shard", "00000000000000000003")

        assert store.load("shard") == "00000000000000000005"
        assert store.load("other") is None


class TestChangeStreamReader:
    def test_poll_delivers_batches_in_order_and_advances(self) -> None:
        log, checkpoints, consumer = InMemoryChangeLog(), InMemoryCheckpointStore(), BatchRecorder()
        fill(log, ["a", "b", "c", "d", "e", "f", "g"])
        reader = ChangeStreamReader(consumer=consumer, log=log, checkpoints=checkpoints, batch_size=5)

        first = reader.poll()
        second = reader.poll()
        third = reader.poll()

        assert consumer.batches == [["a", "b", "c", "d", "e"], ["f", "g"]]
        assert len(first.acknowledged) == 5
        assert len(second.acknowledged) == 2
        assert third.last_sequence is None
        assert checkpoints.load("shard-0") == second.last_sequence

    def test_poisoned_record_is_isolated_and_skipped(self) -> None:
        log, consumer = InMemoryChangeLog(), BatchRecorder({"c"})
        fill(log, ["a", "b", "c", "d"])
        reader = ChangeStreamReader(
            consumer=consumer,
            log=log,
            checkpoints=InMemoryCheckpointStore(),
            batch_size=4,
            max_attempts=2,
        )

        outcome = reader.poll()

        assert consumer.delivered == ["a", "b", "d"]
        assert len(outcome.acknowledged) == 3
        assert len(outcome.skipped) == 1
        assert outcome.last_sequence == log.read(after_sequence=None, limit=4)[-1].sequence_number

    def test_each_failing_batch_is_retried_max_attempts_times(self) -> None:
        consumer = BatchRecorder({"a"})
        reader = ChangeStreamReader(consumer=consumer, max_attempts=3)
        log = InMemoryChangeLog()
        fill(log, ["a"])

        outcome = reader.deliver(log.read(after_sequence=None, limit=1))

        assert consumer.batches == [["a"], ["a"], ["a"]]
        assert outcome.acknowledged == []
        assert len(outcome.skipped) == 1

    def test_drain_reads_until_exhausted(self) -> None:
        log, consumer = InMemoryChangeLog(), BatchRecorder()
        fill(log, [f"k{n}" for n in range(11)])
        reader = ChangeStreamReader(
            consumer=consumer,
            log=log,
            checkpoints=InMemoryCheckpointStore(),
            batch_size=5,
        )

        outcome = reader.drain()

        assert len(outcome.acknowledged) == 11
        assert [len(batch) for batch in consumer.batches] == [5, 5, 1]

    def test_poll_requires_log_and_checkpoints(self) -> None:
        with pytest.raises(RuntimeError):
            ChangeStreamReader(consumer=BatchRecorder()).poll()

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError):
            ChangeStreamReader(consumer=BatchRecorder(), batch_size=0)
