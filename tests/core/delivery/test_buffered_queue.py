import pytest

from core.delivery.buffered_queue import InMemoryDeliveryQueue
from core.delivery.dead_letter import DeadLetterPolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDeadLetterPolicy:
    def test_default_budget_allows_one_redelivery(self) -> None:
        policy = DeadLetterPolicy()

        assert policy.max_receive_count == 2
        assert not policy.is_exhausted(1)
        assert policy.is_exhausted(2)

    def test_zero_budget_quarantines_first_failure(self) -> None:
        assert DeadLetterPolicy(max_redeliveries=0).is_exhausted(1)

    def test_negative_budget_rejected(self) -> None:
        with pytest.raises(ValueError):
            DeadLetterPolicy(max_redeliveries=-1)


class TestInMemoryDeliveryQueue:
    def test_drain_returns_up_to_batch_size(self) -> None:
        queue = InMemoryDeliveryQueue()
        for n in range(7):
            queue.enqueue(f"body-{n}")

        batch = queue.drain(5, 0)

        assert [envelope.body for envelope in batch] == [f"body-{n}" for n in range(5)]
        assert all(envelope.receive_count == 1 for envelope in batch)

    def test_drain_returns_partial_batch_when_window_closes(self) -> None:
        queue = InMemoryDeliveryQueue()
        queue.enqueue("only")

        assert [envelope.body for envelope in queue.drain(5, 0.01)] == ["only"]

    def test_received_message_is_invisible_until_timeout(self) -> None:
        clock = FakeClock()
        queue = InMemoryDeliveryQueue(visibility_timeout_seconds=30, clock=clock)
        queue.enqueue("body")

        [first] = queue.drain(1, 0)
        assert queue.drain(1, 0) == []

        clock.now = 31
        [second] = queue.drain(1, 0)

        assert second.message_id == first.message_id
        assert second.receive_count == 2

    def test_acknowledge_removes_message(self) -> None:
        queue = InMemoryDeliveryQueue(visibility_timeout_seconds=0)
        queue.enqueue("body")

        [envelope] = queue.drain(1, 0)
        queue.acknowledge(envelope)

        assert len(queue) == 0
        assert queue.drain(1, 0) == []

    def test_stale_receipt_does_not_delete(self) -> None:
        queue = InMemoryDeliveryQueue(visibility_timeout_seconds=0)
        queue.enqueue("body")

        [stale] = queue.drain(1, 0)
        [current] = queue.drain(1, 0)
        queue.acknowledge(stale)

        assert len(queue) == 1
        queue.acknowledge(current)
        assert len(queue) == 0

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError):
            InMemoryDeliveryQueue().drain(0, 0)
