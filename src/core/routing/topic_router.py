"""Fan-out of normalized events to statically configured subscriptions."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger

from core.delivery.buffered_queue import BufferedDeliveryQueue
from core.models.delivery import DeliveryMode, DeliveryResult
from core.models.events import NormalizedEvent
from core.routing.filters import FilterPredicate

logger = Logger(UTC=True)

EventConsumer = Callable[[NormalizedEvent], Any]


@dataclass(frozen=True)
class Subscription:
    """A (consumer, filter predicate, delivery mode) triple.

    Direct-push subscriptions carry a `consumer`; buffered-queue
    subscriptions carry the `queue` their events are enqueued into.
    """

    name: str
    predicate: FilterPredicate
    mode: DeliveryMode
    consumer: EventConsumer | None = None
    queue: BufferedDeliveryQueue | None = None

    def __post_init__(self) -> None:
        if self.mode is DeliveryMode.DIRECT_PUSH and self.consumer is None:
            raise ValueError(f"Direct-push subscription '{self.name}' needs a consumer")
        if self.mode is DeliveryMode.BUFFERED_QUEUE and self.queue is None:
            raise ValueError(f"Buffered subscription '{self.name}' needs a queue")


class DeliveryFailedError(Exception):
    """Raised by `publish` when one or more direct-push consumers failed.

    Every matching subscription has been attempted before this is raised,
    so the failure of one consumer never prevents delivery to another.
    """

    def __init__(self, results: list[DeliveryResult]) -> None:
        self.results = results
        failed = [result.subscription for result in results if not result.delivered]
        super().__init__(f"Delivery failed for subscriptions: {', '.join(failed)}")

    @property
    def errors(self) -> list[Exception]:
        return [result.error for result in self.results if result.error is not None]


class TopicRouter:
    """Evaluates each subscription's predicate and delivers matching events.

    The subscription set is fixed at construction.
    """

    def __init__(self, subscriptions: Iterable[Subscription]) -> None:
        self._subscriptions: tuple[Subscription, ...] = tuple(subscriptions)

        names = [subscription.name for subscription in self._subscriptions]
        if len(names) != len(set(names)):
            raise ValueError("Subscription names must be unique")

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return self._subscriptions

    def matching(self, event: NormalizedEvent) -> list[Subscription]:
        """Return the subscriptions whose predicate accepts `event`."""
        return [s for s in self._subscriptions if s.predicate.matches(event)]

    def publish(self, event: NormalizedEvent) -> list[DeliveryResult]:
        """Deliver `event` to every matching subscription.

        Returns:
            One DeliveryResult per matching subscription

        Raises:
            DeliveryFailedError: If any delivery failed, after all matching
                subscriptions have been attempted
        """
        matched = self.matching(event)
        logger.info(
            "Publishing event",
            extra={
                "event_name": event.event_name,
                "object_key": event.object_key,
                "subscriptions": [s.name for s in matched],
            },
        )

        results = [self._deliver(subscription, event) for subscription in matched]

        if any(not result.delivered for result in results):
            raise DeliveryFailedError(results)

        return results

    def _deliver(self, subscription: Subscription, event: NormalizedEvent) -> DeliveryResult:
        try:
            if subscription.mode is DeliveryMode.BUFFERED_QUEUE:
                if subscription.queue is None:
                    raise ValueError(f"Buffered subscription '{subscription.name}' has no queue")
                subscription.queue.enqueue(event.model_dump_json())
            else:
                if subscription.consumer is None:
                    raise ValueError(f"Direct-push subscription '{subscription.name}' has no consumer")
                subscription.consumer(event)

        except Exception as exc:
            logger.exception(
                "Delivery to subscription failed",
                extra={
                    "subscription": subscription.name,
                    "mode": subscription.mode.value,
                    "object_key": event.object_key,
                },
            )
            return DeliveryResult(
                subscription=subscription.name,
                mode=subscription.mode,
                delivered=False,
                error=exc,
            )

        return DeliveryResult(
            subscription=subscription.name,
            mode=subscription.mode,
            delivered=True,
        )
