"""Models describing delivery to subscriptions and queues."""

from dataclasses import dataclass, field
from enum import Enum


class DeliveryMode(str, Enum):
    """How a subscription receives its events."""

    DIRECT_PUSH = "direct-push"
    BUFFERED_QUEUE = "buffered-queue"


@dataclass
class DeliveryEnvelope:
    """A queued message body plus its receive accounting.

    The body is kept exactly as enqueued so it can be moved to quarantine
    unmodified.
    """

    message_id: str
    body: str
    receive_count: int = 0
    visible_at: float = 0.0
    receipt_handle: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of delivering one event to one subscription."""

    subscription: str
    mode: DeliveryMode
    delivered: bool
    error: Exception | None = None


@dataclass
class BatchOutcome:
    """Per-envelope outcome of processing one drained batch."""

    succeeded: list[str] = field(default_factory=list)
    retried: list[str] = field(default_factory=list)
    quarantined: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        """Message ids that must be redelivered by the transport."""
        return list(self.retried)
