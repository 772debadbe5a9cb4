"""Retry budget for buffered-queue delivery."""

from dataclasses import dataclass

from core.utils.constants import DEFAULT_MAX_REDELIVERIES


@dataclass(frozen=True)
class DeadLetterPolicy:
    """Decides when a failing envelope leaves the retry path.

    With `max_redeliveries=1` an envelope is delivered twice: the first
    failure is retried, the second is terminal and the envelope is moved
    to quarantine.
    """

    max_redeliveries: int = DEFAULT_MAX_REDELIVERIES

    def __post_init__(self) -> None:
        if self.max_redeliveries < 0:
            raise ValueError("max_redeliveries must be >= 0")

    @property
    def max_receive_count(self) -> int:
        return self.max_redeliveries + 1

    def is_exhausted(self, receive_count: int) -> bool:
        """True once a failed delivery with this receive count must be quarantined."""
        return receive_count > self.max_redeliveries
