"""Subscription filter predicates.

Two matching disciplines are supported:

- prefix match: the value must start with one of the configured prefixes
- allow-list match: the value must equal one of the configured values

By default a predicate matches against the event's type string
(e.g. "ObjectCreated:Put"); with `attribute` set it matches against that
message attribute instead, and an event without the attribute never
matches.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from core.models.events import NormalizedEvent


class FilterPredicate(ABC):
    """Boolean test over a normalized event."""

    def __init__(self, *, attribute: str | None = None) -> None:
        self.attribute = attribute

    def _value(self, event: NormalizedEvent) -> str | None:
        if self.attribute is None:
            return event.event_name
        return event.attributes.get(self.attribute)

    def matches(self, event: NormalizedEvent) -> bool:
        value = self._value(event)
        if value is None:
            return False
        return self._test(value)

    @abstractmethod
    def _test(self, value: str) -> bool: ...


class PrefixMatch(FilterPredicate):
    """Matches when the value starts with any configured prefix."""

    def __init__(self, prefixes: Iterable[str], *, attribute: str | None = None) -> None:
        super().__init__(attribute=attribute)
        self.prefixes: tuple[str, ...] = tuple(prefixes)
        if not self.prefixes:
            raise ValueError("PrefixMatch requires at least one prefix")

    def _test(self, value: str) -> bool:
        return value.startswith(self.prefixes)

    def __repr__(self) -> str:
        return f"PrefixMatch({list(self.prefixes)!r}, attribute={self.attribute!r})"


class AllowListMatch(FilterPredicate):
    """Matches when the value exactly equals one of the allowed values."""

    def __init__(self, values: Iterable[str], *, attribute: str | None = None) -> None:
        super().__init__(attribute=attribute)
        self.values: frozenset[str] = frozenset(values)
        if not self.values:
            raise ValueError("AllowListMatch requires at least one value")

    def _test(self, value: str) -> bool:
        return value in self.values

    def __repr__(self) -> str:
        return f"AllowListMatch({sorted(self.values)!r}, attribute={self.attribute!r})"
