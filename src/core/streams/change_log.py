"""Ordered log of metadata store mutations."""

import threading
from abc import ABC, abstractmethod
from typing import Any

from core.models.events import ChangeOperation, ChangeRecord


class ChangeLog(ABC):
    """An ordered, per-key change log that can be read from a cursor."""

    @abstractmethod
    def read(self, *, after_sequence: str | None, limit: int) -> list[ChangeRecord]:
        """Return up to `limit` records strictly after `after_sequence`, in log order."""


class InMemoryChangeLog(ChangeLog):
    """Append-only in-process change log.

    Sequence numbers are zero-padded so lexical order equals log order.
    """

    def __init__(self) -> None:
        self._records: list[ChangeRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def append(
        self,
        *,
        operation: ChangeOperation,
        key: str,
        old_image: dict[str, Any] | None = None,
        new_image: dict[str, Any] | None = None,
    ) -> ChangeRecord:
        with self._lock:
            record = ChangeRecord(
                sequence_number=f"{len(self._records) + 1:020d}",
                operation=operation,
                key=key,
                old_image=old_image,
                new_image=new_image,
            )
            self._records.append(record)
        return record

    def read(self, *, after_sequence: str | None, limit: int) -> list[ChangeRecord]:
        with self._lock:
            records = [
                record
                for record in self._records
                if after_sequence is None or record.sequence_number > after_sequence
            ]
        return records[:limit]
