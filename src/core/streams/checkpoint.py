"""Durable cursors for change-stream readers."""

import threading
from abc import ABC, abstractmethod


class CheckpointStore(ABC):
    """Stores the last acknowledged sequence number per shard."""

    @abstractmethod
    def load(self, shard_id: str) -> str | None: ...

    @abstractmethod
    def save(self, shard_id: str, sequence_number: str) -> None: ...


class InMemoryCheckpointStore(CheckpointStore):
    def __init__(self) -> None:
        self._cursors: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, shard_id: str) -> str | None:
        with self._lock:
            return self._cursors.get(shard_id)

    def save(self, shard_id: str, sequence_number: str) -> None:
        with self._lock:
            current = self._cursors.get(shard_id)
            # Cursors only move forward
            if current is None or sequence_number > current:
                self._cursors[shard_id] = sequence_number
