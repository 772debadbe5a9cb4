"""In-process persistence layer for Powertools idempotency records."""

import threading
import time

from aws_lambda_powertools.utilities.idempotency import BasePersistenceLayer
from aws_lambda_powertools.utilities.idempotency.exceptions import (
    IdempotencyItemAlreadyExistsError,
    IdempotencyItemNotFoundError,
)
from aws_lambda_powertools.utilities.idempotency.persistence.base import (
    STATUS_CONSTANTS,
    DataRecord,
)


class InMemoryPersistenceLayer(BasePersistenceLayer):
    """Dictionary-backed idempotency store.

    Mirrors the DynamoDB layer's conditional put: a record can be replaced
    only once it has expired, or while it is in progress past its
    in-progress expiry.
    """

    def __init__(self) -> None:
        super().__init__()
        self._records: dict[str, DataRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _get_record(self, idempotency_key) -> DataRecord:
        with self._lock:
            try:
                return self._records[idempotency_key]
            except KeyError as exc:
                raise IdempotencyItemNotFoundError(idempotency_key) from exc

    def _put_record(self, data_record: DataRecord) -> None:
        with self._lock:
            existing = self._records.get(data_record.idempotency_key)
            if existing is not None and not self._replaceable(existing):
                raise IdempotencyItemAlreadyExistsError(
                    f"Failed to put record for already existing idempotency key: {data_record.idempotency_key}",
                    old_data_record=existing,
                )
            self._records[data_record.idempotency_key] = data_record

    def _update_record(self, data_record: DataRecord) -> None:
        with self._lock:
            self._records[data_record.idempotency_key] = data_record

    def _delete_record(self, data_record: DataRecord) -> None:
        with self._lock:
            self._records.pop(data_record.idempotency_key, None)

    @staticmethod
    def _replaceable(record: DataRecord) -> bool:
        if record.is_expired:
            return True

        in_progress_expiry = record.in_progress_expiry_timestamp
        return (
            record.status == STATUS_CONSTANTS["INPROGRESS"]
            and in_progress_expiry is not None
            and in_progress_expiry < int(time.time() * 1000)
        )
