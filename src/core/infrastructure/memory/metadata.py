"""In-process metadata store that emits an ordered change stream."""

import threading

from aws_lambda_powertools import Logger

from core.models.errors import NotFoundError
from core.models.events import ChangeOperation
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository
from core.streams.change_log import InMemoryChangeLog
from core.utils.constants import ERROR_CODE_RECORD_NOT_FOUND

logger = Logger(UTC=True)


class InMemoryImageMetadata(ImageMetadataRepository):
    """Dictionary-backed metadata table.

    Every mutation appends a ChangeRecord to `change_log` while holding the
    table lock, so the log order matches the order mutations were applied.
    Overwriting a record with identical fields emits nothing, matching a
    store whose stream only reports real changes.
    """

    def __init__(self, change_log: InMemoryChangeLog | None = None) -> None:
        self.change_log = change_log or InMemoryChangeLog()
        self._items: dict[str, ImageRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put_record(self, *, record: ImageRecord) -> None:
        with self._lock:
            previous = self._items.get(record.name)
            if previous == record:
                return

            self._items[record.name] = record
            self.change_log.append(
                operation=ChangeOperation.INSERT if previous is None else ChangeOperation.MODIFY,
                key=record.name,
                old_image=None if previous is None else previous.to_item(),
                new_image=record.to_item(),
            )
        logger.debug("Image record stored", extra={"image_name": record.name})

    def fetch_record(self, *, name: str) -> ImageRecord | None:
        with self._lock:
            return self._items.get(name)

    def update_description(self, *, name: str, description: str) -> ImageRecord:
        with self._lock:
            previous = self._items.get(name)
            if previous is None:
                raise NotFoundError(
                    message=f"Image {name} does not exist",
                    error_code=ERROR_CODE_RECORD_NOT_FOUND,
                    details={"image_name": name},
                )

            updated = previous.model_copy(update={"description": description})
            self._items[name] = updated
            self.change_log.append(
                operation=ChangeOperation.MODIFY,
                key=name,
                old_image=previous.to_item(),
                new_image=updated.to_item(),
            )
        return updated

    def remove_record(self, *, name: str) -> None:
        with self._lock:
            previous = self._items.pop(name, None)
            if previous is None:
                return

            self.change_log.append(
                operation=ChangeOperation.REMOVE,
                key=name,
                old_image=previous.to_item(),
            )
        logger.debug("Image record removed", extra={"image_name": name})
