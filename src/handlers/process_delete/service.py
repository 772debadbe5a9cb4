"""Business logic keeping metadata in sync with removed objects."""

from aws_lambda_powertools import Logger

from core.models.errors import ValidationError
from core.models.events import EventKind, NormalizedEvent
from core.repositories.metadata_repository import ImageMetadataRepository

logger = Logger(UTC=True)


class DeleteSyncService:
    """Deletes the metadata record of a removed object.

    Deleting an already-absent record succeeds, so redelivery is safe.
    Store failures propagate.
    """

    def __init__(self, *, metadata: ImageMetadataRepository) -> None:
        self.metadata = metadata

    def delete(self, event: NormalizedEvent) -> None:
        """Remove the record for the event's object key.

        Raises:
            ValidationError: If the event is not an object removal
            MetadataStoreError: If the delete fails
        """
        if event.kind is not EventKind.OBJECT_REMOVED:
            raise ValidationError(
                message=f"Event {event.event_name} for {event.object_key} is not an object removal",
                details={"object_key": event.object_key},
            )

        self.metadata.remove_record(name=event.object_key)
        logger.info("Deleted image record", extra={"object_key": event.object_key})
