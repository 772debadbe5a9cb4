"""Business logic for registering newly created images.

This module validates a created object's type, confirms the object can be
read from the blob store and upserts its metadata record.
"""

from aws_lambda_powertools import Logger

from core.models.errors import ValidationError
from core.models.events import EventKind, NormalizedEvent
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import ALLOWED_IMAGE_SUFFIXES, ERROR_CODE_UNSUPPORTED_IMAGE_TYPE

logger = Logger(UTC=True)


class ImageCreateService:
    """Application service responsible for image registration.

    This service orchestrates:
    - Suffix validation against the allowed image types
    - Confirming the object is retrievable
    - Persisting the image record

    Every failure propagates so the delivery queue retries and eventually
    quarantines the event.
    """

    def __init__(
        self,
        *,
        metadata: ImageMetadataRepository,
        storage: ImageStorageRepository,
    ) -> None:
        self.metadata = metadata
        self.storage = storage

    @staticmethod
    def is_supported(key: str) -> bool:
        return key.endswith(ALLOWED_IMAGE_SUFFIXES)

    def create(self, event: NormalizedEvent) -> ImageRecord:
        """Register the image named by an ObjectCreated event.

        Replaying the same event overwrites the record with identical
        fields.

        Raises:
            ValidationError: If the event is not a creation or the type is unsupported
            NotFoundError: If the object cannot be found in the store
            DependencyError: If the store read or metadata write fails
        """
        key = event.object_key
        logger.debug("Starting image registration", extra={"object_key": key})

        if event.kind is not EventKind.OBJECT_CREATED or not event.container_id:
            raise ValidationError(
                message=f"Event {event.event_name} for {key} is not an object creation",
                details={"object_key": key, "event_name": event.event_name},
            )

        # Step 1: Validate the image type from the key suffix
        if not self.is_supported(key):
            logger.warning("Unsupported image type", extra={"object_key": key})
            raise ValidationError(
                message=f"Unsupported image type: {key}",
                error_code=ERROR_CODE_UNSUPPORTED_IMAGE_TYPE,
                details={
                    "object_key": key,
                    "allowed_suffixes": list(ALLOWED_IMAGE_SUFFIXES),
                },
            )

        # Step 2: Confirm the object is retrievable
        self.storage.fetch_image(bucket=event.container_id, key=key)

        # Step 3: Upsert the metadata record
        record = ImageRecord(name=key, bucket=event.container_id)
        self.metadata.put_record(record=record)

        logger.info(
            "Image registered",
            extra={"object_key": key, "bucket": event.container_id},
        )
        return record
