"""Business logic for image description updates."""

from aws_lambda_powertools import Logger
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import NotFoundError, ValidationError
from core.models.events import EventKind, NormalizedEvent
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.constants import ERROR_CODE_RECORD_NOT_FOUND

from .models import DescriptionUpdate

logger = Logger(UTC=True)


class MetadataUpdateService:
    """Applies description changes to existing image records.

    The update flow is:
    1. Validate the change message
    2. Read the existing record; fail if it does not exist
    3. Write the new description
    """

    def __init__(self, *, metadata: ImageMetadataRepository) -> None:
        self.metadata = metadata

    def update(self, event: NormalizedEvent) -> ImageRecord:
        """Update the description named by an AttributeChanged event.

        Raises:
            ValidationError: If the message is invalid or the image does not exist
            MetadataStoreError: If the read or update fails
        """
        if event.kind is not EventKind.ATTRIBUTE_CHANGED:
            raise ValidationError(
                message=f"Event {event.event_name} is not an attribute change",
                details={"object_key": event.object_key},
            )

        try:
            change = DescriptionUpdate(name=event.object_key, description=event.description)
        except PydanticValidationError as exc:
            raise ValidationError(
                message=f"Invalid description update for {event.object_key}",
                details={"errors": [err["msg"] for err in exc.errors()]},
            ) from exc

        existing = self.metadata.fetch_record(name=change.name)
        if existing is None:
            logger.warning("Image to update does not exist", extra={"image_name": change.name})
            raise ValidationError(
                message=f"The image {change.name} you're updating does not exist",
                error_code=ERROR_CODE_RECORD_NOT_FOUND,
                details={"image_name": change.name},
            )

        try:
            updated = self.metadata.update_description(
                name=change.name,
                description=change.description,
            )
        except NotFoundError as exc:
            # Deleted between the read and the update
            raise ValidationError(
                message=f"The image {change.name} you're updating does not exist",
                error_code=ERROR_CODE_RECORD_NOT_FOUND,
                details={"image_name": change.name},
            ) from exc

        logger.info("Image description updated", extra={"image_name": change.name})
        return updated
