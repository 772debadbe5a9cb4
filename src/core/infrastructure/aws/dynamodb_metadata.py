"""DynamoDB-backed implementation of ImageMetadataRepository."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapterProtocol
from core.models.errors import MetadataStoreError, NotFoundError
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.constants import (
    ATTR_DESCRIPTION,
    ATTR_IMAGE_NAME,
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_PUT_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    ERROR_CODE_RECORD_NOT_FOUND,
)

logger = Logger(UTC=True)


class DynamoDBImageMetadata(ImageMetadataRepository):
    """DynamoDB-backed metadata storage with error handling.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    def __init__(self, adapter: DynamoDBAdapterProtocol) -> None:
        """Initialize with a DynamoDB adapter bound to the images table."""
        self._db = adapter

    def put_record(self, *, record: ImageRecord) -> None:
        """Create or overwrite a record.

        Raises:
            MetadataStoreError: If the write fails
        """
        logger.debug("Putting image record", extra={"image_name": record.name})

        try:
            self._db.put_item(item=record.to_item())
            logger.info(
                "Image record stored",
                extra={"image_name": record.name, "bucket": record.bucket},
            )

        except ClientError as exc:
            logger.error("DynamoDB put_item failed", extra={"image_name": record.name})
            raise MetadataStoreError(
                message=f"Unable to store metadata for {record.name}",
                error_code=ERROR_CODE_METADATA_PUT_FAILED,
                details={"image_name": record.name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error storing image record")
            raise MetadataStoreError(
                message=f"Unable to store metadata for {record.name}",
                error_code=ERROR_CODE_METADATA_PUT_FAILED,
                details={"image_name": record.name},
            ) from exc

    def fetch_record(self, *, name: str) -> ImageRecord | None:
        """Fetch a single record.

        Raises:
            MetadataStoreError: If the read fails or the item is malformed
        """
        logger.debug("Fetching image record", extra={"image_name": name})

        try:
            response = self._db.get_item(key={ATTR_IMAGE_NAME: name})
            item = response.get("Item")

            if item is None:
                return None

            return ImageRecord.from_item(item)

        except ClientError as exc:
            logger.error("DynamoDB get_item failed", extra={"image_name": name})
            raise MetadataStoreError(
                message=f"Unable to retrieve metadata for {name}",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_name": name},
            ) from exc

        except (KeyError, PydanticValidationError) as exc:
            logger.error("Invalid image record format", extra={"image_name": name})
            raise MetadataStoreError(
                message=f"Invalid metadata format for {name}",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_name": name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error fetching image record")
            raise MetadataStoreError(
                message=f"Unable to retrieve metadata for {name}",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_name": name},
            ) from exc

    def update_description(self, *, name: str, description: str) -> ImageRecord:
        """Set the description of an existing record.

        The existence check is enforced by the store itself with a
        condition expression, so a concurrent delete cannot resurrect
        the item.

        Raises:
            NotFoundError: If the record does not exist
            MetadataStoreError: If the update fails
        """
        logger.debug("Updating image description", extra={"image_name": name})

        try:
            response = self._db.update_item(
                key={ATTR_IMAGE_NAME: name},
                update_expression="SET #description = :description",
                expression_names={
                    "#description": ATTR_DESCRIPTION,
                    "#name": ATTR_IMAGE_NAME,
                },
                expression_values={":description": description},
                condition_expression="attribute_exists(#name)",
            )
            logger.info("Image description updated", extra={"image_name": name})
            return ImageRecord.from_item(response["Attributes"])

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.warning("Image record missing for update", extra={"image_name": name})
                raise NotFoundError(
                    message=f"Image {name} does not exist",
                    error_code=ERROR_CODE_RECORD_NOT_FOUND,
                    details={"image_name": name},
                ) from exc

            logger.error("DynamoDB update_item failed", extra={"image_name": name})
            raise MetadataStoreError(
                message=f"Unable to update metadata for {name}",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_name": name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error updating image record")
            raise MetadataStoreError(
                message=f"Unable to update metadata for {name}",
                error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
                details={"image_name": name},
            ) from exc

    def remove_record(self, *, name: str) -> None:
        """Delete a record.

        Raises:
            MetadataStoreError: If deletion fails
        """
        logger.debug("Removing image record", extra={"image_name": name})

        try:
            self._db.delete_item(key={ATTR_IMAGE_NAME: name})
            logger.info("Image record removed", extra={"image_name": name})

        except ClientError as exc:
            logger.error("DynamoDB delete_item failed", extra={"image_name": name})
            raise MetadataStoreError(
                message=f"Unable to delete metadata for {name}",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_name": name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error removing image record")
            raise MetadataStoreError(
                message=f"Unable to delete metadata for {name}",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"image_name": name},
            ) from exc
