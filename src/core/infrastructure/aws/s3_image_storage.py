"""S3-backed implementation of ImageStorageRepository."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3AdapterProtocol
from core.models.errors import NotFoundError, StorageError
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import ERROR_CODE_IMAGE_DOWNLOAD_FAILED, ERROR_CODE_IMAGE_NOT_FOUND

logger = Logger(UTC=True)

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "404"})


class S3ImageStorage(ImageStorageRepository):
    """Image storage implementation backed by Amazon S3."""

    def __init__(self, adapter: S3AdapterProtocol) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3 = adapter

    def fetch_image(self, *, bucket: str, key: str) -> bytes:
        """Download image bytes from S3."""
        logger.debug("Fetching image", extra={"bucket": bucket, "key": key})

        try:
            response = self._s3.get_object(bucket=bucket, key=key)
            body: bytes = response["Body"].read()

            logger.info(
                "Image fetched successfully",
                extra={"bucket": bucket, "key": key, "size": len(body)},
            )
            return body

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in MISSING_OBJECT_CODES:
                logger.warning("Image not found", extra={"bucket": bucket, "key": key})
                raise NotFoundError(
                    message=f"Image {key} not found in {bucket}",
                    error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                    details={"bucket": bucket, "key": key},
                ) from exc

            logger.error("S3 download failed", extra={"bucket": bucket, "key": key})
            raise StorageError(
                message=f"Unable to download image {key}",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"bucket": bucket, "key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error downloading image")
            raise StorageError(
                message=f"Unable to download image {key}",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"bucket": bucket, "key": key},
            ) from exc
