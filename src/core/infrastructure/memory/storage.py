"""In-process blob store."""

from core.models.errors import NotFoundError
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import ERROR_CODE_IMAGE_NOT_FOUND


class InMemoryImageStorage(ImageStorageRepository):
    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], bytes] = {}

    def put(self, *, bucket: str, key: str, body: bytes) -> None:
        self._objects[(bucket, key)] = body

    def delete(self, *, bucket: str, key: str) -> None:
        self._objects.pop((bucket, key), None)

    def fetch_image(self, *, bucket: str, key: str) -> bytes:
        try:
            return self._objects[(bucket, key)]
        except KeyError as exc:
            raise NotFoundError(
                message=f"Image {key} not found in {bucket}",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details={"bucket": bucket, "key": key},
            ) from exc
