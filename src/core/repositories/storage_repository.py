"""Abstract contract for reading image objects."""

from abc import ABC, abstractmethod


class ImageStorageRepository(ABC):
    """Contract for retrieving image objects from a blob store.

    Implementations could be S3, GCS, local disk, etc.
    """

    @abstractmethod
    def fetch_image(self, *, bucket: str, key: str) -> bytes:
        """Download an object.

        Args:
            bucket: Container the object lives in
            key: Decoded object key

        Returns:
            Object content

        Raises:
            NotFoundError: If the object doesn't exist
            StorageError: If the read fails
        """
