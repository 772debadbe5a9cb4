"""Abstract contract for image metadata persistence."""

from abc import ABC, abstractmethod

from core.models.image import ImageRecord


class ImageMetadataRepository(ABC):
    """Contract for storing and retrieving image metadata records.

    Implementations could be DynamoDB, an in-memory table, etc.
    Handlers depend on this interface, not the implementation.
    All operations are single-key; no multi-key transactions.
    """

    @abstractmethod
    def put_record(self, *, record: ImageRecord) -> None:
        """Create or overwrite the record for `record.name`.

        Overwriting with identical fields is a benign no-op, which keeps
        replays of the same creation event idempotent.

        Raises:
            MetadataStoreError: If the write fails
        """

    @abstractmethod
    def fetch_record(self, *, name: str) -> ImageRecord | None:
        """Fetch the record for an image.

        Returns:
            The record, or None if absent

        Raises:
            MetadataStoreError: If the read fails
        """

    @abstractmethod
    def update_description(self, *, name: str, description: str) -> ImageRecord:
        """Set the description of an existing record.

        Returns:
            The updated record

        Raises:
            NotFoundError: If no record exists for `name`
            MetadataStoreError: If the update fails
        """

    @abstractmethod
    def remove_record(self, *, name: str) -> None:
        """Delete the record for an image. Deleting an absent record succeeds.

        Raises:
            MetadataStoreError: If the delete fails
        """
