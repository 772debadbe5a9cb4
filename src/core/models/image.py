"""Image metadata record model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from core.utils.constants import ATTR_BUCKET, ATTR_DESCRIPTION, ATTR_IMAGE_NAME


class ImageRecord(BaseModel):
    """Metadata for one image object in the blob store.

    The record exists if and only if the corresponding object exists
    (eventually consistent). Only the description is ever mutated.
    """

    model_config = ConfigDict(frozen=True)

    name: StrictStr = Field(..., min_length=1, description="Decoded object key, primary key")
    bucket: StrictStr = Field(..., description="Source bucket of the object")
    description: StrictStr | None = Field(None, description="Optional image description")

    def to_item(self) -> dict[str, Any]:
        """Serialize to the metadata table's attribute names."""
        item: dict[str, Any] = {
            ATTR_IMAGE_NAME: self.name,
            ATTR_BUCKET: self.bucket,
        }
        if self.description is not None:
            item[ATTR_DESCRIPTION] = self.description
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "ImageRecord":
        """Build a record from a metadata table item."""
        return cls(
            name=item[ATTR_IMAGE_NAME],
            bucket=item.get(ATTR_BUCKET, ""),
            description=item.get(ATTR_DESCRIPTION),
        )
