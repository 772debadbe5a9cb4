"""Pydantic model for description update messages."""

from pydantic import BaseModel, ConfigDict, Field


class DescriptionUpdate(BaseModel):
    """Validated content of an AttributeChanged description event."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="Image name (metadata key)")
    description: str = Field(..., max_length=1000, description="New image description")
