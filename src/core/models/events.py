"""Normalized internal events and change-stream records."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class EventKind(str, Enum):
    """Kinds of events the router understands."""

    OBJECT_CREATED = "ObjectCreated"
    OBJECT_REMOVED = "ObjectRemoved"
    ATTRIBUTE_CHANGED = "AttributeChanged"


class NormalizedEvent(BaseModel):
    """Internal representation of one inbound event.

    `object_key` is always fully decoded. `event_name` is the provider
    type string (e.g. "ObjectCreated:Put") that filter predicates match on.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    event_name: StrictStr
    object_key: StrictStr = Field(..., min_length=1)
    container_id: StrictStr | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    description: StrictStr | None = None


class ChangeOperation(str, Enum):
    """Mutation types emitted by the metadata store change stream."""

    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


class ChangeRecord(BaseModel):
    """One ordered mutation of the metadata store."""

    model_config = ConfigDict(frozen=True)

    sequence_number: StrictStr
    operation: ChangeOperation
    key: StrictStr
    old_image: dict[str, Any] | None = None
    new_image: dict[str, Any] | None = None

    @property
    def is_removal(self) -> bool:
        return self.operation is ChangeOperation.REMOVE
