"""Notification payload model."""

from pydantic import BaseModel, Field, StrictStr


class NotificationPayload(BaseModel):
    """Content rendered into a notification email body."""

    name: StrictStr = Field(..., description="Sender display name")
    email: StrictStr = Field(..., description="Sender address shown in the body")
    message: StrictStr = Field(..., description="Message paragraph")
