from typing import Any, Optional

from pydantic import BaseModel, Field


class GuestNotificationPayload(BaseModel):
    data: dict[str, Any] = Field(..., description="Notification body delivered as envelope data")


class BulkNotificationPayload(BaseModel):
    guest_ids: list[str] = Field(..., min_length=1, description="Guests to notify")
    data: dict[str, Any] = Field(..., description="Notification body delivered as envelope data")


class BroadcastPayload(BaseModel):
    message: str = Field(..., description="System message text")
    data: Optional[dict[str, Any]] = Field(None, description="Extra fields merged into the envelope")
