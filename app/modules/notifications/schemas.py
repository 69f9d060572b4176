"""Pydantic schemas for store documents and outbound push payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import NotificationCategory, NotificationPriority


class StoreDocument(BaseModel):
    """Base for documents read from the store; unknown fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @classmethod
    def from_fields(cls, fields: Optional[Dict[str, Any]]):
        if fields is None:
            return None
        return cls.model_validate(fields)


class RequestDocument(StoreDocument):
    status: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    dining_hall: Optional[str] = Field(default=None, alias="diningHall")


class ConversationDocument(StoreDocument):
    request_id: Optional[str] = Field(default=None, alias="requestId")
    participants: Optional[List[str]] = None
    request_status: Optional[str] = Field(default=None, alias="requestStatus")


class MessageDocument(StoreDocument):
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    text: Optional[str] = None


class UserDocument(StoreDocument):
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")
    name: Optional[str] = None


class DisplayHints(BaseModel):
    channel: str
    group_key: Optional[str] = None
    color: Optional[str] = None
    click_action: Optional[str] = None


class PushPayload(BaseModel):
    """Recipient-ready notification handed to the push sender."""

    model_config = ConfigDict(frozen=True)

    target: str
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    category: NotificationCategory
    priority: NotificationPriority = NotificationPriority.HIGH
    display_hints: DisplayHints

    @field_validator("data", mode="before")
    @classmethod
    def _stringify_data(cls, value):
        # FCM data payloads only accept string values
        if value is None:
            return {}
        return {str(k): "" if v is None else str(v) for k, v in dict(value).items()}


__all__ = [
    "StoreDocument",
    "RequestDocument",
    "ConversationDocument",
    "MessageDocument",
    "UserDocument",
    "DisplayHints",
    "PushPayload",
]
