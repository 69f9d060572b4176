"""Notifications domain package."""

from .composer import NotificationComposer, truncate_preview
from .models import (
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    RequestStatus,
)
from .schemas import DisplayHints, PushPayload
from .sender import FirebasePushSender, PushSender
from .service import (
    FanoutResult,
    MessageFanoutNotifier,
    StatusTransitionNotifier,
)
from .tokens import TokenResolver

__all__ = [
    "NotificationCategory",
    "NotificationPriority",
    "NotificationType",
    "RequestStatus",
    "DisplayHints",
    "PushPayload",
    "NotificationComposer",
    "truncate_preview",
    "PushSender",
    "FirebasePushSender",
    "TokenResolver",
    "FanoutResult",
    "StatusTransitionNotifier",
    "MessageFanoutNotifier",
]
