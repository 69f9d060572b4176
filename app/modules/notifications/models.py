"""Enumerations and constants shared by the notifications domain."""

import enum


class RequestStatus(str, enum.Enum):
    """Request lifecycle values observed by the triggers; other values pass through as strings."""

    REQUESTED = "requested"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"


class NotificationPriority(str, enum.Enum):
    HIGH = "high"


class NotificationCategory(str, enum.Enum):
    STATUS_UPDATE = "status_update"
    CHAT_MESSAGE = "chat_message"


class NotificationType(str, enum.Enum):
    REQUEST_ACCEPTED = "request_accepted"
    REQUEST_PICKED_UP = "request_picked_up"
    NEW_MESSAGE = "new_message"


# iOS notification categories registered by the mobile client
APNS_CATEGORIES = {
    NotificationCategory.STATUS_UPDATE: "REQUEST_UPDATE_CATEGORY",
    NotificationCategory.CHAT_MESSAGE: "NEW_MESSAGE_CATEGORY",
}

ANALYTICS_LABELS = {
    NotificationCategory.STATUS_UPDATE: "request_status_notification",
    NotificationCategory.CHAT_MESSAGE: "message_notification",
}

DEFAULT_MESSAGE_TEXT = "New message"
DEFAULT_SENDER_NAME = "Someone"
DEFAULT_PICKUP_LABEL = "Pickup"
UNKNOWN_LOCATION = "Unknown location"
ELLIPSIS = "..."
