"""
Viewing telemetry.

Components:
- NotificationSink: fire-and-forget reporting protocol
- HttpNotificationSink: posts to the backend notify endpoints
- NullNotificationSink: offline sink
"""
from src.telemetry.notifier import (
    HttpNotificationSink,
    NotificationSink,
    NullNotificationSink,
    RemediationNotice,
    VideoFinishedNotice,
)

__all__ = [
    "NotificationSink",
    "HttpNotificationSink",
    "NullNotificationSink",
    "RemediationNotice",
    "VideoFinishedNotice",
]
