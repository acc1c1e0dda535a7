"""
Narrow interfaces to the relay's external collaborators:
upload credentials, push notifications and durable presence.
"""

from relay_shared.integrations.upload_auth import (
    AuthenticationParameters,
    ImageKitUploadAuthorizer,
    UploadAuthError,
    UploadAuthorizer,
    describe_credentials,
)
from relay_shared.integrations.notifications import (
    MessageNotifier,
    NotificationSender,
    PushNotification,
    UserDirectory,
    build_message_notification,
)
from relay_shared.integrations.presence import (
    InMemoryPresenceStore,
    PresenceRecorder,
    PresenceStore,
    should_update_presence,
)

__all__ = [
    "AuthenticationParameters",
    "ImageKitUploadAuthorizer",
    "UploadAuthError",
    "UploadAuthorizer",
    "describe_credentials",
    "MessageNotifier",
    "NotificationSender",
    "PushNotification",
    "UserDirectory",
    "build_message_notification",
    "InMemoryPresenceStore",
    "PresenceRecorder",
    "PresenceStore",
    "should_update_presence",
]
