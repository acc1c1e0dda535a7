"""
Push notification glue.

Turns a newly persisted chat message into a push notification for its
receiver. Device tokens come from a user directory, delivery goes
through a NotificationSender; both are external collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from relay_shared.config.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "New Message"
DEFAULT_BODY = "You have received a new message"


@dataclass(frozen=True)
class PushNotification:
    """One notification addressed to one device."""

    device_token: str
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


class UserDirectory(Protocol):
    """Looks up user records (for their device token)."""

    async def get_user(self, user_id: str) -> dict[str, Any] | None: ...


class NotificationSender(Protocol):
    """Delivers a push notification."""

    async def send(self, notification: PushNotification) -> Any: ...


def build_message_notification(
    message: dict[str, Any],
    conversation_id: str,
    message_id: str,
    device_token: str,
) -> PushNotification:
    """Notification for ``message``, falling back to a generic body."""
    return PushNotification(
        device_token=device_token,
        title=DEFAULT_TITLE,
        body=message.get("message") or DEFAULT_BODY,
        data={
            "conversationId": conversation_id,
            "messageId": message_id,
            "senderId": message.get("senderId") or "",
        },
    )


class MessageNotifier:
    """
    Notifies the receiver of a new message.

    Skips silently (with a log line) when the message has no receiver,
    the receiver is unknown, or has no device token. Sender failures are
    logged, never raised.
    """

    def __init__(self, users: UserDirectory, sender: NotificationSender) -> None:
        self._users = users
        self._sender = sender

    async def notify(
        self,
        message: dict[str, Any] | None,
        conversation_id: str,
        message_id: str,
    ) -> PushNotification | None:
        """
        Returns:
            The notification that was sent, or None if nothing was sent.
        """
        if not message:
            logger.info("No message data found", message_id=message_id)
            return None

        receiver_id = message.get("receiverId")
        if not receiver_id:
            logger.info("No receiverId in message data", message_id=message_id)
            return None

        try:
            user = await self._users.get_user(receiver_id)
            if user is None:
                logger.info("Receiver does not exist", receiver_id=receiver_id)
                return None

            device_token = user.get("fcmToken")
            if not device_token:
                logger.info("No device token for receiver", receiver_id=receiver_id)
                return None

            notification = build_message_notification(
                message, conversation_id, message_id, device_token
            )
            await self._sender.send(notification)
        except Exception as e:
            logger.error(
                "Error sending notification",
                receiver_id=receiver_id,
                message_id=message_id,
                error=str(e),
                exc_info=True,
            )
            return None

        logger.info("Notification sent", receiver_id=receiver_id, message_id=message_id)
        return notification
