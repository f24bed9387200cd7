"""Protocols for the push transport and the local-notification renderer."""

from typing import AsyncIterator, Awaitable, Callable, Protocol

from unified_messaging.core import (
    AuthorizationStatus,
    InitializationSettings,
    LaunchDetails,
    NotificationChannel,
    NotificationDetails,
    NotificationResponse,
    RemoteMessage,
)

# Called by the renderer when the user taps a notification or one of its actions
ResponseCallback = Callable[[NotificationResponse], Awaitable[None]]

# Process-wide entry point for messages received while the app is in the background
BackgroundMessageHandler = Callable[[RemoteMessage], Awaitable[None]]


class PushTransport(Protocol):
    """Cloud push-messaging client."""

    async def request_permission(self) -> AuthorizationStatus:
        """Ask the user for push permission."""
        ...

    async def get_token(self) -> str | None:
        """Return the registration token for server-side sends."""
        ...

    async def set_foreground_presentation_options(
        self, *, alert: bool, badge: bool, sound: bool
    ) -> None:
        ...

    def set_background_handler(self, handler: BackgroundMessageHandler) -> None:
        ...

    def on_message(self) -> AsyncIterator[RemoteMessage]:
        """Messages received while the app is in the foreground."""
        ...

    def on_message_opened_app(self) -> AsyncIterator[RemoteMessage]:
        """Push notifications tapped while the app was in the background."""
        ...

    def on_token_refresh(self) -> AsyncIterator[str]:
        ...

    async def get_initial_message(self) -> RemoteMessage | None:
        """The push notification that launched the app from a terminated state."""
        ...


class LocalNotificationRenderer(Protocol):
    """Platform service that displays notifications on the device."""

    async def initialize(
        self, settings: InitializationSettings, on_response: ResponseCallback
    ) -> None:
        """Prepare the renderer; may be called again to replace settings and callback."""
        ...

    async def show(
        self,
        notification_id: int,
        title: str,
        body: str,
        details: NotificationDetails,
        payload: str | None = None,
    ) -> None:
        ...

    async def get_launch_details(self) -> LaunchDetails | None:
        ...

    async def request_permissions(
        self, *, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> bool | None:
        """Ask for permission to display notifications.

        Returns None when the platform gives no answer.
        """
        ...

    async def create_notification_channel(self, channel: NotificationChannel) -> None:
        ...
