"""Public entry point: initialize, listen and send, with navigation on tap."""

import inspect
import logging
from typing import Any, Mapping

from unified_messaging.collaborators.base import LocalNotificationRenderer, PushTransport
from unified_messaging.core import Settings
from unified_messaging.handler import (
    NotificationHandler,
    ReceiveCallback,
    TokenRefreshCallback,
)
from unified_messaging.navigation import NavigationHandler

logger = logging.getLogger(__name__)


class UnifiedMessaging:
    """Push and local notifications behind one lifecycle.

    Construct one per process and pass it to whoever needs it:

        messaging = UnifiedMessaging.create(push, renderer)
        await messaging.initialize()
        await messaging.listen(DefaultNavigationHandler(navigate=router.push))
    """

    def __init__(self, handler: NotificationHandler) -> None:
        self.handler = handler
        self._navigation_handler: NavigationHandler | None = None

    @classmethod
    def create(
        cls,
        push: PushTransport,
        renderer: LocalNotificationRenderer,
        settings: Settings | None = None,
    ) -> "UnifiedMessaging":
        return cls(NotificationHandler(push, renderer, settings))

    @property
    def navigation_handler(self) -> NavigationHandler | None:
        return self._navigation_handler

    async def initialize(self) -> bool:
        """Initialize push and local notifications and request permissions.

        Call once at startup; returns whether notifications are permitted.
        """
        return await self.handler.initialize()

    async def listen(
        self,
        navigation_handler: NavigationHandler,
        on_notification_received: ReceiveCallback | None = None,
        on_token_refresh: TokenRefreshCallback | None = None,
    ) -> None:
        """Set up listeners; taps from either source go to ``navigation_handler``.

        Call when the host's navigation is available.
        """
        self._navigation_handler = navigation_handler
        await self.handler.listen(
            on_receive=on_notification_received,
            on_tap=self._navigate,
            on_token_refresh=on_token_refresh,
        )

    def set_navigation_handler(self, navigation_handler: NavigationHandler) -> None:
        """Replace the navigation handler used for subsequent taps."""
        self._navigation_handler = navigation_handler

    async def send(
        self,
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
        actions: list[str] | None = None,
    ) -> None:
        """Show a local notification.

        Args:
            title: Notification title.
            body: Notification body text.
            data: Optional payload used for navigation on tap.
            actions: Optional action button labels.
        """
        await self.handler.send(title, body, data=data, actions=actions)

    async def get_token(self) -> str | None:
        """Push token for server-side sends."""
        return await self.handler.get_token()

    async def close(self) -> None:
        await self.handler.close()

    async def _navigate(self, data: dict[str, Any]) -> None:
        navigation_handler = self._navigation_handler
        if navigation_handler is None:
            return
        result = navigation_handler.handle_notification_navigation(data)
        if inspect.isawaitable(result):
            await result
