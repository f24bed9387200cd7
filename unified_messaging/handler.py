"""Lifecycle controller combining push and local notifications.

``NotificationHandler`` sequences initialization, permission negotiation and
listener binding, and turns events from both collaborators into three host
callbacks: receive, tap and token refresh. Every collaborator failure is
logged and absorbed; nothing here raises to the caller.
"""

import asyncio
import inspect
import logging
from enum import IntEnum
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, TypeVar

from unified_messaging.categories import ActionCategoryRegistry, action_identifier
from unified_messaging.codec import (
    ACTION_KEY,
    INPUT_KEY,
    NotificationPayload,
    decode_payload,
    encode_payload,
)
from unified_messaging.collaborators.base import (
    BackgroundMessageHandler,
    LocalNotificationRenderer,
    PushTransport,
)
from unified_messaging.core import (
    AuthorizationStatus,
    InitializationSettings,
    NotificationAction,
    NotificationCategory,
    NotificationChannel,
    NotificationDetails,
    NotificationResponse,
    Platform,
    RemoteMessage,
    Settings,
)
from unified_messaging.ids import NotificationIdAllocator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Callbacks may be plain functions or coroutine functions
ReceiveCallback = Callable[[str, str, dict[str, Any]], Any]
TapCallback = Callable[[dict[str, Any]], Any]
TokenRefreshCallback = Callable[[str], Any]

GRANTED_STATUSES = (AuthorizationStatus.AUTHORIZED, AuthorizationStatus.PROVISIONAL)


class LifecycleState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    LISTENING = 2


async def background_message_handler(message: RemoteMessage) -> None:
    """Default entry point for push messages received in the background."""
    logger.debug(f"Background message received with data keys: {sorted(message.data)}")


class NotificationHandler:
    """Owns the notification lifecycle for one process.

    Uninitialized -> Initialized (``initialize``) -> Listening (first
    ``listen``). Operations needing a later state are no-ops before it.
    """

    def __init__(
        self,
        push: PushTransport,
        renderer: LocalNotificationRenderer,
        settings: Settings | None = None,
        background_handler: BackgroundMessageHandler = background_message_handler,
    ) -> None:
        self.push = push
        self.renderer = renderer
        self.settings = settings or Settings()
        self._background_handler = background_handler
        self._ids = NotificationIdAllocator()
        self._categories = ActionCategoryRegistry(
            self._initialize_renderer, prefix=self.settings.category_prefix
        )
        self._init_task: asyncio.Future[bool] | None = None
        self._reset_fields()

    def _reset_fields(self) -> None:
        self._state = LifecycleState.UNINITIALIZED
        self._permissions_granted = False
        self._streams_bound = False
        self._initial_message_handled = False
        self._token: str | None = None
        self._on_receive: ReceiveCallback | None = None
        self._on_tap: TapCallback | None = None
        self._on_token_refresh: TokenRefreshCallback | None = None
        self._subscriptions: list[asyncio.Task] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state >= LifecycleState.INITIALIZED

    @property
    def permissions_granted(self) -> bool:
        """Result of the last completed ``initialize``."""
        return self._permissions_granted

    @property
    def subscriptions(self) -> tuple[asyncio.Task, ...]:
        """Tasks consuming the bound push event streams."""
        return tuple(self._subscriptions)

    @property
    def categories(self) -> ActionCategoryRegistry:
        return self._categories

    async def initialize(self) -> bool:
        """Prepare both collaborators and request permissions.

        Returns True only when both push and local notification permissions
        are granted. Repeated or concurrent calls share the first result.
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> bool:
        try:
            await self._initialize_renderer()
        except Exception as e:
            logger.warning(
                f"Local notifications unavailable, continuing with push only: {e}"
            )

        try:
            await self.push.set_foreground_presentation_options(
                alert=True, badge=True, sound=True
            )
        except Exception as e:
            logger.warning(f"Failed to configure push presentation options: {e}")

        try:
            self.push.set_background_handler(self._background_handler)
        except Exception as e:
            logger.warning(f"Failed to register background message handler: {e}")

        self._permissions_granted = await self._request_permissions()
        self._state = LifecycleState.INITIALIZED
        logger.info(
            f"Notifications initialized (permissions granted: {self._permissions_granted})"
        )
        return self._permissions_granted

    async def listen(
        self,
        on_receive: ReceiveCallback | None = None,
        on_tap: TapCallback | None = None,
        on_token_refresh: TokenRefreshCallback | None = None,
    ) -> None:
        """Store callbacks and bind the push event streams.

        Callbacks are replaced on every call. Stream binding and the
        cold-start check happen once per handler lifetime.
        """
        if not self.is_initialized:
            logger.debug("listen() called before initialize(); ignoring")
            return

        self._on_receive = on_receive
        self._on_tap = on_tap
        self._on_token_refresh = on_token_refresh

        bind_streams = not self._streams_bound
        self._streams_bound = True
        check_initial_message = not self._initial_message_handled
        self._initial_message_handled = True

        # Re-prime so local taps go through the handler with the latest callback
        try:
            await self._initialize_renderer()
        except Exception as e:
            logger.warning(f"Failed to re-initialize local notifications: {e}")

        if bind_streams:
            self._bind_streams()
            self._state = LifecycleState.LISTENING

        if check_initial_message:
            await self._handle_cold_start()

    async def send(
        self,
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
        actions: list[str] | None = None,
    ) -> None:
        """Show a local notification. Failures are logged, never raised."""
        if not self.is_initialized:
            logger.debug("send() called before initialize(); ignoring")
            return

        try:
            notification_id = self._ids.next_id()
            payload = encode_payload(data) if data is not None else None

            notification_actions = [
                NotificationAction(identifier=action_identifier(label), title=label)
                for label in actions or []
            ]

            category_id = None
            if actions and self.settings.platform == Platform.DARWIN:
                category_id = await self._categories.register(actions)

            await self.renderer.show(
                notification_id,
                title,
                body,
                self._notification_details(notification_actions, category_id),
                payload=payload,
            )
        except Exception as e:
            logger.warning(f"Failed to show notification: {e}")

    async def get_token(self) -> str | None:
        """Return the cached push token, fetching it on first use."""
        if not self.is_initialized:
            return None
        if self._token is None:
            try:
                self._token = await self.push.get_token()
            except Exception as e:
                logger.warning(f"Failed to get push token: {e}")
                return None
        return self._token

    async def close(self) -> None:
        """Cancel the push event subscriptions."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for task in subscriptions:
            task.cancel()
        for task in subscriptions:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def reset(self) -> None:
        """Return to the uninitialized state. For tests only."""
        for task in self._subscriptions:
            task.cancel()
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        self._init_task = None
        self._ids.reset()
        self._categories.clear()
        self._reset_fields()

    # Private helper methods

    async def _initialize_renderer(
        self, categories: list[NotificationCategory] | None = None
    ) -> None:
        settings = InitializationSettings(
            icon=self.settings.notification_icon,
            categories=(
                categories if categories is not None else self._categories.categories
            ),
        )
        await self.renderer.initialize(settings, self._handle_notification_response)

    async def _request_permissions(self) -> bool:
        # A missing answer from the OS counts as granted on every platform
        local_granted = True
        try:
            platform = self.settings.platform
            if platform == Platform.DARWIN:
                granted = await self.renderer.request_permissions(
                    alert=True, badge=True, sound=True
                )
                local_granted = granted is not False
            elif platform == Platform.ANDROID:
                await self.renderer.create_notification_channel(
                    NotificationChannel(
                        id=self.settings.channel_id,
                        name=self.settings.channel_name,
                        description=self.settings.channel_description,
                    )
                )
                granted = await self.renderer.request_permissions()
                local_granted = granted is not False
        except Exception as e:
            logger.warning(f"Local notification permission request failed: {e}")
            local_granted = False

        try:
            status = await self.push.request_permission()
            push_granted = status in GRANTED_STATUSES
        except Exception as e:
            logger.warning(f"Push permission request failed: {e}")
            push_granted = False

        return local_granted and push_granted

    def _notification_details(
        self, actions: list[NotificationAction], category_id: str | None
    ) -> NotificationDetails:
        return NotificationDetails(
            channel_id=self.settings.channel_id,
            channel_name=self.settings.channel_name,
            channel_description=self.settings.channel_description,
            icon=self.settings.notification_icon,
            actions=actions,
            category_identifier=category_id if actions else None,
        )

    def _bind_streams(self) -> None:
        streams = [
            ("message", self.push.on_message, self._handle_foreground_message),
            (
                "message_opened_app",
                self.push.on_message_opened_app,
                self._handle_message_opened,
            ),
            ("token_refresh", self.push.on_token_refresh, self._handle_token_refresh),
        ]
        for name, subscribe, handler in streams:
            try:
                stream = subscribe()
            except Exception as e:
                logger.warning(f"Failed to subscribe to push {name} events: {e}")
                continue
            task = asyncio.create_task(
                self._consume(name, stream, handler), name=f"unified-messaging-{name}"
            )
            self._subscriptions.append(task)
        logger.info(f"Bound {len(self._subscriptions)} push event streams")

    async def _consume(
        self,
        name: str,
        stream: AsyncIterator[T],
        handler: Callable[[T], Awaitable[None]],
    ) -> None:
        try:
            async for event in stream:
                try:
                    await handler(event)
                except Exception as e:
                    logger.exception(f"Error handling push {name} event: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Push {name} stream failed: {e}")
        finally:
            # Release emitters waiting on an event this task will never finish
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as e:
                    logger.warning(f"Failed to close push {name} stream: {e}")

    async def _handle_foreground_message(self, message: RemoteMessage) -> None:
        notification = message.notification
        title = self.settings.default_title
        body = ""
        if notification is not None:
            if notification.title is not None:
                title = notification.title
            if notification.body is not None:
                body = notification.body
        data = dict(message.data)

        await self._invoke(self._on_receive, title, body, dict(data))

        # Show the banner locally so foreground pushes look like background ones
        await self.send(title, body, data=data)

    async def _handle_message_opened(self, message: RemoteMessage) -> None:
        await self._invoke(self._on_tap, dict(message.data))

    async def _handle_token_refresh(self, token: str) -> None:
        logger.info("Push token refreshed")
        self._token = token
        await self._invoke(self._on_token_refresh, token)

    async def _handle_notification_response(
        self, response: NotificationResponse
    ) -> None:
        if self._on_tap is None:
            return
        data: NotificationPayload = decode_payload(response.payload)
        if response.action_id:
            data[ACTION_KEY] = response.action_id
        if response.input:
            data[INPUT_KEY] = response.input
        await self._invoke(self._on_tap, data)

    async def _handle_cold_start(self) -> None:
        try:
            initial_message = await self.push.get_initial_message()
        except Exception as e:
            logger.warning(f"Failed to get initial push message: {e}")
            initial_message = None
        if initial_message is not None:
            logger.info("App launched from a push notification")
            await self._invoke(self._on_tap, dict(initial_message.data))

        try:
            launch_details = await self.renderer.get_launch_details()
        except Exception as e:
            logger.debug(f"Launch details unavailable: {e}")
            launch_details = None
        if (
            launch_details is not None
            and launch_details.launched_app
            and launch_details.response is not None
            and launch_details.response.payload is not None
        ):
            logger.info("App launched from a local notification")
            await self._handle_notification_response(launch_details.response)

    async def _invoke(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Notification callback failed: {e}")
