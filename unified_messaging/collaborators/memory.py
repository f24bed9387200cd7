"""In-process collaborators.

``InMemoryPushTransport`` is a loopback push channel: the host (or a test)
feeds it messages, taps and token rotations. ``InMemoryRenderer`` keeps the
currently visible notifications and lets the host simulate taps.
"""

import asyncio
import logging
from typing import Generic, TypeVar

from pydantic import BaseModel

from unified_messaging.collaborators.base import (
    BackgroundMessageHandler,
    ResponseCallback,
)
from unified_messaging.core import (
    AuthorizationStatus,
    InitializationSettings,
    LaunchDetails,
    NotificationChannel,
    NotificationDetails,
    NotificationResponse,
    RemoteMessage,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventStream(Generic[T]):
    """Single-consumer async stream.

    ``emit`` returns once the consumer has finished handling the event and
    asked for the next one, or once the consumer detaches with ``aclose``.
    Events emitted while nobody is subscribed are dropped.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue()
        self._subscribed = False
        self._in_flight = False

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def subscribe(self) -> "EventStream[T]":
        self._subscribed = True
        return self

    def __aiter__(self) -> "EventStream[T]":
        return self

    async def __anext__(self) -> T:
        if self._in_flight:
            self._in_flight = False
            self._queue.task_done()
        item = await self._queue.get()
        self._in_flight = True
        return item

    async def aclose(self) -> None:
        """Detach the consumer and release every pending ``emit``."""
        self._subscribed = False
        if self._in_flight:
            self._in_flight = False
            self._queue.task_done()
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def emit(self, item: T) -> None:
        if not self._subscribed:
            logger.debug("Dropping event emitted with no subscriber")
            return
        await self._queue.put(item)
        await self._queue.join()


class InMemoryPushTransport:
    """Loopback push transport."""

    def __init__(
        self,
        token: str | None = "in-memory-token",
        authorization_status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        initial_message: RemoteMessage | None = None,
    ) -> None:
        self.token = token
        self.authorization_status = authorization_status
        self.initial_message = initial_message
        self.background_handler: BackgroundMessageHandler | None = None
        self.presentation_options: dict[str, bool] | None = None
        self.permission_requests = 0
        self.token_requests = 0
        self.messages: EventStream[RemoteMessage] = EventStream()
        self.opened_messages: EventStream[RemoteMessage] = EventStream()
        self.token_refreshes: EventStream[str] = EventStream()

    async def request_permission(self) -> AuthorizationStatus:
        self.permission_requests += 1
        return self.authorization_status

    async def get_token(self) -> str | None:
        self.token_requests += 1
        return self.token

    async def set_foreground_presentation_options(
        self, *, alert: bool, badge: bool, sound: bool
    ) -> None:
        self.presentation_options = {"alert": alert, "badge": badge, "sound": sound}

    def set_background_handler(self, handler: BackgroundMessageHandler) -> None:
        self.background_handler = handler

    def on_message(self) -> EventStream[RemoteMessage]:
        return self.messages.subscribe()

    def on_message_opened_app(self) -> EventStream[RemoteMessage]:
        return self.opened_messages.subscribe()

    def on_token_refresh(self) -> EventStream[str]:
        return self.token_refreshes.subscribe()

    async def get_initial_message(self) -> RemoteMessage | None:
        # Reported once, like a platform launch intent
        message, self.initial_message = self.initial_message, None
        return message

    async def deliver(self, message: RemoteMessage) -> None:
        """Deliver a message while the app is in the foreground."""
        await self.messages.emit(message)

    async def deliver_background(self, message: RemoteMessage) -> None:
        if self.background_handler is not None:
            await self.background_handler(message)

    async def open(self, message: RemoteMessage) -> None:
        """Simulate the user tapping a push notification."""
        await self.opened_messages.emit(message)

    async def refresh_token(self, token: str) -> None:
        self.token = token
        await self.token_refreshes.emit(token)


class ShownNotification(BaseModel):
    id: int
    title: str
    body: str
    details: NotificationDetails
    payload: str | None = None


class InMemoryRenderer:
    """Renderer that keeps visible notifications in memory."""

    def __init__(
        self,
        permission_granted: bool | None = True,
        launch_details: LaunchDetails | None = None,
    ) -> None:
        self.permission_granted = permission_granted
        self.launch_details = launch_details
        self.settings: InitializationSettings | None = None
        self.channels: list[NotificationChannel] = []
        self.visible: dict[int, ShownNotification] = {}
        self.initializations = 0
        self.permission_requests = 0
        self._on_response: ResponseCallback | None = None

    async def initialize(
        self, settings: InitializationSettings, on_response: ResponseCallback
    ) -> None:
        self.initializations += 1
        self.settings = settings
        self._on_response = on_response

    async def show(
        self,
        notification_id: int,
        title: str,
        body: str,
        details: NotificationDetails,
        payload: str | None = None,
    ) -> None:
        self.visible[notification_id] = ShownNotification(
            id=notification_id,
            title=title,
            body=body,
            details=details,
            payload=payload,
        )

    async def get_launch_details(self) -> LaunchDetails | None:
        return self.launch_details

    async def request_permissions(
        self, *, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> bool | None:
        self.permission_requests += 1
        return self.permission_granted

    async def create_notification_channel(self, channel: NotificationChannel) -> None:
        self.channels.append(channel)

    async def tap(
        self,
        notification_id: int,
        action_id: str | None = None,
        input: str | None = None,
    ) -> None:
        """Simulate the user tapping a visible notification or one of its actions.

        Raises:
            KeyError: If no notification with this id is visible.
        """
        shown = self.visible.pop(notification_id)
        if self._on_response is None:
            return
        await self._on_response(
            NotificationResponse(
                id=notification_id,
                payload=shown.payload,
                action_id=action_id,
                input=input,
            )
        )
