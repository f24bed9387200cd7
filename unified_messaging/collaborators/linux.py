"""Linux D-Bus notification renderer."""

import asyncio
import logging

from dbus_fast import BusType, Message, MessageType, Variant
from dbus_fast.aio import MessageBus

from unified_messaging.collaborators.base import ResponseCallback
from unified_messaging.core import (
    InitializationSettings,
    LaunchDetails,
    NotificationChannel,
    NotificationDetails,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

NOTIFICATIONS_INTERFACE = "org.freedesktop.Notifications"
NOTIFICATIONS_PATH = "/org/freedesktop/Notifications"
DEFAULT_ACTION = "default"

# Notify urgency hint: 0 low, 1 normal, 2 critical
URGENCY = {"min": 0, "low": 0, "default": 1, "high": 1, "max": 2}


class DBusRenderer:
    """Shows notifications through the freedesktop notification service.

    The notification server assigns its own ids; shown notifications are
    tracked by server id so tap signals can be mapped back to the payload.
    """

    def __init__(self, app_name: str = "unified-messaging") -> None:
        self.app_name = app_name
        self._bus: MessageBus | None = None
        self._on_response: ResponseCallback | None = None
        self._shown: dict[int, tuple[int, str | None]] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_connected(self) -> bool:
        return self._bus is not None

    async def initialize(
        self, settings: InitializationSettings, on_response: ResponseCallback
    ) -> None:
        """Connect to the session bus and subscribe to notification signals."""
        self._on_response = on_response
        if self._bus is not None:
            return

        bus = await MessageBus(bus_type=BusType.SESSION).connect()

        match_rule = f"type='signal',interface='{NOTIFICATIONS_INTERFACE}'"
        reply = await bus.call(
            Message(
                destination="org.freedesktop.DBus",
                path="/org/freedesktop/DBus",
                interface="org.freedesktop.DBus",
                member="AddMatch",
                signature="s",
                body=[match_rule],
            )
        )

        if reply.message_type == MessageType.ERROR:
            bus.disconnect()
            raise RuntimeError(f"Failed to add match rule: {reply.body}")

        bus.add_message_handler(self._handle_message)
        self._bus = bus
        logger.info("Successfully subscribed to D-Bus notification signals")

    async def show(
        self,
        notification_id: int,
        title: str,
        body: str,
        details: NotificationDetails,
        payload: str | None = None,
    ) -> None:
        if self._bus is None:
            raise RuntimeError("D-Bus renderer is not initialized")

        # Actions are a flat list of identifier/label pairs
        actions = [DEFAULT_ACTION, ""]
        for action in details.actions:
            actions.extend([action.identifier, action.title])

        hints = {"urgency": Variant("y", URGENCY.get(details.importance, 1))}
        if details.category_identifier:
            hints["category"] = Variant("s", details.category_identifier)

        reply = await self._bus.call(
            Message(
                destination=NOTIFICATIONS_INTERFACE,
                path=NOTIFICATIONS_PATH,
                interface=NOTIFICATIONS_INTERFACE,
                member="Notify",
                signature="susssasa{sv}i",
                body=[self.app_name, 0, "", title, body, actions, hints, -1],
            )
        )

        if reply.message_type == MessageType.ERROR:
            raise RuntimeError(f"Failed to show notification: {reply.body}")

        server_id = reply.body[0]
        self._shown[server_id] = (notification_id, payload)
        logger.debug(f"Shown notification {notification_id} as D-Bus id {server_id}")

    async def get_launch_details(self) -> LaunchDetails | None:
        # Desktop sessions never launch the process from a notification
        return LaunchDetails(launched_app=False)

    async def request_permissions(
        self, *, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> bool | None:
        return None

    async def create_notification_channel(self, channel: NotificationChannel) -> None:
        logger.debug(f"Ignoring notification channel {channel.id} on D-Bus")

    async def close(self) -> None:
        """Disconnect from D-Bus."""
        if self._bus:
            self._bus.disconnect()
            self._bus = None
            logger.info("Disconnected from D-Bus")

    def _handle_message(self, msg: Message) -> bool:
        """Handle incoming D-Bus signals."""
        if (
            msg.message_type != MessageType.SIGNAL
            or msg.interface != NOTIFICATIONS_INTERFACE
        ):
            return False

        if msg.member == "ActionInvoked":
            server_id, action_key = msg.body[:2]
            response = self._pop_response(server_id)
            if response is not None:
                if action_key != DEFAULT_ACTION:
                    response.action_id = action_key
                self._dispatch(response)
        elif msg.member == "NotificationReplied":
            server_id, text = msg.body[:2]
            response = self._pop_response(server_id)
            if response is not None:
                response.input = text
                self._dispatch(response)
        elif msg.member == "NotificationClosed":
            self._shown.pop(msg.body[0], None)
        return False  # Don't consume the message

    def _pop_response(self, server_id: int) -> NotificationResponse | None:
        entry = self._shown.pop(server_id, None)
        if entry is None:
            return None
        notification_id, payload = entry
        return NotificationResponse(id=notification_id, payload=payload)

    def _dispatch(self, response: NotificationResponse) -> None:
        if self._on_response is None:
            return
        # Schedule async processing
        task = asyncio.create_task(self._on_response(response))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
