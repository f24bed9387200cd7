"""Push transport and local-notification renderer implementations."""

import sys

from unified_messaging.collaborators.base import (
    LocalNotificationRenderer,
    PushTransport,
)
from unified_messaging.core import Settings


def get_renderer(settings: Settings | None = None) -> LocalNotificationRenderer:
    """Return the configured renderer, or the one for the current platform."""
    choice = (settings or Settings()).renderer
    if choice == "memory":
        from unified_messaging.collaborators.memory import InMemoryRenderer

        return InMemoryRenderer()
    elif choice == "dbus" or (choice == "auto" and sys.platform == "linux"):
        from unified_messaging.collaborators.linux import DBusRenderer

        return DBusRenderer()
    else:
        raise RuntimeError(
            f"Unsupported renderer {choice!r} on platform: {sys.platform}"
        )


__all__ = ["LocalNotificationRenderer", "PushTransport", "get_renderer"]
