"""Unified push and local notifications with navigation on tap."""

from unified_messaging.codec import decode_payload, encode_payload
from unified_messaging.core import Settings
from unified_messaging.handler import LifecycleState, NotificationHandler
from unified_messaging.messaging import UnifiedMessaging
from unified_messaging.navigation import (
    DefaultNavigationHandler,
    NavigationHandler,
    resolve_route,
)

__all__ = [
    "DefaultNavigationHandler",
    "LifecycleState",
    "NavigationHandler",
    "NotificationHandler",
    "Settings",
    "UnifiedMessaging",
    "decode_payload",
    "encode_payload",
    "resolve_route",
]
