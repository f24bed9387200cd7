"""Navigation resolution for tapped notifications."""

import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping, Protocol

from unified_messaging.codec import payload_route, payload_type

logger = logging.getLogger(__name__)

# Host callback that performs the navigation, e.g. pushing a route on a router.
NavigateCallback = Callable[[str], Any]


class NavigationHandler(Protocol):
    """Turns a tapped notification's payload into at most one navigation."""

    def handle_notification_navigation(self, data: Mapping[str, Any]) -> Any:
        """Handle navigation when a notification is tapped.

        Args:
            data: The notification payload.

        Returns:
            None, or an awaitable when navigation is asynchronous.
        """
        ...


def resolve_route(
    data: Mapping[str, Any],
    type_route_map: Mapping[str, str],
    fallback_route: str = "",
) -> str | None:
    """Resolve the route for a payload, first match wins.

    1. A string ``route`` key.
    2. A string ``type`` key present in ``type_route_map``.
    3. ``fallback_route``, if set and the payload has at least one key.

    Returns None when nothing applies. Non-string ``route``/``type`` values
    are treated as missing.
    """
    route = payload_route(data)
    if route is not None:
        return route

    type_ = payload_type(data)
    if type_ is not None and type_ in type_route_map:
        return type_route_map[type_]

    if fallback_route and data:
        return fallback_route
    return None


class DefaultNavigationHandler:
    """Navigation handler driven by ``route``/``type`` keys.

    ``navigate`` receives the resolved route, e.g. ``lambda r: router.push(r)``.
    ``type_route_map`` maps notification types to routes; without it only
    direct ``route`` navigation and the fallback apply. Pass an empty
    ``fallback_route`` to ignore notifications that resolve to nothing.
    """

    def __init__(
        self,
        navigate: NavigateCallback,
        type_route_map: Mapping[str, str] | None = None,
        fallback_route: str = "/",
    ) -> None:
        self.navigate = navigate
        self.type_route_map: Mapping[str, str] = MappingProxyType(
            dict(type_route_map or {})
        )
        self.fallback_route = fallback_route

    def resolve(self, data: Mapping[str, Any]) -> str | None:
        return resolve_route(data, self.type_route_map, self.fallback_route)

    def handle_notification_navigation(self, data: Mapping[str, Any]) -> Any:
        route = self.resolve(data)
        if route is None:
            logger.debug("Notification has no navigation target")
            return None
        logger.info(f"Navigating to {route}")
        return self.navigate(route)
