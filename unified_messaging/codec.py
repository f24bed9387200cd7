"""Payload codec for the key-value data attached to notifications."""

import json
import logging
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)

JsonValue = Union[str, int, float, bool, None, dict[str, "JsonValue"], list["JsonValue"]]

# Payloads are JSON objects; only the reserved keys below have meaning here.
NotificationPayload = dict[str, JsonValue]

ROUTE_KEY = "route"
TYPE_KEY = "type"
ACTION_KEY = "_action"
INPUT_KEY = "_input"


def encode_payload(payload: Mapping[str, Any]) -> str | None:
    """Serialize a payload to canonical JSON.

    Returns None when the payload holds values JSON cannot represent, so the
    notification is shown without data instead of not at all.
    """
    try:
        return json.dumps(
            payload, sort_keys=True, separators=(",", ":"), allow_nan=False
        )
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning(f"Dropping unserializable notification payload: {e}")
        return None


def decode_payload(text: str | None) -> NotificationPayload:
    """Parse a payload string, returning an empty dict for anything but a JSON object."""
    if not text:
        return {}
    try:
        decoded = json.loads(text)
    except (TypeError, ValueError, RecursionError):
        logger.debug(f"Ignoring malformed notification payload: {text!r}")
        return {}
    return dict(decoded) if isinstance(decoded, dict) else {}


def payload_route(payload: Mapping[str, Any]) -> str | None:
    route = payload.get(ROUTE_KEY)
    return route if isinstance(route, str) else None


def payload_type(payload: Mapping[str, Any]) -> str | None:
    type_ = payload.get(TYPE_KEY)
    return type_ if isinstance(type_, str) else None
