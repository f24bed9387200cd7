"""Core module: Settings, platform detection, and collaborator data models."""

import sys
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Platform(str, Enum):
    """Notification platform family, which decides channel and category handling."""

    ANDROID = "android"
    DARWIN = "darwin"
    OTHER = "other"


def detect_platform() -> Platform:
    """Return the platform family for the running interpreter."""
    if sys.platform == "android":
        return Platform.ANDROID
    elif sys.platform in ("ios", "darwin"):
        return Platform.DARWIN
    return Platform.OTHER


class AuthorizationStatus(str, Enum):
    """Push permission status reported by the push transport."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"
    PROVISIONAL = "provisional"


class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    channel_id: str = "unified_messaging_channel"
    channel_name: str = "App Notifications"
    channel_description: str = "Notifications from the app"
    notification_icon: str = "@drawable/ic_notification"
    category_prefix: str = "unified_messaging_"
    default_title: str = "New Message"
    platform: Platform = Field(default_factory=detect_platform)

    # Example host
    renderer: str = "auto"
    type_routes: dict[str, str] = Field(default_factory=dict)
    fallback_route: str = "/"
    port: int = 9001
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_prefix": "UNIFIED_MESSAGING_",
        "extra": "ignore",
    }


class RemoteNotification(BaseModel):
    """Visible part of a push message."""

    title: str | None = None
    body: str | None = None


class RemoteMessage(BaseModel):
    """A message delivered by the push transport."""

    notification: RemoteNotification | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationResponse(BaseModel):
    """What the renderer reports when a local notification is tapped."""

    id: int | None = None
    payload: str | None = None
    action_id: str | None = None
    input: str | None = None


class LaunchDetails(BaseModel):
    """Whether the process was started by tapping a local notification."""

    launched_app: bool = False
    response: NotificationResponse | None = None


class NotificationAction(BaseModel):
    identifier: str
    title: str


class NotificationCategory(BaseModel):
    """Pre-declared set of interactive actions (Darwin)."""

    identifier: str
    actions: list[NotificationAction] = Field(default_factory=list)


class NotificationChannel(BaseModel):
    """Android notification channel."""

    id: str
    name: str
    description: str = ""
    importance: str = "max"


class NotificationDetails(BaseModel):
    """Display options handed to the renderer with every notification."""

    channel_id: str
    channel_name: str
    channel_description: str = ""
    importance: str = "max"
    priority: str = "high"
    icon: str = ""
    actions: list[NotificationAction] = Field(default_factory=list)
    present_alert: bool = True
    present_badge: bool = True
    present_sound: bool = True
    category_identifier: str | None = None


class InitializationSettings(BaseModel):
    """Renderer start-up options.

    Permission prompts are never requested at initialization; they are
    requested explicitly during permission negotiation.
    """

    icon: str = ""
    request_alert_permission: bool = False
    request_badge_permission: bool = False
    request_sound_permission: bool = False
    categories: list[NotificationCategory] = Field(default_factory=list)
