"""FastAPI example host wired to the messaging facade."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from unified_messaging.collaborators import get_renderer
from unified_messaging.collaborators.memory import InMemoryPushTransport
from unified_messaging.core import RemoteMessage, Settings
from unified_messaging.messaging import UnifiedMessaging
from unified_messaging.navigation import DefaultNavigationHandler

settings = Settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Global state
messaging: UnifiedMessaging | None = None
push: InMemoryPushTransport | None = None
permissions_granted = False
last_route: str | None = None


class SendRequest(BaseModel):
    title: str
    body: str
    data: dict[str, Any] | None = None
    actions: list[str] | None = None


class TokenRequest(BaseModel):
    token: str


def navigate(route: str) -> None:
    global last_route
    logger.info(f"Host navigation to {route}")
    last_route = route


def on_notification_received(title: str, body: str, data: dict[str, Any]) -> None:
    logger.info(f"Received notification: {title}")


def on_token_refresh(token: str) -> None:
    logger.info("Push token rotated")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global messaging, push, permissions_granted, last_route

    push = InMemoryPushTransport()
    renderer = get_renderer(settings)
    messaging = UnifiedMessaging.create(push, renderer, settings)
    last_route = None

    permissions_granted = await messaging.initialize()
    await messaging.listen(
        DefaultNavigationHandler(
            navigate=navigate,
            type_route_map=settings.type_routes,
            fallback_route=settings.fallback_route,
        ),
        on_notification_received=on_notification_received,
        on_token_refresh=on_token_refresh,
    )
    yield
    await messaging.close()
    close = getattr(renderer, "close", None)
    if close is not None:
        await close()


app = FastAPI(
    title="Unified Messaging",
    description="Example host for unified push and local notifications.",
    version="0.1.0",
    lifespan=lifespan,
)


def _require_messaging() -> UnifiedMessaging:
    if messaging is None:
        raise HTTPException(status_code=503, detail="Messaging is not running")
    return messaging


def _require_push() -> InMemoryPushTransport:
    if push is None:
        raise HTTPException(status_code=503, detail="Push transport is not running")
    return push


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "state": messaging.handler.state.name.lower() if messaging else "stopped",
    }


@app.get("/status")
async def status() -> dict[str, Any]:
    """Get messaging status."""
    return {
        "state": messaging.handler.state.name.lower() if messaging else "stopped",
        "permissions_granted": permissions_granted,
        "platform": settings.platform.value,
        "last_route": last_route,
    }


@app.get("/token")
async def token() -> dict[str, str | None]:
    return {"token": await _require_messaging().get_token()}


@app.post("/notifications", status_code=202)
async def send_notification(request: SendRequest) -> dict[str, str]:
    """Show a local notification."""
    await _require_messaging().send(
        request.title, request.body, data=request.data, actions=request.actions
    )
    return {"status": "accepted"}


@app.post("/push/messages", status_code=202)
async def deliver_message(message: RemoteMessage) -> dict[str, str]:
    """Deliver a push message as if received in the foreground."""
    await _require_push().deliver(message)
    return {"status": "accepted"}


@app.post("/push/opened", status_code=202)
async def open_message(message: RemoteMessage) -> dict[str, str]:
    """Deliver a push notification tap."""
    await _require_push().open(message)
    return {"status": "accepted"}


@app.post("/push/token", status_code=202)
async def rotate_token(request: TokenRequest) -> dict[str, str]:
    await _require_push().refresh_token(request.token)
    return {"status": "accepted"}
