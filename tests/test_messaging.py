"""End-to-end tests for the UnifiedMessaging facade."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from unified_messaging.core import RemoteMessage
from unified_messaging.messaging import UnifiedMessaging
from unified_messaging.navigation import DefaultNavigationHandler


@pytest_asyncio.fixture
async def messaging(push, renderer, settings):
    """Create an initialized facade over loopback collaborators."""
    messaging = UnifiedMessaging.create(push, renderer, settings)
    await messaging.initialize()
    yield messaging
    await messaging.close()


async def tap_latest(renderer):
    await renderer.tap(max(renderer.visible))


class TestNavigationScenarios:
    """Tap-to-navigate scenarios across both notification sources."""

    @pytest.fixture
    def navigate(self):
        return MagicMock()

    @pytest.mark.asyncio
    async def test_local_route(self, messaging, renderer, navigate):
        """Test a sent notification with a route navigates there on tap."""
        await messaging.listen(DefaultNavigationHandler(navigate=navigate))

        await messaging.send("Hi", "You have mail", data={"route": "/inbox"})
        await tap_latest(renderer)

        navigate.assert_called_once_with("/inbox")

    @pytest.mark.asyncio
    async def test_local_type(self, messaging, renderer, navigate):
        await messaging.listen(
            DefaultNavigationHandler(
                navigate=navigate, type_route_map={"alert": "/alerts"}
            )
        )

        await messaging.send("Alert", "Check this", data={"type": "alert"})
        await tap_latest(renderer)

        navigate.assert_called_once_with("/alerts")

    @pytest.mark.asyncio
    async def test_local_fallback(self, messaging, renderer, navigate):
        await messaging.listen(
            DefaultNavigationHandler(navigate=navigate, fallback_route="/home")
        )

        await messaging.send("Hello", "Profile updated", data={"userId": "123"})
        await tap_latest(renderer)

        navigate.assert_called_once_with("/home")

    @pytest.mark.asyncio
    async def test_local_without_data_does_not_navigate(
        self, messaging, renderer, navigate
    ):
        await messaging.listen(
            DefaultNavigationHandler(navigate=navigate, fallback_route="/home")
        )

        await messaging.send("Plain", "Nothing attached")
        await tap_latest(renderer)

        navigate.assert_not_called()

    @pytest.mark.asyncio
    async def test_push_tap(self, messaging, push, navigate):
        """Test a tapped push notification resolves like a local one."""
        await messaging.listen(DefaultNavigationHandler(navigate=navigate))

        await push.open(RemoteMessage(data={"route": "/orders/7"}))

        navigate.assert_called_once_with("/orders/7")

    @pytest.mark.asyncio
    async def test_foreground_push_then_tap(self, messaging, push, renderer, navigate):
        """Test a foreground push is re-shown locally and navigates on tap."""
        received = MagicMock()
        await messaging.listen(
            DefaultNavigationHandler(navigate=navigate),
            on_notification_received=received,
        )

        await push.deliver(RemoteMessage(data={"route": "/chat"}))
        received.assert_called_once_with("New Message", "", {"route": "/chat"})
        navigate.assert_not_called()

        await tap_latest(renderer)
        navigate.assert_called_once_with("/chat")

    @pytest.mark.asyncio
    async def test_cold_start_push(self, push, renderer, settings, navigate):
        push.initial_message = RemoteMessage(data={"route": "/launch"})
        messaging = UnifiedMessaging.create(push, renderer, settings)
        await messaging.initialize()

        await messaging.listen(DefaultNavigationHandler(navigate=navigate))
        await messaging.listen(DefaultNavigationHandler(navigate=navigate))
        await messaging.close()

        navigate.assert_called_once_with("/launch")

    @pytest.mark.asyncio
    async def test_set_navigation_handler(self, messaging, push, navigate):
        """Test swapping the navigation handler after listen()."""
        await messaging.listen(DefaultNavigationHandler(navigate=MagicMock()))
        replacement = DefaultNavigationHandler(navigate=navigate)

        messaging.set_navigation_handler(replacement)
        await push.open(RemoteMessage(data={"route": "/new"}))

        assert messaging.navigation_handler is replacement
        navigate.assert_called_once_with("/new")

    @pytest.mark.asyncio
    async def test_async_navigate(self, messaging, push):
        navigate = AsyncMock()
        await messaging.listen(DefaultNavigationHandler(navigate=navigate))

        await push.open(RemoteMessage(data={"route": "/async"}))

        navigate.assert_awaited_once_with("/async")

    @pytest.mark.asyncio
    async def test_custom_navigation_handler(self, messaging, push):
        """Test any object with handle_notification_navigation can navigate."""
        seen = []

        class Recorder:
            def handle_notification_navigation(self, data):
                seen.append(data)

        await messaging.listen(Recorder())
        await push.open(RemoteMessage(data={"anything": True}))

        assert seen == [{"anything": True}]

    @pytest.mark.asyncio
    async def test_failing_navigation_is_swallowed(self, messaging, push):
        navigate = MagicMock(side_effect=LookupError("unknown route"))
        await messaging.listen(DefaultNavigationHandler(navigate=navigate))

        await push.open(RemoteMessage(data={"route": "/missing"}))
        await push.open(RemoteMessage(data={"route": "/missing"}))

        assert navigate.call_count == 2


class TestFacade:
    """Tests for facade delegation."""

    @pytest.mark.asyncio
    async def test_operations_are_noops_before_initialize(self, push, renderer, settings):
        messaging = UnifiedMessaging.create(push, renderer, settings)

        await messaging.listen(DefaultNavigationHandler(navigate=MagicMock()))
        await messaging.send("Hi", "There")

        assert renderer.visible == {}
        assert await messaging.get_token() is None
        assert push.permission_requests == 0

    @pytest.mark.asyncio
    async def test_initialize_twice(self, push, renderer, settings):
        messaging = UnifiedMessaging.create(push, renderer, settings)

        assert await messaging.initialize() is True
        assert await messaging.initialize() is True
        assert push.permission_requests == 1

    @pytest.mark.asyncio
    async def test_get_token(self, messaging):
        assert await messaging.get_token() == "in-memory-token"

    @pytest.mark.asyncio
    async def test_send_with_actions(self, messaging, renderer):
        await messaging.send("Invite", "Join?", actions=["Accept", "Decline"])

        details = renderer.visible[1].details
        assert [a.identifier for a in details.actions] == ["accept", "decline"]
