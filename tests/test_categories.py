"""Tests for action identifiers and the action-category registry."""

import re
from unittest.mock import AsyncMock

import pytest

from unified_messaging.categories import (
    ActionCategoryRegistry,
    action_identifier,
    build_category,
    category_identifier,
    normalize_labels,
)


class TestActionIdentifiers:
    """Tests for label normalization."""

    def test_action_identifier(self):
        assert action_identifier("Mark as Read") == "mark_as_read"
        assert action_identifier("Reply") == "reply"

    def test_normalize_labels_trims_and_drops_empty(self):
        assert normalize_labels([" Reply ", "", "  ", "Archive"]) == ["Reply", "Archive"]


class TestCategoryIdentifier:
    """Tests for category identifier derivation."""

    def test_deterministic(self):
        assert category_identifier(["Reply", "Archive"]) == category_identifier(
            ["Reply", "Archive"]
        )

    def test_prefixed_and_alphanumeric(self):
        identifier = category_identifier(["Reply"], prefix="app_")
        assert identifier.startswith("app_")
        assert re.fullmatch(r"[0-9a-z]+", identifier[len("app_"):])

    def test_order_sensitive(self):
        assert category_identifier(["Reply", "Archive"]) != category_identifier(
            ["Archive", "Reply"]
        )

    def test_wording_sensitive(self):
        assert category_identifier(["Reply"]) != category_identifier(["Respond"])

    def test_build_category(self):
        category = build_category(["Mark as Read", " Reply "])
        assert category.identifier == category_identifier(["Mark as Read", "Reply"])
        assert [a.identifier for a in category.actions] == ["mark_as_read", "reply"]
        assert [a.title for a in category.actions] == ["Mark as Read", "Reply"]

    def test_build_category_without_labels(self):
        assert build_category(["", " "]) is None


class TestActionCategoryRegistry:
    """Tests for ActionCategoryRegistry."""

    @pytest.fixture
    def registrar(self):
        return AsyncMock()

    @pytest.fixture
    def registry(self, registrar):
        return ActionCategoryRegistry(registrar)

    @pytest.mark.asyncio
    async def test_register_returns_identifier(self, registry, registrar):
        identifier = await registry.register(["Reply"])

        assert identifier == category_identifier(["Reply"])
        assert identifier in registry
        registrar.assert_awaited_once()
        categories = registrar.call_args[0][0]
        assert [c.identifier for c in categories] == [identifier]

    @pytest.mark.asyncio
    async def test_registers_full_set_each_time(self, registry, registrar):
        """Test later registrations keep earlier categories."""
        first = await registry.register(["Reply"])
        second = await registry.register(["Accept", "Decline"])

        categories = registrar.call_args[0][0]
        assert {c.identifier for c in categories} == {first, second}

    @pytest.mark.asyncio
    async def test_same_labels_reuse_category(self, registry, registrar):
        """Test repeated registration is attempted but not duplicated."""
        await registry.register(["Reply"])
        await registry.register(["Reply"])

        assert registrar.await_count == 2
        assert len(registry.categories) == 1

    @pytest.mark.asyncio
    async def test_empty_labels_register_nothing(self, registry, registrar):
        assert await registry.register(["", "  "]) is None
        registrar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_registration_failure_is_swallowed(self, registry, registrar):
        """Test a failing registrar still yields the identifier."""
        registrar.side_effect = RuntimeError("categories unavailable")

        identifier = await registry.register(["Reply"])

        assert identifier == category_identifier(["Reply"])

    @pytest.mark.asyncio
    async def test_clear(self, registry):
        await registry.register(["Reply"])
        registry.clear()
        assert registry.categories == []
