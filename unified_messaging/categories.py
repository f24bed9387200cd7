"""Action identifiers and the registry of interactive notification categories."""

import hashlib
import logging
from typing import Awaitable, Callable, Iterable

from unified_messaging.core import NotificationAction, NotificationCategory

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_PREFIX = "unified_messaging_"
LABEL_SEPARATOR = "|"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Receives the full set of categories registered so far.
CategoryRegistrar = Callable[[list[NotificationCategory]], Awaitable[None]]


def action_identifier(label: str) -> str:
    """Turn a button label into the identifier reported back on tap."""
    return label.lower().replace(" ", "_")


def normalize_labels(labels: Iterable[str]) -> list[str]:
    return [label.strip() for label in labels if label.strip()]


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def category_identifier(
    labels: Iterable[str], prefix: str = DEFAULT_CATEGORY_PREFIX
) -> str:
    """Derive a stable category identifier for an ordered list of labels.

    The identifier depends on the exact labels and their order, and is the
    same across processes so a category survives restarts.
    """
    joined = LABEL_SEPARATOR.join(labels)
    digest = hashlib.sha256(joined.encode("utf-8")).digest()
    return f"{prefix}{_to_base36(int.from_bytes(digest[:8], 'big'))}"


def build_category(
    labels: Iterable[str], prefix: str = DEFAULT_CATEGORY_PREFIX
) -> NotificationCategory | None:
    """Build the category for a set of labels, or None if no label survives trimming."""
    normalized = normalize_labels(labels)
    if not normalized:
        return None
    return NotificationCategory(
        identifier=category_identifier(normalized, prefix),
        actions=[
            NotificationAction(identifier=action_identifier(label), title=label)
            for label in normalized
        ],
    )


class ActionCategoryRegistry:
    """Keeps every category seen so far and registers them with the renderer.

    Registration hands over the whole set each time, since platforms that
    need categories replace the registered set rather than extending it.
    """

    def __init__(
        self, registrar: CategoryRegistrar, prefix: str = DEFAULT_CATEGORY_PREFIX
    ) -> None:
        self._registrar = registrar
        self._prefix = prefix
        self._categories: dict[str, NotificationCategory] = {}

    @property
    def categories(self) -> list[NotificationCategory]:
        return list(self._categories.values())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._categories

    async def register(self, labels: Iterable[str]) -> str | None:
        """Register the category for ``labels`` and return its identifier.

        Registration failures are logged; the identifier is still returned
        so the notification can reference it.
        """
        category = build_category(labels, self._prefix)
        if category is None:
            return None

        if category.identifier not in self._categories:
            logger.info(f"Registering action category: {category.identifier}")
        self._categories[category.identifier] = category

        try:
            await self._registrar(self.categories)
        except Exception as e:
            logger.warning(
                f"Failed to register action category {category.identifier}: {e}"
            )
        return category.identifier

    def clear(self) -> None:
        self._categories.clear()
