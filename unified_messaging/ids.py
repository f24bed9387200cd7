"""Notification identifier allocation."""

MAX_NOTIFICATION_ID = 0x7FFFFFFF


class NotificationIdAllocator:
    """Wrapping counter that hands out ids for locally shown notifications.

    Ids start at 1 and wrap back to 1 after the signed 32-bit maximum, so
    they are never zero or negative.
    """

    def __init__(self) -> None:
        self._counter = 0

    @property
    def current(self) -> int:
        """The most recently issued id, or 0 if none has been issued."""
        return self._counter

    def next_id(self) -> int:
        self._counter += 1
        if self._counter > MAX_NOTIFICATION_ID:
            self._counter = 1
        return self._counter

    def reset(self) -> None:
        self._counter = 0
