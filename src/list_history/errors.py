"""Errors raised while loading and replaying a ranking event log.

All of these are fatal: they mean the event log is inconsistent and the
run must stop. Each carries the episode and item that triggered it so the
source log is easy to correct.
"""

from typing import Optional


class ListHistoryError(Exception):
    """Base class for event log errors."""

    def __init__(
        self,
        message: str,
        episode: Optional[int] = None,
        item_id: Optional[str] = None,
    ):
        self.episode = episode
        self.item_id = item_id
        context = []
        if episode is not None:
            context.append(f"episode {episode}")
        if item_id is not None:
            context.append(f"item {item_id!r}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class MalformedEventError(ListHistoryError):
    """Raised when an event is structurally invalid."""


class DuplicateInsertError(ListHistoryError):
    """Raised when inserting an item that is already on the list."""


class PositionOutOfRangeError(ListHistoryError):
    """Raised when an insert or move targets a position outside the list."""


class UnknownItemError(ListHistoryError):
    """Raised when moving or removing an item that is not on the list."""
