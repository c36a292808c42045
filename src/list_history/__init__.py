from src.list_history.errors import (
    DuplicateInsertError,
    ListHistoryError,
    MalformedEventError,
    PositionOutOfRangeError,
    UnknownItemError,
)
from src.list_history.events import EventLog, Item, RankEvent
from src.list_history.state_machine import ItemTimeline, ListSnapshot, ListStateMachine

__all__ = [
    "DuplicateInsertError",
    "EventLog",
    "Item",
    "ItemTimeline",
    "ListHistoryError",
    "ListSnapshot",
    "ListStateMachine",
    "MalformedEventError",
    "PositionOutOfRangeError",
    "RankEvent",
    "UnknownItemError",
]
