from src.layout_engine.models import PresenceInterval, TrackAssignment
from src.layout_engine.track_assignment import (
    GreedyStableLayout,
    RankLayout,
    TrackLayout,
    get_layout,
)

__all__ = [
    "GreedyStableLayout",
    "PresenceInterval",
    "RankLayout",
    "TrackAssignment",
    "TrackLayout",
    "get_layout",
]
