"""Track assignment - turns list snapshots into a bump-chart layout.

Each item present at an episode gets a track (a vertical row). Tracks are
contiguous from 0 at every episode so the chart stays compact, and the
greedy layout keeps each line's vertical order stable over time so the
chart reads as flowing lines instead of scrambled crossings.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

from src.layout_engine.models import PresenceInterval, TrackAssignment
from src.list_history.state_machine import ListSnapshot

logger = logging.getLogger(__name__)


class TrackLayout(ABC):
    """Base class for layout strategies.

    Subclasses decide the tracks of one episode given the previous
    episode's tracks; the base class walks the snapshots and records
    presence intervals and lanes.
    """

    def assign(self, snapshots: Sequence[ListSnapshot]) -> TrackAssignment:
        """Compute tracks for every snapshot, in episode order."""
        assignment = TrackAssignment()
        previous: Dict[str, int] = {}

        for snapshot in snapshots:
            current = self.assign_episode(snapshot, previous)
            assignment.record(snapshot.episode, current)
            previous = current

        assignment.intervals = presence_intervals(snapshots)
        logger.info(
            "%s assigned tracks over %d episodes (%d crossings)",
            type(self).__name__,
            len(assignment.episodes),
            assignment.crossings(),
        )
        return assignment

    @abstractmethod
    def assign_episode(
        self, snapshot: ListSnapshot, previous: Dict[str, int]
    ) -> Dict[str, int]:
        """Tracks for one snapshot given the previous episode's tracks."""


class GreedyStableLayout(TrackLayout):
    """Greedy stable merge of previous tracks and new ranks.

    Items continuing from the previous episode are ordered by their
    previous track (new rank breaks ties). An item starting a new presence
    interval is slotted just below the nearest continuing item above it in
    the new rank order, or at the top if there is none. The merged order is
    then compacted to ``0..n-1``.

    Continuing items never change relative order, so the layout has no
    crossings; new and re-entering items follow their rank neighbours.
    """

    def assign_episode(
        self, snapshot: ListSnapshot, previous: Dict[str, int]
    ) -> Dict[str, int]:
        keys = {}
        anchor = -1
        for rank, item_id in enumerate(snapshot.items, start=1):
            if item_id in previous:
                anchor = previous[item_id]
                keys[item_id] = (anchor, rank)
            else:
                keys[item_id] = (anchor + 0.5, rank)

        ordered = sorted(keys, key=keys.get)
        return {item_id: track for track, item_id in enumerate(ordered)}


class RankLayout(TrackLayout):
    """Track equals rank - 1: each line follows the item's list position."""

    def assign_episode(
        self, snapshot: ListSnapshot, previous: Dict[str, int]
    ) -> Dict[str, int]:
        return {item_id: rank - 1 for item_id, rank in snapshot.ranks().items()}


LAYOUTS = {
    "greedy": GreedyStableLayout,
    "rank": RankLayout,
}


def get_layout(name: str) -> TrackLayout:
    """Look up a layout strategy by name."""
    try:
        return LAYOUTS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown layout {name!r}. Must be one of {sorted(LAYOUTS)}."
        ) from None


def presence_intervals(snapshots: Sequence[ListSnapshot]) -> List[PresenceInterval]:
    """Split every item's presence into intervals and give each a lane.

    An interval starts when an item is on a snapshot but was not on the one
    before it. Its lane is the lowest lane not held by an open interval.
    """
    intervals: List[PresenceInterval] = []
    open_intervals: Dict[str, PresenceInterval] = {}

    for snapshot in snapshots:
        on_list = set(snapshot.items)
        for item_id in list(open_intervals):
            if item_id not in on_list:
                del open_intervals[item_id]

        for item_id in snapshot.items:
            interval = open_intervals.get(item_id)
            if interval is not None:
                interval.last_episode = snapshot.episode
                continue
            used = {i.lane for i in open_intervals.values()}
            lane = 0
            while lane in used:
                lane += 1
            interval = PresenceInterval(
                item_id=item_id,
                first_episode=snapshot.episode,
                last_episode=snapshot.episode,
                lane=lane,
            )
            open_intervals[item_id] = interval
            intervals.append(interval)

    return intervals
