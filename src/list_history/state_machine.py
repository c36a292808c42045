"""List state machine - replays ranking events into per-episode snapshots."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from src.list_history.errors import (
    DuplicateInsertError,
    MalformedEventError,
    PositionOutOfRangeError,
    UnknownItemError,
)
from src.list_history.events import INSERT, MOVE, REMOVE, EventLog, RankEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListSnapshot:
    """The ranked list immediately after all events of one episode."""

    episode: int
    items: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __contains__(self, item_id) -> bool:
        return item_id in self.items

    def rank_of(self, item_id: str) -> Optional[int]:
        """1-based rank of the item, or None if it is not on the list."""
        try:
            return self.items.index(item_id) + 1
        except ValueError:
            return None

    def ranks(self) -> Dict[str, int]:
        """Map every item on the list to its 1-based rank."""
        return {item_id: rank for rank, item_id in enumerate(self.items, start=1)}


@dataclass
class ItemTimeline:
    """Rank of one item at every snapshot episode (None while absent)."""

    item_id: str
    entries: List[Tuple[int, Optional[int]]] = field(default_factory=list)

    def rank_at(self, episode: int) -> Optional[int]:
        for ep, rank in self.entries:
            if ep == episode:
                return rank
        return None

    def present_entries(self) -> List[Tuple[int, int]]:
        """Only the (episode, rank) pairs where the item is on the list."""
        return [(ep, rank) for ep, rank in self.entries if rank is not None]

    def presence_intervals(self) -> List[Tuple[int, int]]:
        """Contiguous runs of presence as (first_episode, last_episode)."""
        intervals = []
        start = last = None
        for ep, rank in self.entries:
            if rank is None:
                if start is not None:
                    intervals.append((start, last))
                    start = None
                continue
            if start is None:
                start = ep
            last = ep
        if start is not None:
            intervals.append((start, last))
        return intervals


class ListStateMachine:
    """Replays an event log on a single mutable list of item ids.

    Only changed items are logged, so every item that is not mentioned in an
    episode keeps its relative order. The produced snapshots are immutable.
    """

    def __init__(self, fill_gaps: bool = False):
        self.fill_gaps = fill_gaps
        self._order: List[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def replay(
        self,
        events: Iterable[RankEvent],
        first_episode: Optional[int] = None,
        last_episode: Optional[int] = None,
    ) -> List[ListSnapshot]:
        """Replay events and snapshot the list after each episode.

        Args:
            events: Events in non-decreasing episode order. An ``EventLog``
                supplies its own episode span unless one is passed here.
            first_episode: If given (with or without ``last_episode``),
                every episode from here on gets a snapshot, event-less
                ones carrying the previous state forward.
            last_episode: Last episode to snapshot.

        Returns:
            One ``ListSnapshot`` per episode, in episode order.

        Raises:
            DuplicateInsertError, PositionOutOfRangeError, UnknownItemError:
                if an event cannot be applied to the list.
            MalformedEventError: if episodes decrease or fall outside the
                requested range.
        """
        if isinstance(events, EventLog):
            if first_episode is None:
                first_episode = events.first_episode
            if last_episode is None:
                last_episode = events.last_episode

        self._order = []
        by_episode = self._group_by_episode(list(events))
        episodes = self._episodes_to_snapshot(
            sorted(by_episode), first_episode, last_episode
        )

        outside = set(by_episode) - set(episodes)
        if outside:
            episode = min(outside)
            raise MalformedEventError(
                f"Event outside the requested episode range "
                f"[{episodes[0] if episodes else first_episode}, "
                f"{episodes[-1] if episodes else last_episode}]",
                episode=episode,
                item_id=by_episode[episode][0].item_id,
            )

        snapshots = []
        for episode in episodes:
            for event in by_episode.get(episode, ()):
                self.apply(event)
            snapshots.append(ListSnapshot(episode=episode, items=tuple(self._order)))
            logger.debug(
                "Episode %d: %d events, %d items on list",
                episode,
                len(by_episode.get(episode, ())),
                len(self._order),
            )

        logger.info("Replayed %d episodes", len(snapshots))
        return snapshots

    def apply(self, event: RankEvent) -> None:
        """Apply a single event to the current list."""
        if event.operation == INSERT:
            self._insert(event)
        elif event.operation == MOVE:
            self._move(event)
        elif event.operation == REMOVE:
            self._remove(event)
        else:
            raise MalformedEventError(
                f"Unknown operation {event.operation!r}",
                episode=event.episode,
                item_id=event.item_id,
            )

    @staticmethod
    def timelines(snapshots: List[ListSnapshot]) -> Dict[str, ItemTimeline]:
        """Build every item's timeline over all snapshot episodes.

        Items are ordered by first appearance, then by rank within the
        episode where they first appear.
        """
        order: List[str] = []
        seen = set()
        for snapshot in snapshots:
            for item_id in snapshot:
                if item_id not in seen:
                    seen.add(item_id)
                    order.append(item_id)

        timelines = {item_id: ItemTimeline(item_id) for item_id in order}
        for snapshot in snapshots:
            ranks = snapshot.ranks()
            for item_id, timeline in timelines.items():
                timeline.entries.append((snapshot.episode, ranks.get(item_id)))
        return timelines

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _insert(self, event: RankEvent) -> None:
        if event.item_id in self._order:
            raise DuplicateInsertError(
                "Item is already on the list",
                episode=event.episode,
                item_id=event.item_id,
            )
        self._check_position(event, len(self._order) + 1)
        self._order.insert(event.position - 1, event.item_id)

    def _move(self, event: RankEvent) -> None:
        if event.item_id not in self._order:
            raise UnknownItemError(
                "Cannot move an item that is not on the list",
                episode=event.episode,
                item_id=event.item_id,
            )
        # Position is resolved against the list with the item taken out.
        index = self._order.index(event.item_id)
        del self._order[index]
        try:
            self._check_position(event, len(self._order) + 1)
        except PositionOutOfRangeError:
            self._order.insert(index, event.item_id)
            raise
        self._order.insert(event.position - 1, event.item_id)

    def _remove(self, event: RankEvent) -> None:
        if event.item_id not in self._order:
            raise UnknownItemError(
                "Cannot remove an item that is not on the list",
                episode=event.episode,
                item_id=event.item_id,
            )
        self._order.remove(event.item_id)

    @staticmethod
    def _check_position(event: RankEvent, upper: int) -> None:
        if event.position is None or not 1 <= event.position <= upper:
            raise PositionOutOfRangeError(
                f"Position {event.position} outside [1, {upper}]",
                episode=event.episode,
                item_id=event.item_id,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _group_by_episode(events: List[RankEvent]) -> Dict[int, List[RankEvent]]:
        grouped: Dict[int, List[RankEvent]] = {}
        last = None
        for event in events:
            if last is not None and event.episode < last:
                raise MalformedEventError(
                    f"Episodes must not decrease (previous event was episode {last})",
                    episode=event.episode,
                    item_id=event.item_id,
                )
            last = event.episode
            grouped.setdefault(event.episode, []).append(event)
        return grouped

    def _episodes_to_snapshot(
        self,
        event_episodes: List[int],
        first_episode: Optional[int],
        last_episode: Optional[int],
    ) -> List[int]:
        if first_episode is None and last_episode is None and not self.fill_gaps:
            return event_episodes

        if first_episode is None:
            first_episode = event_episodes[0] if event_episodes else last_episode
        if last_episode is None:
            last_episode = event_episodes[-1] if event_episodes else first_episode
        if first_episode is None:
            return []
        return list(range(first_episode, last_episode + 1))
