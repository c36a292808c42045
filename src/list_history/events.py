"""Ranking event models and the validated event log."""

import logging
import numbers
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from src.list_history.errors import MalformedEventError

logger = logging.getLogger(__name__)

INSERT = "insert"
MOVE = "move"
REMOVE = "remove"

VALID_OPERATIONS = (INSERT, MOVE, REMOVE)


def normalize_item_id(raw, episode: Optional[int] = None) -> str:
    """Turn a catalog id (int) or free-form id (str) into a stable string id."""
    if isinstance(raw, bool) or raw is None:
        raise MalformedEventError(f"Invalid item identifier: {raw!r}", episode=episode)
    if isinstance(raw, numbers.Integral):
        return str(int(raw))
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    raise MalformedEventError(f"Invalid item identifier: {raw!r}", episode=episode)


@dataclass(frozen=True)
class Item:
    """A distinct game, identified by its item id."""

    item_id: str
    first_episode: int
    display_name: Optional[str] = None
    catalog_ref: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.item_id


@dataclass(frozen=True)
class RankEvent:
    """A single edit to the ranked list during one episode."""

    episode: int
    item_id: str
    operation: str
    position: Optional[int] = None  # 1-based; None for remove

    @classmethod
    def from_record(cls, record: Mapping) -> "RankEvent":
        """Build an event from a source record, checking field shapes.

        Accepts ``item`` or ``item_id`` for the identifier. The position is
        required for insert/move and must be absent for remove.
        """
        episode = record.get("episode")
        if isinstance(episode, bool) or not isinstance(episode, numbers.Integral):
            raise MalformedEventError(f"Episode must be an integer, got {episode!r}")
        episode = int(episode)

        raw_item = record.get("item_id", record.get("item"))
        item_id = normalize_item_id(raw_item, episode=episode)

        operation = str(record.get("operation", "")).strip().lower()
        if operation not in VALID_OPERATIONS:
            raise MalformedEventError(
                f"Unknown operation {record.get('operation')!r}",
                episode=episode,
                item_id=item_id,
            )

        position = record.get("position")
        if operation == REMOVE:
            if position is not None:
                raise MalformedEventError(
                    f"Remove must not carry a position (got {position!r})",
                    episode=episode,
                    item_id=item_id,
                )
        else:
            if (
                isinstance(position, bool)
                or not isinstance(position, numbers.Integral)
                or position < 1
            ):
                raise MalformedEventError(
                    f"{operation.capitalize()} needs a positive position, got {position!r}",
                    episode=episode,
                    item_id=item_id,
                )
            position = int(position)

        return cls(episode=episode, item_id=item_id, operation=operation, position=position)


class EventLog(Sequence):
    """Immutable, validated, episode-ordered sequence of ranking events.

    ``first_episode`` / ``last_episode`` optionally record the span the log
    covers, so that episodes without any event still get a snapshot.
    """

    def __init__(
        self,
        events: Iterable[RankEvent],
        first_episode: Optional[int] = None,
        last_episode: Optional[int] = None,
    ):
        self._events = tuple(events)
        self.first_episode = first_episode
        self.last_episode = last_episode

    @classmethod
    def load(
        cls,
        records: Iterable,
        first_episode: Optional[int] = None,
        last_episode: Optional[int] = None,
    ) -> "EventLog":
        """Validate records (mappings or ``RankEvent``s) into an event log.

        Raises:
            MalformedEventError: if a record is malformed, episodes go
                backwards, a position is out of range for the list at that
                point, or a remove targets an item that is not on the list.
        """
        events = [
            RankEvent.from_record(asdict(record) if isinstance(record, RankEvent) else record)
            for record in records
        ]
        cls._check_order(events)
        cls._check_positions(events)
        logger.info(
            "Loaded %d events across %d episodes",
            len(events),
            len({e.episode for e in events}),
        )
        return cls(events, first_episode=first_episode, last_episode=last_episode)

    @staticmethod
    def _check_order(events: List[RankEvent]) -> None:
        for prev, event in zip(events, events[1:]):
            if event.episode < prev.episode:
                raise MalformedEventError(
                    f"Episodes must not decrease (previous event was episode {prev.episode})",
                    episode=event.episode,
                    item_id=event.item_id,
                )

    @staticmethod
    def _check_positions(events: List[RankEvent]) -> None:
        """Dry-run list membership to catch positions the list cannot hold.

        Duplicate inserts and moves of absent items are left for replay,
        which reports them with their own error types.
        """
        present = set()
        for event in events:
            if event.operation == INSERT:
                if event.item_id in present:
                    continue
                if event.position > len(present) + 1:
                    raise MalformedEventError(
                        f"Insert position {event.position} outside [1, {len(present) + 1}]",
                        episode=event.episode,
                        item_id=event.item_id,
                    )
                present.add(event.item_id)
            elif event.operation == MOVE:
                if event.item_id not in present:
                    continue
                if event.position > len(present):
                    raise MalformedEventError(
                        f"Move position {event.position} outside [1, {len(present)}]",
                        episode=event.episode,
                        item_id=event.item_id,
                    )
            else:
                if event.item_id not in present:
                    raise MalformedEventError(
                        "Remove of an item that is not on the list",
                        episode=event.episode,
                        item_id=event.item_id,
                    )
                present.remove(event.item_id)

    def __getitem__(self, index):
        return self._events[index]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[RankEvent]:
        return iter(self._events)

    def __eq__(self, other) -> bool:
        if not isinstance(other, EventLog):
            return NotImplemented
        return (
            self._events == other._events
            and self.first_episode == other.first_episode
            and self.last_episode == other.last_episode
        )

    def __repr__(self) -> str:
        return f"EventLog({len(self._events)} events)"

    def episodes(self) -> List[int]:
        """Distinct episodes that have at least one event, in order."""
        return sorted({e.episode for e in self._events})

    def items(self) -> List[Item]:
        """Every item referenced by the log, in order of first appearance."""
        first_seen: Dict[str, int] = {}
        for event in self._events:
            first_seen.setdefault(event.item_id, event.episode)
        return [Item(item_id=i, first_episode=ep) for i, ep in first_seen.items()]
