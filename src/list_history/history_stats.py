"""Derived statistics over a replayed list history.

These feed the secondary charts: who held the top (or bottom) spot the
longest, and how the hosts' final list compares with an outside ranking.
"""

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from src.list_history.state_machine import ListSnapshot

logger = logging.getLogger(__name__)


def latest(snapshots: Sequence[ListSnapshot]) -> Optional[ListSnapshot]:
    """Snapshot with the highest episode, or None for an empty history."""
    if not snapshots:
        return None
    return max(snapshots, key=lambda s: s.episode)


def penultimate(snapshots: Sequence[ListSnapshot]) -> Optional[ListSnapshot]:
    """Snapshot just before the latest one, or None if there is none."""
    if len(snapshots) < 2:
        return None
    return sorted(snapshots, key=lambda s: s.episode)[-2]


def extrema(
    snapshots: Sequence[ListSnapshot],
    top: bool = True,
    episode_dates: Optional[Mapping[int, date]] = None,
) -> List[Tuple[str, int]]:
    """Time each item spent at the top (or bottom) of the list.

    Each snapshot's top item is credited with the gap until the next
    snapshot, so the latest snapshot contributes nothing. Empty snapshots
    are skipped. Gaps are counted in episodes, or in days when
    ``episode_dates`` maps every episode to its show date.

    Returns:
        ``(item_id, duration)`` pairs, longest first.

    Raises:
        ValueError: If ``episode_dates`` lacks a snapshot's episode.
    """
    ordered = sorted(snapshots, key=lambda s: s.episode)
    if episode_dates is not None:
        undated = [s.episode for s in ordered if s.episode not in episode_dates]
        if undated:
            raise ValueError(f"No date for episodes {undated}")

    totals: Dict[str, int] = {}
    for current, following in zip(ordered, ordered[1:]):
        if not current.items:
            continue
        holder = current.items[0] if top else current.items[-1]
        if episode_dates is None:
            gap = following.episode - current.episode
        else:
            gap = (episode_dates[following.episode] - episode_dates[current.episode]).days
        totals[holder] = totals.get(holder, 0) + gap

    return sorted(totals.items(), key=lambda pair: pair[1], reverse=True)


def ranking_differences(
    snapshot: ListSnapshot, external_ranking: Sequence[str]
) -> List[Tuple[int, str]]:
    """Difference between list rank and an external ranking, per item.

    ``external_ranking`` is ordered best first. A negative difference means
    the hosts rank the item higher than the outside ranking does.

    Returns:
        ``(list_rank - external_rank, item_id)`` pairs, most negative first.
    """
    ranks = snapshot.ranks()
    diffs = []
    for external_rank, item_id in enumerate(external_ranking, start=1):
        rank = ranks.get(item_id)
        if rank is None:
            logger.debug("Skipping %s: not on the list at episode %d", item_id, snapshot.episode)
            continue
        diffs.append((rank - external_rank, item_id))

    diffs.sort(key=lambda pair: pair[0])
    return diffs
