"""Derive ranking events from consecutive full list snapshots.

Older list exports store the whole ranked list per date instead of the
individual edits. Diffing each pair of lists recovers a sparse event log
whose replay reproduces every list exactly.
"""

from typing import List, Sequence

from src.list_history.events import INSERT, MOVE, REMOVE, RankEvent


def events_between(
    previous: Sequence[str], current: Sequence[str], episode: int
) -> List[RankEvent]:
    """Events that turn ``previous`` into ``current`` within one episode.

    Removes come first, then the new list is walked top to bottom: an item
    that is not yet on the working list is inserted at its rank, an item
    sitting lower than its rank is moved up. Items already in place produce
    no event.
    """
    current_set = set(current)
    events = [
        RankEvent(episode=episode, item_id=item_id, operation=REMOVE)
        for item_id in previous
        if item_id not in current_set
    ]
    working = [item_id for item_id in previous if item_id in current_set]

    for index, item_id in enumerate(current):
        if item_id not in working:
            working.insert(index, item_id)
            events.append(
                RankEvent(episode=episode, item_id=item_id, operation=INSERT, position=index + 1)
            )
        elif working[index] != item_id:
            working.remove(item_id)
            working.insert(index, item_id)
            events.append(
                RankEvent(episode=episode, item_id=item_id, operation=MOVE, position=index + 1)
            )

    return events


def events_from_lists(lists: Sequence[Sequence[str]], first_episode: int = 1) -> List[RankEvent]:
    """Events for a whole ordered sequence of lists, numbered from ``first_episode``."""
    events: List[RankEvent] = []
    previous: Sequence[str] = ()
    for episode, current in enumerate(lists, start=first_episode):
        events.extend(events_between(previous, current, episode))
        previous = current
    return events
