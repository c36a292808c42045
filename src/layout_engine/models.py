"""Data models for the layout engine."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class PresenceInterval:
    """One contiguous stretch of episodes during which an item is on the list."""

    item_id: str
    first_episode: int
    last_episode: int
    lane: int  # Constant for the interval, unique among overlapping intervals


@dataclass
class TrackAssignment:
    """Per-episode track numbers for every item on the list.

    At each episode the tracks of the present items are ``0..n-1``.
    """

    episodes: List[int] = field(default_factory=list)
    tracks: Dict[int, Dict[str, int]] = field(default_factory=dict)
    intervals: List[PresenceInterval] = field(default_factory=list)

    def record(self, episode: int, tracks: Dict[str, int]) -> None:
        """Store the tracks for one episode, checking they are contiguous."""
        if sorted(tracks.values()) != list(range(len(tracks))):
            raise ValueError(
                f"Tracks at episode {episode} are not contiguous from 0: "
                f"{sorted(tracks.values())}"
            )
        self.episodes.append(episode)
        self.tracks[episode] = dict(tracks)

    def tracks_at(self, episode: int) -> Dict[str, int]:
        """Item -> track at the episode (empty if nothing is on the list)."""
        return dict(self.tracks.get(episode, {}))

    def track_of(self, item_id: str, episode: int) -> Optional[int]:
        return self.tracks.get(episode, {}).get(item_id)

    def item_tracks(self, item_id: str) -> List[Tuple[int, int]]:
        """(episode, track) pairs for every episode the item is present."""
        return [
            (episode, self.tracks[episode][item_id])
            for episode in self.episodes
            if item_id in self.tracks[episode]
        ]

    def lane_of(self, item_id: str, episode: int) -> Optional[int]:
        for interval in self.intervals:
            if (
                interval.item_id == item_id
                and interval.first_episode <= episode <= interval.last_episode
            ):
                return interval.lane
        return None

    def crossings(self) -> int:
        """Number of item pairs that swap track order between adjacent episodes."""
        total = 0
        for before, after in zip(self.episodes, self.episodes[1:]):
            prev, curr = self.tracks[before], self.tracks[after]
            common = [item_id for item_id in prev if item_id in curr]
            for i, a in enumerate(common):
                for b in common[i + 1:]:
                    if (prev[a] - prev[b]) * (curr[a] - curr[b]) < 0:
                        total += 1
        return total
