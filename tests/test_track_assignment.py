"""Tests for the track assignment layout engine."""

import pytest

from src.layout_engine.models import PresenceInterval, TrackAssignment
from src.layout_engine.track_assignment import (
    GreedyStableLayout,
    RankLayout,
    get_layout,
    presence_intervals,
)
from src.list_history.events import EventLog
from src.list_history.state_machine import ListSnapshot


# ── Helpers ──────────────────────────────────────────────────────────

def _snapshots(*lists):
    """Snapshots numbered from episode 1."""
    return [ListSnapshot(ep, tuple(items)) for ep, items in enumerate(lists, start=1)]


# ── Greedy layout ────────────────────────────────────────────────────

class TestGreedyLayout:
    def test_first_episode_follows_rank(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["C", "A", "B"]))
        assert assignment.tracks_at(1) == {"C": 0, "A": 1, "B": 2}

    def test_scenario_keeps_lines_apart(self, greedy_layout, scenario_snapshots):
        assignment = greedy_layout.assign(scenario_snapshots)
        assert assignment.tracks_at(1) == {"A": 0, "B": 1}
        assert assignment.tracks_at(2) == {"A": 0, "B": 1}
        assert assignment.tracks_at(3) == {"A": 0}
        assert assignment.crossings() == 0

    def test_new_item_slots_below_rank_neighbour(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B", "C"], ["A", "X", "B", "C"]))
        assert assignment.tracks_at(2) == {"A": 0, "X": 1, "B": 2, "C": 3}

    def test_new_item_at_top(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B", "C"], ["X", "A", "B", "C"]))
        assert assignment.tracks_at(2) == {"X": 0, "A": 1, "B": 2, "C": 3}

    def test_several_new_items_follow_rank(self, greedy_layout):
        assignment = greedy_layout.assign(
            _snapshots(["A", "B", "C"], ["A", "X", "Y", "B", "C"])
        )
        assert assignment.tracks_at(2) == {"A": 0, "X": 1, "Y": 2, "B": 3, "C": 4}

    def test_anchor_is_nearest_continuing_item_above(self, greedy_layout):
        # C jumps to the top; X enters right under it and follows C's line.
        assignment = greedy_layout.assign(
            _snapshots(["A", "B", "C"], ["C", "X", "A", "B"])
        )
        assert assignment.tracks_at(2) == {"A": 0, "B": 1, "C": 2, "X": 3}

    def test_removal_compacts_tracks(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B", "C"], ["B", "C"]))
        assert assignment.tracks_at(2) == {"B": 0, "C": 1}

    def test_reordering_keeps_previous_track_order(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B", "C"], ["C", "B", "A"]))
        assert assignment.tracks_at(2) == {"A": 0, "B": 1, "C": 2}
        assert assignment.crossings() == 0

    def test_empty_episode_then_all_new(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B"], [], ["B", "A"]))
        assert assignment.tracks_at(2) == {}
        assert assignment.tracks_at(3) == {"B": 0, "A": 1}

    def test_reentering_item_gets_fresh_track(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B"], ["B"], ["C", "B", "A"]))
        assert assignment.tracks_at(3) == {"C": 0, "B": 1, "A": 2}
        assert assignment.item_tracks("A") == [(1, 0), (3, 2)]


# ── Rank layout ──────────────────────────────────────────────────────

class TestRankLayout:
    def test_track_is_rank_minus_one(self, rank_layout, scenario_snapshots):
        assignment = rank_layout.assign(scenario_snapshots)
        assert assignment.tracks_at(2) == {"B": 0, "A": 1}

    def test_counts_swaps_as_crossings(self, rank_layout, scenario_snapshots):
        assert rank_layout.assign(scenario_snapshots).crossings() == 1

    def test_greedy_never_crosses_more(self, greedy_layout, rank_layout, long_snapshots):
        greedy = greedy_layout.assign(long_snapshots).crossings()
        rank = rank_layout.assign(long_snapshots).crossings()
        assert greedy <= rank
        assert greedy == 0


# ── Contract shared by all layouts ───────────────────────────────────

@pytest.mark.parametrize("layout", [GreedyStableLayout(), RankLayout()])
class TestLayoutContract:
    def test_tracks_contiguous_per_episode(self, layout, long_snapshots):
        assignment = layout.assign(long_snapshots)
        for snapshot in long_snapshots:
            tracks = assignment.tracks_at(snapshot.episode)
            assert set(tracks) == set(snapshot.items)
            assert sorted(tracks.values()) == list(range(len(snapshot)))

    def test_single_empty_episode(self, layout, machine):
        snapshots = machine.replay(EventLog.load([], first_episode=1, last_episode=1))
        assignment = layout.assign(snapshots)
        assert assignment.episodes == [1]
        assert assignment.tracks_at(1) == {}
        assert assignment.intervals == []

    def test_no_snapshots(self, layout):
        assignment = layout.assign([])
        assert assignment.episodes == []
        assert assignment.crossings() == 0

    def test_lanes_distinct_and_constant(self, layout, long_snapshots):
        assignment = layout.assign(long_snapshots)
        for snapshot in long_snapshots:
            lanes = [assignment.lane_of(i, snapshot.episode) for i in snapshot.items]
            assert None not in lanes
            assert len(set(lanes)) == len(lanes)


# ── Presence intervals ───────────────────────────────────────────────

class TestPresenceIntervals:
    def test_reentry_opens_new_interval(self):
        intervals = presence_intervals(_snapshots(["A", "B"], ["B"], ["C", "B", "A"]))
        assert intervals == [
            PresenceInterval("A", 1, 1, lane=0),
            PresenceInterval("B", 1, 3, lane=1),
            PresenceInterval("C", 3, 3, lane=0),
            PresenceInterval("A", 3, 3, lane=2),
        ]

    def test_lane_lookup(self, greedy_layout):
        assignment = greedy_layout.assign(_snapshots(["A", "B"], ["B"], ["C", "B", "A"]))
        assert assignment.lane_of("A", 1) == 0
        assert assignment.lane_of("A", 2) is None
        assert assignment.lane_of("A", 3) == 2
        assert assignment.lane_of("B", 2) == 1


# ── TrackAssignment model ────────────────────────────────────────────

class TestTrackAssignment:
    def test_record_rejects_gaps(self):
        with pytest.raises(ValueError, match="not contiguous"):
            TrackAssignment().record(1, {"A": 0, "B": 2})

    def test_record_rejects_shared_tracks(self):
        with pytest.raises(ValueError):
            TrackAssignment().record(1, {"A": 0, "B": 0})

    def test_track_of_missing(self):
        assignment = TrackAssignment()
        assignment.record(1, {"A": 0})
        assert assignment.track_of("A", 1) == 0
        assert assignment.track_of("B", 1) is None
        assert assignment.track_of("A", 2) is None

    def test_tracks_at_returns_copy(self):
        assignment = TrackAssignment()
        assignment.record(1, {"A": 0})
        assignment.tracks_at(1)["A"] = 5
        assert assignment.track_of("A", 1) == 0


class TestGetLayout:
    def test_known_layouts(self):
        assert isinstance(get_layout("greedy"), GreedyStableLayout)
        assert isinstance(get_layout("rank"), RankLayout)

    def test_unknown_layout(self):
        with pytest.raises(ValueError, match="Unknown layout"):
            get_layout("barycenter")
