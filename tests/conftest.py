"""Shared fixtures for the list-history test suite."""

import pytest

from src.layout_engine.track_assignment import GreedyStableLayout, RankLayout
from src.list_history.events import EventLog
from src.list_history.state_machine import ListStateMachine


def make_record(episode, item, operation, position=None):
    """Build a raw event record the way a source row would look."""
    return {"episode": episode, "item": item, "operation": operation, "position": position}


# ep1 [A, B] -> ep2 [B, A] -> ep3 [A]
SCENARIO_RECORDS = [
    make_record(1, "A", "insert", 1),
    make_record(1, "B", "insert", 2),
    make_record(2, "A", "move", 2),
    make_record(3, "B", "remove"),
]

# A longer history with moves, removals and a re-entry.
LONG_RECORDS = [
    make_record(1, "A", "insert", 1),
    make_record(1, "B", "insert", 2),
    make_record(1, "C", "insert", 3),
    make_record(2, "D", "insert", 2),
    make_record(2, "C", "move", 1),
    make_record(3, "A", "remove"),
    make_record(3, "E", "insert", 4),
    make_record(4, "B", "move", 4),
    make_record(4, "A", "insert", 2),
    make_record(5, "D", "remove"),
    make_record(5, "F", "insert", 1),
    make_record(5, "E", "move", 1),
]


# ------------------------------------------------------------------
# Lightweight factories – cheap to construct, no I/O
# ------------------------------------------------------------------

@pytest.fixture
def machine():
    return ListStateMachine()


@pytest.fixture
def greedy_layout():
    return GreedyStableLayout()


@pytest.fixture
def rank_layout():
    return RankLayout()


# ------------------------------------------------------------------
# Replayed histories
# ------------------------------------------------------------------

@pytest.fixture
def scenario_log():
    return EventLog.load(SCENARIO_RECORDS)


@pytest.fixture
def scenario_snapshots(machine, scenario_log):
    return machine.replay(scenario_log)


@pytest.fixture
def long_snapshots(machine):
    return machine.replay(EventLog.load(LONG_RECORDS))
