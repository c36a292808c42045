"""Readers that turn list-history source files into a validated event log.

Two source formats are supported:
- a tabular event log (CSV) with one row per edit;
- the full-snapshot export (JSON), one complete ranked list per show date,
  which is diffed into events.
"""

import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd

from src.list_history.config import EVENT_COLUMNS, FIRST_EPISODE
from src.list_history.errors import MalformedEventError
from src.list_history.events import EventLog, normalize_item_id
from src.list_history.snapshot_diff import events_from_lists

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Raised when a source file cannot be read."""


def _safe_int(val):
    """Convert *val* to int, returning None for blanks and non-numeric values."""
    if val is None or val is pd.NA:
        return None
    if isinstance(val, float) and math.isnan(val):
        return None
    try:
        return int(float(val))
    except (ValueError, TypeError):
        return None


# ------------------------------------------------------------------
# Tabular event log
# ------------------------------------------------------------------

def read_event_csv(path: Path) -> EventLog:
    """Read an event log CSV with columns episode, item, operation, position.

    Raises:
        IngestionError: if the file is missing, unreadable, or lacks a column.
        MalformedEventError: if a row does not describe a valid event.
    """
    path = Path(path)
    logger.info("Reading event log: %s", path.name)
    try:
        df = pd.read_csv(path, dtype={"item": str, "operation": str})
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise IngestionError(f"Failed to read event log {path}: {e}") from e

    missing = [col for col in EVENT_COLUMNS if col not in df.columns]
    if missing:
        raise IngestionError(f"Event log {path} is missing columns: {missing}")

    for col in ("item", "operation"):
        df[col] = df[col].str.strip()

    records = [
        {
            "episode": _safe_int(row["episode"]),
            "item": None if pd.isna(row["item"]) else row["item"],
            "operation": "" if pd.isna(row["operation"]) else row["operation"],
            "position": _safe_int(row["position"]),
        }
        for _, row in df.iterrows()
    ]
    logger.info("Loaded %d event rows", len(records))
    return EventLog.load(records)


# ------------------------------------------------------------------
# Full-snapshot export
# ------------------------------------------------------------------

def read_snapshot_lists(path: Path) -> Dict[date, List[str]]:
    """Read the snapshot export: show date -> full ranked list of item ids.

    ``null`` slots in a list are placeholders and are dropped with a warning.

    Returns the lists ordered by date.
    """
    path = Path(path)
    logger.info("Reading list snapshots: %s", path.name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise IngestionError(f"Failed to read list snapshots {path}: {e}") from e

    if not isinstance(raw, dict):
        raise IngestionError(f"{path} must map dates to lists")

    lists: Dict[date, List[str]] = {}
    for key in sorted(raw):
        try:
            list_date = date.fromisoformat(key)
        except ValueError as e:
            raise IngestionError(f"Invalid date key {key!r} in {path}") from e
        if not isinstance(raw[key], list):
            raise IngestionError(f"List for {key} in {path} must be an array of item ids")

        placeholders = sum(1 for item_id in raw[key] if item_id is None)
        if placeholders:
            logger.warning("Dropping %d empty slot(s) from the list for %s", placeholders, key)
        items = [normalize_item_id(item_id) for item_id in raw[key] if item_id is not None]
        if len(set(items)) != len(items):
            duplicates = sorted({i for i in items if items.count(i) > 1})
            raise MalformedEventError(
                f"List for {key} contains duplicates: {duplicates}"
            )
        lists[list_date] = items

    logger.info("Loaded %d lists", len(lists))
    return lists


def read_list_history(path: Path) -> Tuple[EventLog, Dict[int, date]]:
    """Read the snapshot export as an event log plus the date of each episode.

    Lists are numbered as consecutive episodes in date order, and the
    returned log spans every one of them, including lists with no change.
    """
    lists = read_snapshot_lists(path)
    episode_dates = {
        episode: list_date
        for episode, list_date in enumerate(lists, start=FIRST_EPISODE)
    }
    events = events_from_lists(list(lists.values()), first_episode=FIRST_EPISODE)
    last_episode = FIRST_EPISODE + len(lists) - 1 if lists else None
    log = EventLog.load(
        events,
        first_episode=FIRST_EPISODE if lists else None,
        last_episode=last_episode,
    )
    return log, episode_dates


def read_list_json(path: Path) -> EventLog:
    """Read the snapshot export and diff it into an event log."""
    log, _ = read_list_history(path)
    return log
