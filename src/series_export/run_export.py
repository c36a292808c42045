"""Run the complete list-over-time export.

Usage:
    python -m src.series_export.run_export <events.csv|list.json> [meta.json] [output_dir]

Examples:
    python -m src.series_export.run_export data/list.json data/meta.json
    python -m src.series_export.run_export data/events.csv data/meta.json out/
"""

import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple

from src.layout_engine.track_assignment import get_layout
from src.list_history.events import EventLog
from src.list_history.history_stats import extrema, latest
from src.list_history.ingestion import read_event_csv, read_list_history
from src.list_history.state_machine import ListStateMachine
from src.logging_config import setup_logging
from src.series_export.config import (
    DEFAULT_LAYOUT,
    OUTPUT_DIR,
    SERIES_FILENAME,
    SUMMARY_FILENAME,
)
from src.series_export.exporter import SeriesExporter, write_csv
from src.series_export.metadata import JsonMetadataSource, MetadataLookupError

logger = logging.getLogger(__name__)


def _load_events(source: Path) -> Tuple[EventLog, Optional[Dict[int, date]]]:
    """Event log plus show dates per episode; only snapshot exports carry dates."""
    if source.suffix.lower() == ".json":
        return read_list_history(source)
    return read_event_csv(source), None


def _extrema_summary(snapshots, episode_dates, top: bool):
    unit = "days" if episode_dates is not None else "episodes"
    return [
        {"item_id": item_id, unit: duration}
        for item_id, duration in extrema(snapshots, top=top, episode_dates=episode_dates)
    ]


def _load_metadata(meta_path: Optional[Path]):
    """Open the metadata dump; a missing or unreadable one only costs labels."""
    if meta_path is None:
        logger.warning("No metadata file given; items will be labelled by id")
        return None
    try:
        return JsonMetadataSource(meta_path)
    except MetadataLookupError as e:
        logger.warning("Metadata unavailable, items will be labelled by id: %s", e)
        return None


def run_export(
    source: Path,
    meta_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    layout: str = DEFAULT_LAYOUT,
) -> Path:
    """Run ingest, replay, layout and export, writing the series CSV.

    Args:
        source: Event log CSV or snapshot export JSON.
        meta_path: Catalog dump used for display names.
        output_dir: Directory for outputs. Defaults to ``out/``.
        layout: Track layout strategy name.

    Returns:
        Path to the written series CSV.

    Raises:
        FileNotFoundError: If the source file doesn't exist.
        ListHistoryError: If the event log is inconsistent.
    """
    source = Path(source)
    if output_dir is None:
        output_dir = OUTPUT_DIR
    output_dir = Path(output_dir)

    if not source.is_file():
        raise FileNotFoundError(f"Source file not found: {source}")

    logger.info("Starting export from %s", source)

    # 1. Ingest
    logger.info("Step 1/4: Loading event log...")
    event_log, episode_dates = _load_events(source)

    # 2. Replay
    logger.info("Step 2/4: Replaying events...")
    machine = ListStateMachine(fill_gaps=True)
    snapshots = machine.replay(event_log)
    timelines = machine.timelines(snapshots)
    logger.info("Replayed: %d episodes, %d items", len(snapshots), len(timelines))

    # 3. Layout
    logger.info("Step 3/4: Assigning tracks (%s layout)...", layout)
    assignment = get_layout(layout).assign(snapshots)

    # 4. Export
    logger.info("Step 4/4: Exporting series...")
    metadata = _load_metadata(Path(meta_path) if meta_path is not None else None)
    exporter = SeriesExporter()
    points = exporter.export(timelines, assignment, metadata)

    series_file = write_csv(points, output_dir / SERIES_FILENAME)

    final = latest(snapshots)
    summary = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "source": source.name,
        "layout": layout,
        "episodes": len(snapshots),
        "items": len(timelines),
        "data_points": len(points),
        "crossings": assignment.crossings(),
        "latest_list": list(final.items) if final else [],
        "longest_at_top": _extrema_summary(snapshots, episode_dates, top=True),
        "longest_at_bottom": _extrema_summary(snapshots, episode_dates, top=False),
    }
    summary_file = output_dir / SUMMARY_FILENAME
    with open(summary_file, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)

    logger.info("Export complete! Output: %s", series_file)
    logger.info("  Summary: %s", summary_file)

    return series_file


if __name__ == "__main__":
    setup_logging()

    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    source = Path(sys.argv[1])
    meta_path = Path(sys.argv[2]) if len(sys.argv) > 2 else None
    output_dir = Path(sys.argv[3]) if len(sys.argv) > 3 else None

    try:
        output = run_export(source, meta_path, output_dir)
        print(f"Export complete: {output}")
    except Exception:
        logger.exception("Export failed")
        sys.exit(1)
