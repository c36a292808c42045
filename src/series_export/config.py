from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "out"

# File names
META_FILENAME = "meta.json"
SERIES_FILENAME = "list_over_time.csv"
SUMMARY_FILENAME = "summary.json"

# Metadata lookups
MAX_LOOKUP_WORKERS = 8  # Concurrent catalog requests
LOOKUP_TIMEOUT_SECONDS = 60.0  # Whole fan-out, not per item

# Layout strategy used by the batch runner ("greedy" or "rank")
DEFAULT_LAYOUT = "greedy"

# Column order of the exported series
DATAPOINT_COLUMNS = [
    "episode", "item_id", "rank", "track",
    "display_name", "catalog_ref", "cover_image_ref",
]
