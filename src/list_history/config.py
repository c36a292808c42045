from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"

# Input file names
LIST_FILENAME = "list.json"
EVENTS_FILENAME = "events.csv"

# Columns expected in a tabular event log
EVENT_COLUMNS = ["episode", "item", "operation", "position"]

# Episode number given to the first list of a snapshot export
FIRST_EPISODE = 1
