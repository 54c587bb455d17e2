"""Application constants."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "contactview"
WINDOW_TITLE = "Contact Map"
DEFAULT_WINDOW_WIDTH = 1100
DEFAULT_WINDOW_HEIGHT = 820
INDEX_PATH = Path(__file__).resolve().parent / "web" / "index.html"

# Matrix construction
MAX_RESIDUES = 3000
TARGET_EXTENT = 600
MIN_SCALE = 1
MAX_SCALE = 20
UNKNOWN_CHAIN = "?"

# Thresholds in angstrom
DEFAULT_CONTACT_THRESHOLD = 8.0
DEFAULT_PROXIMAL_THRESHOLD = 12.0
CONTACT_RANGE = (3.0, 12.0)
PROXIMAL_RANGE = (5.0, 20.0)

# Rendering
GRID_STEP = 25
MINIMAP_SIZE = 150
TRACK_THICKNESS = 6
THEMES = ("dark", "light")
DEFAULT_THEME = "dark"

# Export
CSV_MAX_DISTANCE = 15.0
CSV_COLUMNS = (
    "Chain1",
    "ResNo1",
    "Residue1",
    "Chain2",
    "ResNo2",
    "Residue2",
    "Distance(A)",
)

DEBOUNCE_SECONDS = 0.15

# Largest main canvas edge in pixels; zoom is clamped so N * scale stays below it.
MAX_CANVAS_EXTENT = 8192
ZOOM_STEP = 1
