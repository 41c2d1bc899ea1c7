"""Battle-wide configuration constants for the tactics core."""

import logging
import os
import sys

GRID_WIDTH = 12          # Grid width in cells
GRID_HEIGHT = 8          # Grid height in cells
SPEED_BASE = 10000       # wait_time = SPEED_BASE / speed

# Stats a combatant gets when none are supplied
DEFAULT_STATS = {
    "hp": 100,
    "maxhp": 100,
    "mp": 50,
    "maxmp": 50,
    "str": 15,
    "def": 10,
    "mstr": 12,
    "mdef": 8,
    "spd": 5,
    "mv": 3,
    "range": 1,
}

SKILL_MP_COSTS = {1: 10, 2: 20}  # mp cost per skill slot

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
# Resolve visual effect tickets without waiting for a client (headless runs)
AUTO_RESOLVE_EFFECTS = os.environ.get("AUTO_RESOLVE_EFFECTS", "0") == "1"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger with a clean format for battle output."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5s] %(name)-18s | %(message)s",
        datefmt="%H:%M:%S",
    ))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)
