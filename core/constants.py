"""Shared constants for the shift engine and its CLI.

Collects the date/time formats, weekday conventions, and workload defaults
that would otherwise be repeated across resolver, workload and CLI modules.
"""

from __future__ import annotations

import os

# -----------------------------------------------------------------------------
# Config locations
# -----------------------------------------------------------------------------

CONFIG_ENV_VAR = "SHIFTS_CONFIG"
CONFIG_DIRNAME = "shifts"
CONFIG_FILENAME = "settings.yaml"


def config_roots() -> list[str]:
    """Return ordered list of config root directories."""
    roots: list[str] = []
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        roots.append(os.path.expanduser(xdg))
    roots.append(os.path.expanduser("~/.config"))
    return roots


def settings_paths() -> list[str]:
    """Return ordered list of settings.yaml paths to search.

    An explicit ``$SHIFTS_CONFIG`` comes first, then each config root.
    """
    paths: list[str] = []
    env_cfg = os.environ.get(CONFIG_ENV_VAR)
    if env_cfg:
        paths.append(os.path.expanduser(env_cfg))
    for root in config_roots():
        paths.append(os.path.join(root, CONFIG_DIRNAME, CONFIG_FILENAME))

    seen: set[str] = set()
    unique: list[str] = []
    for p in paths:
        if p and p not in seen:
            seen.add(p)
            unique.append(p)
    return unique


# -----------------------------------------------------------------------------
# Time format
# -----------------------------------------------------------------------------

FMT_TIME = "%H:%M"

# -----------------------------------------------------------------------------
# Weekday convention (0=Sunday .. 6=Saturday)
# -----------------------------------------------------------------------------

DAYS_PER_WEEK = 7

WEEKDAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

# -----------------------------------------------------------------------------
# Workload defaults
# -----------------------------------------------------------------------------

DEFAULT_MAX_HOURS = 40.0
DEFAULT_OVERTIME_THRESHOLD = 35.0
DEFAULT_BULK_WEEKS = 4
MAX_BULK_WEEKS = 12

# Authorized care is billed in 15-minute units
HOURS_PER_UNIT = 0.25
UNITS_PER_HOUR = 4
