"""Engine configuration - single source of truth for constants and settings.

Contains interval constants, enums (WakeMode), channel identifiers and the
environment-driven settings (database path, time zone, log level).
Import from here instead of hardcoding values elsewhere.
"""
import logging
import os
from datetime import tzinfo
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from dateutil import tz
from dotenv import load_dotenv

# Load .env from the working directory if present (desktop/dev only)
load_dotenv(Path.cwd() / ".env")


class WakeMode(Enum):
    """Schedule modes understood by the platform alarm extension."""
    EXACT = "exact"
    EXACT_ALLOW_WHILE_IDLE = "exact_allow_while_idle"
    INEXACT = "inexact"
    INEXACT_ALLOW_WHILE_IDLE = "inexact_allow_while_idle"

    @classmethod
    def for_wake(cls, exact: bool, idle_capable: bool) -> "WakeMode":
        if exact:
            return cls.EXACT_ALLOW_WHILE_IDLE if idle_capable else cls.EXACT
        return cls.INEXACT_ALLOW_WHILE_IDLE if idle_capable else cls.INEXACT


INTERVAL_SECOND_MS = 1000
INTERVAL_MINUTE_MS = 60 * INTERVAL_SECOND_MS
INTERVAL_HOUR_MS = 60 * INTERVAL_MINUTE_MS
INTERVAL_DAY_MS = 24 * INTERVAL_HOUR_MS
# Longest repeat the host can request ("year" is always 365 days)
MAX_REPEAT_INTERVAL_MS = 365 * INTERVAL_DAY_MS

# Result string returned by the Flet extension on success
RESULT_OK = "ok"

DEFAULT_DB_FILENAME = "wakeful.db"

CHANNEL_ID = "wakeful_notifications"
CHANNEL_NAME = "Scheduled notifications"
CHANNEL_DESCRIPTION = "Scheduled and repeating local notifications"

ENV_DB_PATH = "WAKEFUL_DB_PATH"
ENV_TIMEZONE = "WAKEFUL_TIMEZONE"
ENV_LOG_LEVEL = "WAKEFUL_LOG_LEVEL"


def get_db_path() -> Path:
    """Database location from WAKEFUL_DB_PATH, or the default file name."""
    return Path(os.getenv(ENV_DB_PATH, "") or DEFAULT_DB_FILENAME)


def get_timezone(name: Optional[str] = None) -> tzinfo:
    """Resolve the zone used for calendar-day arithmetic.

    Uses the explicit name, then WAKEFUL_TIMEZONE, then the DST-aware local zone.

    Raises:
        ValueError: If a zone name is given but unknown
    """
    name = name or os.getenv(ENV_TIMEZONE, "")
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown time zone: {name!r}")
    return zone


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure root logging; level defaults to WAKEFUL_LOG_LEVEL or INFO."""
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL, "") or "INFO"
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
