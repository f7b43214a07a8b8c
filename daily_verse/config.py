"""
Runtime settings, read from environment variables.

main.py loads ``.env.local`` with python-dotenv before calling load_settings().
"""
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz

from .errors import ConfigError
from .scheduler import IntervalPolicy, local_now
from .storage import VERSES_DIR

DEFAULT_PORT = 8080
MAX_UPDATE_INTERVAL_MS = 366 * 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class Settings:
    update_interval: Optional[int] = None
    timezone: Optional[str] = None
    verses_dir: str = VERSES_DIR
    api_base_url: Optional[str] = None
    api_endpoint_pattern: Optional[str] = None
    port: int = DEFAULT_PORT

    @property
    def policy(self) -> IntervalPolicy:
        return IntervalPolicy(interval_ms=self.update_interval, timezone=self.timezone)

    def now(self) -> datetime:
        """Current time in the configured zone; the scheduler and the selector share it."""
        return local_now(self.policy.tz)


def parse_update_interval(value) -> Optional[int]:
    """
    Interpret ``updateInterval`` (milliseconds).

    Unset, null, zero or negative means "update at midnight" and gives None;
    a positive number up to a year is the fixed interval. Anything else is
    reported and also gives None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value.lower() in ("", "null", "none", "undefined"):
            return None
    try:
        interval = int(float(value))
    except (TypeError, ValueError, OverflowError):
        print(f"[config] Ignoring invalid update interval {value!r}; updating at midnight")
        return None
    if interval > MAX_UPDATE_INTERVAL_MS:
        print(f"[config] Ignoring update interval {value!r} longer than a year; updating at midnight")
        return None
    return interval if interval > 0 else None


def validate_timezone(tz_str: Optional[str]) -> Optional[str]:
    """Return *tz_str* if pytz knows it (None passes through)."""
    if not tz_str:
        return None
    try:
        pytz.timezone(tz_str)
    except pytz.UnknownTimeZoneError:
        raise ConfigError(f"Unknown timezone: {tz_str}")
    return tz_str


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ

    port = env.get("DAILY_VERSE_PORT") or DEFAULT_PORT
    try:
        port = int(port)
    except ValueError:
        raise ConfigError(f"Invalid port: {port}")

    return Settings(
        update_interval=parse_update_interval(env.get("DAILY_VERSE_UPDATE_INTERVAL")),
        timezone=validate_timezone(env.get("DAILY_VERSE_TIMEZONE")),
        verses_dir=env.get("DAILY_VERSE_DIR") or VERSES_DIR,
        api_base_url=env.get("OPEN_SCRIPTURE_API_URL") or None,
        api_endpoint_pattern=env.get("OPEN_SCRIPTURE_API_PATTERN") or None,
        port=port,
    )
