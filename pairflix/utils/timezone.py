"""Timezone utilities for PairFlix."""

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pairflix.config import settings


def get_timezone() -> ZoneInfo:
    """
    Get the configured timezone.

    Returns:
        ZoneInfo object for the configured timezone, UTC if it cannot be resolved
    """
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())
