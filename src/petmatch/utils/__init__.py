"""Utility helpers."""

from petmatch.utils.logging import configure_logging, get_logger
from petmatch.utils.time import parse_iso_datetime, to_datetime, utc_now

__all__ = [
    "configure_logging",
    "get_logger",
    "parse_iso_datetime",
    "to_datetime",
    "utc_now",
]
