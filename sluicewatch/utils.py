# -*- coding: utf-8 -*-
"""
sluicewatch/utils.py
Small helpers: clock, ISO-8601 parsing, local-time display.
"""

from __future__ import annotations

import datetime
import re
import time
from typing import Optional, Union

import pytz

# Go's RFC3339Nano can carry 1..9 fractional digits; fromisoformat wants 6
_FRACTION = re.compile(r"\.(\d+)")


def now_ms() -> int:
    """Current UTC time in milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=pytz.UTC)


def parse_ts(value: Union[str, datetime.datetime]) -> datetime.datetime:
    """
    Parse an ISO-8601 timestamp into a tz-aware datetime.
    Accepts a trailing Z and over-long fractions; naive values are taken as UTC.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        if not isinstance(value, str):
            raise ValueError(f"timestamp must be a string, got {value!r}")
        s = value.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        s = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s, count=1)
        dt = datetime.datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=pytz.UTC)
    return dt


def format_ts(dt: datetime.datetime) -> str:
    return dt.isoformat()


def format_local(dt: datetime.datetime, tz_name: str) -> str:
    """dd/mm/yy HH:MM in the display timezone."""
    tz = pytz.timezone(tz_name)
    return dt.astimezone(tz).strftime("%d/%m/%y %H:%M")


def relative_age(dt: datetime.datetime, now: Optional[datetime.datetime] = None) -> str:
    """'now', '5min ago', '3h ago', '2d ago'."""
    now = now or utc_now()
    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return "now"
    if minutes < 60:
        return f"{minutes}min ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def norm_text_for_match(s: Optional[str]) -> str:
    return (s or "").lower()
