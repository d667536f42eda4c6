"""UTC-focused helpers for run metadata and cache ages."""

from __future__ import annotations

from datetime import datetime, timezone

from abs_geography.common.constants import SECONDS_PER_DAY


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def days_to_seconds(days: float) -> float:
    return float(days) * SECONDS_PER_DAY
