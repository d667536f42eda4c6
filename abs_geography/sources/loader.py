"""Two-tier dataset loading: disk cache first, baseline copy second."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from abs_geography.common.errors import SourceUnavailableError
from abs_geography.common.fs import file_mtime, read_bytes, write_bytes
from abs_geography.common.logging import default_logger, log_event
from abs_geography.common.models import CacheEntry, SourceTier

Clock = Callable[[], float]
ByteReader = Callable[[Path], bytes]


def _cache_age(cache_path: Path, clock: Clock) -> float | None:
    mtime = file_mtime(cache_path)
    if mtime is None:
        return None
    return clock() - mtime


def _refresh_cache(name: str, cache_path: Path, content: bytes, logger: logging.Logger) -> bool:
    try:
        write_bytes(cache_path, content)
    except OSError as exc:
        log_event(
            logger,
            f"could not refresh cache for {name}: {exc}",
            level=logging.WARNING,
            component="loader",
            dataset=name,
            event="CACHE_WRITE_FAILED",
            status="warning",
        )
        return False
    return True


def load_dataset(
    name: str,
    cache_path: Path,
    baseline_path: Path,
    max_age_seconds: float,
    *,
    clock: Clock = time.time,
    reader: ByteReader = read_bytes,
    logger: logging.Logger | None = None,
) -> CacheEntry:
    """Resolve the bytes of one dataset.

    A cache file is used only while its age is strictly below
    ``max_age_seconds``. Anything else falls back to the baseline copy, which
    is then written over the cache. A failed cache write is logged and
    ignored; only an unreadable baseline raises.
    """
    logger = logger or default_logger()

    age = _cache_age(cache_path, clock)
    if age is not None and age < max_age_seconds:
        try:
            content = reader(cache_path)
        except OSError as exc:
            log_event(
                logger,
                f"cache for {name} unreadable, using baseline: {exc}",
                level=logging.WARNING,
                component="loader",
                dataset=name,
                event="CACHE_READ_FAILED",
                status="warning",
            )
        else:
            log_event(
                logger,
                f"loaded {name} from cache",
                component="loader",
                dataset=name,
                event="DATASET_LOADED",
                status="ok",
                tier=SourceTier.CACHE.value,
                age_seconds=round(age, 3),
            )
            return CacheEntry(name=name, content=content, tier=SourceTier.CACHE, age_seconds=age)

    try:
        content = reader(baseline_path)
    except OSError as exc:
        raise SourceUnavailableError(f"Baseline for {name} unreadable at {baseline_path}: {exc}") from exc

    refreshed = _refresh_cache(name, cache_path, content, logger)
    log_event(
        logger,
        f"loaded {name} from baseline",
        component="loader",
        dataset=name,
        event="DATASET_LOADED",
        status="ok" if refreshed else "partial",
        tier=SourceTier.BASELINE.value,
        age_seconds=round(age, 3) if age is not None else None,
    )
    return CacheEntry(name=name, content=content, tier=SourceTier.BASELINE)
