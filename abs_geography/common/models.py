"""Data models shared by the loader, the indexes and the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceTier(str, Enum):
    CACHE = "cache"
    BASELINE = "baseline"


class IndexState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheEntry:
    name: str
    content: bytes = field(repr=False)
    tier: SourceTier
    age_seconds: float | None = None


@dataclass(frozen=True)
class SA2Region:
    code: str
    name: str | None = None
    state_code: str | None = None
    state_name: str | None = None
    # Shapely geometry in (lon, lat) order; excluded from equality.
    geometry: Any = field(default=None, compare=False, repr=False)
    centroid: tuple[float, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sa2_code": self.code,
            "sa2_name": self.name,
            "state_code": self.state_code,
            "state_name": self.state_name,
        }
        if self.centroid is not None:
            payload["centroid"] = {"latitude": self.centroid[0], "longitude": self.centroid[1]}
        return payload
