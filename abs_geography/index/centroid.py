"""Nearest-centroid fallback lookup."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable

from abs_geography.common.constants import EARTH_RADIUS_KM
from abs_geography.common.coordinates import valid_lat_lon
from abs_geography.common.logging import default_logger, log_event
from abs_geography.common.models import SA2Region


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km on a sphere of mean Earth radius."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push a just past 1 for antipodal points. NaN passes through.
    if a > 1.0:
        a = 1.0
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def representative_coordinate(region: SA2Region) -> tuple[float, float] | None:
    if region.centroid is not None:
        coordinate = region.centroid
    elif region.geometry is None:
        return None
    else:
        centre = region.geometry.centroid
        if centre.is_empty:
            return None
        coordinate = (float(centre.y), float(centre.x))
    if not valid_lat_lon(*coordinate):
        return None
    return coordinate


@dataclass(frozen=True)
class NearestMatch:
    region: SA2Region
    distance_km: float


@dataclass(frozen=True)
class CentroidIndex:
    """One (region, lat, lon) candidate per region, in boundary load order.

    Distance ties keep the earliest candidate.
    """

    candidates: tuple[tuple[SA2Region, float, float], ...]

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    def nearest(self, latitude: float, longitude: float) -> NearestMatch | None:
        best: NearestMatch | None = None
        for region, lat, lon in self.candidates:
            distance = haversine_km(latitude, longitude, lat, lon)
            if best is None or distance < best.distance_km:
                best = NearestMatch(region=region, distance_km=distance)
        return best

    @classmethod
    def build(cls, regions: Iterable[SA2Region], *, logger: logging.Logger | None = None) -> "CentroidIndex":
        logger = logger or default_logger()
        candidates: list[tuple[SA2Region, float, float]] = []
        skipped = 0
        for region in regions:
            coordinate = representative_coordinate(region)
            if coordinate is None:
                skipped += 1
                continue
            lat, lon = coordinate
            candidates.append((replace(region, centroid=coordinate), lat, lon))

        if skipped:
            log_event(
                logger,
                f"{skipped} regions have no representative coordinate",
                level=logging.WARNING,
                component="centroid",
                dataset="boundaries",
                event="FEATURE_SKIPPED",
                status="warning",
            )
        log_event(
            logger,
            "centroid index built",
            component="centroid",
            dataset="boundaries",
            event="INDEX_BUILT",
            status="ok",
            rows_in=len(candidates) + skipped,
            rows_out=len(candidates),
        )
        return cls(candidates=tuple(candidates))
