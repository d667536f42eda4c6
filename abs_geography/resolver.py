"""Geography resolution: postcode -> SA2 and coordinate -> SA2.

The resolver owns the three indexes. ``initialize`` loads the concordance
subsystem and the boundary/centroid subsystem independently, so either can
fail without taking the other down. After initialization every index is
read-only and queries never raise for expected conditions; they return a
status instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from abs_geography.common.config_loader import DatasetConfig, GeographyConfig
from abs_geography.common.constants import SUBSYSTEMS
from abs_geography.common.coordinates import safe_float, valid_lat_lon
from abs_geography.common.logging import default_logger, log_event
from abs_geography.common.models import IndexState, SA2Region, SourceTier
from abs_geography.common.postcode import is_valid_au_postcode
from abs_geography.index.boundary import BoundaryIndex
from abs_geography.index.centroid import CentroidIndex
from abs_geography.index.concordance import ConcordanceIndex
from abs_geography.sources.loader import ByteReader, Clock, load_dataset


class PostcodeStatus(str, Enum):
    OK = "ok"
    INVALID_POSTCODE = "invalid_postcode"
    NOT_FOUND = "not_found"
    INDEX_UNAVAILABLE = "index_unavailable"


class CoordinateStatus(str, Enum):
    OK = "ok"
    OUT_OF_RANGE = "out_of_range"
    NO_MATCH = "no_match"
    INDEX_UNAVAILABLE = "index_unavailable"


class ResolutionMethod(str, Enum):
    CONTAINMENT = "containment"
    NEAREST_CENTROID = "nearest_centroid"


@dataclass(frozen=True)
class PostcodeResolution:
    status: PostcodeStatus
    postcode: Any
    sa2_codes: tuple[str, ...] = ()
    regions: tuple[SA2Region, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is PostcodeStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "postcode": self.postcode,
            "sa2_codes": list(self.sa2_codes),
            "regions": [region.to_dict() for region in self.regions],
        }


@dataclass(frozen=True)
class CoordinateResolution:
    status: CoordinateStatus
    latitude: Any
    longitude: Any
    region: SA2Region | None = None
    method: ResolutionMethod | None = None
    distance_km: float | None = None

    @property
    def ok(self) -> bool:
        return self.status is CoordinateStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "region": self.region.to_dict() if self.region is not None else None,
            "method": self.method.value if self.method is not None else None,
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class ResolverStatus:
    postcode_ready: bool
    postcode_count: int
    boundary_ready: bool
    boundary_count: int
    centroid_ready: bool
    centroid_count: int
    states: dict[str, str] = field(default_factory=dict)
    tiers: dict[str, str] = field(default_factory=dict)
    last_errors: dict[str, str] = field(default_factory=dict)

    @property
    def settled(self) -> bool:
        return all(state in (IndexState.READY.value, IndexState.FAILED.value) for state in self.states.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "postcode_ready": self.postcode_ready,
            "postcode_count": self.postcode_count,
            "boundary_ready": self.boundary_ready,
            "boundary_count": self.boundary_count,
            "centroid_ready": self.centroid_ready,
            "centroid_count": self.centroid_count,
            "settled": self.settled,
            "states": dict(self.states),
            "tiers": dict(self.tiers),
            "last_errors": dict(self.last_errors),
        }


class GeographyResolver:
    def __init__(
        self,
        config: GeographyConfig,
        *,
        logger: logging.Logger | None = None,
        clock: Clock = time.time,
        reader: ByteReader | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or default_logger()
        self.clock = clock
        self.reader = reader
        self._concordance: ConcordanceIndex | None = None
        self._boundaries: BoundaryIndex | None = None
        self._centroids: CentroidIndex | None = None
        self._states = {name: IndexState.UNINITIALIZED for name in SUBSYSTEMS}
        self._tiers: dict[str, SourceTier] = {}
        self._errors: dict[str, str] = {}

    # -- lifecycle ---------------------------------------------------------

    def _load(self, dataset: DatasetConfig):
        kwargs = {"clock": self.clock, "logger": self.logger}
        if self.reader is not None:
            kwargs["reader"] = self.reader
        entry = load_dataset(
            dataset.name,
            dataset.cache_path,
            dataset.baseline_path,
            self.config.max_age_seconds,
            **kwargs,
        )
        self._tiers[dataset.name] = entry.tier
        return entry

    def _fail(self, subsystem: str, exc: Exception) -> None:
        self._states[subsystem] = IndexState.FAILED
        self._errors[subsystem] = f"{type(exc).__name__}: {exc}"
        log_event(
            self.logger,
            f"{subsystem} unavailable: {exc}",
            level=logging.ERROR,
            component="resolver",
            dataset=subsystem,
            event="SUBSYSTEM_FAILED",
            status="error",
            error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
        )

    def _ready(self, subsystem: str, count: int) -> None:
        self._states[subsystem] = IndexState.READY
        log_event(
            self.logger,
            f"{subsystem} ready",
            component="resolver",
            dataset=subsystem,
            event="SUBSYSTEM_READY",
            status="ok",
            rows_out=count,
        )

    def _initialize_concordance(self) -> None:
        self._states["concordance"] = IndexState.LOADING
        try:
            entry = self._load(self.config.concordance)
            index = ConcordanceIndex.build(entry.content, logger=self.logger)
        except Exception as exc:
            # Unexpected failures settle the subsystem too; they never escape initialize().
            self._fail("concordance", exc)
            return
        self._concordance = index
        self._ready("concordance", index.postcode_count)

    def _initialize_boundaries(self) -> None:
        self._states["boundaries"] = IndexState.LOADING
        self._states["centroids"] = IndexState.LOADING
        try:
            entry = self._load(self.config.boundaries)
            boundaries = BoundaryIndex.build(entry.content, logger=self.logger)
        except Exception as exc:
            self._fail("boundaries", exc)
            self._fail("centroids", exc)
            return
        self._boundaries = boundaries
        self._ready("boundaries", boundaries.region_count)

        try:
            centroids = CentroidIndex.build(boundaries.regions, logger=self.logger)
        except Exception as exc:
            self._fail("centroids", exc)
            return
        self._centroids = centroids
        self._ready("centroids", centroids.candidate_count)

    def initialize(self) -> ResolverStatus:
        """Load and build every index once. Later calls only report status."""
        if any(state is not IndexState.UNINITIALIZED for state in self._states.values()):
            return self.status()

        self._initialize_concordance()
        self._initialize_boundaries()
        return self.status()

    def status(self) -> ResolverStatus:
        return ResolverStatus(
            postcode_ready=self._states["concordance"] is IndexState.READY,
            postcode_count=self._concordance.postcode_count if self._concordance is not None else 0,
            boundary_ready=self._states["boundaries"] is IndexState.READY,
            boundary_count=self._boundaries.region_count if self._boundaries is not None else 0,
            centroid_ready=self._states["centroids"] is IndexState.READY,
            centroid_count=self._centroids.candidate_count if self._centroids is not None else 0,
            states={name: state.value for name, state in self._states.items()},
            tiers={name: tier.value for name, tier in self._tiers.items()},
            last_errors=dict(self._errors),
        )

    # -- queries -----------------------------------------------------------

    def resolve_postcode(self, postcode: Any) -> PostcodeResolution:
        if not is_valid_au_postcode(postcode):
            return PostcodeResolution(status=PostcodeStatus.INVALID_POSTCODE, postcode=postcode)

        index = self._concordance
        if index is None or self._states["concordance"] is not IndexState.READY:
            return PostcodeResolution(status=PostcodeStatus.INDEX_UNAVAILABLE, postcode=postcode)

        codes = index.lookup(postcode)
        if not codes:
            return PostcodeResolution(status=PostcodeStatus.NOT_FOUND, postcode=postcode)

        regions = tuple(index.region(code) or SA2Region(code=code) for code in dict.fromkeys(codes))
        return PostcodeResolution(status=PostcodeStatus.OK, postcode=postcode, sa2_codes=codes, regions=regions)

    def resolve_coordinate(self, latitude: Any, longitude: Any) -> CoordinateResolution:
        lat = safe_float(latitude)
        lon = safe_float(longitude)
        if not valid_lat_lon(lat, lon):
            return CoordinateResolution(status=CoordinateStatus.OUT_OF_RANGE, latitude=latitude, longitude=longitude)

        boundaries_ready = self._boundaries is not None and self._states["boundaries"] is IndexState.READY
        centroids_ready = self._centroids is not None and self._states["centroids"] is IndexState.READY

        if boundaries_ready:
            region = self._boundaries.containing_region(lat, lon)
            if region is not None:
                return CoordinateResolution(
                    status=CoordinateStatus.OK,
                    latitude=lat,
                    longitude=lon,
                    region=region,
                    method=ResolutionMethod.CONTAINMENT,
                )

        if centroids_ready:
            match = self._centroids.nearest(lat, lon)
            if match is not None:
                return CoordinateResolution(
                    status=CoordinateStatus.OK,
                    latitude=lat,
                    longitude=lon,
                    region=match.region,
                    method=ResolutionMethod.NEAREST_CENTROID,
                    distance_km=match.distance_km,
                )

        if boundaries_ready or centroids_ready:
            return CoordinateResolution(status=CoordinateStatus.NO_MATCH, latitude=lat, longitude=lon)
        return CoordinateResolution(status=CoordinateStatus.INDEX_UNAVAILABLE, latitude=lat, longitude=lon)


def build_resolver(
    config: GeographyConfig,
    *,
    logger: logging.Logger | None = None,
    clock: Clock = time.time,
) -> GeographyResolver:
    """Construct and initialize a resolver; callers share the returned object."""
    resolver = GeographyResolver(config, logger=logger, clock=clock)
    resolver.initialize()
    return resolver
