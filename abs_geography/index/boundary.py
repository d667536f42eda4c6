"""SA2 boundary polygons and point-in-polygon lookup."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError
from shapely.errors import GEOSException
from shapely.geometry import Point, shape
from shapely.ops import transform

from abs_geography.common.coordinates import safe_float, valid_lat_lon
from abs_geography.common.errors import DatasetParseError
from abs_geography.common.logging import default_logger, log_event
from abs_geography.common.models import SA2Region

SUPPORTED_GEOMETRY_TYPES = ("Polygon", "MultiPolygon")

SA2_CODE_KEYS = ("sa2Code", "sa2_code", "SA2_CODE21", "SA2_MAIN16", "SA2_CODE", "sa2_main")
SA2_NAME_KEYS = ("sa2Name", "sa2_name", "SA2_NAME21", "SA2_NAME16", "SA2_NAME")
STATE_CODE_KEYS = ("stateCode", "state_code", "STE_CODE21", "STE_CODE16", "STATE_CODE")
STATE_NAME_KEYS = ("stateName", "state_name", "STE_NAME21", "STE_NAME16", "STATE_NAME")
CENTROID_LAT_KEYS = ("centroidLat", "centroid_lat", "CENTROID_LAT")
CENTROID_LON_KEYS = ("centroidLon", "centroid_lon", "CENTROID_LON")

WGS84 = CRS.from_epsg(4326)


def _lookup_first(mapping: dict, candidates: tuple[str, ...]) -> object | None:
    for key in candidates:
        if key in mapping and mapping[key] not in (None, ""):
            return mapping[key]
    return None


def _text(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _declared_crs(payload: dict) -> CRS | None:
    crs_member = payload.get("crs")
    if not crs_member:
        return None
    name = (crs_member.get("properties") or {}).get("name") if isinstance(crs_member, dict) else None
    if not name:
        raise DatasetParseError(f"Unsupported crs member: {crs_member!r}")
    try:
        return CRS.from_user_input(name)
    except CRSError as exc:
        raise DatasetParseError(f"Unrecognised boundary CRS {name!r}") from exc


def _to_wgs84(crs: CRS | None):
    """Return a (x, y) transform into WGS84 lon/lat, or None when already there."""
    if crs is None or crs.equals(WGS84, ignore_axis_order=True):
        return None
    transformer = Transformer.from_crs(crs, WGS84, always_xy=True)
    return transformer.transform


def _explicit_centroid(properties: dict, logger: logging.Logger, idx: int) -> tuple[float, float] | None:
    raw_lat = _lookup_first(properties, CENTROID_LAT_KEYS)
    raw_lon = _lookup_first(properties, CENTROID_LON_KEYS)
    if raw_lat is None and raw_lon is None:
        return None
    lat = safe_float(raw_lat)
    lon = safe_float(raw_lon)
    if not valid_lat_lon(lat, lon):
        _feature_skipped(logger, idx, f"invalid centroid ({raw_lat!r}, {raw_lon!r})")
        return None
    return lat, lon


def _feature_skipped(logger: logging.Logger, idx: int, reason: str) -> None:
    log_event(
        logger,
        f"boundary feature {idx}: {reason}",
        level=logging.WARNING,
        component="boundary",
        dataset="boundaries",
        event="FEATURE_SKIPPED",
        status="warning",
    )


def _build_geometry(geometry: Any, project, logger: logging.Logger, idx: int):
    if not isinstance(geometry, dict):
        _feature_skipped(logger, idx, "no geometry")
        return None
    kind = geometry.get("type")
    if kind not in SUPPORTED_GEOMETRY_TYPES:
        _feature_skipped(logger, idx, f"unsupported geometry type {kind!r}")
        return None
    try:
        geom = shape(geometry)
        if project is not None:
            geom = transform(project, geom)
    except (GEOSException, ValueError, TypeError, IndexError, AttributeError) as exc:
        _feature_skipped(logger, idx, f"malformed geometry: {exc}")
        return None
    if geom.is_empty:
        _feature_skipped(logger, idx, "empty geometry")
        return None
    return geom


def _parse_features(content: bytes) -> tuple[list, CRS | None]:
    try:
        payload = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DatasetParseError(f"Boundary dataset is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        raise DatasetParseError("Boundary dataset must be a GeoJSON FeatureCollection")
    features = payload.get("features")
    if not isinstance(features, list):
        raise DatasetParseError("Boundary FeatureCollection has no features list")
    return features, _declared_crs(payload)


@dataclass(frozen=True)
class BoundaryIndex:
    """SA2 regions in load order; containment is a linear first-match scan."""

    regions: tuple[SA2Region, ...]

    @property
    def region_count(self) -> int:
        return len(self.regions)

    def containing_region(self, latitude: float, longitude: float) -> SA2Region | None:
        point = Point(longitude, latitude)
        for region in self.regions:
            if region.geometry is None:
                continue
            try:
                if region.geometry.contains(point):
                    return region
            except GEOSException:
                continue
        return None

    @classmethod
    def build(cls, content: bytes, *, logger: logging.Logger | None = None) -> "BoundaryIndex":
        logger = logger or default_logger()
        features, crs = _parse_features(content)
        project = _to_wgs84(crs)

        regions: list[SA2Region] = []
        for idx, feature in enumerate(features):
            if not isinstance(feature, dict):
                _feature_skipped(logger, idx, "not a feature object")
                continue
            properties = feature.get("properties")
            if not isinstance(properties, dict):
                properties = {}
            code = _text(_lookup_first(properties, SA2_CODE_KEYS))
            if code is None:
                _feature_skipped(logger, idx, "missing SA2 code")
                continue

            regions.append(
                SA2Region(
                    code=code,
                    name=_text(_lookup_first(properties, SA2_NAME_KEYS)),
                    state_code=_text(_lookup_first(properties, STATE_CODE_KEYS)),
                    state_name=_text(_lookup_first(properties, STATE_NAME_KEYS)),
                    geometry=_build_geometry(feature.get("geometry"), project, logger, idx),
                    centroid=_explicit_centroid(properties, logger, idx),
                )
            )

        log_event(
            logger,
            "boundary index built",
            component="boundary",
            dataset="boundaries",
            event="INDEX_BUILT",
            status="ok",
            rows_in=len(features),
            rows_out=len(regions),
        )
        return cls(regions=tuple(regions))
