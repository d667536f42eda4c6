from __future__ import annotations

import json
from pathlib import Path

import pytest

from abs_geography.common.config_loader import AbsApiConfig, DatasetConfig, GeographyConfig

CONCORDANCE_CSV = """postcode,sa2_code,sa2_name,state_code,state_name
2000,11703,Sydney Inner City,1,New South Wales
2000,11704,Sydney - Haymarket - The Rocks,1,New South Wales
3000,20604,Melbourne City,2,Victoria
"""


def _box(lon0: float, lon1: float, lat0: float, lat1: float) -> list:
    return [[[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]]


def boundary_collection(features: list[dict], **extra) -> dict:
    return {"type": "FeatureCollection", "features": features, **extra}


def polygon_feature(code: str, name: str, lon0: float, lon1: float, lat0: float, lat1: float, **props) -> dict:
    return {
        "type": "Feature",
        "properties": {"sa2Code": code, "sa2Name": name, **props},
        "geometry": {"type": "Polygon", "coordinates": _box(lon0, lon1, lat0, lat1)},
    }


SYDNEY = polygon_feature("11703", "Sydney Inner City", 151.19, 151.235, -33.895, -33.855, stateCode="1")
MELBOURNE = polygon_feature("20604", "Melbourne City", 144.93, 144.99, -37.83, -37.79, stateCode="2")
# No geometry, explicit centroid on the 151E meridian for distance checks.
NEWCASTLE_POINT = {
    "type": "Feature",
    "properties": {"sa2Code": "11101", "sa2Name": "Newcastle", "centroidLat": -32.5, "centroidLon": 151.0},
    "geometry": None,
}


def boundary_bytes(features: list[dict] | None = None, **extra) -> bytes:
    if features is None:
        features = [SYDNEY, MELBOURNE, NEWCASTLE_POINT]
    return json.dumps(boundary_collection(features, **extra)).encode("utf-8")


def make_config(root: Path) -> GeographyConfig:
    cache_dir = root / "cache"
    return GeographyConfig(
        cache_dir=cache_dir,
        max_age_seconds=30 * 86400,
        concordance=DatasetConfig(
            name="concordance",
            cache_path=cache_dir / "postcode_sa2.csv",
            baseline_path=root / "baseline" / "postcode_sa2.csv",
        ),
        boundaries=DatasetConfig(
            name="boundaries",
            cache_path=cache_dir / "sa2_boundaries.geojson",
            baseline_path=root / "baseline" / "sa2_boundaries.geojson",
        ),
        abs_api=AbsApiConfig(
            base_url="https://data.api.abs.gov.au/rest/data/",
            accept="application/vnd.sdmx.data+json;version=1.0.0-wd",
            timeout_seconds=5,
            max_attempts=1,
            rate_per_sec=100.0,
        ),
    )


@pytest.fixture
def geography_config(tmp_path: Path) -> GeographyConfig:
    config = make_config(tmp_path)
    config.concordance.baseline_path.parent.mkdir(parents=True)
    config.concordance.baseline_path.write_text(CONCORDANCE_CSV, encoding="utf-8")
    config.boundaries.baseline_path.write_bytes(boundary_bytes())
    return config
