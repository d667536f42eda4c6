from __future__ import annotations

import json

import pytest
from pyproj import Transformer

from abs_geography.common.errors import DatasetParseError
from abs_geography.index.boundary import BoundaryIndex
from conftest import MELBOURNE, NEWCASTLE_POINT, SYDNEY, boundary_bytes, polygon_feature


def test_point_inside_polygon_is_contained():
    index = BoundaryIndex.build(boundary_bytes())

    region = index.containing_region(-33.8688, 151.2093)

    assert region is not None
    assert region.code == "11703"
    assert region.name == "Sydney Inner City"
    assert region.state_code == "1"


def test_point_over_ocean_has_no_region():
    index = BoundaryIndex.build(boundary_bytes())

    assert index.containing_region(-40.0, 160.0) is None


def test_first_containing_feature_in_load_order_wins():
    outer = polygon_feature("99999", "Outer", 150.0, 152.0, -35.0, -33.0)
    index = BoundaryIndex.build(boundary_bytes([outer, SYDNEY]))

    assert index.containing_region(-33.8688, 151.2093).code == "99999"

    reordered = BoundaryIndex.build(boundary_bytes([SYDNEY, outer]))
    assert reordered.containing_region(-33.8688, 151.2093).code == "11703"


def test_multipolygon_matches_any_member():
    feature = {
        "type": "Feature",
        "properties": {"SA2_CODE21": "80105", "SA2_NAME21": "Canberra East"},
        "geometry": {
            "type": "MultiPolygon",
            "coordinates": [
                [[[149.10, -35.33], [149.14, -35.33], [149.14, -35.27], [149.10, -35.27], [149.10, -35.33]]],
                [[[149.15, -35.33], [149.17, -35.33], [149.17, -35.29], [149.15, -35.29], [149.15, -35.33]]],
            ],
        },
    }
    index = BoundaryIndex.build(boundary_bytes([feature]))

    assert index.containing_region(-35.30, 149.12).code == "80105"
    assert index.containing_region(-35.31, 149.16).code == "80105"
    assert index.containing_region(-35.31, 149.145) is None


def test_polygon_hole_is_excluded():
    feature = {
        "type": "Feature",
        "properties": {"sa2Code": "1"},
        "geometry": {
            "type": "Polygon",
            "coordinates": [
                [[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0], [0.0, 0.0]],
                [[4.0, 4.0], [6.0, 4.0], [6.0, 6.0], [4.0, 6.0], [4.0, 4.0]],
            ],
        },
    }
    index = BoundaryIndex.build(boundary_bytes([feature]))

    assert index.containing_region(2.0, 2.0).code == "1"
    assert index.containing_region(5.0, 5.0) is None


def test_bad_features_are_skipped_without_aborting(caplog):
    features = [
        {"type": "Feature", "properties": {"sa2Name": "No code"}, "geometry": SYDNEY["geometry"]},
        {"type": "Feature", "properties": {"sa2Code": "1"}, "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}},
        {"type": "Feature", "properties": {"sa2Code": "2"}, "geometry": {"type": "Point", "coordinates": [151.2, -33.87]}},
        "not a feature",
        MELBOURNE,
    ]

    with caplog.at_level("WARNING"):
        index = BoundaryIndex.build(boundary_bytes(features))

    assert [region.code for region in index.regions] == ["1", "2", "20604"]
    assert index.regions[0].geometry is None
    assert index.regions[1].geometry is None
    assert index.containing_region(-37.8136, 144.9631).code == "20604"
    assert any("missing SA2 code" in message for message in caplog.messages)
    assert any("unsupported geometry type" in message for message in caplog.messages)


def test_feature_without_geometry_keeps_explicit_centroid():
    index = BoundaryIndex.build(boundary_bytes([NEWCASTLE_POINT]))

    assert index.region_count == 1
    assert index.regions[0].centroid == (-32.5, 151.0)
    assert index.containing_region(-32.5, 151.0) is None


def test_projected_crs_is_reprojected_to_wgs84():
    to_mercator = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
    ring = [list(to_mercator.transform(lon, lat)) for lon, lat in SYDNEY["geometry"]["coordinates"][0]]
    feature = {"type": "Feature", "properties": {"sa2Code": "11703"}, "geometry": {"type": "Polygon", "coordinates": [ring]}}
    crs = {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::3857"}}

    index = BoundaryIndex.build(boundary_bytes([feature], crs=crs))

    assert index.containing_region(-33.8688, 151.2093).code == "11703"
    assert index.containing_region(-37.8136, 144.9631) is None


def test_crs84_needs_no_reprojection():
    crs = {"type": "name", "properties": {"name": "urn:ogc:def:crs:OGC:1.3:CRS84"}}
    index = BoundaryIndex.build(boundary_bytes([SYDNEY], crs=crs))

    assert index.containing_region(-33.8688, 151.2093).code == "11703"


def test_unknown_crs_is_a_parse_error():
    crs = {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::999999"}}
    with pytest.raises(DatasetParseError):
        BoundaryIndex.build(boundary_bytes([SYDNEY], crs=crs))


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        json.dumps({"type": "Feature"}).encode("utf-8"),
        json.dumps({"type": "FeatureCollection", "features": {}}).encode("utf-8"),
        json.dumps([SYDNEY]).encode("utf-8"),
    ],
)
def test_unusable_payloads_are_parse_errors(content: bytes):
    with pytest.raises(DatasetParseError):
        BoundaryIndex.build(content)


def _centroid_only(code: str, lat, lon) -> dict:
    return {"type": "Feature", "properties": {"sa2Code": code, "centroidLat": lat, "centroidLon": lon}, "geometry": None}


@pytest.mark.parametrize(
    "lat, lon",
    [(-147.0, -29.0), (500, 151.0), (-33.5, 181.0), (float("nan"), 151.0), (-33.5, float("inf")), ("north", 151.0)],
)
def test_invalid_explicit_centroid_is_dropped_with_warning(caplog, lat, lon):
    features = [_centroid_only("bad", lat, lon), _centroid_only("good", -33.5, 151.0)]

    with caplog.at_level("WARNING"):
        index = BoundaryIndex.build(boundary_bytes(features))

    assert [region.code for region in index.regions] == ["bad", "good"]
    assert index.regions[0].centroid is None
    assert index.regions[1].centroid == (-33.5, 151.0)
    assert any("invalid centroid" in message for message in caplog.messages)


def test_polygon_keeps_geometry_when_explicit_centroid_is_invalid():
    feature = polygon_feature("11703", "Sydney Inner City", 151.19, 151.235, -33.895, -33.855, centroidLat=-147.0, centroidLon=-29.0)

    index = BoundaryIndex.build(boundary_bytes([feature]))

    assert index.regions[0].centroid is None
    assert index.containing_region(-33.8688, 151.2093).code == "11703"
