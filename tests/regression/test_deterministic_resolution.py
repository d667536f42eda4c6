from __future__ import annotations

import pytest

from abs_geography.resolver import GeographyResolver

QUERIES = [
    (-33.8688, 151.2093),
    (-32.0, 151.0),
    (-40.0, 160.0),
    (95.0, 0.0),
]


def _snapshot(resolver: GeographyResolver) -> list[dict]:
    out = [resolver.resolve_coordinate(lat, lon).to_dict() for lat, lon in QUERIES]
    out.extend(resolver.resolve_postcode(postcode).to_dict() for postcode in ("2000", "3000", "9999", "2x00"))
    return out


@pytest.mark.regression
def test_repeated_queries_are_identical(geography_config):
    resolver = GeographyResolver(geography_config)
    resolver.initialize()

    assert _snapshot(resolver) == _snapshot(resolver)


@pytest.mark.regression
def test_separate_resolvers_agree_on_same_input(geography_config):
    first = GeographyResolver(geography_config)
    first.initialize()
    second = GeographyResolver(geography_config)
    second.initialize()

    assert first.status().tiers["boundaries"] == "baseline"
    assert second.status().tiers["boundaries"] == "cache"
    assert _snapshot(first) == _snapshot(second)
