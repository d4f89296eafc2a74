"""Tests for the single-pass GeoJSON serializer."""

from __future__ import annotations

import json

from paper_maps.utils.geojson import (
    count_positions,
    iter_collection_json,
    render_feature,
)
from tests.factories import CCW_SQUARE, make_collection, make_feature


class TestRenderFeature:
    def test_geometry_on_one_line(self, feature: dict) -> None:
        text = render_feature(feature)
        geometry_lines = [line for line in text.splitlines() if '"geometry"' in line]
        assert len(geometry_lines) == 1
        assert '"coordinates": [[[0.0, 0.0], [1.0, 0.0]' in geometry_lines[0]

    def test_properties_pretty_printed(self, feature: dict) -> None:
        text = render_feature(feature)
        assert '\n        "title": "Cairngorms",' in text

    def test_round_trip(self, feature: dict) -> None:
        assert json.loads(render_feature(feature)) == feature

    def test_elision(self) -> None:
        f = make_feature()
        text = render_feature(f, max_positions=2)
        assert json.loads(text)["geometry"]["coordinates"] == "<5 positions elided>"
        assert f["geometry"]["coordinates"] == [CCW_SQUARE]

    def test_non_dict_falls_back_to_json(self) -> None:
        assert render_feature([1, 2], indent=2) == "[\n  1,\n  2\n]"

    def test_count_positions(self) -> None:
        assert count_positions([1.0, 2.0]) == 1
        assert count_positions([[CCW_SQUARE], [CCW_SQUARE]]) == 10
        assert count_positions("x") == 0


class TestCollectionSerialization:
    def test_round_trip_preserves_order_and_unknown_keys(self, collection: dict) -> None:
        collection["name"] = "Paper Maps"
        collection["features"][0]["properties"]["scale"] = "1:40000"
        text = "".join(iter_collection_json(collection))
        parsed = json.loads(text)
        assert parsed == collection
        assert list(parsed) == ["type", "features", "name"]

    def test_empty_features(self) -> None:
        text = "".join(iter_collection_json(make_collection()))
        assert text == '{\n    "type": "FeatureCollection",\n    "features": []\n}\n'

    def test_non_ascii_kept(self) -> None:
        text = "".join(iter_collection_json(make_collection(make_feature(title="Sgùrr Alasdair"))))
        assert "Sgùrr Alasdair" in text
