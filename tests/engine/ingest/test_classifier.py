"""Tests for the tag-based infrastructure classifier."""

import pytest

from enodia_engine.errors import InvalidElement
from enodia_engine.ingest.classifier import categorize, classify, classify_batch, synthetic_id
from enodia_engine.layers import InfrastructureCategory, LayerStore
from tests.lib.fakes import way

LINE = [(0.0, 0.0), (0.0, 1.0)]


@pytest.mark.unit
class TestCategorize:
    """Rule order: power, water, highway, railway, other."""

    @pytest.mark.parametrize("tags, expected", [
        ({"power": "line"}, InfrastructureCategory.ELECTRICITY),
        ({"power": "line", "voltage": "115000"}, InfrastructureCategory.ELECTRICITY),
        ({"power": "minor_line"}, InfrastructureCategory.ELECTRICITY),
        ({"man_made": "pipeline", "pipeline": "water"}, InfrastructureCategory.WATER),
        ({"man_made": "pipeline", "substance": "water"}, InfrastructureCategory.WATER),
        ({"utility": "water"}, InfrastructureCategory.WATER),
        ({"highway": "primary"}, InfrastructureCategory.ROAD),
        ({"highway": "footway"}, InfrastructureCategory.ROAD),
        ({"railway": "rail"}, InfrastructureCategory.RAIL),
        ({"railway": "abandoned"}, InfrastructureCategory.RAIL),
        ({}, InfrastructureCategory.OTHER),
        ({"name": "Main St"}, InfrastructureCategory.OTHER),
    ])
    def test_rules(self, tags, expected):
        assert categorize(tags) is expected

    def test_non_line_power_is_other(self):
        assert categorize({"power": "tower"}) is InfrastructureCategory.OTHER

    def test_gas_pipeline_is_other(self):
        assert categorize({"man_made": "pipeline", "pipeline": "gas"}) is InfrastructureCategory.OTHER

    def test_pipeline_tag_without_man_made_is_other(self):
        assert categorize({"pipeline": "water"}) is InfrastructureCategory.OTHER

    def test_empty_highway_value_is_not_road(self):
        assert categorize({"highway": ""}) is InfrastructureCategory.OTHER

    def test_power_wins_over_highway(self):
        assert categorize({"power": "line", "highway": "service"}) is InfrastructureCategory.ELECTRICITY

    def test_water_wins_over_highway(self):
        assert categorize({"utility": "water", "highway": "residential"}) is InfrastructureCategory.WATER

    def test_highway_wins_over_railway(self):
        assert categorize({"highway": "primary", "railway": "tram"}) is InfrastructureCategory.ROAD


@pytest.mark.unit
class TestClassify:

    def test_feature_fields(self):
        f = classify(way(123, LINE, highway="primary", name="Main St"))
        assert f.feature_id == "123"
        assert f.category is InfrastructureCategory.ROAD
        assert f.coordinates == ((0.0, 0.0), (0.0, 1.0))

    def test_properties_keep_tags_and_add_id_category(self):
        f = classify(way(123, LINE, highway="primary", name="Main St"))
        assert dict(f.properties) == {
            "highway": "primary",
            "name": "Main St",
            "id": 123,
            "category": "road",
        }

    def test_resolved_values_override_conflicting_tags(self):
        f = classify(way(9, LINE, railway="rail", category="heritage", id="x"))
        assert f.properties["category"] == "rail"
        assert f.properties["id"] == 9

    def test_geometry_order_preserved(self):
        coords = [(3.0, 1.0), (1.0, 2.0), (2.0, 3.0)]
        assert list(classify(way(1, coords)).coordinates) == coords

    @pytest.mark.parametrize("coords", [[], [(1.0, 1.0)]])
    def test_degenerate_geometry_rejected(self, coords):
        with pytest.raises(InvalidElement) as exc_info:
            classify(way(5, coords, highway="primary"))
        assert exc_info.value.element_id == 5

    def test_synthetic_id_when_upstream_id_missing(self):
        f = classify(way(None, LINE, railway="rail"))
        assert f.feature_id.startswith("geom-")
        assert f.properties["id"] == f.feature_id

    def test_synthetic_id_stable(self):
        assert synthetic_id(LINE) == synthetic_id(list(LINE))
        assert synthetic_id(LINE) != synthetic_id([(0.0, 0.0), (1.0, 1.0)])


@pytest.mark.unit
class TestClassifyBatch:

    def test_bad_element_does_not_abort_batch(self):
        features, skipped = classify_batch([
            way(1, LINE, power="line"),
            way(2, [(5.0, 5.0)], power="line"),
            way(3, LINE, railway="rail"),
        ])
        assert [f.feature_id for f in features] == ["1", "3"]
        assert skipped == 1

    def test_duplicate_ids_keep_first(self):
        features, skipped = classify_batch([
            way(1, LINE, highway="primary"),
            way(1, [(9.0, 9.0), (9.0, 8.0)], highway="primary"),
        ])
        assert len(features) == 1
        assert features[0].coordinates == ((0.0, 0.0), (0.0, 1.0))
        assert skipped == 1

    def test_three_element_scenario(self):
        """Road, rail and untagged elements land in their own layers."""
        features, skipped = classify_batch([
            way(1, [(0, 0), (0, 1)], highway="primary"),
            way(2, [(1, 0), (1, 1)], railway="rail"),
            way(3, [(2, 0), (2, 1)]),
        ])
        store = LayerStore.initialize()
        store.ingest(features, categories=store.categories)

        counts = {layer.key: len(layer.features) for layer in store.snapshot()}
        assert skipped == 0
        assert counts == {
            InfrastructureCategory.ELECTRICITY: 0,
            InfrastructureCategory.WATER: 0,
            InfrastructureCategory.ROAD: 1,
            InfrastructureCategory.RAIL: 1,
            InfrastructureCategory.OTHER: 1,
        }
