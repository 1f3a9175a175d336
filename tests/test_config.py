"""
Tests for the data model helpers and the YAML tuning loader.

Run with:
    python -m pytest tests/test_config.py -v
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cartonfit.config import (
    PALETTE,
    BeamConfig,
    Box,
    EngineConfig,
    FlexiblePlanConfig,
    Orientation,
    OrientationOrder,
    PackingConfig,
    PlacedItem,
    Product,
    ProductOrder,
    engine_config_from_dict,
    load_engine_config,
    make_placed_item,
)


class TestDataModel:
    def test_box_volume_and_dict(self):
        box = Box(id="b", width=2, depth=3, height=4)
        assert box.volume == 24
        assert Box.from_dict(box.to_dict()) == box

    def test_make_placed_item_step_metadata(self):
        product = Product(id="p", width=1, depth=2, height=3)
        item = make_placed_item(product, Orientation(2, 1, 3), 0, 0, 0, step=12)
        assert item.id == "p@12"
        assert item.product_id == "p"
        assert item.step == 12
        assert item.color == PALETTE[2]
        assert item.size == (2, 1, 3)

    def test_placed_item_dict(self):
        item = PlacedItem(id="p@0", product_id="p", x=1, y=2, z=3, w=4, d=5, h=6)
        d = item.to_dict()
        assert d["position"] == [1, 2, 3]
        assert d["size"] == {"w": 4, "d": 5, "h": 6}
        assert PlacedItem.from_dict(d) == item

    def test_placed_item_is_frozen(self):
        item = PlacedItem(id="p@0", product_id="p", x=0, y=0, z=0, w=1, d=1, h=1)
        with pytest.raises(AttributeError):
            item.x = 5


class TestEngineConfig:
    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.beam.beam_width == 12
        assert cfg.beam.branch_per_state == 6
        assert cfg.beam.anchor_limit == 16
        assert cfg.flexible_plan.scales[0] == 0.45
        assert cfg.flexible_plan.ratios[-1] == 2.8
        assert cfg.flexible_plan.weights.height == 0.01
        assert cfg.selector.repack_shuffles == 8
        assert cfg.timeout_seconds == 30.0

    def test_partial_override(self):
        cfg = engine_config_from_dict({
            "beam": {"beam_width": 4, "weights": {"elevation": 1.0}},
            "flexible_plan": {"scales": [0.5, 1]},
            "timeout_seconds": 5,
        })
        assert cfg.beam.beam_width == 4
        assert cfg.beam.branch_per_state == 6
        assert cfg.beam.weights.elevation == 1.0
        assert cfg.beam.weights.area == 1.0
        assert cfg.flexible_plan.scales == (0.5, 1.0)
        assert cfg.timeout_seconds == 5.0

    def test_empty_mapping_gives_defaults(self):
        assert engine_config_from_dict(None) == EngineConfig()

    def test_dict_round_trip(self):
        cfg = EngineConfig(beam=BeamConfig(seed=3), flexible_plan=FlexiblePlanConfig(ratios=(1.0, 2.0)))
        assert engine_config_from_dict(cfg.to_dict()) == cfg

    @pytest.mark.parametrize("data", [
        {"unknown": 1},
        {"beam": {"beam_size": 3}},
        {"selector": {"weights": {"bogus": 1}}},
        {"beam": {"weights": {"bogus": 1}}},
        {"beam": [1, 2]},
        {"timeout_seconds": 0},
    ])
    def test_invalid_config_raises(self, data):
        with pytest.raises(ValueError):
            engine_config_from_dict(data)

    def test_with_seed_reaches_every_section(self):
        cfg = EngineConfig(beam=BeamConfig(beam_width=4)).with_seed(13)
        assert cfg.beam.seed == 13
        assert cfg.beam.beam_width == 4
        assert cfg.flexible_plan.seed == 13
        assert cfg.selector.seed == 13

    def test_packing_config_with_seed(self):
        base = PackingConfig(OrientationOrder.WIDTH_PRIORITY, ProductOrder.SHUFFLE, flat_only=False)
        seeded = base.with_seed(5)
        assert seeded.seed == 5
        assert seeded.orientation_order == OrientationOrder.WIDTH_PRIORITY
        assert base.seed is None

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "tuning.yaml"
        path.write_text(
            "beam:\n"
            "  beam_width: 6\n"
            "  seed: 9\n"
            "selector:\n"
            "  use_flexible_plan: false\n"
            "timeout_seconds: 12.5\n"
        )
        cfg = load_engine_config(str(path))
        assert cfg.beam.beam_width == 6
        assert cfg.beam.seed == 9
        assert cfg.selector.use_flexible_plan is False
        assert cfg.timeout_seconds == 12.5
