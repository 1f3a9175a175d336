"""
Unit and integration tests for the packing strategies.

Run with:
    python -m pytest tests/test_strategies.py -v

Tests cover:
- Strategy registration (all strategies are in the registry)
- Single product: lands at the origin
- Two cubes in a 20x10x10 box: side by side on the floor
- Product larger than the box: must return None
- Mixed product set: every invariant verified by verify_packing
- Determinism of seeded shuffles
- MaxRects flat-only fallback to non-flat orientations
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cartonfit.config import (
    Box,
    OrientationOrder,
    PackingConfig,
    Product,
    ProductOrder,
)
from cartonfit.simulator.validator import verify_packing
from cartonfit.strategies import STRATEGY_REGISTRY, get_strategy


ALL_STRATEGIES = [
    "greedy_anchor",
    "shelf_nfdh",
    "shelf_best_fit",
    "max_rects",
    "beam_compact",
]


def cube(pid, size=10.0):
    return Product(id=pid, width=size, depth=size, height=size)


@pytest.fixture
def mixed_products():
    """Floor area of the set equals exactly 40 x 40."""
    return [
        Product(id="big-1", width=20, depth=20, height=10),
        Product(id="big-2", width=20, depth=20, height=10),
        Product(id="flat-1", width=20, depth=10, height=5),
        Product(id="flat-2", width=20, depth=10, height=5),
        cube("c-1"), cube("c-2"), cube("c-3"), cube("c-4"),
    ]


# ---------------------------------------------------------------------------
# 1. Registration tests
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_all_registered(self):
        for name in ALL_STRATEGIES:
            assert name in STRATEGY_REGISTRY, (
                f"Strategy '{name}' not found in STRATEGY_REGISTRY."
            )

    def test_get_strategy_returns_instance(self):
        strategy = get_strategy("max_rects", PackingConfig(flat_only=False))
        assert strategy.name == "max_rects"
        assert strategy.config.flat_only is False

    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            get_strategy("does_not_exist")


# ---------------------------------------------------------------------------
# 2. Basic scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    @pytest.mark.parametrize("strategy_name", ALL_STRATEGIES)
    def test_single_cube_at_origin(self, strategy_name):
        box = Box(id="b", width=20, depth=20, height=20)
        placed = get_strategy(strategy_name).pack([cube("a")], box)
        assert placed is not None
        assert len(placed) == 1
        p = placed[0]
        assert (p.x, p.y, p.z) == (0, 0, 0)
        assert p.size == (10, 10, 10)
        assert p.step == 0

    @pytest.mark.parametrize("strategy_name", ALL_STRATEGIES)
    def test_two_cubes_side_by_side(self, strategy_name):
        box = Box(id="b", width=20, depth=10, height=10)
        placed = get_strategy(strategy_name).pack([cube("a"), cube("b")], box)
        assert placed is not None
        assert len(placed) == 2
        assert all(p.y == 0 for p in placed)
        assert sorted(p.x for p in placed) == [0, 10]
        verify_packing(placed, box, [cube("a"), cube("b")])

    @pytest.mark.parametrize("strategy_name", ALL_STRATEGIES)
    def test_oversized_product_returns_none(self, strategy_name):
        box = Box(id="b", width=20, depth=20, height=20)
        assert get_strategy(strategy_name).pack([cube("big", 30)], box) is None

    @pytest.mark.parametrize("strategy_name", ALL_STRATEGIES)
    def test_mixed_set_satisfies_invariants(self, strategy_name, mixed_products):
        box = Box(id="b", width=40, depth=40, height=40)
        placed = get_strategy(strategy_name).pack(mixed_products, box)
        assert placed is not None
        assert verify_packing(placed, box, mixed_products)
        assert [p.step for p in placed] == list(range(len(placed)))

    @pytest.mark.parametrize("strategy_name", ALL_STRATEGIES)
    def test_inputs_are_not_mutated(self, strategy_name, mixed_products):
        before = list(mixed_products)
        get_strategy(strategy_name).pack(mixed_products, Box(id="b", width=40, depth=40, height=40))
        assert mixed_products == before


# ---------------------------------------------------------------------------
# 3. Strategy-specific behaviour
# ---------------------------------------------------------------------------

class TestShelfNFDH:
    def test_fills_floor_before_stacking(self, mixed_products):
        box = Box(id="b", width=40, depth=40, height=40)
        placed = get_strategy("shelf_nfdh").pack(mixed_products, box)
        assert all(p.y == 0 for p in placed)

    def test_flat_only_cannot_stand_product_up(self):
        box = Box(id="b", width=10, depth=10, height=30)
        plank = Product(id="plank", width=30, depth=10, height=10)
        assert get_strategy("shelf_nfdh").pack([plank], box) is None


class TestMaxRects:
    def test_flat_only_falls_back_to_any_orientation(self):
        box = Box(id="b", width=10, depth=10, height=30)
        plank = Product(id="plank", width=30, depth=10, height=10)
        placed = get_strategy("max_rects").pack([plank], box)
        assert placed is not None
        assert placed[0].size == (10, 10, 30)

    def test_stacks_when_floor_is_full(self):
        box = Box(id="b", width=10, depth=10, height=20)
        placed = get_strategy("max_rects").pack([cube("a"), cube("b")], box)
        assert placed is not None
        assert sorted(p.y for p in placed) == [0, 10]
        verify_packing(placed, box)

    @pytest.mark.parametrize("order", list(ProductOrder))
    def test_every_product_order_is_valid(self, order, mixed_products):
        box = Box(id="b", width=40, depth=40, height=40)
        cfg = PackingConfig(OrientationOrder.WIDTH_PRIORITY, order, seed=7)
        placed = get_strategy("max_rects", cfg).pack(mixed_products, box)
        assert placed is not None
        verify_packing(placed, box, mixed_products)

    def test_seeded_shuffle_is_deterministic(self, mixed_products):
        box = Box(id="b", width=40, depth=40, height=40)
        cfg = PackingConfig(product_order=ProductOrder.SHUFFLE, seed=123)
        first = get_strategy("max_rects", cfg).pack(mixed_products, box)
        second = get_strategy("max_rects", cfg).pack(mixed_products, box)
        assert first == second


class TestGreedyAnchor:
    def test_largest_product_first(self, mixed_products):
        box = Box(id="b", width=40, depth=40, height=40)
        placed = get_strategy("greedy_anchor").pack(mixed_products, box)
        assert placed[0].product_id == "big-1"
        assert (placed[0].x, placed[0].y, placed[0].z) == (0, 0, 0)
