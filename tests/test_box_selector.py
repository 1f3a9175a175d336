"""
Integration tests for the box selector.

Run with:
    python -m pytest tests/test_box_selector.py -v

Tests cover:
- Smallest-volume box wins regardless of catalog order
- Single product scenario and infeasible selection
- Catalog matching with the width/depth swap
- Flexible-plan path when the beam search is disabled
- Cluster layout fallback, direct and mirrored, when the repack fails
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cartonfit.config import (
    BeamConfig,
    Box,
    EngineConfig,
    FlexiblePlanConfig,
    Product,
    SelectorConfig,
)
import cartonfit.selector.box_selector as box_selector_module
from cartonfit.runner.dataset import generate_products
from cartonfit.selector.box_selector import (
    choose_smallest_fitting_box,
    find_matching_box,
    find_minimal_cluster,
    repack_box,
    sort_catalog,
)
from cartonfit.simulator.validator import verify_packing


def cube(pid, size=10.0):
    return Product(id=pid, width=size, depth=size, height=size)


@pytest.fixture
def engine_config():
    return EngineConfig(
        beam=BeamConfig(seed=11),
        selector=SelectorConfig(seed=11),
    )


@pytest.fixture
def catalog():
    """Volumes 5000, 1000, 2000: deliberately unsorted."""
    return [
        Box(id="b5000", width=50, depth=10, height=10),
        Box(id="b1000", width=10, depth=10, height=10),
        Box(id="b2000", width=20, depth=10, height=10),
    ]


class TestCatalogHelpers:
    def test_sort_by_volume(self, catalog):
        assert [b.id for b in sort_catalog(catalog)] == ["b1000", "b2000", "b5000"]

    def test_direct_match(self, catalog):
        box = find_matching_box(sort_catalog(catalog), 15, 10, 10)
        assert box.id == "b2000"

    def test_swapped_dimensions_do_not_match_directly(self, catalog):
        assert find_matching_box(sort_catalog(catalog), 10, 15, 10) is None

    def test_repack_prefers_shelves(self):
        box = Box(id="b", width=20, depth=10, height=10)
        name, placed = repack_box([cube("a"), cube("b")], box, seed=1)
        assert name == "shelf_nfdh"
        assert len(placed) == 2


class TestChooseSmallestFittingBox:
    def test_two_cubes_choose_2000_volume_box(self, catalog, engine_config):
        products = [cube("a"), cube("b")]
        result = choose_smallest_fitting_box(catalog, products, engine_config)
        assert result is not None
        assert result.box.id == "b2000"
        assert verify_packing(list(result.placed), result.box, products)
        assert sorted(p.x for p in result.placed) == [0, 10]

    def test_single_cube_at_origin(self, engine_config):
        box = Box(id="b20", width=20, depth=20, height=20)
        result = choose_smallest_fitting_box([box], [cube("a")], engine_config)
        assert result is not None
        assert result.box == box
        assert len(result.placed) == 1
        p = result.placed[0]
        assert (p.x, p.y, p.z) == (0, 0, 0)
        assert p.size == (10, 10, 10)
        assert result.cluster is not None

    def test_oversized_product_is_infeasible(self, engine_config):
        box = Box(id="b20", width=20, depth=20, height=20)
        assert choose_smallest_fitting_box([box], [cube("big", 30)], engine_config) is None

    def test_empty_products_is_noop(self, catalog):
        assert choose_smallest_fitting_box(catalog, []) is None

    def test_cluster_matched_box_is_repacked(self, engine_config):
        boxes = [Box(id="tall", width=10, depth=10, height=20),
                 Box(id="huge", width=100, depth=100, height=100)]
        products = [cube("a"), cube("b")]
        result = choose_smallest_fitting_box(boxes, products, engine_config)
        assert result.box.id == "tall"
        assert result.strategy == "shelf_nfdh"
        assert sorted(p.y for p in result.placed) == [0, 10]
        assert verify_packing(list(result.placed), result.box, products)

    def test_swapped_box_is_matched(self, engine_config):
        # a 20x10x5 product lies flat; only a box rotated 90 degrees holds it
        products = [Product(id="slab", width=20, depth=10, height=5)]
        boxes = [Box(id="rotated", width=10, depth=20, height=5)]
        result = choose_smallest_fitting_box(boxes, products, engine_config)
        assert result is not None
        assert result.box.id == "rotated"
        assert verify_packing(list(result.placed), result.box, products)

    def test_flexible_plan_path(self):
        cfg = EngineConfig(
            flexible_plan=FlexiblePlanConfig(
                unconstrained_shuffles=1, budget_shuffles=1,
                scales=(1.0,), ratios=(1.0,), seed=2,
            ),
            selector=SelectorConfig(use_beam=False, seed=2),
        )
        boxes = [Box(id="tall", width=10, depth=10, height=20)]
        products = [cube("a"), cube("b")]
        result = choose_smallest_fitting_box(boxes, products, cfg)
        assert result is not None
        assert result.box.id == "tall"
        assert result.cluster.used_height == 20
        assert verify_packing(list(result.placed), result.box, products)

    def test_without_any_cluster_scans_catalog(self, catalog):
        cfg = EngineConfig(selector=SelectorConfig(use_beam=False, use_flexible_plan=False))
        result = choose_smallest_fitting_box(catalog, [cube("a"), cube("b")], cfg)
        assert result.box.id == "b2000"
        assert result.cluster is None


class TestClusterLayoutFallback:
    """A matched box whose repack fails falls back to the cluster layout."""

    @pytest.fixture
    def failing_repack(self, monkeypatch):
        monkeypatch.setattr(box_selector_module, "repack_box", lambda *args, **kwargs: None)

    def test_exact_box_uses_cluster_layout(self, engine_config, failing_repack):
        products = generate_products(10, seed=1)
        source, cluster = find_minimal_cluster(products, engine_config)
        assert source == "beam_compact"
        box = Box(id="exact", width=cluster.used_width, depth=cluster.used_depth,
                  height=cluster.used_height)

        result = choose_smallest_fitting_box([box], products, engine_config)
        assert result is not None
        assert result.box == box
        assert result.strategy == "beam_compact"
        assert result.placed == cluster.placed
        assert verify_packing(list(result.placed), box, products)

    def test_swapped_box_uses_mirrored_layout(self, engine_config, failing_repack):
        products = [Product(id=f"slab{i}", width=20, depth=10, height=5) for i in range(2)]
        _, cluster = find_minimal_cluster(products, engine_config)
        assert cluster.used_width != cluster.used_depth
        box = Box(id="rotated", width=cluster.used_depth, depth=cluster.used_width,
                  height=cluster.used_height)

        result = choose_smallest_fitting_box([box], products, engine_config)
        assert result is not None
        assert result.strategy == "beam_compact"
        assert result.placed == cluster.swapped_xz().placed
        assert verify_packing(list(result.placed), box, products)
