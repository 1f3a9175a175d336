"""
Flexible plan — portfolio search for a minimal bounding cluster.

Used by the box selector when the beam-search compactor produces nothing.
The MaxRects layered packer is run (with every orientation allowed) over a
fixed portfolio of configurations plus seeded shuffles:

  1. In an unconstrained virtual box (``virtual_size`` on every side).
  2. In a grid of footprint budgets.  The budget base side is the square
     root of the products' combined minimum-orientation footprint; each
     (scale, ratio) pair gives a width/depth budget that is tried both ways
     round, with ``virtual_size`` height.  Tight budgets push the packer to
     stack, which often yields a smaller cluster.

Every successful run is scored with ``cluster_score`` and the lowest score
wins.
"""

import logging
import math
import random
from typing import List, Optional, Sequence

from cartonfit.config import (
    Box,
    FlexiblePlanConfig,
    OrientationOrder,
    PackingConfig,
    PlacedItem,
    Product,
    ProductOrder,
    orientations_of,
)
from cartonfit.scoring import Cluster, cluster_score
from cartonfit.strategies.max_rects.strategy import MaxRectsStrategy

logger = logging.getLogger(__name__)


# Deterministic portfolio shared by the unconstrained and the budget runs.
BASE_CONFIGS: List[PackingConfig] = [
    PackingConfig(OrientationOrder.MIN_HEIGHT_FIRST, ProductOrder.AREA_DESC, flat_only=False),
    PackingConfig(OrientationOrder.MAX_FOOTPRINT_FIRST, ProductOrder.AREA_DESC, flat_only=False),
    PackingConfig(OrientationOrder.WIDTH_PRIORITY, ProductOrder.EDGE_DESC, flat_only=False),
    PackingConfig(OrientationOrder.DEPTH_PRIORITY, ProductOrder.EDGE_DESC, flat_only=False),
]


def budget_base_side(products: Sequence[Product]) -> float:
    """Side of the square whose area is the sum of minimum footprints."""
    total = sum(min(o.footprint for o in orientations_of(p)) for p in products)
    return math.sqrt(max(1.0, total))


class _BestPlan:
    """Running minimum over candidate placements."""

    def __init__(self, config: FlexiblePlanConfig) -> None:
        self.config = config
        self.cluster: Optional[Cluster] = None
        self.score = math.inf
        self.candidates = 0

    def consider(self, placed: Optional[List[PlacedItem]]) -> None:
        if placed is None:
            return
        self.candidates += 1
        cluster = Cluster.from_items(placed)
        score = cluster_score(cluster.used_width, cluster.used_depth,
                              cluster.used_height, self.config.weights)
        if score < self.score:
            self.cluster = cluster
            self.score = score


def _run_portfolio(
    products: Sequence[Product],
    box: Box,
    shuffle_order: OrientationOrder,
    shuffles: int,
    rng: random.Random,
    best: _BestPlan,
) -> None:
    for cfg in BASE_CONFIGS:
        best.consider(MaxRectsStrategy(cfg).pack(products, box))
    shuffle_cfg = PackingConfig(shuffle_order, ProductOrder.SHUFFLE, flat_only=False)
    for _ in range(shuffles):
        cfg = shuffle_cfg.with_seed(rng.randrange(2 ** 32))
        best.consider(MaxRectsStrategy(cfg).pack(products, box))


def plan_flexible_packing(
    products: Sequence[Product],
    config: Optional[FlexiblePlanConfig] = None,
) -> Optional[Cluster]:
    """
    Lowest-scoring cluster over the whole portfolio, or ``None`` if no run
    placed every product.
    """
    cfg = config or FlexiblePlanConfig()
    rng = random.Random(cfg.seed)
    best = _BestPlan(cfg)
    size = cfg.virtual_size

    unconstrained = Box(id="virtual", width=size, depth=size, height=size)
    _run_portfolio(products, unconstrained, OrientationOrder.MIN_HEIGHT_FIRST,
                   cfg.unconstrained_shuffles, rng, best)

    side = budget_base_side(products)
    for s in cfg.scales:
        for r in cfg.ratios:
            w = side * s * math.sqrt(r)
            d = side * s / math.sqrt(r)
            for bw, bd in ((w, d), (d, w)):
                budget = Box(id="virtual-budget", width=float(math.ceil(bw)),
                             depth=float(math.ceil(bd)), height=size)
                _run_portfolio(products, budget, OrientationOrder.MAX_FOOTPRINT_FIRST,
                               cfg.budget_shuffles, rng, best)

    if best.cluster is None:
        logger.debug("flexible plan: no candidate placed all %d products", len(products))
    else:
        logger.debug("flexible plan: best of %d candidates is %.1fx%.1fx%.1f",
                     best.candidates, best.cluster.used_width,
                     best.cluster.used_depth, best.cluster.used_height)
    return best.cluster
