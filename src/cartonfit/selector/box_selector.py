"""
Box selector — choose the smallest catalog box that fits every product.

Pipeline
~~~~~~~~
1. Sort the catalog by ascending volume.
2. Find a minimal bounding cluster in virtual space: the beam-search
   compactor first, the flexible plan if the beam finds nothing.
3. Match the cluster against the sorted catalog: the first box whose
   width, depth and height each cover the cluster; failing that, the first
   box that covers it with width and depth swapped.
4. Re-pack the matched box from scratch (NFDH shelves, then a fixed list of
   flat-only MaxRects configurations, then seeded MaxRects shuffles).  If no
   repack succeeds the virtual cluster itself is used, mirrored across the
   x = z diagonal when the swapped match was taken.
5. Without a usable cluster, every box is tried directly, smallest first,
   with NFDH and two MaxRects configurations.

Returns ``None`` when the catalog is exhausted.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from cartonfit.config import (
    EPS,
    Box,
    EngineConfig,
    OrientationOrder,
    PackingConfig,
    PlacedItem,
    Product,
    ProductOrder,
)
from cartonfit.scoring import Cluster
from cartonfit.selector.flexible_plan import plan_flexible_packing
from cartonfit.strategies.beam_compact.strategy import BeamCompactStrategy
from cartonfit.strategies.max_rects.strategy import MaxRectsStrategy
from cartonfit.strategies.shelf_nfdh.strategy import ShelfNFDHStrategy

logger = logging.getLogger(__name__)


# Repack of a matched box: floor-first stability.
REPACK_CONFIGS: List[PackingConfig] = [
    PackingConfig(OrientationOrder.MIN_HEIGHT_FIRST, ProductOrder.AREA_DESC, flat_only=True),
    PackingConfig(OrientationOrder.MAX_FOOTPRINT_FIRST, ProductOrder.EDGE_DESC, flat_only=True),
    PackingConfig(OrientationOrder.WIDTH_PRIORITY, ProductOrder.EDGE_DESC, flat_only=True),
    PackingConfig(OrientationOrder.DEPTH_PRIORITY, ProductOrder.EDGE_DESC, flat_only=True),
]

REPACK_SHUFFLE_CONFIG = PackingConfig(OrientationOrder.MIN_HEIGHT_FIRST, ProductOrder.SHUFFLE,
                                      flat_only=True)

# Direct catalog scan when no cluster is available.
DIRECT_CONFIGS: List[PackingConfig] = [
    PackingConfig(OrientationOrder.MIN_HEIGHT_FIRST, ProductOrder.AREA_DESC, flat_only=True),
    PackingConfig(OrientationOrder.MAX_FOOTPRINT_FIRST, ProductOrder.EDGE_DESC, flat_only=True),
]


@dataclass(frozen=True)
class SelectionResult:
    """
    Outcome of a successful selection.

    Attributes:
        box:      The chosen catalog box.
        placed:   Ordered placements (the assembly sequence).
        strategy: Name of the stage that produced ``placed``.
        cluster:  Virtual-space cluster the box was matched against, if any.
    """
    box: Box
    placed: Tuple[PlacedItem, ...]
    strategy: str
    cluster: Optional[Cluster] = None


def sort_catalog(boxes: Sequence[Box]) -> List[Box]:
    """Catalog in ascending volume order (stable for equal volumes)."""
    return sorted(boxes, key=lambda b: b.volume)


def find_matching_box(
    boxes: Sequence[Box],
    used_width: float,
    used_depth: float,
    used_height: float,
) -> Optional[Box]:
    """First box in *boxes* that covers the given bounding dimensions."""
    for box in boxes:
        if (box.width >= used_width - EPS
                and box.depth >= used_depth - EPS
                and box.height >= used_height - EPS):
            return box
    return None


def repack_box(
    products: Sequence[Product],
    box: Box,
    shuffles: int = 8,
    seed: Optional[int] = None,
) -> Optional[Tuple[str, List[PlacedItem]]]:
    """
    Pack *products* into *box* from scratch.

    Returns:
        ``(strategy_name, placements)`` for the first attempt that succeeds,
        or ``None``.
    """
    placed = ShelfNFDHStrategy().pack(products, box)
    if placed is not None:
        return ShelfNFDHStrategy.name, placed

    for cfg in REPACK_CONFIGS:
        placed = MaxRectsStrategy(cfg).pack(products, box)
        if placed is not None:
            return MaxRectsStrategy.name, placed

    rng = random.Random(seed)
    for _ in range(shuffles):
        cfg = REPACK_SHUFFLE_CONFIG.with_seed(rng.randrange(2 ** 32))
        placed = MaxRectsStrategy(cfg).pack(products, box)
        if placed is not None:
            return MaxRectsStrategy.name, placed
    return None


def find_minimal_cluster(
    products: Sequence[Product],
    engine_config: EngineConfig,
) -> Tuple[Optional[str], Optional[Cluster]]:
    """Beam-search cluster, else flexible-plan cluster."""
    sel = engine_config.selector
    if sel.use_beam:
        cluster = BeamCompactStrategy(beam_config=engine_config.beam).plan(products)
        if cluster is not None:
            return BeamCompactStrategy.name, cluster
        logger.info("beam search found no cluster; trying flexible plan")
    if sel.use_flexible_plan:
        cluster = plan_flexible_packing(products, engine_config.flexible_plan)
        if cluster is not None:
            return "flexible_plan", cluster
    return None, None


def choose_smallest_fitting_box(
    boxes: Sequence[Box],
    products: Sequence[Product],
    engine_config: Optional[EngineConfig] = None,
) -> Optional[SelectionResult]:
    """
    Smallest box of *boxes* that holds every product, with its placement.

    Returns ``None`` for an empty product list or when no box fits.
    """
    if not products:
        return None

    cfg = engine_config or EngineConfig()
    catalog = sort_catalog(boxes)
    source, cluster = find_minimal_cluster(products, cfg)

    if cluster is not None:
        logger.info("cluster from %s: %.1f x %.1f x %.1f", source,
                    cluster.used_width, cluster.used_depth, cluster.used_height)
        result = _select_for_cluster(catalog, products, cluster, source, cfg)
        if result is not None:
            return result
        logger.info("no box matches the cluster; scanning the catalog directly")

    for box in catalog:
        placed = ShelfNFDHStrategy().pack(products, box)
        if placed is not None:
            logger.info("direct scan: %s fits via %s", box.id, ShelfNFDHStrategy.name)
            return SelectionResult(box, tuple(placed), ShelfNFDHStrategy.name)
        for pc in DIRECT_CONFIGS:
            placed = MaxRectsStrategy(pc).pack(products, box)
            if placed is not None:
                logger.info("direct scan: %s fits via %s", box.id, MaxRectsStrategy.name)
                return SelectionResult(box, tuple(placed), MaxRectsStrategy.name)

    logger.warning("no box among %d fits %d products", len(catalog), len(products))
    return None


def _select_for_cluster(
    catalog: Sequence[Box],
    products: Sequence[Product],
    cluster: Cluster,
    source: str,
    cfg: EngineConfig,
) -> Optional[SelectionResult]:
    sel = cfg.selector
    box = find_matching_box(catalog, cluster.used_width, cluster.used_depth, cluster.used_height)
    fallback = cluster
    if box is None:
        box = find_matching_box(catalog, cluster.used_depth, cluster.used_width, cluster.used_height)
        if box is None:
            return None
        fallback = cluster.swapped_xz()

    logger.info("matched box %s (%.0f x %.0f x %.0f)", box.id, box.width, box.depth, box.height)
    repacked = repack_box(products, box, sel.repack_shuffles, sel.seed)
    if repacked is not None:
        name, placed = repacked
        return SelectionResult(box, tuple(placed), name, cluster)

    logger.info("repack failed in %s; using the %s layout", box.id, source)
    return SelectionResult(box, fallback.placed, source, cluster)
