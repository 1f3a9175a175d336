"""
Greedy Corner-Anchor Strategy — largest-first placement at compacted anchors.

Algorithm overview
~~~~~~~~~~~~~~~~~~
Products are placed one at a time, largest volume first.  For each product:

  1. Generate anchor points: the box origin plus seven corners/edges of
     every placed item, kept inside the box, nearest-origin first.
  2. For each anchor and each orientation, compact the position: drop it
     onto the highest supporting surface beneath it, slide it against the
     nearest contact along x, then along z (bounded rounds).
  3. Accept the first anchor/orientation whose compacted position passes
     the bounds/collision check and the full-support check.

If any product finds no valid anchor the whole run fails.
"""

import logging
from typing import List, Optional, Sequence

from cartonfit.config import Box, PlacedItem, Product, make_placed_item, orientations_of
from cartonfit.simulator.bin_state import BinState
from cartonfit.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


@register_strategy
class GreedyAnchorStrategy(BaseStrategy):
    """First-fit over compacted anchor points, products by descending volume."""

    name = "greedy_anchor"

    def pack(
        self,
        products: Sequence[Product],
        box: Box,
    ) -> Optional[List[PlacedItem]]:
        items = sorted(products, key=lambda p: p.volume, reverse=True)
        state = BinState(box)

        for step, product in enumerate(items):
            placed = self._place_one(product, state, step)
            if placed is None:
                logger.debug("%s: no anchor for product %s in box %s",
                             self.name, product.id, box.id)
                return None
            state = state.with_item(placed)

        return list(state.placed)

    def _place_one(
        self,
        product: Product,
        state: BinState,
        step: int,
    ) -> Optional[PlacedItem]:
        orientations = orientations_of(product)
        for ax, ay, az in state.anchors():
            for o in orientations:
                x, y, z = state.compact_position(ax, ay, az, o.w, o.d, o.h)
                if state.can_place(x, y, z, o.w, o.d, o.h):
                    return make_placed_item(product, o, x, y, z, step)
        return None
