"""
Shelf / NFDH Layered Strategy — deterministic bottom-up shelf filling.

Algorithm overview
~~~~~~~~~~~~~~~~~~
The box is built in horizontal layers.  Within a layer, shelves are opened
front-to-back along z; each shelf is filled left-to-right along x:

  1. At the start of every layer, remaining products are re-sorted by
     descending footprint area (ties: ascending height) for determinism.
  2. A new shelf is opened by the first product that has a flat
     (minimum-height) orientation fitting the box width and the remaining
     depth; its largest-footprint such orientation sets the shelf depth
     and height.
  3. The shelf is then filled with products whose flat orientation is no
     deeper and no taller than the shelf and fits the remaining width,
     widest orientation first.
  4. Every placement is re-validated by the full-support check.
  5. The layer height is the tallest item placed in it; the next layer
     starts directly on top.  A layer that places nothing fails the run.

Only flat orientations are used, which keeps each layer level and stable.
"""

import logging
from typing import List, Optional, Sequence

from cartonfit.config import (
    EPS,
    Box,
    Orientation,
    PlacedItem,
    Product,
    flat_orientations_of,
    make_placed_item,
)
from cartonfit.simulator.validator import has_full_support
from cartonfit.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


@register_strategy
class ShelfNFDHStrategy(BaseStrategy):
    """Next-fit decreasing-height shelves, layer by layer."""

    name = "shelf_nfdh"

    def pack(
        self,
        products: Sequence[Product],
        box: Box,
    ) -> Optional[List[PlacedItem]]:
        remaining: List[Product] = list(products)
        placed: List[PlacedItem] = []
        current_y = 0.0

        while remaining:
            if current_y >= box.height - EPS:
                logger.debug("%s: ran out of height in box %s", self.name, box.id)
                return None

            remaining.sort(key=lambda p: (-p.footprint, p.height))
            z_start = 0.0
            layer_height = 0.0
            progress_layer = False

            while z_start < box.depth - EPS and remaining:
                opened = self._open_shelf(remaining, placed, box, current_y, z_start)
                if opened is None:
                    break
                shelf_depth, shelf_height, x_cursor = opened
                layer_height = max(layer_height, shelf_height)
                progress_layer = True

                x_cursor = self._fill_shelf(
                    remaining, placed, box, current_y, z_start,
                    shelf_depth, shelf_height, x_cursor,
                )
                z_start += shelf_depth

            if not progress_layer:
                logger.debug("%s: layer at y=%.1f placed nothing in box %s",
                             self.name, current_y, box.id)
                return None
            current_y += layer_height

        return placed

    # ── Shelf helpers ────────────────────────────────────────────────────

    def _open_shelf(self, remaining, placed, box, current_y, z_start):
        """Place the first product that can start a shelf at (0, z_start)."""
        for i, product in enumerate(remaining):
            fitting = [
                o for o in flat_orientations_of(product)
                if o.w <= box.width + EPS
                and o.d <= box.depth - z_start + EPS
                and current_y + o.h <= box.height + EPS
            ]
            if not fitting:
                continue
            cand: Orientation = max(fitting, key=lambda o: o.footprint)
            if not has_full_support(0.0, z_start, cand.w, cand.d, current_y, placed):
                continue
            placed.append(make_placed_item(product, cand, 0.0, current_y, z_start, len(placed)))
            del remaining[i]
            return cand.d, cand.h, cand.w
        return None

    def _fill_shelf(self, remaining, placed, box, current_y, z_start,
                    shelf_depth, shelf_height, x_cursor):
        """Append products left-to-right until nothing else fits the shelf."""
        progress = True
        while progress:
            progress = False
            for i, product in enumerate(remaining):
                fitting = [
                    o for o in flat_orientations_of(product)
                    if o.h <= shelf_height + EPS
                    and o.d <= shelf_depth + EPS
                    and o.w <= box.width - x_cursor + EPS
                    and current_y + o.h <= box.height + EPS
                ]
                if not fitting:
                    continue
                cand = max(fitting, key=lambda o: o.w)
                if not has_full_support(x_cursor, z_start, cand.w, cand.d, current_y, placed):
                    continue
                placed.append(make_placed_item(product, cand, x_cursor, current_y, z_start, len(placed)))
                x_cursor += cand.w
                del remaining[i]
                progress = True
                break
        return x_cursor
