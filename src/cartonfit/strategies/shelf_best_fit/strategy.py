"""
Best-Fit Shelf Strategy — multi-shelf layers with any-orientation fill.

Algorithm overview
~~~~~~~~~~~~~~~~~~
Like the NFDH shelf packer this strategy builds the box in layers of
shelves, but it keeps every shelf of the current layer open:

  1. Remaining products are swept in descending footprint order.
  2. Each product first tries the open shelves: the widest orientation
     whose depth equals the shelf depth and that fits the shelf's
     remaining width (and is fully supported) is appended to the first
     such shelf.
  3. Otherwise a new shelf is opened at the next free depth offset, using
     the first orientation (lowest height, then largest footprint) that
     fits.
  4. Sweeps repeat until one makes no progress; the layer then advances
     by its tallest item.  A layer that places nothing fails the run.

Unlike NFDH, non-flat orientations are allowed, so a layer may be uneven.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from cartonfit.config import EPS, Box, PlacedItem, Product, make_placed_item, orientations_of
from cartonfit.simulator.validator import has_full_support
from cartonfit.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


@dataclass
class Shelf:
    """An open strip of the current layer starting at depth ``z_start``."""
    z_start: float
    depth: float
    x_cursor: float


@register_strategy
class ShelfBestFitStrategy(BaseStrategy):
    """Best-fit shelves; fills the floor before stacking."""

    name = "shelf_best_fit"

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
                return None

            shelves: List[Shelf] = []
            used_depth = 0.0
            layer_height = 0.0
            in_layer: set = set()

            progress = True
            while progress:
                progress = False
                order = sorted(
                    (i for i in range(len(remaining)) if i not in in_layer),
                    key=lambda i: (-remaining[i].footprint, remaining[i].height),
                )
                for i in order:
                    product = remaining[i]
                    oris = sorted(orientations_of(product), key=lambda o: (o.h, -o.footprint))

                    # 1) append to an open shelf, widest orientation first
                    for shelf in shelves:
                        room = box.width - shelf.x_cursor
                        best = None
                        for o in oris:
                            if current_y + o.h > box.height + EPS:
                                continue
                            if abs(o.d - shelf.depth) > EPS or o.w > room + EPS:
                                continue
                            if not has_full_support(shelf.x_cursor, shelf.z_start,
                                                    o.w, o.d, current_y, placed):
                                continue
                            if best is None or o.w > best.w:
                                best = o
                        if best is not None:
                            placed.append(make_placed_item(
                                product, best, shelf.x_cursor, current_y,
                                shelf.z_start, len(placed)))
                            shelf.x_cursor += best.w
                            layer_height = max(layer_height, best.h)
                            in_layer.add(i)
                            progress = True
                            break
                    if i in in_layer:
                        continue

                    # 2) open a new shelf at the next free depth
                    for o in oris:
                        if current_y + o.h > box.height + EPS:
                            continue
                        if o.w > box.width + EPS or used_depth + o.d > box.depth + EPS:
                            continue
                        if not has_full_support(0.0, used_depth, o.w, o.d, current_y, placed):
                            continue
                        shelves.append(Shelf(z_start=used_depth, depth=o.d, x_cursor=o.w))
                        placed.append(make_placed_item(
                            product, o, 0.0, current_y, used_depth, len(placed)))
                        used_depth += o.d
                        layer_height = max(layer_height, o.h)
                        in_layer.add(i)
                        progress = True
                        break

            if not in_layer:
                logger.debug("%s: layer at y=%.1f placed nothing in box %s",
                             self.name, current_y, box.id)
                return None

            current_y += layer_height
            remaining = [p for i, p in enumerate(remaining) if i not in in_layer]

        return placed
