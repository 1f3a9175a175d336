"""
MaxRects Layered Strategy — free-rectangle floor filling, layer by layer.

Algorithm overview
~~~~~~~~~~~~~~~~~~
Each layer's free space is tracked as a list of free rectangles (see
``simulator.free_rects``): the full box footprint on the floor, the
projected top faces of the previous layer above it.  Within a layer a
fixed pass sequence is repeated until a full round places nothing:

  (a) Rectangle-first — for each free rectangle (nearest origin first)
      place the remaining product whose flat orientation has the largest
      footprint that fits and is fully supported (tie: less waste).
  (b) Product-first — for each unplaced product in the configured order,
      search every rectangle for the orientation with the least wasted
      area (tie: nearest the z = 0, x = 0 corner).  In ``flat_only`` mode
      only minimum-height orientations are tried unless none of them fits
      any rectangle, in which case every orientation is allowed.
  (c) Small-item fallback — smallest-footprint products against
      rectangles in z-then-x order, first fit wins.
  (d) Last-resort best fit — the single (rectangle, product, orientation)
      with the least wasted area across everything still unplaced.

Passes (b)-(d) only run when the earlier passes stall.  The layer then
advances by its tallest item; a layer that places nothing fails the run.

Configuration (``PackingConfig``):
  orientation_order — tie-break order of orientations in pass (b)
  product_order     — areaDesc | edgeDesc | shuffle (seeded)
  flat_only         — stable floor-first mode
"""

import logging
import random
from typing import List, Optional, Sequence, Set, Tuple

from cartonfit.config import (
    EPS,
    Box,
    Orientation,
    OrientationOrder,
    PlacedItem,
    Product,
    ProductOrder,
    flat_orientations_of,
    make_placed_item,
    orientations_of,
)
from cartonfit.simulator.free_rects import FreeRect, FreeRectTracker
from cartonfit.simulator.validator import has_full_support
from cartonfit.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


def order_products(
    products: Sequence[Product],
    product_order: ProductOrder,
    rng: random.Random,
) -> List[int]:
    """Indices of *products* in the configured attempt order."""
    idx = list(range(len(products)))
    if product_order == ProductOrder.SHUFFLE:
        rng.shuffle(idx)
        return idx
    if product_order == ProductOrder.EDGE_DESC:
        return sorted(idx, key=lambda i: (-max(products[i].width, products[i].depth),
                                          products[i].footprint))
    return sorted(idx, key=lambda i: (-products[i].footprint, products[i].height))


def order_orientations(product: Product, orientation_order: OrientationOrder) -> List[Orientation]:
    """
    Orientations lowest first, longest edge first, then by the configured
    tie-break.
    """
    def key(o: Orientation) -> Tuple[float, ...]:
        base = (o.h, -max(o.w, o.d))
        if orientation_order == OrientationOrder.WIDTH_PRIORITY:
            return base + (-o.w, -o.d)
        if orientation_order == OrientationOrder.DEPTH_PRIORITY:
            return base + (-o.d, -o.w)
        return base + (-o.footprint,)

    return sorted(orientations_of(product), key=key)


@register_strategy
class MaxRectsStrategy(BaseStrategy):
    """Free-rectangle layered packer with a four-pass fill per layer."""

    name = "max_rects"

    def pack(
        self,
        products: Sequence[Product],
        box: Box,
    ) -> Optional[List[PlacedItem]]:
        cfg = self.config
        rng = random.Random(cfg.seed)
        remaining: List[Product] = list(products)
        placed: List[PlacedItem] = []
        current_y = 0.0

        while remaining:
            if current_y >= box.height - EPS:
                logger.debug("%s: ran out of height in box %s", self.name, box.id)
                return None

            layer = _Layer(box, placed, current_y)
            order = order_products(remaining, cfg.product_order, rng)

            progress = True
            while progress:
                progress = (
                    self._rect_first_pass(layer, remaining)
                    or self._product_first_pass(layer, remaining, order)
                    or self._small_item_pass(layer, remaining)
                    or self._best_fit_pass(layer, remaining)
                )

            if not layer.used:
                logger.debug("%s: layer at y=%.1f placed nothing in box %s",
                             self.name, current_y, box.id)
                return None

            current_y += layer.height
            remaining = [p for i, p in enumerate(remaining) if i not in layer.used]

        return placed

    # ── Passes ───────────────────────────────────────────────────────────

    def _rect_first_pass(self, layer: "_Layer", remaining: List[Product]) -> bool:
        for r in layer.tracker.near_origin():
            best = None  # (area, waste, index, orientation)
            for i, product in enumerate(remaining):
                if i in layer.used:
                    continue
                for o in flat_orientations_of(product):
                    if not layer.accepts(r, o):
                        continue
                    area = o.footprint
                    waste = r.area - area
                    if (best is None or area > best[0] + EPS
                            or (abs(area - best[0]) <= EPS and waste < best[1] - EPS)):
                        best = (area, waste, i, o)
            if best is not None:
                layer.place(r, remaining, best[2], best[3])
                return True
        return False

    def _product_first_pass(self, layer: "_Layer", remaining: List[Product],
                            order: List[int]) -> bool:
        progress = False
        for i in order:
            if i in layer.used:
                continue
            product = remaining[i]
            oris = order_orientations(product, self.config.orientation_order)
            if self.config.flat_only:
                min_h = oris[0].h
                flat = [o for o in oris if o.h == min_h]
                if any(layer.tracker.any_fits(o.w, o.d) for o in flat):
                    oris = flat

            best = None  # (waste, z, x, rect, orientation)
            for r in layer.tracker.rects:
                for o in oris:
                    if not layer.accepts(r, o):
                        continue
                    key = (r.area - o.footprint, r.z, r.x)
                    if best is None or key < best[:3]:
                        best = key + (r, o)
            if best is not None:
                layer.place(best[3], remaining, i, best[4])
                progress = True
        return progress

    def _small_item_pass(self, layer: "_Layer", remaining: List[Product]) -> bool:
        small_first = sorted(
            (i for i in range(len(remaining)) if i not in layer.used),
            key=lambda i: remaining[i].footprint,
        )
        for r in layer.tracker.near_origin():
            for i in small_first:
                for o in self._pass_orientations(remaining[i], r):
                    if layer.accepts(r, o):
                        layer.place(r, remaining, i, o)
                        return True
        return False

    def _best_fit_pass(self, layer: "_Layer", remaining: List[Product]) -> bool:
        best = None  # (waste, rect, index, orientation)
        for r in layer.tracker.rects:
            for i, product in enumerate(remaining):
                if i in layer.used:
                    continue
                for o in self._pass_orientations(product, r):
                    if not layer.accepts(r, o):
                        continue
                    waste = r.area - o.footprint
                    if best is None or waste < best[0]:
                        best = (waste, r, i, o)
        if best is None:
            return False
        layer.place(best[1], remaining, best[2], best[3])
        return True

    def _pass_orientations(self, product: Product, r: FreeRect) -> List[Orientation]:
        """Flat orientations that fit *r* in flat-only mode, else all of them."""
        if not self.config.flat_only:
            return orientations_of(product)
        flat = flat_orientations_of(product)
        return flat if any(r.fits(o.w, o.d) for o in flat) else []


class _Layer:
    """Mutable bookkeeping of the layer being filled."""

    __slots__ = ("box", "placed", "y", "tracker", "height", "used")

    def __init__(self, box: Box, placed: List[PlacedItem], y: float) -> None:
        self.box = box
        self.placed = placed
        self.y = y
        self.tracker = FreeRectTracker.for_layer(box, placed, y)
        self.height = 0.0
        self.used: Set[int] = set()

    def accepts(self, r: FreeRect, o: Orientation) -> bool:
        return (
            self.y + o.h <= self.box.height + EPS
            and r.fits(o.w, o.d)
            and has_full_support(r.x, r.z, o.w, o.d, self.y, self.placed)
        )

    def place(self, r: FreeRect, remaining: List[Product], i: int, o: Orientation) -> None:
        self.placed.append(make_placed_item(remaining[i], o, r.x, self.y, r.z, len(self.placed)))
        self.height = max(self.height, o.h)
        self.used.add(i)
        self.tracker.place(r, o.w, o.d)
