"""
Bin state — read-only view over the items already placed in one box.

The BinState is the primary data object shared by the anchor-based
strategies (greedy corner-anchor packer and beam-search compactor).
It provides:

  Spatial queries:
    .support_height(x, z, w, d)   — highest top face under a footprint
    .anchors(limit)               — candidate anchor points, nearest-origin first
    .compact_position(...)        — drop + slide a candidate into contact
    .can_place(...)               — bounds + collision + full support
    .contact_score(...)           — footprint perimeter touching walls/neighbours

  Aggregates:
    .used_width / .used_depth / .used_height — bounding cluster dimensions
    .get_fill_rate()              — volumetric utilisation of the box

  Safe cloning:
    .with_item(item)              — new state with one more placement

Usage:
    state = BinState(box)
    for ax, ay, az in state.anchors():
        x, y, z = state.compact_position(ax, ay, az, o.w, o.d, o.h)
"""

from typing import List, Optional, Sequence, Tuple

from cartonfit.config import EPS, Box, PlacedItem
from cartonfit.simulator.validator import (
    can_place_at,
    has_full_support,
    overlaps_1d,
)


# Upper bound on drop/slide rounds so a candidate cannot oscillate.
MAX_COMPACTION_ROUNDS: int = 6


class BinState:
    """
    Placements made so far in a single box.

    ``placed`` is treated as immutable; ``with_item`` returns a new state
    so beam-search branches can share prefixes safely.
    """

    __slots__ = ("box", "placed", "used_width", "used_depth", "used_height")

    def __init__(self, box: Box, placed: Optional[Sequence[PlacedItem]] = None) -> None:
        self.box: Box = box
        self.placed: Tuple[PlacedItem, ...] = tuple(placed or ())
        self.used_width: float = max((p.x_max for p in self.placed), default=0.0)
        self.used_depth: float = max((p.z_max for p in self.placed), default=0.0)
        self.used_height: float = max((p.y_max for p in self.placed), default=0.0)

    # ── Spatial queries ──────────────────────────────────────────────────

    def support_height(self, x: float, z: float, w: float, d: float) -> float:
        """Highest top face of any item whose footprint overlaps [x,x+w)×[z,z+d)."""
        support = 0.0
        for it in self.placed:
            if overlaps_1d(x, w, it.x, it.w) and overlaps_1d(z, d, it.z, it.d):
                support = max(support, it.y_max)
        return support

    def anchors(self, limit: Optional[int] = None) -> List[Tuple[float, float, float]]:
        """
        Candidate anchor points: the origin plus seven corners/edges around
        every placed item, kept inside the box, nearest-origin first and
        deduplicated.
        """
        points: List[Tuple[float, float, float]] = [(0.0, 0.0, 0.0)]
        for it in self.placed:
            points.append((it.x_max, it.y, it.z))
            points.append((it.x, it.y_max, it.z))
            points.append((it.x, it.y, it.z_max))
            points.append((it.x_max, it.y, it.z_max))
            points.append((it.x, it.y_max, it.z_max))
            points.append((it.x_max, it.y_max, it.z))
            points.append((it.x_max, it.y_max, it.z_max))

        box = self.box
        inside = [
            p for p in points
            if p[0] <= box.width and p[1] <= box.height and p[2] <= box.depth
        ]
        inside.sort(key=lambda p: p[0] + p[1] + p[2])

        seen: set = set()
        unique: List[Tuple[float, float, float]] = []
        for p in inside:
            if p in seen:
                continue
            seen.add(p)
            unique.append(p)
        return unique[:limit] if limit is not None else unique

    def best_contact_x(self, cur_x: float, y: float, z: float,
                       w: float, d: float, h: float) -> float:
        """Slide towards x = 0 until touching the nearest face that allows it."""
        candidates = [0.0]
        for it in self.placed:
            if overlaps_1d(y, h, it.y, it.h) and overlaps_1d(z, d, it.z, it.d):
                if it.x_max <= cur_x:
                    candidates.append(it.x_max)
        for x in sorted(candidates, reverse=True):
            if can_place_at(x, y, z, w, d, h, self.box, self.placed):
                return x
        return cur_x

    def best_contact_z(self, x: float, y: float, cur_z: float,
                       w: float, d: float, h: float) -> float:
        """Slide towards z = 0 until touching the nearest face that allows it."""
        candidates = [0.0]
        for it in self.placed:
            if overlaps_1d(x, w, it.x, it.w) and overlaps_1d(y, h, it.y, it.h):
                if it.z_max <= cur_z:
                    candidates.append(it.z_max)
        for z in sorted(candidates, reverse=True):
            if can_place_at(x, y, z, w, d, h, self.box, self.placed):
                return z
        return cur_z

    def compact_position(
        self, x: float, y: float, z: float,
        w: float, d: float, h: float,
    ) -> Tuple[float, float, float]:
        """
        Move a candidate into a stable contact configuration.

        Each round drops the item onto the highest supporting surface, then
        slides it against the nearest contact along x, drops again and
        slides along z.  Stops when nothing moves or after
        ``MAX_COMPACTION_ROUNDS``.
        """
        box = self.box
        x = max(0.0, min(x, box.width - w))
        z = max(0.0, min(z, box.depth - d))
        y = max(0.0, min(y, box.height - h))

        changed = True
        rounds = 0
        while changed and rounds < MAX_COMPACTION_ROUNDS:
            rounds += 1
            changed = False

            new_y = self.support_height(x, z, w, d)
            if new_y != y:
                y, changed = new_y, True

            nx = self.best_contact_x(x, y, z, w, d, h)
            if nx != x:
                x, changed = nx, True

            new_y = self.support_height(x, z, w, d)
            if new_y != y:
                y, changed = new_y, True

            nz = self.best_contact_z(x, y, z, w, d, h)
            if nz != z:
                z, changed = nz, True

        x = max(0.0, min(x, box.width - w))
        y = max(0.0, min(y, box.height - h))
        z = max(0.0, min(z, box.depth - d))
        return x, y, z

    def can_place(self, x: float, y: float, z: float,
                  w: float, d: float, h: float) -> bool:
        """Both validator checks: bounds/collision and full support."""
        return (
            can_place_at(x, y, z, w, d, h, self.box, self.placed)
            and has_full_support(x, z, w, d, y, self.placed)
        )

    def contact_score(self, x: float, z: float, w: float, d: float,
                      layer_y: float) -> float:
        """
        Length of the footprint perimeter touching box walls or items that
        share the same base height.
        """
        box = self.box
        score = 0.0
        if abs(x) <= EPS:
            score += d
        if abs(z) <= EPS:
            score += w
        if abs(x + w - box.width) <= EPS:
            score += d
        if abs(z + d - box.depth) <= EPS:
            score += w
        for it in self.placed:
            if abs(it.y - layer_y) > EPS:
                continue
            if overlaps_1d(z, d, it.z, it.d):
                if abs(x - it.x_max) <= EPS or abs(x + w - it.x) <= EPS:
                    score += min(d, it.d)
            if overlaps_1d(x, w, it.x, it.w):
                if abs(z - it.z_max) <= EPS or abs(z + d - it.z) <= EPS:
                    score += min(w, it.w)
        return score

    # ── Aggregates ───────────────────────────────────────────────────────

    @property
    def used_footprint(self) -> float:
        return self.used_width * self.used_depth

    def get_fill_rate(self) -> float:
        """Volumetric fill rate = placed item volume / box volume."""
        box_vol = self.box.volume
        if box_vol == 0:
            return 0.0
        return sum(p.volume for p in self.placed) / box_vol

    # ── Cloning ──────────────────────────────────────────────────────────

    def with_item(self, item: PlacedItem) -> "BinState":
        """New state with *item* appended; this state is unchanged."""
        clone = BinState.__new__(BinState)
        clone.box = self.box
        clone.placed = self.placed + (item,)
        clone.used_width = max(self.used_width, item.x_max)
        clone.used_depth = max(self.used_depth, item.z_max)
        clone.used_height = max(self.used_height, item.y_max)
        return clone

    # ── Representation ───────────────────────────────────────────────────

    def __repr__(self) -> str:
        return (
            f"BinState(items={len(self.placed)}, "
            f"used={self.used_width:.1f}x{self.used_depth:.1f}x{self.used_height:.1f}, "
            f"fill={self.get_fill_rate():.1%})"
        )
