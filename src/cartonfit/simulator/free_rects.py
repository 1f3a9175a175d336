"""
Free-rectangle tracker — per-layer free floor space bookkeeping.

A layer's free space is a list of axis-aligned rectangles on the (x, z)
plane.  On the box floor it starts as the full box footprint; above the
floor it starts as the projected top faces of the items whose top equals
the layer height, because only those faces can bear weight.

Operations:
  prune_rects    — drop empty and strictly contained rectangles, dedupe
  merge_rects    — coalesce pairs sharing a full edge until none remain
  split_rect     — replace a used rectangle by its right and lower remainders
  support_surface_rects — projected top faces at a layer height

``FreeRectTracker`` wraps these for the layered packers.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from cartonfit.config import EPS, Box, PlacedItem


def _eq(a: float, b: float) -> bool:
    return abs(a - b) <= EPS


@dataclass(frozen=True)
class FreeRect:
    """Unobstructed floor area (x, z, width, depth) on the current layer."""
    x: float
    z: float
    w: float
    d: float

    @property
    def area(self) -> float:
        return self.w * self.d

    @property
    def x_max(self) -> float:
        return self.x + self.w

    @property
    def z_max(self) -> float:
        return self.z + self.d

    def fits(self, w: float, d: float) -> bool:
        return w <= self.w + EPS and d <= self.d + EPS

    def contains(self, other: "FreeRect") -> bool:
        return (
            other.x >= self.x - EPS and other.z >= self.z - EPS
            and other.x_max <= self.x_max + EPS
            and other.z_max <= self.z_max + EPS
        )

    def same_as(self, other: "FreeRect") -> bool:
        return (_eq(self.x, other.x) and _eq(self.z, other.z)
                and _eq(self.w, other.w) and _eq(self.d, other.d))


# ─────────────────────────────────────────────────────────────────────────────
# Pure operations
# ─────────────────────────────────────────────────────────────────────────────

def prune_rects(rects: Iterable[FreeRect]) -> List[FreeRect]:
    """Remove zero-area and strictly contained rectangles, then dedupe."""
    filtered = [r for r in rects if r.w > EPS and r.d > EPS]
    out: List[FreeRect] = []
    for i, a in enumerate(filtered):
        contained = any(
            j != i and not a.same_as(b) and b.contains(a)
            for j, b in enumerate(filtered)
        )
        if contained:
            continue
        if any(o.same_as(a) for o in out):
            continue
        out.append(a)
    return out


def _try_merge(a: FreeRect, b: FreeRect):
    # same z-span, adjacent in x
    if _eq(a.z, b.z) and _eq(a.d, b.d):
        if _eq(a.x_max, b.x):
            return FreeRect(a.x, a.z, a.w + b.w, a.d)
        if _eq(b.x_max, a.x):
            return FreeRect(b.x, a.z, a.w + b.w, a.d)
    # same x-span, adjacent in z
    if _eq(a.x, b.x) and _eq(a.w, b.w):
        if _eq(a.z_max, b.z):
            return FreeRect(a.x, a.z, a.w, a.d + b.d)
        if _eq(b.z_max, a.z):
            return FreeRect(a.x, b.z, a.w, a.d + b.d)
    return None


def merge_rects(rects: Iterable[FreeRect]) -> List[FreeRect]:
    """Coalesce rectangles that share a full edge, repeating to a fixpoint."""
    arr = list(rects)
    changed = True
    while changed:
        changed = False
        for i in range(len(arr)):
            for j in range(i + 1, len(arr)):
                merged = _try_merge(arr[i], arr[j])
                if merged is None:
                    continue
                del arr[j]
                arr[i] = merged
                changed = True
                break
            if changed:
                break
    return arr


def split_rect(rects: Sequence[FreeRect], used: FreeRect, w: float, d: float) -> List[FreeRect]:
    """
    Place a w×d item at the origin corner of *used* and return the new
    rectangle list: *used* is replaced by the strip to its right
    (remaining width, item depth) and the strip below it (full width,
    remaining depth), then pruned and merged.
    """
    out: List[FreeRect] = []
    removed = False
    for r in rects:
        if not removed and r.same_as(used):
            removed = True
            continue
        out.append(r)
    out.append(FreeRect(used.x + w, used.z, used.w - w, d))
    out.append(FreeRect(used.x, used.z + d, used.w, used.d - d))
    return merge_rects(prune_rects(out))


def support_surface_rects(placed: Iterable[PlacedItem], layer_y: float) -> List[FreeRect]:
    """Top faces of items whose top equals *layer_y*, pruned and merged."""
    faces = [
        FreeRect(it.x, it.z, it.w, it.d)
        for it in placed
        if abs(it.y_max - layer_y) <= EPS
    ]
    if not faces:
        return []
    return merge_rects(prune_rects(faces))


# ─────────────────────────────────────────────────────────────────────────────
# Tracker
# ─────────────────────────────────────────────────────────────────────────────

class FreeRectTracker:
    """
    Free rectangles of one layer.

    Attributes:
        layer_y: Height of the layer's base.
        rects:   Current free rectangles.
    """

    __slots__ = ("layer_y", "rects")

    def __init__(self, rects: Sequence[FreeRect], layer_y: float = 0.0) -> None:
        self.layer_y = layer_y
        self.rects: List[FreeRect] = list(rects)

    @classmethod
    def for_layer(cls, box: Box, placed: Sequence[PlacedItem], layer_y: float) -> "FreeRectTracker":
        """
        Free space of the layer at *layer_y*: the full box footprint on the
        floor, the projected support surfaces above it.  If nothing tops out
        exactly at *layer_y* the full footprint is used and the support
        check rejects every candidate.
        """
        if layer_y <= EPS:
            return cls([FreeRect(0.0, 0.0, box.width, box.depth)], 0.0)
        surfaces = support_surface_rects(placed, layer_y)
        if not surfaces:
            surfaces = [FreeRect(0.0, 0.0, box.width, box.depth)]
        return cls(surfaces, layer_y)

    def near_origin(self) -> List[FreeRect]:
        """Rectangles sorted by z, then x."""
        return sorted(self.rects, key=lambda r: (r.z, r.x))

    def place(self, used: FreeRect, w: float, d: float) -> None:
        self.rects = split_rect(self.rects, used, w, d)

    def any_fits(self, w: float, d: float) -> bool:
        return any(r.fits(w, d) for r in self.rects)

    def __len__(self) -> int:
        return len(self.rects)

    def __repr__(self) -> str:
        return f"FreeRectTracker(y={self.layer_y:.1f}, rects={len(self.rects)})"
