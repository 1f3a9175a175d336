"""
Placement validator — pure-function physical constraint checking.

All checks are stateless functions over a candidate position/size and the
already-placed items of a box.  The predicates (``can_place_at``,
``has_full_support``) return booleans for use inside search loops;
``validate_placement`` and ``verify_packing`` raise a ``PlacementError``
subclass describing the first violated constraint.

Checks:
  1. Bounds    — candidate lies within [0,width]×[0,height]×[0,depth]
  2. Collision — candidate AABB does not intersect any placed AABB
                 (overlap requires all three axis intervals to intersect)
  3. Support   — for y > 0 the whole (x, z) footprint is covered by top
                 faces of items whose top equals y

Support levels are matched within ``SUPPORT_TOLERANCE`` rather than by
exact float equality.  For integer dimensions the two are identical.
"""

from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from cartonfit.config import EPS, Box, PlacedItem, Product, orientations_of


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for placement validation errors."""


class OutOfBoundsError(PlacementError):
    """Item extends outside the box boundary."""


class OverlapError(PlacementError):
    """Item would intersect an already-placed item."""


class UnsupportedPlacementError(PlacementError):
    """Elevated item whose footprint is not fully covered by top faces."""


class IncompletePackingError(PlacementError):
    """Placement list does not cover every product exactly once."""


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

# Two heights closer than this are the same support level.
SUPPORT_TOLERANCE: float = EPS


# ─────────────────────────────────────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────────────────────────────────────

def overlaps_1d(a_start: float, a_len: float, b_start: float, b_len: float) -> bool:
    """Open-interval overlap; touching intervals do not overlap."""
    return a_start < b_start + b_len - EPS and a_start + a_len > b_start + EPS


def in_bounds(
    x: float, y: float, z: float,
    w: float, d: float, h: float,
    box: Box,
) -> bool:
    if x < -EPS or y < -EPS or z < -EPS:
        return False
    return (
        x + w <= box.width + EPS
        and y + h <= box.height + EPS
        and z + d <= box.depth + EPS
    )


def collides(
    x: float, y: float, z: float,
    w: float, d: float, h: float,
    placed: Iterable[PlacedItem],
) -> Optional[PlacedItem]:
    """Return the first placed item whose AABB intersects the candidate."""
    for it in placed:
        if (overlaps_1d(x, w, it.x, it.w)
                and overlaps_1d(y, h, it.y, it.h)
                and overlaps_1d(z, d, it.z, it.d)):
            return it
    return None


def can_place_at(
    x: float, y: float, z: float,
    w: float, d: float, h: float,
    box: Box,
    placed: Sequence[PlacedItem],
) -> bool:
    """Bounds + collision check for a candidate placement."""
    if not in_bounds(x, y, z, w, d, h, box):
        return False
    return collides(x, y, z, w, d, h, placed) is None


def supporting_rects(
    x: float, z: float, w: float, d: float, y: float,
    placed: Iterable[PlacedItem],
) -> List[Tuple[float, float, float, float]]:
    """
    Top faces at height *y* that intersect the footprint, as
    (x0, x1, z0, z1) tuples.
    """
    x1, z1 = x + w, z + d
    rects = []
    for it in placed:
        if abs(it.y_max - y) > SUPPORT_TOLERANCE:
            continue
        if it.x_max > x and it.x < x1 and it.z_max > z and it.z < z1:
            rects.append((it.x, it.x_max, it.z, it.z_max))
    return rects


def has_full_support(
    x: float, z: float, w: float, d: float, y: float,
    placed: Iterable[PlacedItem],
) -> bool:
    """
    True if the footprint [x, x+w) × [z, z+d) at height *y* is completely
    covered by top faces of items whose top equals *y*.

    The footprint is cut into a grid along every supporting edge (clipped
    to the footprint); each grid cell's centre must lie inside at least one
    supporting rectangle.  A floor footprint (y = 0) is always supported.
    """
    if abs(y) <= SUPPORT_TOLERANCE:
        return True

    rects = supporting_rects(x, z, w, d, y, placed)
    if not rects:
        return False

    r = np.asarray(rects, dtype=np.float64)
    x0, x1 = x, x + w
    z0, z1 = z, z + d

    x_cuts = np.unique(np.clip(np.concatenate(([x0, x1], r[:, 0], r[:, 1])), x0, x1))
    z_cuts = np.unique(np.clip(np.concatenate(([z0, z1], r[:, 2], r[:, 3])), z0, z1))

    x_keep = np.diff(x_cuts) > EPS
    z_keep = np.diff(z_cuts) > EPS
    cx = ((x_cuts[:-1] + x_cuts[1:]) / 2.0)[x_keep]
    cz = ((z_cuts[:-1] + z_cuts[1:]) / 2.0)[z_keep]
    if cx.size == 0 or cz.size == 0:
        return True

    # (rects, x-cells, z-cells) containment
    in_x = (cx[None, :] >= r[:, 0:1]) & (cx[None, :] <= r[:, 1:2])
    in_z = (cz[None, :] >= r[:, 2:3]) & (cz[None, :] <= r[:, 3:4])
    covered = np.any(in_x[:, :, None] & in_z[:, None, :], axis=0)
    return bool(np.all(covered))


# ─────────────────────────────────────────────────────────────────────────────
# Raising validators
# ─────────────────────────────────────────────────────────────────────────────

def validate_placement(
    x: float, y: float, z: float,
    w: float, d: float, h: float,
    box: Box,
    placed: Sequence[PlacedItem],
) -> bool:
    """
    Validate a proposed placement against all physical constraints.

    Returns:
        True if all checks pass.

    Raises:
        OutOfBoundsError:          item extends outside the box.
        OverlapError:              item intersects a placed item.
        UnsupportedPlacementError: elevated footprint not fully supported.
    """
    if x < -EPS or y < -EPS or z < -EPS:
        raise OutOfBoundsError(f"Negative coordinate: ({x:.2f}, {y:.2f}, {z:.2f})")
    if x + w > box.width + EPS:
        raise OutOfBoundsError(f"X overflow: {x:.2f}+{w:.2f} > {box.width:.2f}")
    if y + h > box.height + EPS:
        raise OutOfBoundsError(f"Y overflow: {y:.2f}+{h:.2f} > {box.height:.2f}")
    if z + d > box.depth + EPS:
        raise OutOfBoundsError(f"Z overflow: {z:.2f}+{d:.2f} > {box.depth:.2f}")

    hit = collides(x, y, z, w, d, h, placed)
    if hit is not None:
        raise OverlapError(
            f"Item at ({x:.2f}, {y:.2f}, {z:.2f}) intersects {hit.id} "
            f"at ({hit.x:.2f}, {hit.y:.2f}, {hit.z:.2f})"
        )

    if not has_full_support(x, z, w, d, y, placed):
        raise UnsupportedPlacementError(
            f"Footprint {w:.2f}x{d:.2f} at ({x:.2f}, {z:.2f}) is not fully "
            f"supported at y={y:.2f}"
        )
    return True


def verify_packing(
    items: Sequence[PlacedItem],
    box: Box,
    products: Optional[Sequence[Product]] = None,
) -> bool:
    """
    Check a complete placement list against every packing invariant.

    Each item is validated against the items placed before it, so the
    list must also be a buildable assembly sequence.  When *products* is
    given, every product must appear exactly once with dimensions
    matching one of its orientations.
    """
    for i, it in enumerate(items):
        validate_placement(it.x, it.y, it.z, it.w, it.d, it.h, box, items[:i])

    if products is not None:
        expected = Counter(p.id for p in products)
        actual = Counter(it.product_id for it in items)
        if expected != actual:
            raise IncompletePackingError(
                f"Placement covers {dict(actual)} but products are {dict(expected)}"
            )
        by_id = {p.id: p for p in products}
        for it in items:
            sizes = {(o.w, o.d, o.h) for o in orientations_of(by_id[it.product_id])}
            if it.size not in sizes:
                raise IncompletePackingError(
                    f"{it.id} has size {it.size} which is not an orientation of "
                    f"product {it.product_id}"
                )
    return True
