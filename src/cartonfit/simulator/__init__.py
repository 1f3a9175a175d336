"""
simulator — geometry checks and per-box placement state.

  **Validation**:
    can_place_at        — bounds + AABB collision
    has_full_support    — footprint fully covered by top faces at its height
    validate_placement  — raising variant of both checks
    verify_packing      — post-condition over a whole placement list

  **State**:
    BinState            — read-only view over placements in one box
    FreeRectTracker     — per-layer free rectangles (prune, merge, split)
"""

from cartonfit.simulator.bin_state import BinState
from cartonfit.simulator.free_rects import FreeRect, FreeRectTracker
from cartonfit.simulator.validator import (
    IncompletePackingError,
    OutOfBoundsError,
    OverlapError,
    PlacementError,
    UnsupportedPlacementError,
    can_place_at,
    has_full_support,
    validate_placement,
    verify_packing,
)

__all__ = [
    "BinState", "FreeRect", "FreeRectTracker",
    "PlacementError", "OutOfBoundsError", "OverlapError",
    "UnsupportedPlacementError", "IncompletePackingError",
    "can_place_at", "has_full_support", "validate_placement", "verify_packing",
]
