"""
strategies -- interchangeable packing strategies.

Public API:
    from cartonfit.strategies import BaseStrategy, get_strategy, register_strategy
"""

from cartonfit.strategies.base_strategy import BaseStrategy, get_strategy, register_strategy, STRATEGY_REGISTRY
import cartonfit.strategies.greedy_anchor  # registers GreedyAnchorStrategy
import cartonfit.strategies.shelf_nfdh  # registers ShelfNFDHStrategy
import cartonfit.strategies.shelf_best_fit  # registers ShelfBestFitStrategy
import cartonfit.strategies.max_rects  # registers MaxRectsStrategy
import cartonfit.strategies.beam_compact  # registers BeamCompactStrategy

__all__ = [
    "BaseStrategy", "get_strategy", "register_strategy", "STRATEGY_REGISTRY",
]
