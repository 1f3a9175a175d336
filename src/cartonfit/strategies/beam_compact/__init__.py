"""
Beam-search volume compactor.

Searches an effectively unbounded virtual box for the arrangement with the
smallest bounding volume; the box selector matches that cluster to a real box.
"""
from cartonfit.strategies.beam_compact.strategy import BeamCompactStrategy
__all__ = ["BeamCompactStrategy"]
