"""Greedy corner-anchor packer: first valid anchor x orientation wins."""
from cartonfit.strategies.greedy_anchor.strategy import GreedyAnchorStrategy
__all__ = ["GreedyAnchorStrategy"]
