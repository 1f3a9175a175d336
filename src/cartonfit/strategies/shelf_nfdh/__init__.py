"""Deterministic next-fit decreasing-height shelf packer."""
from cartonfit.strategies.shelf_nfdh.strategy import ShelfNFDHStrategy
__all__ = ["ShelfNFDHStrategy"]
