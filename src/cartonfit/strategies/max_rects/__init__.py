"""Free-rectangle (MaxRects) layered packer."""
from cartonfit.strategies.max_rects.strategy import MaxRectsStrategy
__all__ = ["MaxRectsStrategy"]
