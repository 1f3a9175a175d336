"""
cartonfit — smallest-box selection and 3D placement sequencing.

Public API:
    from cartonfit.config import Box, Product, PlacedItem, PackingConfig, EngineConfig
    from cartonfit.selector.box_selector import choose_smallest_fitting_box
    from cartonfit.session import PackingSession
    from cartonfit.strategies import get_strategy
"""

__version__ = "0.1.0"
