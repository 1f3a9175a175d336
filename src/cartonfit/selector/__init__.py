"""Box selection: minimal cluster search, catalog matching and repacking."""

from cartonfit.selector.box_selector import SelectionResult, choose_smallest_fitting_box
from cartonfit.selector.flexible_plan import plan_flexible_packing

__all__ = ["SelectionResult", "choose_smallest_fitting_box", "plan_flexible_packing"]
