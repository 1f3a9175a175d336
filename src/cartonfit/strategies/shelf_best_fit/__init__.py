from cartonfit.strategies.shelf_best_fit.strategy import ShelfBestFitStrategy
__all__ = ["ShelfBestFitStrategy"]
