"""
Strategy interface — abstract base class for all packing strategies.

Every strategy consumes a product set and a target box and produces either
a complete, valid, ordered placement list or ``None`` ("cannot fit all
products in this box under this strategy").  The order of the returned
list is the placement order, i.e. the assembly sequence shown to the user.

Creating a strategy
~~~~~~~~~~~~~~~~~~~
1. Create ``strategies/my_strategy/strategy.py``
2. Subclass ``BaseStrategy``, set ``name``, implement ``pack()``
3. Decorate with ``@register_strategy``
4. Import the module in ``strategies/__init__.py``
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type

from cartonfit.config import Box, PackingConfig, PlacedItem, Product


class BaseStrategy(ABC):
    """
    Abstract base for packing strategies.

    Strategies are stateless between calls: each ``pack()`` builds its own
    placement list and never mutates the products or the box.  Failure is
    signalled by returning ``None``, never by raising.
    """

    name: str = "unnamed"

    def __init__(self, config: Optional[PackingConfig] = None) -> None:
        self._config: PackingConfig = config or PackingConfig()

    @property
    def config(self) -> PackingConfig:
        return self._config

    @abstractmethod
    def pack(
        self,
        products: Sequence[Product],
        box: Box,
    ) -> Optional[List[PlacedItem]]:
        """
        Place every product inside *box*.

        Args:
            products: Products to place (any order; the strategy sorts).
            box:      Target box.

        Returns:
            Ordered placements covering every product exactly once, or
            ``None`` if this strategy cannot fit them all.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._config})"


# ─────────────────────────────────────────────────────────────────────────────
# Strategy registry
# ─────────────────────────────────────────────────────────────────────────────

STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {}


def register_strategy(cls: Type[BaseStrategy]) -> Type[BaseStrategy]:
    """Class decorator — registers a strategy in the global registry."""
    STRATEGY_REGISTRY[cls.name] = cls
    return cls


def get_strategy(name: str, config: Optional[PackingConfig] = None) -> BaseStrategy:
    """Look up a strategy by name and return a new instance."""
    if name not in STRATEGY_REGISTRY:
        available = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise ValueError(f"Unknown strategy '{name}'.  Available: [{available}]")
    return STRATEGY_REGISTRY[name](config)
