"""
Bounding-cluster scoring shared by the beam-search compactor and the
flexible-plan search.

Both searches minimise the same objective through one function: footprint
first, then height, then volume.  They keep separate default weights
(see ``BeamConfig.weights`` and ``FlexiblePlanConfig.weights``); the beam
search additionally penalises elevated and non-flat placements of the item
it is adding.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from cartonfit.config import PlacedItem, ScoringWeights


@dataclass(frozen=True)
class Cluster:
    """
    A complete arrangement of all products in unconstrained virtual space.

    Attributes:
        placed:      Placements in placement order.
        used_width:  Bounding extent along x.
        used_depth:  Bounding extent along z.
        used_height: Bounding extent along y.
    """
    placed: Tuple[PlacedItem, ...]
    used_width: float
    used_depth: float
    used_height: float

    @property
    def footprint(self) -> float:
        return self.used_width * self.used_depth

    @property
    def volume(self) -> float:
        """Bounding volume, with height floored at 1."""
        return self.used_width * self.used_depth * max(self.used_height, 1.0)

    @classmethod
    def from_items(cls, placed: Sequence[PlacedItem]) -> "Cluster":
        return cls(
            placed=tuple(placed),
            used_width=max((p.x_max for p in placed), default=0.0),
            used_depth=max((p.z_max for p in placed), default=0.0),
            used_height=max((p.y_max for p in placed), default=0.0),
        )

    def swapped_xz(self) -> "Cluster":
        """The cluster rotated 90° about the vertical axis (x and z swapped)."""
        return Cluster(
            placed=tuple(p.swapped_xz() for p in self.placed),
            used_width=self.used_depth,
            used_depth=self.used_width,
            used_height=self.used_height,
        )


def cluster_score(
    used_width: float,
    used_depth: float,
    used_height: float,
    weights: ScoringWeights,
    elevation: float = 0.0,
    height_excess: float = 0.0,
) -> float:
    """
    Weighted cluster score; lower is better.

    Args:
        used_width, used_depth, used_height: Bounding dimensions.
        weights:       Scoring weights.
        elevation:     y of the item just added (beam search).
        height_excess: Height above the product's minimum orientation
                       height of the item just added (beam search).
    """
    footprint = used_width * used_depth
    volume = footprint * max(used_height, 1.0)
    return (
        footprint * weights.area
        + used_height * weights.height
        + volume * weights.volume
        + elevation * weights.elevation
        + height_excess * weights.non_flat
    )
