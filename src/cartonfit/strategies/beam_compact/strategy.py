"""
Beam-Search Volume Compactor — minimal bounding cluster in virtual space.

Algorithm overview
~~~~~~~~~~~~~~~~~~
The compactor ignores the real catalog and packs all products into an
effectively unbounded virtual box, looking for the arrangement with the
smallest bounding volume.  That cluster's dimensions are later matched
against the catalog by the box selector.

For each product ordering (descending volume, descending footprint and a
few seeded shuffles) a beam search is run:

  1. The beam holds up to ``beam_width`` partial placement states.
  2. Every state is expanded with the next product by trying the
     ``anchor_limit`` nearest-origin anchors × each flat (minimum-height)
     orientation, compacting each candidate the way the greedy packer does.
     Only if a state yields no flat successor are non-flat orientations
     tried, with a per-unit height penalty.  At most
     ``branch_per_state * beam_width`` successors are produced per state.
  3. Successors are scored (``scoring.cluster_score``: footprint, then
     height, then volume, plus elevation and non-flat penalties), sorted,
     deduplicated by rounded bounding dimensions and truncated to the beam.

After the last product the ordering's best state (smallest footprint, then
lowest height) competes with the other orderings on bounding volume.

Hyperparameters live in ``BeamConfig``.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from cartonfit.config import (
    BeamConfig,
    Box,
    Orientation,
    PackingConfig,
    PlacedItem,
    Product,
    make_placed_item,
    orientations_of,
)
from cartonfit.scoring import Cluster, cluster_score
from cartonfit.simulator.bin_state import BinState
from cartonfit.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _BeamState:
    state: BinState
    score: float


def virtual_box(size: float, box_id: str = "virtual") -> Box:
    """A cube large enough to be effectively unbounded."""
    return Box(id=box_id, width=size, depth=size, height=size)


def select_survivors(successors: Sequence[_BeamState], beam_width: int) -> List[_BeamState]:
    """
    Lowest-score successors, one per rounded bounding size, at most
    *beam_width* of them.
    """
    seen: set = set()
    unique: List[_BeamState] = []
    for s in sorted(successors, key=lambda s: s.score):
        key = (round(s.state.used_width), round(s.state.used_depth),
               round(s.state.used_height))
        if key in seen:
            continue
        seen.add(key)
        unique.append(s)
        if len(unique) >= beam_width:
            break
    return unique


@register_strategy
class BeamCompactStrategy(BaseStrategy):
    """Beam search for the minimal-volume bounding cluster."""

    name = "beam_compact"

    def __init__(
        self,
        config: Optional[PackingConfig] = None,
        beam_config: Optional[BeamConfig] = None,
    ) -> None:
        super().__init__(config)
        self.beam_config: BeamConfig = beam_config or BeamConfig()

    def pack(
        self,
        products: Sequence[Product],
        box: Box,
    ) -> Optional[List[PlacedItem]]:
        """Run the search inside *box* instead of the virtual box."""
        cluster = self.plan(products, box)
        return list(cluster.placed) if cluster is not None else None

    # ── Search ───────────────────────────────────────────────────────────

    def plan(
        self,
        products: Sequence[Product],
        box: Optional[Box] = None,
    ) -> Optional[Cluster]:
        """
        Best bounding cluster across all orderings, or ``None`` if no
        ordering could place every product.
        """
        cfg = self.beam_config
        space = box or virtual_box(cfg.virtual_size)
        best: Optional[Cluster] = None

        for ordering in self._orderings(products):
            cluster = self._search(ordering, space)
            if cluster is None:
                continue
            if best is None or cluster.volume < best.volume:
                best = cluster

        if best is None:
            logger.debug("%s: no ordering placed all %d products", self.name, len(products))
        else:
            logger.debug("%s: cluster %.1fx%.1fx%.1f", self.name,
                         best.used_width, best.used_depth, best.used_height)
        return best

    def _orderings(self, products: Sequence[Product]) -> List[List[Product]]:
        items = list(products)
        rng = random.Random(self.beam_config.seed)
        orderings = [
            sorted(items, key=lambda p: p.volume, reverse=True),
            sorted(items, key=lambda p: p.footprint, reverse=True),
        ]
        for _ in range(self.beam_config.shuffles):
            shuffled = list(items)
            rng.shuffle(shuffled)
            orderings.append(shuffled)
        return orderings

    def _search(self, sequence: Sequence[Product], space: Box) -> Optional[Cluster]:
        cfg = self.beam_config
        cap = cfg.branch_per_state * cfg.beam_width
        beam: List[_BeamState] = [_BeamState(BinState(space), 0.0)]

        for step, product in enumerate(sequence):
            successors: List[_BeamState] = []
            all_oris = orientations_of(product)
            min_h = min(o.h for o in all_oris)
            flat = [o for o in all_oris if o.h == min_h]
            non_flat = [o for o in all_oris if o.h != min_h]

            for st in beam:
                anchors = st.state.anchors(limit=cfg.anchor_limit)
                produced = self._expand(st.state, product, step, anchors, flat,
                                        min_h, cap, successors)
                if produced == 0 and non_flat:
                    self._expand(st.state, product, step, anchors, non_flat,
                                 min_h, cap, successors)

            if not successors:
                return None
            beam = select_survivors(successors, cfg.beam_width)

        pick = min(beam, key=lambda s: (s.state.used_footprint, s.state.used_height))
        return Cluster(
            placed=pick.state.placed,
            used_width=pick.state.used_width,
            used_depth=pick.state.used_depth,
            used_height=pick.state.used_height,
        )

    def _expand(
        self,
        state: BinState,
        product: Product,
        step: int,
        anchors: Sequence[Tuple[float, float, float]],
        oris: Sequence[Orientation],
        min_h: float,
        cap: int,
        out: List[_BeamState],
    ) -> int:
        """Append successors of *state* to *out*; returns how many were made."""
        weights = self.beam_config.weights
        produced = 0
        for ax, ay, az in anchors:
            for o in oris:
                x, y, z = state.compact_position(ax, ay, az, o.w, o.d, o.h)
                if not state.can_place(x, y, z, o.w, o.d, o.h):
                    continue
                nxt = state.with_item(make_placed_item(product, o, x, y, z, step))
                score = cluster_score(
                    nxt.used_width, nxt.used_depth, nxt.used_height, weights,
                    elevation=y, height_excess=o.h - min_h,
                )
                out.append(_BeamState(nxt, score))
                produced += 1
                if produced >= cap:
                    return produced
        return produced
