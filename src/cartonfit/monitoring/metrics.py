"""Metrics tracking and export for box selection runs.

Provides a dataclass summarising one selection result and utilities for
exporting it to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cartonfit.selector.box_selector import SelectionResult
from cartonfit.simulator.bin_state import BinState


CSV_FIELDS = [
    "step", "placement_id", "product_id", "x", "y", "z", "w", "d", "h", "contact",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PackingMetrics:
    """Metrics for a single box selection.

    Attributes:
        box_id: Identifier of the chosen box.
        box_dims: Chosen box as (width, depth, height).
        strategy: Stage that produced the placement.
        items_placed: Number of placements.
        volume_used: Total item volume in cubic cm.
        volume_total: Box volume in cubic cm.
        fill_rate: volume_used / volume_total (0-1).
        used_dims: Bounding extent of the placement as (width, depth, height).
        contact_ratio: Mean share of each footprint perimeter touching walls
            or same-level neighbours (0-1), a compactness indicator.
        runtime_seconds: Wall time of the selection.
        created_at: Timestamp of the measurement.
        placements: Per-step rows (see ``CSV_FIELDS``).
    """

    box_id: str
    box_dims: tuple[float, float, float]
    strategy: str
    items_placed: int
    volume_used: float
    volume_total: float
    fill_rate: float
    used_dims: tuple[float, float, float]
    contact_ratio: float
    runtime_seconds: float = 0.0
    created_at: datetime = field(default_factory=_utcnow)
    placements: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: SelectionResult, runtime_seconds: float = 0.0) -> PackingMetrics:
        """Measure a selection result.

        Example:
            >>> metrics = PackingMetrics.from_result(result, runtime_seconds=1.2)
            >>> 0.0 <= metrics.fill_rate <= 1.0
            True
        """
        box = result.box
        state = BinState(box)
        rows: list[dict[str, Any]] = []
        ratios: list[float] = []
        for item in result.placed:
            contact = state.contact_score(item.x, item.z, item.w, item.d, item.y)
            perimeter = 2 * (item.w + item.d)
            ratios.append(min(1.0, contact / perimeter) if perimeter > 0 else 0.0)
            rows.append({
                "step": item.step, "placement_id": item.id, "product_id": item.product_id,
                "x": item.x, "y": item.y, "z": item.z,
                "w": item.w, "d": item.d, "h": item.h, "contact": contact,
            })
            state = state.with_item(item)

        return cls(
            box_id=box.id,
            box_dims=(box.width, box.depth, box.height),
            strategy=result.strategy,
            items_placed=len(result.placed),
            volume_used=sum(p.volume for p in result.placed),
            volume_total=box.volume,
            fill_rate=state.get_fill_rate(),
            used_dims=(state.used_width, state.used_depth, state.used_height),
            contact_ratio=sum(ratios) / len(ratios) if ratios else 0.0,
            runtime_seconds=runtime_seconds,
            placements=rows,
        )

    def to_dict(self, include_placements: bool = True) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp."""
        d = asdict(self)
        d["box_dims"] = list(self.box_dims)
        d["used_dims"] = list(self.used_dims)
        d["created_at"] = self.created_at.isoformat()
        if not include_placements:
            del d["placements"]
        return d


def export_to_json(metrics: PackingMetrics, output_path: Path | str,
                   include_placements: bool = True) -> None:
    """Export metrics to a JSON file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w") as f:
        json.dump(metrics.to_dict(include_placements), f, indent=2)


def export_to_csv(metrics: PackingMetrics, output_path: Path | str) -> None:
    """Export the per-step placement rows to a CSV file (header only if empty)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in metrics.placements:
            writer.writerow(row)


def format_summary(metrics: PackingMetrics) -> str:
    """Generate a human-readable summary.

    Example:
        >>> "Box: " in format_summary(metrics)
        True
    """
    bw, bd, bh = metrics.box_dims
    uw, ud, uh = metrics.used_dims
    lines = [
        "=" * 60,
        f"Box: {metrics.box_id} ({bw:g} x {bd:g} x {bh:g} cm)",
        f"Strategy: {metrics.strategy}",
        "=" * 60,
        f"Items placed: {metrics.items_placed}",
        f"Fill rate: {metrics.fill_rate * 100:.2f}%",
        f"Used extent: {uw:g} x {ud:g} x {uh:g} cm",
        f"Contact ratio: {metrics.contact_ratio:.2f}",
        f"Runtime: {metrics.runtime_seconds:.2f} seconds",
        "=" * 60,
    ]
    return "\n".join(lines)
