"""
Central configuration and data models for the carton selection engine.

All modules import their core types from here to ensure consistency
across the validator, strategies, selector, session and runner layers.

Classes:
    Box                — catalog carton with inner dimensions (cm)
    Product            — cuboid product to be packed
    Orientation        — one axis-aligned permutation of a product's dims
    PlacedItem         — immutable result of placing a product in a box
    PackingConfig      — tunables for the rectangle-based layered packer
    ScoringWeights     — weights of the cluster scoring policy
    BeamConfig         — beam-search compactor knobs
    FlexiblePlanConfig — footprint-budget fallback search knobs
    SelectorConfig     — box-selector repack knobs
    EngineConfig       — everything above plus the watchdog timeout

Coordinate convention: x runs along the box width, y is vertical (height),
z runs along the box depth.  A placed item occupies
[x, x+w) × [y, y+h) × [z, z+d).
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import yaml


# Tolerance for comparing coordinates that result from sums of dimensions.
EPS: float = 1e-6

# Cosmetic colours, assigned round-robin by placement order.
PALETTE: Tuple[str, ...] = (
    "#ff6b6b", "#ffd166", "#06d6a0", "#118ab2", "#ef476f",
    "#f78c6b", "#8e7dbe", "#00c2ff", "#ffa600", "#2a9d8f",
)


# ─────────────────────────────────────────────────────────────────────────────
# Box & Product
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Box:
    """
    A carton from the catalog.

    Attributes:
        id:     Unique identifier.
        width:  X-axis extent (cm).
        depth:  Z-axis extent (cm).
        height: Y-axis extent (cm).
    """
    id: str
    width: float
    depth: float
    height: float

    @property
    def volume(self) -> float:
        """Inner volume of the box."""
        return self.width * self.depth * self.height

    def to_dict(self) -> dict:
        return {"id": self.id, "width": self.width,
                "depth": self.depth, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Box":
        return cls(id=str(d["id"]), width=float(d["width"]),
                   depth=float(d["depth"]), height=float(d["height"]))


@dataclass(frozen=True)
class Product:
    """
    A rectangular-cuboid product.

    Name, SKU and barcode are opaque to the engine and only travel along
    so the caller can label the placement sequence.
    """
    id: str
    width: float
    depth: float
    height: float
    name: str = ""
    sku: str = ""
    barcode: str = ""

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def footprint(self) -> float:
        """Base area in the as-given orientation."""
        return self.width * self.depth


# ─────────────────────────────────────────────────────────────────────────────
# Orientation
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Orientation:
    """
    One axis-aligned permutation of a product's dimensions.

    Dimensions are permuted, not visually rotated, so ``rotation`` is
    always (0, 0, 0).
    """
    w: float
    d: float
    h: float
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def footprint(self) -> float:
        return self.w * self.d

    @staticmethod
    def get_all(w: float, d: float, h: float) -> List["Orientation"]:
        """Return all distinct axis-aligned orientations (up to 6)."""
        seen: set = set()
        orientations: List[Orientation] = []
        for dims in [
            (w, d, h), (w, h, d),
            (d, w, h), (d, h, w),
            (h, w, d), (h, d, w),
        ]:
            if dims not in seen:
                seen.add(dims)
                orientations.append(Orientation(*dims))
        return orientations

    @staticmethod
    def get_flat(w: float, d: float, h: float) -> List["Orientation"]:
        """Return only the minimum-height orientations."""
        all_orientations = Orientation.get_all(w, d, h)
        min_h = min(o.h for o in all_orientations)
        return [o for o in all_orientations if o.h == min_h]


def orientations_of(product: Product) -> List[Orientation]:
    """Distinct orientations of *product*, in a fixed permutation order."""
    return Orientation.get_all(product.width, product.depth, product.height)


def flat_orientations_of(product: Product) -> List[Orientation]:
    """Orientations of *product* whose height is minimal."""
    return Orientation.get_flat(product.width, product.depth, product.height)


# ─────────────────────────────────────────────────────────────────────────────
# PlacedItem (immutable result of a placement)
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlacedItem:
    """
    A single product placement inside a box.

    Frozen so that strategies, the selector and the caller can share
    placement lists without risk of accidental mutation.

    Attributes:
        id:         Placement identifier (product id + step).
        product_id: ID of the placed product.
        x, y, z:    Offset of the origin corner from the box origin (cm).
        w, d, h:    Chosen orientation's size along x, z and y.
        rotation:   Rotation descriptor of the orientation.
        color:      Display colour (cosmetic).
        step:       Index in the placement order.
    """
    id: str
    product_id: str
    x: float
    y: float
    z: float
    w: float
    d: float
    h: float
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    color: str = PALETTE[0]
    step: int = 0

    @property
    def size(self) -> Tuple[float, float, float]:
        return (self.w, self.d, self.h)

    @property
    def volume(self) -> float:
        return self.w * self.d * self.h

    @property
    def x_max(self) -> float:
        return self.x + self.w

    @property
    def y_max(self) -> float:
        """Top face height."""
        return self.y + self.h

    @property
    def z_max(self) -> float:
        return self.z + self.d

    def swapped_xz(self) -> "PlacedItem":
        """The same placement mirrored across the x = z diagonal."""
        return replace(self, x=self.z, z=self.x, w=self.d, d=self.w)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "step": self.step,
            "product_id": self.product_id,
            "position": [self.x, self.y, self.z],
            "size": {"w": self.w, "d": self.d, "h": self.h},
            "rotation": list(self.rotation),
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PlacedItem":
        return cls(
            id=d["id"], product_id=d["product_id"],
            x=d["position"][0], y=d["position"][1], z=d["position"][2],
            w=d["size"]["w"], d=d["size"]["d"], h=d["size"]["h"],
            rotation=tuple(d.get("rotation", (0.0, 0.0, 0.0))),
            color=d.get("color", PALETTE[0]), step=d.get("step", 0),
        )


def make_placed_item(
    product: Product,
    orientation: Orientation,
    x: float,
    y: float,
    z: float,
    step: int,
) -> PlacedItem:
    """Build a PlacedItem with the id and colour derived from *step*."""
    return PlacedItem(
        id=f"{product.id}@{step}",
        product_id=product.id,
        x=x, y=y, z=z,
        w=orientation.w, d=orientation.d, h=orientation.h,
        rotation=orientation.rotation,
        color=PALETTE[step % len(PALETTE)],
        step=step,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Packing configuration (rectangle-based layered packer)
# ─────────────────────────────────────────────────────────────────────────────

class OrientationOrder(str, Enum):
    """Tie-break order when choosing which orientation to try first."""
    MIN_HEIGHT_FIRST = "minHeightFirst"
    MAX_FOOTPRINT_FIRST = "maxFootprintFirst"
    WIDTH_PRIORITY = "widthPriority"
    DEPTH_PRIORITY = "depthPriority"


class ProductOrder(str, Enum):
    """Order in which unfitted products are attempted."""
    AREA_DESC = "areaDesc"
    EDGE_DESC = "edgeDesc"
    SHUFFLE = "shuffle"


@dataclass(frozen=True)
class PackingConfig:
    """
    Tunables read by the rectangle-based layered packer.

    Attributes:
        orientation_order: Orientation tie-break order.
        product_order:     Order of the product-first pass.
        flat_only:         Restrict to minimum-height orientations
                           ("stable floor-first" mode).
        seed:              Seed for the ``shuffle`` product order.
                           ``None`` draws fresh entropy.
    """
    orientation_order: OrientationOrder = OrientationOrder.MIN_HEIGHT_FIRST
    product_order: ProductOrder = ProductOrder.AREA_DESC
    flat_only: bool = True
    seed: Optional[int] = None

    def with_seed(self, seed: Optional[int]) -> "PackingConfig":
        return replace(self, seed=seed)


# ─────────────────────────────────────────────────────────────────────────────
# Search tuning
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights of the bounding-cluster score (lower is better):

        area * used_w * used_d
      + height * used_h
      + volume * used_w * used_d * max(used_h, 1)
      + elevation * item_y            (beam search only)
      + non_flat * (item_h - min_h)   (beam search only)
    """
    area: float = 1.0
    height: float = 0.05
    volume: float = 1e-7
    elevation: float = 0.5
    non_flat: float = 0.5


@dataclass(frozen=True)
class BeamConfig:
    """
    Beam-search compactor knobs.

    Attributes:
        beam_width:        States kept after each product (BEAM).
        branch_per_state:  Successor cap factor per state (BRANCH_PER_STATE).
        anchor_limit:      Nearest-origin anchors tried per state.
        shuffles:          Random orderings explored besides the two sorted ones.
        virtual_size:      Edge of the effectively unbounded virtual box (cm).
        weights:           Successor scoring weights.
        seed:              Seed for the shuffled orderings.
    """
    beam_width: int = 12
    branch_per_state: int = 6
    anchor_limit: int = 16
    shuffles: int = 4
    virtual_size: float = 10000.0
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    seed: Optional[int] = None


@dataclass(frozen=True)
class FlexiblePlanConfig:
    """
    Footprint-budget fallback search knobs.

    Attributes:
        virtual_size:          Edge of the unconstrained virtual box (cm).
        unconstrained_shuffles: Shuffled runs in the unconstrained box.
        budget_shuffles:       Shuffled runs per footprint budget.
        scales:                Budget side scale factors.
        ratios:                Budget aspect ratios.
        weights:               Plan scoring weights (area-dominant).
        seed:                  Seed for all shuffled runs.
    """
    virtual_size: float = 1000.0
    unconstrained_shuffles: int = 24
    budget_shuffles: int = 20
    scales: Tuple[float, ...] = (0.45, 0.55, 0.65, 0.75, 0.85, 0.95, 1.0)
    ratios: Tuple[float, ...] = (1.0, 1.1, 1.3, 1.5, 1.8, 2.2, 2.8)
    weights: ScoringWeights = field(
        default_factory=lambda: ScoringWeights(
            area=1.0, height=0.01, volume=1e-7, elevation=0.0, non_flat=0.0,
        )
    )
    seed: Optional[int] = None


@dataclass(frozen=True)
class SelectorConfig:
    """
    Box-selector knobs.

    Attributes:
        use_beam:          Run the beam-search compactor first.
        use_flexible_plan: Fall back to the flexible plan if the beam fails.
        repack_shuffles:   Shuffled MaxRects attempts when repacking a box.
        seed:              Seed for the shuffled repacks.
    """
    use_beam: bool = True
    use_flexible_plan: bool = True
    repack_shuffles: int = 8
    seed: Optional[int] = None


@dataclass(frozen=True)
class EngineConfig:
    """All tunables of one packing run, plus the caller-side watchdog."""
    beam: BeamConfig = field(default_factory=BeamConfig)
    flexible_plan: FlexiblePlanConfig = field(default_factory=FlexiblePlanConfig)
    selector: SelectorConfig = field(default_factory=SelectorConfig)
    timeout_seconds: float = 30.0

    def with_seed(self, seed: Optional[int]) -> "EngineConfig":
        """Same tuning with *seed* driving every shuffled search."""
        return replace(
            self,
            beam=replace(self.beam, seed=seed),
            flexible_plan=replace(self.flexible_plan, seed=seed),
            selector=replace(self.selector, seed=seed),
        )

    def to_dict(self) -> dict:
        return {
            "beam": _section_to_dict(self.beam),
            "flexible_plan": _section_to_dict(self.flexible_plan),
            "selector": _section_to_dict(self.selector),
            "timeout_seconds": self.timeout_seconds,
        }


# ─────────────────────────────────────────────────────────────────────────────
# YAML loading
# ─────────────────────────────────────────────────────────────────────────────

def _section_to_dict(section: Any) -> dict:
    out: Dict[str, Any] = {}
    for f in fields(section):
        value = getattr(section, f.name)
        if isinstance(value, ScoringWeights):
            value = _section_to_dict(value)
        elif isinstance(value, tuple):
            value = list(value)
        out[f.name] = value
    return out


def _build_section(cls: type, data: Optional[dict], name: str) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(
            f"Unknown keys in section '{name}': {sorted(unknown)}.  "
            f"Valid: {sorted(known)}"
        )
    kwargs = dict(data)
    if "weights" in kwargs:
        kwargs["weights"] = _build_section(ScoringWeights, kwargs["weights"], f"{name}.weights")
    for key in ("scales", "ratios"):
        if key in kwargs:
            kwargs[key] = tuple(float(v) for v in kwargs[key])
    return cls(**kwargs)


def engine_config_from_dict(data: Optional[dict]) -> EngineConfig:
    """Build an EngineConfig from a (possibly partial) mapping."""
    data = data or {}
    sections = {"beam", "flexible_plan", "selector", "timeout_seconds"}
    unknown = set(data) - sections
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}.  Valid: {sorted(sections)}")
    timeout = float(data.get("timeout_seconds", EngineConfig.timeout_seconds))
    if timeout <= 0:
        raise ValueError(f"timeout_seconds must be positive, got {timeout}")
    return EngineConfig(
        beam=_build_section(BeamConfig, data.get("beam"), "beam"),
        flexible_plan=_build_section(FlexiblePlanConfig, data.get("flexible_plan"), "flexible_plan"),
        selector=_build_section(SelectorConfig, data.get("selector"), "selector"),
        timeout_seconds=timeout,
    )


def load_engine_config(path: str) -> EngineConfig:
    """Load tuning overrides from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return engine_config_from_dict(data)
