"""Data schemas for request/result files."""

import json
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from cartonfit.config import Box, PlacedItem, Product


class BoxSchema(BaseModel):
    """Schema for a catalog box."""
    id: str = Field(min_length=1, description="Unique box identifier")
    width: float = Field(gt=0, description="Inner width (x) in cm")
    depth: float = Field(gt=0, description="Inner depth (z) in cm")
    height: float = Field(gt=0, description="Inner height (y) in cm")

    def to_box(self) -> Box:
        return Box(id=self.id, width=self.width, depth=self.depth, height=self.height)


class ProductSchema(BaseModel):
    """Schema for a product line; ``quantity`` expands into identical units."""
    id: str = Field(min_length=1, description="Unique product identifier")
    width: float = Field(gt=0, description="Width in cm")
    depth: float = Field(gt=0, description="Depth in cm")
    height: float = Field(gt=0, description="Height in cm")
    name: str = Field("", description="Display name")
    sku: str = Field("", description="Stock keeping unit")
    barcode: str = Field("", description="Barcode")
    quantity: int = Field(1, ge=1, description="Number of identical units")

    def unit_ids(self) -> List[str]:
        if self.quantity == 1:
            return [self.id]
        return [f"{self.id}-{k + 1}" for k in range(self.quantity)]

    def to_products(self) -> List[Product]:
        return [
            Product(id=pid, width=self.width, depth=self.depth, height=self.height,
                    name=self.name, sku=self.sku, barcode=self.barcode)
            for pid in self.unit_ids()
        ]


class PackingRequestSchema(BaseModel):
    """Schema for a box selection request."""
    boxes: List[BoxSchema] = Field(min_length=1, description="Candidate box catalog")
    products: List[ProductSchema] = Field(default_factory=list,
                                          description="Products to pack")

    @model_validator(mode="after")
    def _unique_ids(self) -> "PackingRequestSchema":
        for label, ids in (("box", [b.id for b in self.boxes]),
                           ("product", [pid for p in self.products for pid in p.unit_ids()])):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            if dupes:
                raise ValueError(f"Duplicate {label} ids: {dupes}")
        return self

    def to_domain(self) -> Tuple[List[Box], List[Product]]:
        boxes = [b.to_box() for b in self.boxes]
        products: List[Product] = []
        for p in self.products:
            products.extend(p.to_products())
        return boxes, products


class PlacementSchema(BaseModel):
    """Schema for one step of the placement sequence."""
    id: str
    step: int = Field(ge=0)
    product_id: str
    position: Tuple[float, float, float]
    size: Tuple[float, float, float] = Field(description="(w, d, h)")
    color: str
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @classmethod
    def from_item(cls, item: PlacedItem) -> "PlacementSchema":
        return cls(id=item.id, step=item.step, product_id=item.product_id,
                   position=(item.x, item.y, item.z), size=item.size, rotation=item.rotation,
                   color=item.color)


class SelectionResultSchema(BaseModel):
    """Schema for a selection outcome; ``box`` is ``None`` when nothing fits."""
    box: Optional[BoxSchema] = None
    strategy: Optional[str] = None
    fill_rate: float = Field(0.0, ge=0, le=1, description="Used volume / box volume")
    placements: List[PlacementSchema] = Field(default_factory=list)


def load_request(path: Union[str, Path]) -> PackingRequestSchema:
    """Read and validate a JSON or YAML request file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return PackingRequestSchema.model_validate(data)
