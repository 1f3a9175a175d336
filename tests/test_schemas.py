"""
Tests for the request/result schemas and the sample product generator.

Run with:
    python -m pytest tests/test_schemas.py -v
"""

import sys
import os
import json
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pydantic import ValidationError

from cartonfit.config import PlacedItem
from cartonfit.io.schemas import (
    PackingRequestSchema,
    PlacementSchema,
    ProductSchema,
    load_request,
)
from cartonfit.runner.dataset import PRESET_SIZES, generate_products


@pytest.fixture
def request_data():
    return {
        "boxes": [{"id": "b1", "width": 20, "depth": 10, "height": 10}],
        "products": [
            {"id": "a", "width": 10, "depth": 10, "height": 10, "name": "Mug"},
            {"id": "b", "width": 5, "depth": 5, "height": 5, "quantity": 3},
        ],
    }


class TestRequestSchema:
    def test_to_domain(self, request_data):
        boxes, products = PackingRequestSchema.model_validate(request_data).to_domain()
        assert boxes[0].id == "b1"
        assert boxes[0].width == 20.0
        assert [p.id for p in products] == ["a", "b-1", "b-2", "b-3"]
        assert products[0].name == "Mug"

    def test_non_positive_dimension_rejected(self, request_data):
        request_data["products"][0]["width"] = 0
        with pytest.raises(ValidationError):
            PackingRequestSchema.model_validate(request_data)

    def test_empty_catalog_rejected(self, request_data):
        request_data["boxes"] = []
        with pytest.raises(ValidationError):
            PackingRequestSchema.model_validate(request_data)

    def test_duplicate_ids_rejected(self, request_data):
        request_data["products"][1]["id"] = "a"
        with pytest.raises(ValidationError, match="Duplicate product ids"):
            PackingRequestSchema.model_validate(request_data)

    def test_products_may_be_empty(self, request_data):
        request_data["products"] = []
        _, products = PackingRequestSchema.model_validate(request_data).to_domain()
        assert products == []

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProductSchema(id="p", width=1, depth=1, height=1, quantity=0)

    def test_load_json_and_yaml(self, tmp_path, request_data):
        json_path = tmp_path / "request.json"
        json_path.write_text(json.dumps(request_data))
        yaml_path = tmp_path / "request.yaml"
        yaml_path.write_text(
            "boxes:\n"
            "  - {id: b1, width: 20, depth: 10, height: 10}\n"
            "products:\n"
            "  - {id: a, width: 10, depth: 10, height: 10}\n"
        )
        assert len(load_request(json_path).products) == 2
        assert load_request(yaml_path).products[0].id == "a"

    def test_placement_from_item(self):
        item = PlacedItem(id="a@0", product_id="a", x=1, y=2, z=3, w=4, d=5, h=6, step=0)
        schema = PlacementSchema.from_item(item)
        assert schema.position == (1, 2, 3)
        assert schema.size == (4, 5, 6)
        assert schema.rotation == (0.0, 0.0, 0.0)
        assert json.loads(schema.model_dump_json())["rotation"] == [0.0, 0.0, 0.0]

    def test_expanded_ids_must_not_clash(self, request_data):
        # "b" with quantity 3 expands to b-1..b-3
        request_data["products"].append({"id": "b-2", "width": 1, "depth": 1, "height": 1})
        with pytest.raises(ValidationError, match="Duplicate product ids"):
            PackingRequestSchema.model_validate(request_data)


class TestGenerateProducts:
    def test_seeded_generation_is_reproducible(self):
        assert generate_products(20, seed=4) == generate_products(20, seed=4)

    def test_sizes_stay_near_presets(self):
        for p in generate_products(50, seed=1):
            assert any(
                abs(p.width - w) <= 1 and abs(p.depth - d) <= 1 and abs(p.height - h) <= 1
                for w, d, h in PRESET_SIZES
            )
            assert p.width >= 3 and p.depth >= 3 and p.height >= 2
            assert len(p.barcode) == 13

    def test_ids_are_unique(self):
        ids = [p.id for p in generate_products(30, seed=2)]
        assert len(set(ids)) == 30
