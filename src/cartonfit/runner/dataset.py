"""Sample product generation for demos and experiments."""

import random
from typing import List, Optional, Tuple

from cartonfit.config import Product


# Typical retail product sizes (width, depth, height) in cm.
PRESET_SIZES: List[Tuple[int, int, int]] = [
    (12, 8, 2),     # book
    (18, 12, 8),    # shaver
    (16, 8, 6),     # phone box
    (8, 8, 10),     # mug
    (20, 15, 5),    # headphone box
    (25, 20, 10),   # toy / shoes
    (14, 14, 14),   # cube product
    (22, 15, 3),    # tablet
    (10, 7, 3),     # powerbank
]

NAMES = ["Smart Watch", "Shoes", "Mug", "Tablet", "Phone", "Headphones",
         "Book", "Shaver", "Powerbank", "Toy"]
BRANDS = ["Nova", "ZenTech", "Aurora", "Vektor", "Orion", "Nimbus",
          "Apex", "Polar", "Atlas", "Vertex"]


def generate_products(count: int = 10, seed: Optional[int] = None) -> List[Product]:
    """
    Generate random products from the preset size table.

    Each dimension gets a jitter of -1, 0 or +1 cm, with widths and depths
    floored at 3 cm and heights at 2 cm.

    Args:
        count: Number of products to generate
        seed: Random seed for reproducibility (default: None)

    Returns:
        List of Product objects with ids ``p-0001``, ``p-0002``, ...
    """
    rng = random.Random(seed)
    products = []
    for i in range(count):
        w, d, h = rng.choice(PRESET_SIZES)
        width = max(3, w + rng.randint(-1, 1))
        depth = max(3, d + rng.randint(-1, 1))
        height = max(2, h + rng.randint(-1, 1))

        name = f"{rng.choice(BRANDS)} {rng.choice(NAMES)}"
        sku = f"SKU-{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}"
        barcode = "".join(str(rng.randint(0, 9)) for _ in range(13))

        products.append(Product(
            id=f"p-{i + 1:04d}",
            width=float(width), depth=float(depth), height=float(height),
            name=name, sku=sku, barcode=barcode,
        ))

    return products
