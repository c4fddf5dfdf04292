"""
Sample catalog data and the example query report.

Run `python seed.py` to replace the catalog with the sample products and print
the results of the example queries.
"""
import logging
from typing import Any, Dict, List

from catalog import CatalogStore
from errors import CatalogError

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "iPhone 15 Pro",
        "description": "Latest iPhone with advanced camera system and A17 Pro chip",
        "basePrice": 999,
        "category": "Electronics",
        "brand": "Apple",
        "tags": ["smartphone", "premium", "5g"],
        "variants": [
            {"color": "Titanium Black", "size": "128GB", "stock": 25, "sku": "IP15P-BLK-128",
             "priceModifier": 0, "images": ["iphone_black_1.jpg", "iphone_black_2.jpg"]},
            {"color": "Titanium White", "size": "256GB", "stock": 15, "sku": "IP15P-WHT-256",
             "priceModifier": 100, "images": ["iphone_white_1.jpg", "iphone_white_2.jpg"]},
            {"color": "Titanium Blue", "size": "512GB", "stock": 8, "sku": "IP15P-BLU-512",
             "priceModifier": 200, "images": ["iphone_blue_1.jpg", "iphone_blue_2.jpg"]},
        ],
        "rating": {"average": 4.8, "count": 342},
    },
    {
        "name": "Nike Air Max 270",
        "description": "Comfortable running shoes with Air Max cushioning",
        "basePrice": 150,
        "category": "Sports",
        "brand": "Nike",
        "tags": ["shoes", "running", "athletic"],
        "variants": [
            {"color": "Black/White", "size": "US 9", "stock": 45, "sku": "NIKE-AM270-BW-9",
             "priceModifier": 0, "images": ["nike_black_1.jpg"]},
            {"color": "Red/Black", "size": "US 10", "stock": 32, "sku": "NIKE-AM270-RB-10",
             "priceModifier": 0, "images": ["nike_red_1.jpg"]},
            {"color": "Blue/White", "size": "US 11", "stock": 18, "sku": "NIKE-AM270-BW-11",
             "priceModifier": 0, "images": ["nike_blue_1.jpg"]},
            {"color": "Black/White", "size": "US 12", "stock": 0, "sku": "NIKE-AM270-BW-12",
             "priceModifier": 0, "images": ["nike_black_1.jpg"]},
        ],
        "rating": {"average": 4.5, "count": 189},
    },
    {
        "name": "The Great Gatsby",
        "description": "Classic novel by F. Scott Fitzgerald",
        "basePrice": 12.99,
        "category": "Books",
        "brand": "Penguin Classics",
        "tags": ["fiction", "classic", "literature"],
        "variants": [
            {"color": "Paperback", "size": "Standard", "stock": 120, "sku": "BOOK-GG-PB-STD",
             "priceModifier": 0, "images": ["gatsby_paperback.jpg"]},
            {"color": "Hardcover", "size": "Standard", "stock": 45, "sku": "BOOK-GG-HC-STD",
             "priceModifier": 8, "images": ["gatsby_hardcover.jpg"]},
            {"color": "Collector's Edition", "size": "Large", "stock": 15, "sku": "BOOK-GG-CE-LRG",
             "priceModifier": 15, "images": ["gatsby_collector.jpg"]},
        ],
        "rating": {"average": 4.7, "count": 567},
    },
    {
        "name": "Stainless Steel Cookware Set",
        "description": "10-piece stainless steel cookware set for professional cooking",
        "basePrice": 299.99,
        "category": "Home & Kitchen",
        "brand": "KitchenMaster",
        "tags": ["cookware", "stainless steel", "kitchen"],
        "variants": [
            {"color": "Silver", "size": "10-Piece", "stock": 28, "sku": "KITCHEN-SET-SIL-10",
             "priceModifier": 0, "images": ["cookware_silver_1.jpg", "cookware_silver_2.jpg"]},
            {"color": "Black", "size": "10-Piece", "stock": 15, "sku": "KITCHEN-SET-BLK-10",
             "priceModifier": 20, "images": ["cookware_black_1.jpg", "cookware_black_2.jpg"]},
        ],
        "rating": {"average": 4.3, "count": 234},
    },
]


def seed_catalog(store: CatalogStore) -> int:
    """Replace the whole catalog with the sample products."""
    records = store.replace_all(SAMPLE_PRODUCTS)
    logger.info("Seeded %d sample products", len(records))
    return len(records)


def run_queries(store: CatalogStore) -> None:
    print("\nRUNNING E-COMMERCE QUERIES:\n")

    print("1. ALL PRODUCTS:")
    print(f"Total products: {sum(1 for _ in store.find_all())}")

    print("\n2. ELECTRONICS PRODUCTS:")
    for p in store.find_by_category("Electronics"):
        print(f"- {p.name} ({p.brand}) - ${p.base_price}")

    print("\n3. LOW STOCK PRODUCTS (<= 10 units):")
    for p in store.find_low_stock(10):
        low = [v for v in p.variants if v.stock <= 10]
        print(f"- {p.name}: " + ", ".join(f"{v.color} {v.size} ({v.stock})" for v in low))

    print("\n4. PRODUCTS WITH VARIANT DETAILS:")
    for p in store.find_by_category("Sports", active_only=False):
        print(f"- {p.name}:")
        for v in p.variants:
            print(f"  * {v.color} {v.size} - Stock: {v.stock} (SKU: {v.sku})")

    print("\n5. PRODUCTS WITH BLACK VARIANTS:")
    for p in store.find_by_variant_color("black"):
        black = [v for v in p.variants if "black" in v.color.lower() and v.stock > 0]
        print(f"- {p.name}: " + ", ".join(f"{v.size} ({v.stock})" for v in black))

    print("\n6. AVERAGE PRICE BY CATEGORY:")
    for row in store.aggregate_average_price_by_category():
        print(f"- {row.category}: ${row.avg_price:.2f} ({row.product_count} products)")

    print("\n7. PRODUCTS WITH HIGH TOTAL STOCK (> 50 units):")
    for s in store.aggregate_high_total_stock(50):
        print(f"- {s.name} ({s.category}): {s.total_stock} total units")

    print("\n8. UPDATING STOCK FOR A VARIANT:")
    updated = store.update_variant_stock("NIKE-AM270-BW-9", 40)
    print(f"Stock updated: {updated.name}, NIKE-AM270-BW-9 -> 40")

    print("\n9. PRODUCTS WITH TOTAL STOCK:")
    for p in list(store.find_all())[:3]:
        print(f"- {p.name}: {p.total_stock} total units across {len(p.variants)} variants")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    with CatalogStore.connect() as store:
        try:
            store.ensure_indexes()
            seed_catalog(store)
            run_queries(store)
        except CatalogError as e:
            logger.error("Seeding failed: %s", e.message)
            raise SystemExit(1)


if __name__ == "__main__":
    main()
