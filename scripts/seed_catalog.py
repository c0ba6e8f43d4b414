"""Seed a development database with a few categories and products."""

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.db import get_engine, session_scope
from app.core.database_init import init_database_schema
from app.core.logging import configure_logging
from app.core.storage import get_blob_store
from app.services import CategoryService, ProductService

SAMPLE_CATALOG = {
    "Electronics": [
        ("Desk Lamp", "LED desk lamp with adjustable arm", "19.99"),
        ("USB-C Charger", "65W fast charger", "34.50"),
    ],
    "Books": [
        ("Field Notes", "Pocket notebook, pack of three", "12.00"),
    ],
    "Kitchen": [
        ("Chef Knife", "20 cm stainless steel chef knife", "49.90"),
        ("Cutting Board", "Bamboo cutting board", "15.25"),
    ],
}


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--create-schema", action="store_true", help="create missing tables first")
    args = parser.parse_args()

    configure_logging()
    if args.create_schema:
        init_database_schema(get_engine())

    storage = get_blob_store()
    with session_scope() as session:
        categories = CategoryService(session, storage).bulk_create_categories(
            {"categories": [{"name": name} for name in SAMPLE_CATALOG]}
        )
        products = [
            {"name": name, "description": description, "price": price, "category_id": category.id}
            for category in categories
            for name, description, price in SAMPLE_CATALOG[category.name]
        ]
        created = ProductService(session, storage).bulk_create_products({"products": products})
    print(f"Seeded {len(categories)} categories and {len(created)} products")


if __name__ == "__main__":
    main()
