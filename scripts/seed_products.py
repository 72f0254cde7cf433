import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from storefront import close_store, create_app  # noqa: E402
from storefront.services.product_repository import get_product_repository  # noqa: E402

# (name, size, price) のデモデータ
PRODUCTS = [
    ("Widget", "M", "9.99"),
    ("Gadget", "L", "24.50"),
    ("Gizmo", "S", "4.75"),
]


def main():
    app = create_app()
    with app.app_context():
        repo = get_product_repository()
        if repo.list_products():
            print("[INFO] products already present, nothing to seed")
        else:
            for name, size, price in PRODUCTS:
                repo.create_product(name, size, price)
            print(f"[INFO] seeded {len(PRODUCTS)} products")
    close_store(app)


if __name__ == "__main__":
    main()
