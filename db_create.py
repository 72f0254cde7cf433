print("db_create.py start")
import traceback
from storefront import close_store, create_app, db

try:
    app = create_app({"STOREFRONT_CREATE_SCHEMA": False})
    with app.app_context():
        from storefront.models.product import Product  # noqa: F401
        db.create_all()
        print("Database and tables created successfully.")
    close_store(app)
except Exception:
    print("=== Exception occurred ===")
    traceback.print_exc()
