from storefront import db
from storefront.models.product import Product

__all__ = [
    "Product",
]
