from .base import Base, TimestampMixin
from .category import Category
from .product import Product

__all__ = [
    "Base",
    "Category",
    "Product",
    "TimestampMixin",
]
