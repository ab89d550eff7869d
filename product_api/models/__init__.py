"""Data models module."""

from product_api.models.product import Product, ProductDeleted, ProductFields

__all__ = ["Product", "ProductDeleted", "ProductFields"]
