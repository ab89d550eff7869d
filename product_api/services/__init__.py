"""Service layer."""

from product_api.services.product_store import (
    MalformedIdentifierError,
    ProductNotFoundError,
    ProductStore,
    ProductStoreError,
    ProductValidationError,
    StoreUnavailableError,
    parse_product_id,
    validate_price,
)

__all__ = [
    "MalformedIdentifierError",
    "ProductNotFoundError",
    "ProductStore",
    "ProductStoreError",
    "ProductValidationError",
    "StoreUnavailableError",
    "parse_product_id",
    "validate_price",
]
