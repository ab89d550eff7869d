"""REST controller for the product resource."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from product_api.config import ProductsConfig
from product_api.models import Product, ProductDeleted, ProductFields
from product_api.services import ProductNotFoundError, ProductStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Product"])


def get_product_store(request: Request) -> ProductStore:
    """Return the store opened by the application lifespan."""
    return request.app.state.product_store


def get_products_config(request: Request) -> ProductsConfig:
    return request.app.state.config.products


def _found(product: Optional[Product], product_id: str, config: ProductsConfig) -> Optional[Product]:
    """Apply the configured missing-resource policy."""
    if product is None and not config.missing_as_null:
        raise ProductNotFoundError(product_id)
    return product


@router.get("", response_model=list[Product], summary="Get a list of all products")
async def list_products(store: ProductStore = Depends(get_product_store)) -> list[Product]:
    return await store.list_all()


@router.get("/{product_id}", response_model=Optional[Product], summary="Get a product by ID")
async def get_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store),
    config: ProductsConfig = Depends(get_products_config),
) -> Optional[Product]:
    product = await store.get_by_id(product_id)
    return _found(product, product_id, config)


@router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
)
async def create_product(
    fields: Optional[ProductFields] = None,
    store: ProductStore = Depends(get_product_store),
) -> Product:
    return await store.create(fields if fields is not None else ProductFields())


@router.put("/{product_id}", response_model=Optional[Product], summary="Update a product by ID")
async def update_product(
    product_id: str,
    fields: Optional[ProductFields] = None,
    store: ProductStore = Depends(get_product_store),
    config: ProductsConfig = Depends(get_products_config),
) -> Optional[Product]:
    """
    Merge the fields present in the body into the product.

    Fields left out of the body keep their stored values. Depending on
    ``products.update_returns`` the response is the record after the merge
    (default) or the record as it was before.
    """
    product = await store.update(product_id, fields if fields is not None else ProductFields())
    product = _found(product, product_id, config)
    if product is not None:
        logger.info(f"Update Product Successfully: {product_id}")
    return product


@router.delete("/{product_id}", response_model=ProductDeleted, summary="Delete a product by ID")
async def delete_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store),
    config: ProductsConfig = Depends(get_products_config),
) -> ProductDeleted:
    removed = await store.delete(product_id)
    return ProductDeleted(deleteProduct=_found(removed, product_id, config))
