"""Product models for the document store and the HTTP contract."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProductFields(BaseModel):
    """Caller-supplied product fields.

    Used as the request body for both create and update. Every field is
    optional; on update only the fields present in the body are merged.
    Numbers sent for text fields are stored as text; ``prod_id`` accepts
    any JSON number.
    """

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "prod_name": "Product A",
                "prod_price": "10000",
                "prod_id": 1,
                "prod_desc": "Description A",
            }
        },
    )

    prod_name: Optional[str] = None
    prod_price: Optional[str] = None
    prod_id: Optional[Union[int, float]] = None
    prod_desc: Optional[str] = None


class Product(ProductFields):
    """A stored product record."""

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "id": "3f8e4c1a-2b6d-4e1f-9a7c-5d2e8b0f1c34",
                "prod_name": "Product A",
                "prod_price": "10000",
                "prod_id": 1,
                "prod_desc": "Description A",
                "updated_time": "2023-08-16T07:50:27.630000Z",
            }
        },
    )

    id: str = Field(..., description="Store-assigned identifier")
    updated_time: datetime = Field(..., description="Creation time; not refreshed on update")


class ProductDeleted(BaseModel):
    """Response body of a product deletion."""

    msg: str = "Product delete"
    deleteProduct: Optional[Product] = None
