# backend/schemas/product.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _required_text(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(..., description="Product name")
    description: str = ""
    reference: str = Field(..., description="Unique part reference")
    category: str = ""
    buying_price: float = Field(default=0.0, ge=0)
    quantity: int = Field(default=0, ge=0)

    @field_validator("name", "reference")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("category")
    @classmethod
    def _strip_category(cls, value: str) -> str:
        return (value or "").strip()


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Full edit of an existing product (every field is sent back by the edit form)
class ProductUpdate(ProductBase):
    pass


# Inline quantity edit
class QuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=0)


# Quick restock of an out-of-stock product
class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0)


# Full product representation
class ProductResponse(ProductBase):
    id: int
    low_stock: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductStats(BaseModel):
    total_products: int
    total_items: int
    total_value: float
    out_of_stock: int
