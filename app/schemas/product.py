from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, max_length=500, description="Product description")
    price: float = Field(
        ..., ge=0, le=99999999.99, allow_inf_nan=False,
        description="Product price (non-negative, at most 99999999.99)"
    )
    stock_quantity: int = Field(..., ge=0, description="Available stock (must be non-negative)")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(ProductBase):
    """Schema for replacing an existing product. Same rules as creation."""
    pass


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
