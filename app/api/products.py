from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import (
    can_create_product,
    can_list_products,
    enforce_rate_limit,
    product_for,
)
from app.config import get_settings
from app.database import get_db
from app.models.product import Product
from app.api.errors import VALIDATION_MESSAGE
from app.services.product_service import ProductService, PriceOutOfRangeError
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from app.utils.responses import ApiResponse

settings = get_settings()

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    dependencies=[Depends(enforce_rate_limit)],
)


def _serialize(product: Product) -> dict:
    return ProductResponse.model_validate(product).model_dump(mode="json")


def _price_out_of_range(error: PriceOutOfRangeError):
    return ApiResponse.error(VALIDATION_MESSAGE, 422, errors={"price": [str(error)]})


@router.get(
    "/",
    summary="List all products",
    description="Get a paginated list of all products."
)
def list_products(
    page: int = Query(1, ge=1, le=settings.MAX_PAGE, description="Page number"),
    per_page: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"
    ),
    _=Depends(can_list_products),
    db: Session = Depends(get_db)
):
    """Get paginated list of products, newest first."""
    service = ProductService(db)
    result = service.get_paginated(page, per_page)
    result.items = [_serialize(p) for p in result.items]

    return ApiResponse.paginate(result, "Products retrieved successfully")


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new product. The price is adjusted from the stock level before saving."
)
def create_product(
    product_data: ProductCreate,
    _=Depends(can_create_product),
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Product name (required, max 255 characters)
    - **description**: Product description (optional, max 500 characters)
    - **price**: Base price, must be non-negative (required)
    - **stock_quantity**: Stock level, must be non-negative (required)

    Stock of 10 or less raises the price by 10%, stock of 100 or more
    lowers it by 5%.
    """
    service = ProductService(db)
    try:
        product = service.create(product_data)
    except PriceOutOfRangeError as e:
        return _price_out_of_range(e)
    return ApiResponse.success(_serialize(product), "Product created successfully", 201)


@router.get(
    "/{product_id}",
    summary="Get product by ID",
    description="Get detailed information about a specific product."
)
def get_product(product: Product = Depends(product_for("view"))):
    """Get a product by ID."""
    return ApiResponse.success(_serialize(product), "Product retrieved successfully")


@router.put(
    "/{product_id}",
    summary="Update a product",
    description="Replace product details. The price is re-adjusted from the new stock level."
)
def update_product(
    product_data: ProductUpdate,
    product: Product = Depends(product_for("update")),
    db: Session = Depends(get_db)
):
    """Update a product."""
    service = ProductService(db)
    try:
        product = service.update(product, product_data)
    except PriceOutOfRangeError as e:
        return _price_out_of_range(e)
    return ApiResponse.success(_serialize(product), "Product updated successfully")


@router.delete(
    "/{product_id}",
    summary="Delete a product",
    description="Delete a product by ID."
)
def delete_product(
    product: Product = Depends(product_for("delete")),
    db: Session = Depends(get_db)
):
    """Delete a product."""
    service = ProductService(db)
    service.delete(product)
    return ApiResponse.success(None, "Product deleted successfully")
