from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Optional
import logging

from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.price_adjustment import MAX_PRICE, PriceAdjustmentService, PriceAdjustmentConfig
from app.utils.pagination import Page

logger = logging.getLogger(__name__)


class ProductNotFoundError(Exception):
    """Exception raised when the requested product doesn't exist."""
    pass


class PriceOutOfRangeError(Exception):
    """Exception raised when the adjusted price no longer fits the price column."""
    pass


class ProductService:
    """
    Service class for Product CRUD operations.

    Every write goes through the stock-driven price rule before it is
    committed, so the stored price always reflects the stored stock level.
    """

    def __init__(self, db: Session, pricing: Optional[PriceAdjustmentService] = None):
        self.db = db
        self.pricing = pricing or PriceAdjustmentService(PriceAdjustmentConfig.from_settings())

    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product with an adjusted price.

        Args:
            product_data: Validated product data

        Returns:
            Created product instance
        """
        product = Product(
            name=product_data.name,
            description=product_data.description,
            price=Decimal(str(product_data.price)),
            stock_quantity=product_data.stock_quantity,
        )
        self._apply_pricing(product)

        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)

        logger.info(
            f"Product #{product.id} created (stock={product.stock_quantity}, price={product.price})"
        )
        return product

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get a product by ID."""
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_or_fail(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        product = self.get_by_id(product_id)
        if not product:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")
        return product

    def get_paginated(self, page: int = 1, per_page: int = 10) -> Page:
        """
        Get a page of products, newest first.

        Args:
            page: Page number (1-indexed)
            per_page: Number of items per page

        Returns:
            Page holding the products and the total count
        """
        query = self.db.query(Product)
        total = query.count()

        result = Page(page=page, per_page=per_page, total=total)
        result.items = (
            query.order_by(Product.id.desc())
            .offset(result.offset)
            .limit(per_page)
            .all()
        )
        return result

    def update(self, product: Product, product_data: ProductUpdate) -> Product:
        """
        Replace a product's fields and re-apply the price rule.

        Args:
            product: Product to update
            product_data: Validated replacement data

        Returns:
            Updated product
        """
        product.name = product_data.name
        product.description = product_data.description
        product.price = Decimal(str(product_data.price))
        product.stock_quantity = product_data.stock_quantity
        try:
            self._apply_pricing(product)
        except PriceOutOfRangeError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(product)

        logger.info(
            f"Product #{product.id} updated (stock={product.stock_quantity}, price={product.price})"
        )
        return product

    def _apply_pricing(self, product: Product) -> None:
        """
        Run the price rule on a product.

        Raises:
            PriceOutOfRangeError: If the adjusted price exceeds MAX_PRICE
        """
        self.pricing.adjust_product(product)
        if product.price > MAX_PRICE:
            raise PriceOutOfRangeError(
                f"The adjusted price may not be greater than {MAX_PRICE}."
            )

    def delete(self, product: Product) -> None:
        """Delete a product permanently."""
        product_id = product.id
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Product #{product_id} deleted")
