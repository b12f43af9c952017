from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional
import logging

from app.config import Settings, get_settings
from app.models.product import Product

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Largest value a Numeric(10, 2) price column can hold
MAX_PRICE = Decimal("99999999.99")


@dataclass(frozen=True)
class PriceAdjustmentConfig:
    """
    Thresholds and rates for the stock-driven price rule.

    Attributes:
        low_stock_threshold: At or below this stock level the price goes up
        high_stock_threshold: At or above this stock level the price goes down
        low_stock_increase: Fractional increase for low stock (0.10 = 10%)
        high_stock_decrease: Fractional decrease for high stock (0.05 = 5%)
    """
    low_stock_threshold: int = 10
    high_stock_threshold: int = 100
    low_stock_increase: Decimal = Decimal("0.10")
    high_stock_decrease: Decimal = Decimal("0.05")

    def __post_init__(self):
        if self.low_stock_threshold >= self.high_stock_threshold:
            raise ValueError("low_stock_threshold must be lower than high_stock_threshold")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PriceAdjustmentConfig":
        settings = settings or get_settings()
        return cls(
            low_stock_threshold=settings.PRICE_LOW_STOCK_THRESHOLD,
            high_stock_threshold=settings.PRICE_HIGH_STOCK_THRESHOLD,
            low_stock_increase=Decimal(settings.PRICE_LOW_STOCK_INCREASE),
            high_stock_decrease=Decimal(settings.PRICE_HIGH_STOCK_DECREASE),
        )


def parse_stock_quantity(value: Any) -> int:
    """
    Normalize a raw stock value into a non-negative integer.

    Integers, floats and numeric strings are accepted ("10", " 100 ", "12.7").
    Fractions truncate toward zero, negative values clamp to 0 and anything
    that is not a number is treated as 0.
    """
    if value is None or isinstance(value, bool):
        return 0

    try:
        stock = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        logger.warning(f"Unparseable stock quantity {value!r}, treating as 0")
        return 0

    return max(stock, 0)


def _parse_price(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not price.is_finite():
        return None
    return price


class PriceAdjustmentService:
    """
    Stock-driven price adjustment rule.

    Policy (first match wins):
    1. stock <= low threshold  -> price * (1 + increase)
    2. stock >= high threshold -> price * (1 - decrease)
    3. otherwise               -> price unchanged

    A price that is absent, not numeric or negative is returned as given.
    """

    def __init__(self, config: Optional[PriceAdjustmentConfig] = None):
        self.config = config or PriceAdjustmentConfig()

    def adjust(self, price: Any, stock_quantity: Any) -> Any:
        """
        Compute the adjusted price for a given stock level.

        Args:
            price: Current price (Decimal, int, float or numeric string)
            stock_quantity: Raw stock value, normalized by parse_stock_quantity

        Returns:
            Adjusted price as an exact Decimal, or the input price untouched
            when it is not a valid non-negative number
        """
        amount = _parse_price(price)
        if amount is None or amount < 0:
            return price

        stock = parse_stock_quantity(stock_quantity)

        if stock <= self.config.low_stock_threshold:
            return amount * (1 + self.config.low_stock_increase)
        if stock >= self.config.high_stock_threshold:
            return amount * (1 - self.config.high_stock_decrease)
        return amount

    def adjust_product(self, product: Product) -> Product:
        """
        Apply the rule to a product in place.

        The adjusted price is rounded to cents; persisting the product is
        left to the caller.
        """
        adjusted = self.adjust(product.price, product.stock_quantity)
        if isinstance(adjusted, Decimal) and adjusted.is_finite():
            product.price = adjusted.quantize(CENTS, rounding=ROUND_HALF_UP)
        return product
