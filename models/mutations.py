"""
Validation and construction of new sale records from form input.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional
from uuid import uuid4

from models.sales import Customer, Sale

_CENTS = Decimal("0.01")


class SaleValidationError(ValueError):
    """Form input that cannot become a sale record."""


@dataclass(frozen=True)
class SaleInput:
    category: str
    product: str
    region: str
    customer_name: str
    units_sold: int = 1
    price: Decimal = Decimal(100)
    date: date = field(default_factory=date.today)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SaleInput":
        """Build from a JSON form body (camelCase or snake_case keys)."""
        def pick(*names, default=None):
            for n in names:
                if n in data and data[n] is not None:
                    return data[n]
            return default

        try:
            units = int(pick("unitsSold", "units_sold", default=1))
        except (TypeError, ValueError):
            raise SaleValidationError("Units sold must be a whole number.")
        try:
            price = Decimal(str(pick("price", default=100)))
        except InvalidOperation:
            raise SaleValidationError("Price must be a number.")
        if not price.is_finite():
            raise SaleValidationError("Price must be a number.")
        raw_date = pick("date")
        try:
            sale_date = date.fromisoformat(str(raw_date)) if raw_date else date.today()
        except ValueError:
            raise SaleValidationError(f"Invalid date: {raw_date!r}. Use YYYY-MM-DD.")

        return cls(
            category=str(pick("category", default="")),
            product=str(pick("product", default="")),
            region=str(pick("region", default="")),
            customer_name=str(pick("customerName", "customer_name", default="")),
            units_sold=units,
            price=price,
            date=sale_date,
        )


def validate_and_create(data: SaleInput, today: Optional[date] = None) -> Sale:
    """
    Validate form input and build a new Sale with fresh sale and customer ids.

    Raises:
        SaleValidationError: describing the first rule the input breaks.
    """
    today = today or date.today()
    category = data.category.strip()
    product = data.product.strip()
    region = data.region.strip()
    customer_name = data.customer_name.strip()

    if not (category and product and region and customer_name):
        raise SaleValidationError("Please fill in all required fields: category, product, region and customer name.")
    if data.units_sold <= 0 or data.price < 0:
        raise SaleValidationError("Units sold must be positive and price must not be negative.")
    if data.date > today:
        raise SaleValidationError(f"Sale date {data.date.isoformat()} is in the future.")

    try:
        revenue = (Decimal(data.units_sold) * Decimal(data.price)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        # quantize fails once the amount needs more digits than the context precision
        raise SaleValidationError("Price is too large.") from e
    return Sale(
        id=f"sale_{uuid4().hex}",
        date=data.date,
        product=product,
        category=category,
        region=region,
        revenue=revenue,
        units_sold=data.units_sold,
        customer=Customer(id=f"cust_{uuid4().hex}", name=customer_name),
    )
