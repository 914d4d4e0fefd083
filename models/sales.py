"""
Sale records and their JSON wire form.

The persisted slot stores records with camelCase field names
(id, date, product, category, region, revenue, unitsSold, customer{id,name}).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class Customer:
    id: str
    name: str


@dataclass(frozen=True)
class Sale:
    """
    Immutable record of one sale transaction.

    Invariants:
    - units_sold >= 1
    - revenue >= 0
    """

    id: str
    date: date
    product: str
    category: str
    region: str
    revenue: Decimal
    units_sold: int
    customer: Customer

    def __post_init__(self) -> None:
        if self.units_sold < 1:
            raise ValueError(f"units_sold must be at least 1, got {self.units_sold}")
        if self.revenue < 0:
            raise ValueError(f"revenue must be non-negative, got {self.revenue}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "product": self.product,
            "category": self.category,
            "region": self.region,
            "revenue": float(self.revenue),
            "unitsSold": self.units_sold,
            "customer": {"id": self.customer.id, "name": self.customer.name},
        }

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "Sale":
        """Parse one stored row. Raises ValueError on any malformed field."""
        try:
            customer = row["customer"]
            return cls(
                id=str(row["id"]),
                date=date.fromisoformat(str(row["date"])),
                product=str(row["product"]),
                category=str(row["category"]),
                region=str(row["region"]),
                revenue=Decimal(str(row["revenue"])),
                units_sold=int(row["unitsSold"]),
                customer=Customer(id=str(customer["id"]), name=str(customer["name"])),
            )
        except (KeyError, TypeError, InvalidOperation) as e:
            raise ValueError(f"Malformed sale record: {e!r}") from e


@dataclass(frozen=True)
class ChatMessage:
    sender: str  # "user" or "assistant"
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"sender": self.sender, "text": self.text}
