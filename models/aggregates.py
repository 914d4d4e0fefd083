from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Hashable, List, Sequence

from models.sales import Sale

DEFAULT_TREND_BUCKETS = 30

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

CURRENCY = "$"


def format_currency(value: Decimal, places: int = 2) -> str:
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{CURRENCY}{rounded:,.{places}f}"


def short_date_label(d: date) -> str:
    # independent of the process locale
    return f"{_MONTHS[d.month - 1]} {d.day}"


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: Decimal
    total_units: int
    distinct_customers: int
    avg_sale_value: Decimal

    def to_dict(self) -> Dict:
        return {
            "totalRevenue": float(self.total_revenue),
            "totalUnits": self.total_units,
            "distinctCustomers": self.distinct_customers,
            "avgSaleValue": float(self.avg_sale_value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
            "formatted": {
                "totalRevenue": format_currency(self.total_revenue, places=0),
                "totalUnits": f"{self.total_units:,}",
                "distinctCustomers": f"{self.distinct_customers:,}",
                "avgSaleValue": format_currency(self.avg_sale_value),
            },
        }


@dataclass(frozen=True)
class RevenuePoint:
    date: date
    label: str
    revenue: Decimal

    def to_dict(self) -> Dict:
        return {"date": self.date.isoformat(), "label": self.label, "revenue": float(self.revenue)}


def summarize(records: Sequence[Sale]) -> SalesSummary:
    total_revenue = sum((r.revenue for r in records), Decimal(0))
    count = len(records)
    return SalesSummary(
        total_revenue=total_revenue,
        total_units=sum(r.units_sold for r in records),
        distinct_customers=len({r.customer.id for r in records}),
        avg_sale_value=total_revenue / count if count else Decimal(0),
    )


def group_sum(records: Sequence[Sale], key: Callable[[Sale], Hashable], value: Callable[[Sale], object], zero=0) -> Dict:
    """Ordered map of key -> summed value, keys in first-seen order."""
    groups = {}
    for r in records:
        k = key(r)
        groups[k] = groups.get(k, zero) + value(r)
    return groups


def by_region(records: Sequence[Sale]) -> Dict[str, Decimal]:
    return group_sum(records, lambda r: r.region, lambda r: r.revenue, zero=Decimal(0))


def by_category(records: Sequence[Sale]) -> Dict[str, int]:
    return group_sum(records, lambda r: r.category, lambda r: r.units_sold)


def by_date_bucket(records: Sequence[Sale], limit: int = DEFAULT_TREND_BUCKETS) -> List[RevenuePoint]:
    """Revenue per calendar day, chronological, keeping the most recent `limit` days."""
    per_day = group_sum(records, lambda r: r.date, lambda r: r.revenue, zero=Decimal(0))
    days = sorted(per_day)
    if limit is not None:
        days = days[-limit:] if limit > 0 else []
    return [RevenuePoint(date=d, label=short_date_label(d), revenue=per_day[d]) for d in days]
