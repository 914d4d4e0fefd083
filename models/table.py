import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from models.sales import Sale

ASCENDING = "ascending"
DESCENDING = "descending"

PAGE_SIZE = 5

SORT_KEYS: Dict[str, Callable[[Sale], object]] = {
    "product": lambda s: s.product,
    "customer": lambda s: s.customer.name,
    "region": lambda s: s.region,
    "date": lambda s: s.date,
    "revenue": lambda s: s.revenue,
    "category": lambda s: s.category,
    "unitsSold": lambda s: s.units_sold,
}

# columns the table header exposes
TABLE_SORT_FIELDS = ["product", "customer", "region", "date", "revenue"]


def sort_records(records: Sequence[Sale], field: str, direction: str = ASCENDING) -> List[Sale]:
    """Stable sort; records with equal keys keep their relative order in either direction."""
    if field not in SORT_KEYS:
        raise ValueError(f"Unknown sort field: {field}")
    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"Unknown sort direction: {direction}")
    return sorted(records, key=SORT_KEYS[field], reverse=direction == DESCENDING)


@dataclass(frozen=True)
class SortState:
    field: str = "date"
    direction: str = DESCENDING

    def toggled(self, field: str) -> "SortState":
        if field not in SORT_KEYS:
            raise ValueError(f"Unknown sort field: {field}")
        if field == self.field and self.direction == ASCENDING:
            return SortState(field, DESCENDING)
        return SortState(field, ASCENDING)

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "direction": self.direction}


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, count: int, page_size: int = PAGE_SIZE) -> int:
    return min(max(int(page), 1), total_pages(count, page_size))


def paginate(seq: Sequence, page_size: int = PAGE_SIZE, page: int = 1) -> Tuple[list, int]:
    """Return (items on the page, total page count); out-of-range pages are clamped."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    pages = total_pages(len(seq), page_size)
    page = clamp_page(page, len(seq), page_size)
    start = (page - 1) * page_size
    return list(seq[start:start + page_size]), pages
