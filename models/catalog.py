import random
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from models.sales import Customer, Sale

PRODUCT_CATALOG = [
    {"product": "Laptop Pro", "category": "Electronics"},
    {"product": "Laptop Gamer", "category": "Electronics"},
    {"product": "UltraWide Monitor", "category": "Electronics"},
    {"product": "SmartX Phone", "category": "Phones"},
    {"product": "SmartX Plus Phone", "category": "Phones"},
    {"product": "SoundWave Headphones", "category": "Audio"},
    {"product": "Buds Earphones", "category": "Audio"},
    {"product": "Chrono Watch", "category": "Accessories"},
    {"product": "Vision Camera", "category": "Cameras"},
]

CATEGORIES = list(dict.fromkeys(p["category"] for p in PRODUCT_CATALOG))
REGIONS = ["Riyadh", "Jeddah", "Dammam", "Mecca", "Medina"]

CUSTOMERS = [
    Customer(id="c1", name="Ahmed Al-Mohammed"),
    Customer(id="c2", name="Fatima Al-Ali"),
    Customer(id="c3", name="Khalid Al-Saleh"),
    Customer(id="c4", name="Noura Al-Turki"),
    Customer(id="c5", name="Sara Abdullah"),
]

HISTORY_DAYS = 365
MIN_PRICE = 100
MAX_PRICE = 2000
MAX_UNITS = 10

_CENTS = Decimal("0.01")


def generate_mock_data(count: int, today: Optional[date] = None, rng: Optional[random.Random] = None) -> List[Sale]:
    """Random sales spread over the trailing year, sorted ascending by date."""
    today = today or date.today()
    rng = rng or random.Random()
    data = []
    for i in range(count):
        entry = rng.choice(PRODUCT_CATALOG)
        units = rng.randint(1, MAX_UNITS)
        price = Decimal(str(rng.uniform(MIN_PRICE, MAX_PRICE)))
        data.append(Sale(
            id=f"sale_{i + 1}",
            date=today - timedelta(days=rng.randrange(HISTORY_DAYS)),
            product=entry["product"],
            category=entry["category"],
            region=rng.choice(REGIONS),
            revenue=(units * price).quantize(_CENTS, rounding=ROUND_HALF_UP),
            units_sold=units,
            customer=rng.choice(CUSTOMERS),
        ))
    return sorted(data, key=lambda s: s.date)
