import asyncio
import time
from datetime import date
from decimal import Decimal

import pytest

from models.sales import Customer, Sale
from services.insight_service import InsightServiceError

TODAY = date(2025, 6, 30)


def make_sale(sale_id, day, revenue="100", units=1, product="Laptop Pro", category="Electronics",
              region="Riyadh", customer=("c1", "Ahmed")):
    return Sale(
        id=sale_id,
        date=date.fromisoformat(day) if isinstance(day, str) else day,
        product=product,
        category=category,
        region=region,
        revenue=Decimal(revenue),
        units_sold=units,
        customer=Customer(*customer),
    )


class MemoryStorage:
    """In-memory storage slot; set `fail` to make writes raise OSError, `latency` to slow them down."""

    def __init__(self, rows=None, latency=0):
        self.rows = rows
        self.saves = 0
        self.fail = False
        self.latency = latency

    def load(self):
        return None if self.rows is None else list(self.rows)

    def save(self, rows):
        if self.fail:
            raise OSError("disk full")
        if self.latency:
            time.sleep(self.latency)
        self.saves += 1
        self.rows = list(rows)


class FakeInsights:
    """Insight service stand-in; each call waits on its own gate if one is queued."""

    def __init__(self, text="Electronics lead revenue.", answer="Riyadh sells most.", error=None):
        self.text = text
        self.answer = answer
        self.error = error
        self.gates = []
        self.questions = []

    async def _wait(self):
        if self.gates:
            gate, value = self.gates.pop(0)
            await gate.wait()
            return value
        return None

    async def summarize(self, records):
        value = await self._wait()
        if self.error:
            raise InsightServiceError(self.error)
        return value or self.text

    async def answer_query(self, records, question):
        self.questions.append(question)
        value = await self._wait()
        if self.error:
            raise InsightServiceError(self.error)
        return value or self.answer


async def no_delay():
    await asyncio.sleep(0)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    import utils.file_manager as fm
    monkeypatch.setattr(fm, "_DATA_DIR", str(tmp_path / "data"))
    fm.ensure_defaults()
    return tmp_path / "data"
