import asyncio
import json
from types import SimpleNamespace

import pytest

from services.insight_service import (
    InsightService,
    InsightServiceError,
    create_insight_service,
    query_rows,
    summary_rows,
)
from tests.conftest import make_sale


class FakeMessages:
    def __init__(self, text="ok", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


def _service(**kwargs):
    messages = FakeMessages(**kwargs)
    client = SimpleNamespace(messages=messages)
    return InsightService(client=client, language="Arabic", summary_sample=2, query_sample=3), messages


def _records():
    return [make_sale(f"s{n}", f"2025-01-0{n}", customer=(f"c{n}", f"Customer {n}")) for n in range(1, 6)]


def test_summary_rows_send_most_recent_trimmed_records():
    rows = summary_rows(_records(), 2)
    assert [r["date"] for r in rows] == ["2025-01-04", "2025-01-05"]
    assert set(rows[0]) == {"date", "product", "category", "region", "revenue"}


def test_query_rows_include_customer_and_units():
    rows = query_rows(_records(), 3)
    assert len(rows) == 3
    assert rows[-1]["customerName"] == "Customer 5"
    assert rows[-1]["unitsSold"] == 1


def test_summarize_calls_claude():
    service, messages = _service(text="  Electronics lead.  ")
    assert asyncio.run(service.summarize(_records())) == "Electronics lead."
    call = messages.calls[0]
    assert "Arabic" in call["system"]
    payload = call["messages"][0]["content"]
    assert json.loads(payload.split("\n", 1)[1])[0]["date"] == "2025-01-04"


def test_answer_query_includes_question():
    service, messages = _service(text="Riyadh.")
    assert asyncio.run(service.answer_query(_records(), "best region?")) == "Riyadh."
    assert '"best region?"' in messages.calls[0]["messages"][0]["content"]


def test_api_failure_is_wrapped():
    service, _ = _service(error=ConnectionError("offline"))
    with pytest.raises(InsightServiceError, match="offline"):
        asyncio.run(service.summarize(_records()))


def test_empty_answer_is_an_error():
    service, _ = _service(text="   ")
    with pytest.raises(InsightServiceError):
        asyncio.run(service.answer_query(_records(), "?"))


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(ValueError):
        InsightService()
    assert create_insight_service({}) is None


def test_create_from_config(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    service = create_insight_service({"model": "claude-test", "summary_sample": 10, "language": "French"})
    assert service.model == "claude-test"
    assert service.summary_sample == 10
    assert service.language == "French"
