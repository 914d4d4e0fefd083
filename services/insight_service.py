"""
InsightService - natural-language insights about sales records via Claude.

Two modes:
- summarize: a short bullet-point analysis of recent sales
- answer_query: a plain answer to a free-text question about the sales

Only a trimmed projection of the most recent records is sent: summary mode sends date/product/category/region/revenue, query mode adds the
customer name and units sold.
"""

import json
import logging
import os
from typing import Dict, List, Sequence

import anthropic

from models.sales import Sale

LOG = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-6"

SUMMARY_FALLBACK = "Sorry, we could not generate insights right now."
QUERY_FALLBACK = "Sorry, we could not process your question right now."


class InsightServiceError(RuntimeError):
    """The language-model call failed or returned nothing usable."""


def summary_rows(records: Sequence[Sale], limit: int) -> List[Dict]:
    return [
        {
            "date": r.date.isoformat(),
            "product": r.product,
            "category": r.category,
            "region": r.region,
            "revenue": float(r.revenue),
        }
        for r in list(records)[-limit:]
    ]


def query_rows(records: Sequence[Sale], limit: int) -> List[Dict]:
    return [
        {
            "date": r.date.isoformat(),
            "product": r.product,
            "category": r.category,
            "region": r.region,
            "revenue": float(r.revenue),
            "customerName": r.customer.name,
            "unitsSold": r.units_sold,
        }
        for r in list(records)[-limit:]
    ]


class InsightService:
    """
    Async Claude client producing sales insights.

    Usage:
        service = InsightService()
        text = await service.summarize(records)
        answer = await service.answer_query(records, "which region sells most?")
    """

    def __init__(self, model=DEFAULT_MODEL, max_tokens=1000, language="English",
                 summary_sample=50, query_sample=100, client=None):
        """
        Args:
            model: Claude model to use
            max_tokens: response token cap
            language: language every answer must be written in
            summary_sample / query_sample: how many recent records to send
            client: optional preconfigured anthropic.AsyncAnthropic (or fake)
        """
        if client is None:
            api_key = os.getenv('ANTHROPIC_API_KEY')
            if not api_key or api_key == 'your_api_key_here':
                raise ValueError(
                    "ANTHROPIC_API_KEY environment variable not set. "
                    "Get your key at https://console.anthropic.com/settings/keys"
                )
            client = anthropic.AsyncAnthropic(api_key=api_key)
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.language = language
        self.summary_sample = summary_sample
        self.query_sample = query_sample

    async def call_api(self, system_prompt: str, content: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": content}],
            )
            text = response.content[0].text
        except Exception as e:
            LOG.error("Claude API error: %s", e)
            raise InsightServiceError(f"Claude API error: {str(e)}") from e
        if not text or not text.strip():
            raise InsightServiceError("Claude API returned an empty answer")
        return text.strip()

    def _summary_prompt(self) -> str:
        return f"""You are a professional business intelligence analyst.
Based on the JSON sales data you are given, provide a concise analysis as 3-4 bullet points.
- Identify the top-performing product or category.
- Point out any significant trends in revenue or sales over time.
- Highlight the most profitable region.
- Conclude with one scannable, actionable recommendation for the business manager.

Your entire response MUST be in {self.language}."""

    def _query_prompt(self) -> str:
        return f"""You are a helpful business intelligence assistant.
A user is asking a question about their sales data.
Provide a clear and concise answer based only on the data provided.
Do NOT make up data values.

Your entire response MUST be in {self.language}."""

    async def summarize(self, records: Sequence[Sale]) -> str:
        rows = summary_rows(records, self.summary_sample)
        content = f"Data:\n{json.dumps(rows, ensure_ascii=False)}"
        return await self.call_api(self._summary_prompt(), content)

    async def answer_query(self, records: Sequence[Sale], question: str) -> str:
        rows = query_rows(records, self.query_sample)
        content = (
            f'User\'s Question: "{question}"\n\n'
            f"Sales Data (JSON format):\n{json.dumps(rows, ensure_ascii=False)}"
        )
        return await self.call_api(self._query_prompt(), content)


def create_insight_service(cfg: Dict):
    """Build the service from the `insights` config section; None when no API key is set."""
    try:
        return InsightService(
            model=cfg.get("model", DEFAULT_MODEL),
            max_tokens=int(cfg.get("max_tokens", 1000)),
            language=cfg.get("language", "English"),
            summary_sample=int(cfg.get("summary_sample", 50)),
            query_sample=int(cfg.get("query_sample", 100)),
        )
    except ValueError as e:
        LOG.warning("Insight service disabled: %s", e)
        return None
