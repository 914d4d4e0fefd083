"""
Dashboard state: the single object the front-ends talk to.

Owns the record store, the view selections (window, sort, page), the insight
panel and the in-flight flags of pending mutations. Every view is derived
from the store on demand: store -> window filter -> {aggregates, table}.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional

from models.aggregates import DEFAULT_TREND_BUCKETS, by_category, by_date_bucket, by_region, summarize
from models.catalog import CATEGORIES, REGIONS
from models.filters import ALL_TIME, WINDOW_CHOICES, apply_window, parse_window
from models.mutations import SaleInput, validate_and_create
from models.sales import ChatMessage, Sale
from models.store import RecordStore
from models.table import PAGE_SIZE, TABLE_SORT_FIELDS, SortState, clamp_page, paginate, sort_records
from services.insight_service import (
    QUERY_FALLBACK,
    SUMMARY_FALLBACK,
    InsightServiceError,
    create_insight_service,
)
from utils.file_manager import JsonFileStorage, load_config

LOG = logging.getLogger(__name__)

NOT_CONFIGURED = "Insight service is not configured. Set ANTHROPIC_API_KEY to enable it."


class MutationError(RuntimeError):
    """A validated add/delete could not be written to storage."""


class Dashboard:
    def __init__(self, store: RecordStore, insights=None, page_size: int = PAGE_SIZE,
                 trend_buckets: int = DEFAULT_TREND_BUCKETS, window=ALL_TIME,
                 delay: Optional[Callable[[], Awaitable[None]]] = None,
                 latency_seconds: float = 0.5, today: Optional[date] = None):
        self.store = store
        self.insights = insights
        self.page_size = page_size
        self.trend_buckets = trend_buckets
        self.window = parse_window(window)
        self.sort = SortState()
        self.page = 1
        self._today = today
        self._delay = delay or (lambda: asyncio.sleep(latency_seconds))

        self.insight_text = ""
        self.insight_error = ""
        self.insight_stale = True
        self.transcript: List[ChatMessage] = []
        # bumped whenever the transcript is cleared; answers to older questions are dropped
        self._generation = 0
        self._insight_token = 0
        self._insight_loading = False

        self._adding = 0
        self._deleting = 0
        self._answering = 0

    # -------- in-flight state --------
    @property
    def is_adding(self) -> bool:
        return self._adding > 0

    @property
    def is_deleting(self) -> bool:
        return self._deleting > 0

    @property
    def is_answering(self) -> bool:
        return self._answering > 0

    @property
    def is_loading_insight(self) -> bool:
        return self._insight_loading

    def today(self) -> date:
        return self._today or date.today()

    # -------- derived views --------
    def filtered(self) -> List[Sale]:
        return apply_window(self.store.records, self.window, today=self.today())

    def table(self, records: Optional[List[Sale]] = None) -> Dict:
        records = self.filtered() if records is None else records
        self.page = clamp_page(self.page, len(records), self.page_size)
        ordered = sort_records(records, self.sort.field, self.sort.direction)
        rows, pages = paginate(ordered, self.page_size, self.page)
        return {
            "rows": [r.to_dict() for r in rows],
            "page": self.page,
            "totalPages": pages,
            "pageSize": self.page_size,
            "sort": self.sort.to_dict(),
            "sortFields": TABLE_SORT_FIELDS,
        }

    def view(self) -> Dict:
        records = self.filtered()
        return {
            "window": self.window,
            "windowChoices": WINDOW_CHOICES,
            "recordCount": len(records),
            "totalRecords": len(self.store.records),
            "kpis": summarize(records).to_dict(),
            "byRegion": {k: float(v) for k, v in by_region(records).items()},
            "byCategory": by_category(records),
            "revenueTrend": [p.to_dict() for p in by_date_bucket(records, self.trend_buckets)],
            "table": self.table(records),
            "insight": self.insight_state(),
            "mutations": {"adding": self.is_adding, "deleting": self.is_deleting},
            "formOptions": {"categories": CATEGORIES, "regions": REGIONS},
        }

    def insight_state(self) -> Dict:
        return {
            "text": self.insight_text,
            "error": self.insight_error,
            "loading": self.is_loading_insight,
            "answering": self.is_answering,
            "stale": self.insight_stale,
            "transcript": [m.to_dict() for m in self.transcript],
        }

    # -------- view selections --------
    def set_window(self, value):
        self.window = parse_window(value)
        self.page = 1

    def toggle_sort(self, field: str) -> SortState:
        self.sort = self.sort.toggled(field)
        self.page = 1
        return self.sort

    def set_page(self, page: int) -> int:
        self.page = clamp_page(page, len(self.filtered()), self.page_size)
        return self.page

    def next_page(self) -> int:
        return self.set_page(self.page + 1)

    def previous_page(self) -> int:
        return self.set_page(self.page - 1)

    # -------- mutations --------
    def _records_changed(self):
        self.transcript = []
        self._generation += 1
        self.insight_stale = True

    async def add_sale(self, data: SaleInput) -> Sale:
        """Validate, wait out the submission delay, then append. Raises SaleValidationError or MutationError."""
        sale = validate_and_create(data, today=self.today())
        self._adding += 1
        try:
            await self._delay()
            try:
                self.store.append(sale)
            except OSError as e:
                raise MutationError(f"Failed to save sale: {e}") from e
        finally:
            self._adding -= 1
        LOG.info("Added sale %s (%s, %s)", sale.id, sale.product, sale.revenue)
        self._records_changed()
        return sale

    async def delete_sale(self, sale_id: str) -> bool:
        """Remove a sale by id. Returns False when no such sale exists."""
        self._deleting += 1
        try:
            await self._delay()
            try:
                removed = self.store.discard(sale_id)
            except OSError as e:
                raise MutationError(f"Failed to delete sale: {e}") from e
        finally:
            self._deleting -= 1
        if not removed:
            LOG.info("Delete of unknown sale %s ignored", sale_id)
            return False
        LOG.info("Deleted sale %s", sale_id)
        self._records_changed()
        return True

    def reset(self):
        self.store.reset()
        self.page = 1
        self._records_changed()

    # -------- insights --------
    async def refresh_insight(self) -> str:
        """
        Fetch a fresh summary of the current records.

        Each call takes a new token; only the latest issued call may update
        the panel, so a slow stale response never overwrites a newer one.
        """
        self._insight_token += 1
        token = self._insight_token
        self._insight_loading = True
        self.insight_error = ""
        self.transcript = []
        self._generation += 1

        if self.insights is None:
            self.insight_error = NOT_CONFIGURED
            self.insight_text = SUMMARY_FALLBACK
            self._insight_loading = False
            return self.insight_text

        records = self.store.records
        try:
            text = await self.insights.summarize(records)
        except InsightServiceError as e:
            if token == self._insight_token:
                LOG.warning("Insight refresh failed: %s", e)
                self.insight_error = SUMMARY_FALLBACK
                self._insight_loading = False
            return self.insight_text

        if token != self._insight_token:
            LOG.info("Discarding stale insight response %d (latest is %d)", token, self._insight_token)
            return self.insight_text
        self.insight_text = text
        self.insight_stale = False
        self._insight_loading = False
        return text

    async def ask(self, question: str) -> Optional[str]:
        """Ask a free-text question; the answer is appended to the transcript."""
        question = (question or "").strip()
        if not question:
            return None
        generation = self._generation
        self.transcript.append(ChatMessage("user", question))
        self.insight_error = ""

        if self.insights is None:
            self.insight_error = NOT_CONFIGURED
            return None

        self._answering += 1
        try:
            answer = await self.insights.answer_query(self.store.records, question)
        except InsightServiceError as e:
            if generation == self._generation:
                LOG.warning("Insight query failed: %s", e)
                self.insight_error = QUERY_FALLBACK
            return None
        finally:
            self._answering -= 1

        if generation != self._generation:
            LOG.info("Discarding answer to %r, records changed meanwhile", question)
            return None
        self.transcript.append(ChatMessage("assistant", answer))
        return answer


def build_dashboard(cfg: Optional[Dict] = None, storage=None, insights=None) -> Dashboard:
    """Wire the dashboard from config: JSON storage slot, seeded store, Claude insights."""
    cfg = cfg or load_config()
    dash_cfg = cfg["dashboard"]
    store = RecordStore(storage or JsonFileStorage(), seed_count=int(dash_cfg.get("seed_count", 200)))
    store.load()
    if insights is None:
        insights = create_insight_service(cfg.get("insights", {}))
    return Dashboard(
        store,
        insights=insights,
        page_size=int(dash_cfg.get("page_size", PAGE_SIZE)),
        trend_buckets=int(dash_cfg.get("trend_buckets", DEFAULT_TREND_BUCKETS)),
        window=dash_cfg.get("default_window", ALL_TIME),
        latency_seconds=float(dash_cfg.get("mutation_latency_seconds", 0.5)),
    )
