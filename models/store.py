"""
Record store: the ordered sale collection mirrored to one persisted slot.

Every mutation rewrites the whole slot. The in-memory list is swapped only
after the write succeeds, and mutations are serialized by a per-store lock.
"""

import logging
import random
import threading
from datetime import date
from typing import Dict, List, Optional, Protocol

from models.catalog import generate_mock_data
from models.sales import Sale

LOG = logging.getLogger(__name__)

DEFAULT_SEED_COUNT = 200


class Storage(Protocol):
    def load(self) -> Optional[List[Dict]]: ...

    def save(self, rows: List[Dict]) -> None: ...


def _by_date(records: List[Sale]) -> List[Sale]:
    return sorted(records, key=lambda s: s.date)


class RecordStore:
    def __init__(self, storage: Storage, seed_count: int = DEFAULT_SEED_COUNT,
                 today: Optional[date] = None, rng: Optional[random.Random] = None):
        self.storage = storage
        self.seed_count = seed_count
        self._today = today
        self._rng = rng
        self._records: List[Sale] = []
        # mutators run on Flask worker threads; each read-modify-write holds this
        self._lock = threading.Lock()

    @property
    def records(self) -> List[Sale]:
        return list(self._records)

    def _seed(self) -> List[Sale]:
        return generate_mock_data(self.seed_count, today=self._today, rng=self._rng)

    def load(self) -> List[Sale]:
        """Load the persisted collection, seeding it on first run."""
        try:
            rows = self.storage.load()
        except ValueError as e:
            LOG.warning("Stored sales could not be read, using generated data: %s", e)
            self._records = self._seed()
            return self.records

        if rows is None:
            LOG.info("No stored sales found, seeding %d records", self.seed_count)
            seeded = self._seed()
            self.persist(seeded)
            return self.records

        try:
            self._records = [Sale.from_dict(row) for row in rows]
        except ValueError as e:
            LOG.warning("Stored sales could not be parsed, using generated data: %s", e)
            self._records = self._seed()
        return self.records

    def persist(self, records: List[Sale]):
        with self._lock:
            self._write(records)

    def _write(self, records: List[Sale]):
        self.storage.save([r.to_dict() for r in records])
        self._records = list(records)

    def append(self, record: Sale) -> List[Sale]:
        with self._lock:
            if any(r.id == record.id for r in self._records):
                raise ValueError(f"Duplicate sale id: {record.id}")
            self._write(_by_date(self._records + [record]))
            return list(self._records)

    def remove(self, sale_id: str) -> List[Sale]:
        self.discard(sale_id)
        return self.records

    def discard(self, sale_id: str) -> bool:
        """Drop the sale with this id. Returns False, writing nothing, when it is absent."""
        with self._lock:
            remaining = [r for r in self._records if r.id != sale_id]
            if len(remaining) == len(self._records):
                return False
            self._write(remaining)
            return True

    def reset(self) -> List[Sale]:
        seeded = self._seed()
        with self._lock:
            self._write(seeded)
            return list(self._records)
