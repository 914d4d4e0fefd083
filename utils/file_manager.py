import copy
import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional

LOG = logging.getLogger(__name__)

_DATA_DIR = os.environ.get(
    "SALES_DASHBOARD_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"),
)
_FILE_LOCK = threading.Lock()

SALES_FILE = "sales.json"
CONFIG_FILE = "config.json"

DEFAULTS = {
    "config.json": {
        "dashboard": {
            "page_size": 5,
            "seed_count": 200,
            "trend_buckets": 30,
            "default_window": "all",
            "mutation_latency_seconds": 0.5,
        },
        "insights": {
            "model": "claude-sonnet-4-6",
            "max_tokens": 1000,
            "summary_sample": 50,
            "query_sample": 100,
            "language": "English",
        },
    }
}


def data_path(filename: str) -> str:
    os.makedirs(_DATA_DIR, exist_ok=True)
    return os.path.join(_DATA_DIR, filename)

def _atomic_write(path: str, data_obj):
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data_obj, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

def ensure_defaults():
    os.makedirs(_DATA_DIR, exist_ok=True)
    for fname, default in DEFAULTS.items():
        path = data_path(fname)
        if not os.path.exists(path):
            with _FILE_LOCK:
                _atomic_write(path, default)

def read_json(filename: str):
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

def write_json(filename: str, obj):
    path = data_path(filename)
    with _FILE_LOCK:
        _atomic_write(path, obj)

def load_config() -> Dict[str, Any]:
    """Read config.json, filling any missing section keys from DEFAULTS."""
    cfg = copy.deepcopy(DEFAULTS["config.json"])
    try:
        stored = read_json(CONFIG_FILE)
    except FileNotFoundError:
        return cfg
    for section, values in stored.items():
        if isinstance(values, dict) and isinstance(cfg.get(section), dict):
            cfg[section].update(values)
        else:
            cfg[section] = values
    return cfg


class JsonFileStorage:
    """
    Persisted slot holding the whole record collection as one JSON array.

    `load` returns None when the slot has never been written. A slot that
    exists but cannot be read or decoded raises ValueError; the caller
    decides how to recover.
    """

    def __init__(self, filename: str = SALES_FILE):
        self.filename = filename

    def load(self) -> Optional[List[Dict]]:
        path = data_path(self.filename)
        if not os.path.exists(path):
            return None
        try:
            data = read_json(self.filename)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Unreadable storage slot {self.filename}: {e}") from e
        if not isinstance(data, list):
            raise ValueError(f"Storage slot {self.filename} does not hold a list")
        return data

    def save(self, rows: List[Dict]):
        write_json(self.filename, rows)
