from datetime import date, timedelta
from typing import List, Optional, Union

from models.sales import Sale

Window = Union[int, str]

ALL_TIME = "all"
WINDOW_CHOICES = [7, 30, 90, ALL_TIME]


def parse_window(value) -> Window:
    """Accepts "all", 7, "7" or "7days"; returns "all" or a non-negative int."""
    if value is None or value == ALL_TIME:
        return ALL_TIME
    if isinstance(value, bool):
        raise ValueError(f"Invalid window: {value!r}")
    if isinstance(value, int):
        days = value
    else:
        text = str(value).strip().lower()
        if text == ALL_TIME:
            return ALL_TIME
        if text.endswith("days"):
            text = text[:-4]
        try:
            days = int(text)
        except ValueError:
            raise ValueError(f"Invalid window: {value!r}")
    if days < 0:
        raise ValueError(f"Window must be non-negative, got {days}")
    return days


def window_start(window_days: Window, today: Optional[date] = None) -> Optional[date]:
    if window_days == ALL_TIME:
        return None
    today = today or date.today()
    return today - timedelta(days=int(window_days))


def apply_window(records: List[Sale], window_days: Window, today: Optional[date] = None) -> List[Sale]:
    """Records dated on or after today minus window_days, in their original order."""
    start = window_start(window_days, today)
    if start is None:
        return list(records)
    return [r for r in records if r.date >= start]
