# tracker/reminders/window.py

from dataclasses import dataclass
from datetime import datetime, timedelta

from tracker.reminders.models import as_utc

DEFAULT_WINDOW_MS = 60_000


@dataclass(frozen=True)
class DueWindow:
    since: datetime
    until: datetime

    def contains(self, ts: datetime) -> bool:
        # Both bounds inclusive
        return self.since <= as_utc(ts) <= self.until


def compute_window(now: datetime, lookback_ms: int = DEFAULT_WINDOW_MS) -> DueWindow:
    """
    Due range for a sweep at `now`: [now - lookback, now].
    A naive `now` is taken as UTC.
    """
    until = as_utc(now)
    return DueWindow(since=until - timedelta(milliseconds=lookback_ms), until=until)
