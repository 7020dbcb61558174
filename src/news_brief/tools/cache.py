"""Process-lifetime cache and daily quota state.

`CacheStore` is the seam between orchestration and storage: the in-memory
implementation below keeps everything in this process, and another
implementation could keep the same state in a shared key-value store.
"""

import threading
from datetime import date, datetime
from typing import Optional, Protocol, Sequence
from zoneinfo import ZoneInfo

from ..core.cache_policy import reset_for_day
from ..logging_config import get_logger
from ..models.news import RewrittenItem
from ..models.state import CacheEntry, QuotaState


logger = get_logger("tools.cache")


class CacheStore(Protocol):
    max_daily: int

    def get_entry(self) -> Optional[CacheEntry]: ...

    def refresh(self, items: Sequence[RewrittenItem], now: datetime) -> CacheEntry: ...

    def touch(self, now: datetime) -> Optional[CacheEntry]: ...

    def quota_exceeded(self, now: datetime) -> bool: ...

    def consume_quota(self, now: datetime) -> bool: ...

    def quota_state(self, now: datetime) -> QuotaState: ...


class InMemoryCacheStore:
    """Thread-safe in-memory CacheStore.

    One lock guards both the entry and the quota state. Callers never hold
    it across network calls; each method takes and releases it.
    """

    def __init__(self, max_daily: int, tz: str = "UTC") -> None:
        self.max_daily = max_daily
        self._tz = ZoneInfo(tz)
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None
        self._quota = QuotaState(count=0, last_reset_date=date.min)

    def _today(self, now: datetime) -> date:
        return now.astimezone(self._tz).date()

    def _roll_quota(self, now: datetime) -> QuotaState:
        # Caller holds the lock.
        rolled = reset_for_day(self._quota, self._today(now))
        if rolled is not self._quota:
            logger.info(
                "quota_reset",
                previous_count=self._quota.count,
                date=rolled.last_reset_date.isoformat(),
            )
            self._quota = rolled
        return self._quota

    def get_entry(self) -> Optional[CacheEntry]:
        with self._lock:
            return self._entry

    def refresh(self, items: Sequence[RewrittenItem], now: datetime) -> CacheEntry:
        if not items:
            raise ValueError("refusing to cache an empty batch")
        entry = CacheEntry(items=tuple(items), captured_at=now)
        with self._lock:
            self._entry = entry
        return entry

    def touch(self, now: datetime) -> Optional[CacheEntry]:
        with self._lock:
            if self._entry is None:
                return None
            self._entry = self._entry.model_copy(update={"captured_at": now})
            return self._entry

    def quota_exceeded(self, now: datetime) -> bool:
        with self._lock:
            return self._roll_quota(now).count >= self.max_daily

    def consume_quota(self, now: datetime) -> bool:
        """Reserve one rewrite call. False if today's budget is spent."""

        with self._lock:
            state = self._roll_quota(now)
            if state.count >= self.max_daily:
                return False
            self._quota = state.model_copy(update={"count": state.count + 1})
            return True

    def quota_state(self, now: datetime) -> QuotaState:
        with self._lock:
            return self._roll_quota(now)

