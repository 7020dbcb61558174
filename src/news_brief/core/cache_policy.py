from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..models.news import Article
from ..models.state import CacheEntry, QuotaState


def is_fresh(entry: Optional[CacheEntry], now: datetime, ttl: timedelta) -> bool:
    if entry is None:
        return False
    return now - entry.captured_at < ttl


def same_content(articles: Sequence[Article], entry: Optional[CacheEntry]) -> bool:
    """True when `articles` has the same titles, in the same order, as the cache.

    A reordered batch counts as different.
    """

    if entry is None or len(articles) != len(entry.items):
        return False
    return all(
        article.title == item.original_title
        for article, item in zip(articles, entry.items)
    )


def reset_for_day(state: QuotaState, today: date) -> QuotaState:
    """Return `state` with the counter zeroed if `today` is a later day.

    A `today` at or before the last reset date leaves the state untouched,
    so the counter is reset at most once per calendar day.
    """

    if today <= state.last_reset_date:
        return state
    return QuotaState(count=0, last_reset_date=today)
