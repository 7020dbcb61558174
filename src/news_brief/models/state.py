from datetime import date, datetime
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from .news import RewrittenItem


class CacheEntry(BaseModel):
    """The last good batch of items and when it was captured.

    Entries are replaced wholesale; `touch` produces a copy with a new
    `captured_at` rather than mutating the stored one.
    """

    model_config = ConfigDict(frozen=True)

    items: Tuple[RewrittenItem, ...]
    captured_at: datetime


class QuotaState(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    last_reset_date: date
