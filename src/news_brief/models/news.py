from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Article(BaseModel):
    """A headline as returned by the headline source, normalized."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    source: str
    published_at: Optional[datetime] = None
    url: str
    image_url: Optional[str] = None


class RewriteResult(BaseModel):
    """One element of the rewrite service's structured array."""

    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    commentary: str = Field(
        min_length=1,
        validation_alias=AliasChoices("commentary", "aiInsight"),
    )
    category: str = Field(min_length=1)


class RewrittenItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    source: str
    time: str
    summary: str
    commentary: str = Field(alias="aiInsight")
    category: str
    url: str
    image: Optional[str] = None
    # Only used to detect whether a new batch matches the cached one.
    original_title: Optional[str] = Field(default=None, alias="originalTitle")


class NewsEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    news: List[RewrittenItem]
    timestamp: str
    from_cache: bool = Field(alias="fromCache")
    message: Optional[str] = None
    error: Optional[str] = None
    daily_requests_remaining: Optional[int] = Field(
        default=None, alias="dailyRequestsRemaining"
    )

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
