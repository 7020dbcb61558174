from datetime import datetime
from typing import List

from ..models.news import Article, RewrittenItem
from .relative_time import relative_time


# Marks items built from raw articles rather than by the rewrite service.
FALLBACK_CATEGORY = "Business News"

_SUMMARY_PLACEHOLDER = "Open the original article for details."
_DEFAULT_REASON = "Hint: check the rewrite API key and base URL settings."


def compose_fallback(
    articles: List[Article],
    reason: str,
    now: datetime,
    limit: int = 3,
    tz: str = "UTC",
) -> List[RewrittenItem]:
    """Build items straight from the articles, untranslated.

    `reason` is shown in the commentary so readers can see why no rewrite
    happened. Produces exactly one item per article (up to `limit`).
    """

    return [
        RewrittenItem(
            id=index + 1,
            title=article.title,
            source=article.source,
            time=relative_time(article.published_at, now, tz),
            summary=article.description or _SUMMARY_PLACEHOLDER,
            commentary=f"💡 {reason or _DEFAULT_REASON}",
            category=FALLBACK_CATEGORY,
            url=article.url,
            image=article.image_url,
            original_title=article.title,
        )
        for index, article in enumerate(articles[:limit])
    ]


def default_news() -> List[RewrittenItem]:
    """Static list served when nothing has been cached yet."""

    return [
        RewrittenItem(
            id=1,
            title="Welcome to the AI business news desk",
            source="System",
            time="just now",
            summary=(
                "Check the deployment environment variables "
                "(NEWS_API_KEY, OPENAI_API_KEY, API_BASE_URL)."
            ),
            commentary=(
                "💡 Once configured you will get daily business headlines "
                "with AI investment commentary."
            ),
            category="System",
            url="https://newsapi.org",
        )
    ]
