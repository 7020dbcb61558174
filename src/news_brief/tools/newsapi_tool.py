from datetime import datetime
from typing import List
from urllib.parse import urlparse

import httpx

from ..config import Settings, settings
from ..errors import ConfigError, SourceUnavailable
from ..logging_config import get_logger
from ..models.news import Article


logger = get_logger("tools.newsapi")

# NewsAPI keeps deleted stories in results with this placeholder title.
_REMOVED_MARKER = "[Removed]"


def _parse_published_at(value: str | None):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return data.get("message") or data.get("code") or ""
    return ""


def _to_article(item) -> Article | None:
    if not isinstance(item, dict):
        return None
    title = (item.get("title") or "").strip()
    url = item.get("url") or ""
    if not title or not url or title == _REMOVED_MARKER:
        return None

    source_obj = item.get("source") or {}
    source_name = source_obj.get("name") or urlparse(url).netloc
    description = item.get("description") or (item.get("content") or "")[:200]

    return Article(
        title=title,
        description=description,
        source=source_name,
        published_at=_parse_published_at(item.get("publishedAt")),
        url=url,
        image_url=item.get("urlToImage") or None,
    )


def fetch_top_headlines(config: Settings | None = None) -> List[Article]:
    """Fetch the current top headlines from NewsAPI.

    Makes exactly one request. Raises SourceUnavailable on any transport or
    upstream failure, and also when no usable article comes back, since an
    empty batch cannot be cached.
    """

    config = config or settings
    api_key = config.news_api_key
    if not api_key:
        raise ConfigError("NEWS_API_KEY is not configured in the environment.")

    page_size = config.batch_size
    params = {
        "category": config.news_category,
        "language": config.news_language,
        "pageSize": page_size,
        "apiKey": api_key,
    }

    try:
        response = httpx.get(
            config.news_api_url,
            params=params,
            timeout=config.news_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        logger.warning("newsapi_transport_error", error=str(exc))
        raise SourceUnavailable(f"NewsAPI request failed: {exc}") from exc

    if response.status_code >= 400:
        detail = _error_detail(response)
        logger.warning(
            "newsapi_http_error",
            status_code=response.status_code,
            detail=detail,
        )
        raise SourceUnavailable(
            f"NewsAPI request failed: {response.status_code} {detail}".strip(),
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise SourceUnavailable(
            "NewsAPI returned a non-JSON body.",
            status_code=response.status_code,
        ) from exc

    if not isinstance(data, dict):
        raise SourceUnavailable(
            "NewsAPI returned an unexpected payload.",
            status_code=response.status_code,
        )

    if data.get("status") == "error":
        raise SourceUnavailable(
            f"NewsAPI error: {data.get('message') or data.get('code') or 'unknown'}",
            status_code=response.status_code,
        )

    articles: List[Article] = []
    for item in data.get("articles") or []:
        article = _to_article(item)
        if article is not None:
            articles.append(article)

    if not articles:
        raise SourceUnavailable("NewsAPI returned an empty article list.")

    logger.info("newsapi_fetched", results=len(articles), total=data.get("totalResults"))
    return articles[:page_size]
