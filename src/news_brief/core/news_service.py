"""Request orchestration: cache, quota, fetch, rewrite, fallback.

Each call to `HeadlineService.get_news` walks the decision table below and
returns a NewsEnvelope. Only a missing headline key or a failed headline
fetch produce `success=False`; rewrite problems degrade to fallback items.

1. fresh cache            -> serve cache
2. daily quota spent      -> serve cache or default, with a message
3. fetch headlines        -> errors go to the failure envelope
4. same titles as cache   -> extend cache freshness, serve cache
5. rewrite (one quota unit) or fallback
6. store and serve the new batch
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..config import RewriteCredential, Settings, resolve_rewrite_credential, settings
from ..errors import ConfigError, NewsBriefError, RewriteUnavailable, SourceUnavailable
from ..logging_config import get_logger
from ..models.news import Article, NewsEnvelope, RewriteResult, RewrittenItem
from ..models.state import CacheEntry
from ..tools.cache import CacheStore, InMemoryCacheStore
from ..tools.newsapi_tool import fetch_top_headlines
from ..tools.rewrite_tool import rewrite_articles
from .cache_policy import is_fresh, same_content
from .fallback import compose_fallback, default_news
from .relative_time import relative_time


logger = get_logger("core.news_service")

QUOTA_MESSAGE = "Daily update limit reached; showing cached news."
NO_REWRITE_KEY_REASON = (
    "No rewrite API key detected (OPENAI_API_KEY, ANTHROPIC_API_KEY or GOOGLE_API_KEY)."
)

FetchHeadlines = Callable[[], List[Article]]
RewriteBatch = Callable[[List[Article], RewriteCredential], List[RewriteResult]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HeadlineService:
    """Serves the headline batch for one request at a time.

    Collaborators are injected so tests can count calls and control the
    clock; the defaults talk to NewsAPI and the configured rewrite service.
    """

    def __init__(
        self,
        store: CacheStore,
        config: Settings | None = None,
        fetch_headlines: FetchHeadlines | None = None,
        rewrite: RewriteBatch | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.config = config or settings
        self._fetch_headlines = fetch_headlines or self._fetch_from_newsapi
        self._rewrite = rewrite or self._rewrite_with_config
        self._clock = clock

    def _fetch_from_newsapi(self) -> List[Article]:
        return fetch_top_headlines(self.config)

    def _rewrite_with_config(
        self, articles: List[Article], credential: RewriteCredential
    ) -> List[RewriteResult]:
        return rewrite_articles(articles, credential, self.config)

    def now(self) -> datetime:
        return self._clock()

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.config.cache_ttl_minutes)

    def get_news(self) -> NewsEnvelope:
        now = self._clock()
        try:
            return self._serve(now)
        except NewsBriefError as exc:
            logger.warning("news_request_failed", error=str(exc), error_type=type(exc).__name__)
            return self.failure_envelope(str(exc), now)

    def failure_envelope(self, error: str, now: datetime | None = None) -> NewsEnvelope:
        now = now or self._clock()
        return NewsEnvelope(
            success=False,
            error=error,
            news=self._cached_or_default(self.store.get_entry()),
            timestamp=isoformat_utc(now),
            from_cache=True,
        )

    def _serve(self, now: datetime) -> NewsEnvelope:
        entry = self.store.get_entry()
        if is_fresh(entry, now, self.ttl):
            logger.info("news_cache_hit", captured_at=entry.captured_at.isoformat())
            return NewsEnvelope(
                success=True,
                news=list(entry.items),
                timestamp=isoformat_utc(entry.captured_at),
                from_cache=True,
            )

        if self.store.quota_exceeded(now):
            logger.info("news_quota_exhausted", max_daily=self.store.max_daily)
            return self._quota_envelope(entry, now)

        if not self.config.news_api_key:
            raise ConfigError("NEWS_API_KEY is not configured in the environment.")

        articles = self._fetch_headlines()[: self.config.batch_size]
        if not articles:
            raise SourceUnavailable("headline source returned no articles")

        if same_content(articles, entry):
            touched = self.store.touch(now) or entry
            logger.info("news_content_unchanged", items=len(touched.items))
            return NewsEnvelope(
                success=True,
                news=list(touched.items),
                timestamp=isoformat_utc(now),
                from_cache=True,
            )

        credential = resolve_rewrite_credential(self.config)
        if credential is None:
            logger.info("rewrite_skipped_no_key")
            items = self._fallback(articles, NO_REWRITE_KEY_REASON, now)
        else:
            if not self.store.consume_quota(now):
                # Another request took the last unit after our check.
                logger.info("news_quota_exhausted", max_daily=self.store.max_daily, late=True)
                return self._quota_envelope(entry, now)
            items = self._rewrite_or_fallback(articles, credential, now)

        self.store.refresh(items, now)
        quota = self.store.quota_state(now)
        logger.info("news_refreshed", items=len(items), daily_requests=quota.count)
        return NewsEnvelope(
            success=True,
            news=items,
            timestamp=isoformat_utc(now),
            from_cache=False,
            daily_requests_remaining=max(self.store.max_daily - quota.count, 0),
        )

    def _rewrite_or_fallback(
        self,
        articles: List[Article],
        credential: RewriteCredential,
        now: datetime,
    ) -> List[RewrittenItem]:
        logger.info("rewrite_start", provider=credential.provider, key_source=credential.source)
        try:
            results = self._rewrite(articles, credential)
            if len(results) != len(articles):
                raise RewriteUnavailable(
                    f"rewrite response has {len(results)} items for {len(articles)} articles",
                    kind="alignment",
                )
        except RewriteUnavailable as exc:
            logger.warning("rewrite_failed", kind=exc.kind, error=str(exc))
            return self._fallback(articles, f"Rewrite failed ({exc.kind}): {exc}", now)

        return [
            RewrittenItem(
                id=index + 1,
                title=result.title,
                source=article.source,
                time=relative_time(article.published_at, now, self.config.display_timezone),
                summary=result.summary,
                commentary=result.commentary,
                category=result.category,
                url=article.url,
                image=article.image_url,
                original_title=article.title,
            )
            for index, (article, result) in enumerate(zip(articles, results))
        ]

    def _fallback(self, articles: List[Article], reason: str, now: datetime) -> List[RewrittenItem]:
        return compose_fallback(
            articles,
            reason,
            now,
            limit=self.config.batch_size,
            tz=self.config.display_timezone,
        )

    def _quota_envelope(self, entry: Optional[CacheEntry], now: datetime) -> NewsEnvelope:
        return NewsEnvelope(
            success=True,
            news=self._cached_or_default(entry),
            timestamp=isoformat_utc(now),
            from_cache=True,
            message=QUOTA_MESSAGE,
        )

    @staticmethod
    def _cached_or_default(entry: Optional[CacheEntry]) -> List[RewrittenItem]:
        if entry is not None and entry.items:
            return list(entry.items)
        return default_news()


def build_default_service(config: Settings | None = None) -> HeadlineService:
    config = config or settings
    store = InMemoryCacheStore(
        max_daily=config.max_daily_requests,
        tz=config.display_timezone,
    )
    return HeadlineService(store, config=config)
