from .news import Article, RewriteResult, RewrittenItem, NewsEnvelope  # noqa: F401
from .state import CacheEntry, QuotaState  # noqa: F401
