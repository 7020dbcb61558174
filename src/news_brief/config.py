from typing import List, Literal, Tuple

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


RewriteProvider = Literal["openai_compatible", "gemini"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    news_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    google_api_key: str | None = None

    api_base_url: str = "https://api.openai.com/v1"
    ai_model: str = "gpt-4o-mini"
    gemini_model: str = "gemini-1.5-flash"
    rewrite_temperature: float = 0.7
    target_language: str = "Traditional Chinese"

    news_api_url: str = "https://newsapi.org/v2/top-headlines"
    news_category: str = "business"
    news_language: str = "en"
    batch_size: int = 3

    cache_ttl_minutes: int = 30
    max_daily_requests: int = 50
    display_timezone: str = "Asia/Taipei"

    news_timeout_seconds: float = 10.0
    rewrite_timeout_seconds: float = 30.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Checked in order; the first setting holding a key decides the provider.
# The Anthropic key is sent to an OpenAI-compatible relay at API_BASE_URL.
REWRITE_KEY_ORDER: List[Tuple[str, RewriteProvider]] = [
    ("openai_api_key", "openai_compatible"),
    ("anthropic_api_key", "openai_compatible"),
    ("google_api_key", "gemini"),
]


class RewriteCredential(BaseModel):
    provider: RewriteProvider
    api_key: str
    source: str


def resolve_rewrite_credential(config: Settings | None = None) -> RewriteCredential | None:
    """Return the first configured rewrite-service key, or None.

    `source` names the setting the key came from so callers can log which
    entry of REWRITE_KEY_ORDER won.
    """

    config = config or settings
    for field_name, provider in REWRITE_KEY_ORDER:
        value = getattr(config, field_name, None)
        if value:
            return RewriteCredential(
                provider=provider,
                api_key=value,
                source=field_name.upper(),
            )
    return None


settings = Settings()
