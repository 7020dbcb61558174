import re
from typing import List
from urllib.parse import urlparse

import google.generativeai as genai
import httpx

from ..config import RewriteCredential, Settings, settings
from ..core.prompts import build_rewrite_messages
from ..core.structured_output import parse_rewrite_response
from ..errors import RewriteUnavailable
from ..logging_config import get_logger
from ..models.news import Article, RewriteResult


logger = get_logger("tools.rewrite")

_CHAT_COMPLETIONS_PATH = "/chat/completions"
_VERSION_SEGMENT = re.compile(r"/v\d+(?:alpha\d*|beta\d*)?(?:/|$)")


def chat_completions_url(base_url: str) -> str:
    """Build the chat completions endpoint from a configured base URL.

    Accepts bases with or without a trailing slash, with or without a
    version segment, and bases that already point at /chat/completions.
    """

    url = base_url.strip().rstrip("/")
    if url.endswith(_CHAT_COMPLETIONS_PATH):
        return url
    if not _VERSION_SEGMENT.search(urlparse(url).path):
        url = f"{url}/v1"
    return f"{url}{_CHAT_COMPLETIONS_PATH}"


def _call_chat_completions(messages: List[dict], api_key: str, config: Settings) -> str:
    url = chat_completions_url(config.api_base_url)
    logger.info("rewrite_request", provider="openai_compatible", url=url, model=config.ai_model)

    try:
        response = httpx.post(
            url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            json={
                "model": config.ai_model,
                "messages": messages,
                "temperature": config.rewrite_temperature,
            },
            timeout=config.rewrite_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        raise RewriteUnavailable(f"rewrite request failed: {exc}", kind="transport") from exc

    if response.status_code >= 400:
        logger.warning(
            "rewrite_http_error",
            status_code=response.status_code,
            detail=response.text[:500],
        )
        raise RewriteUnavailable(
            f"rewrite service responded with status {response.status_code}",
            kind="status",
        )

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise RewriteUnavailable(
            "rewrite service returned an unexpected response structure",
            kind="response",
        ) from exc

    if not isinstance(content, str):
        raise RewriteUnavailable(
            "rewrite service returned an unexpected response structure",
            kind="response",
        )
    return content


def _get_gemini_model(api_key: str, model_name: str) -> genai.GenerativeModel:
    """Return a Gemini model client for the resolved key."""

    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


def _call_gemini(messages: List[dict], api_key: str, config: Settings) -> str:
    logger.info("rewrite_request", provider="gemini", model=config.gemini_model)

    prompt = "\n\n".join(
        f"{message['role'].upper()}: {message['content']}" for message in messages
    )

    model = _get_gemini_model(api_key, config.gemini_model)
    try:
        response = model.generate_content(
            prompt,
            request_options={"timeout": config.rewrite_timeout_seconds},
        )
    except Exception as exc:
        raise RewriteUnavailable(f"rewrite request failed: {exc}", kind="transport") from exc

    try:
        return response.text or ""
    except Exception as exc:
        raise RewriteUnavailable(
            "rewrite service returned an unexpected response structure",
            kind="response",
        ) from exc


def rewrite_articles(
    articles: List[Article],
    credential: RewriteCredential,
    config: Settings | None = None,
) -> List[RewriteResult]:
    """Rewrite a batch of articles with a single rewrite-service call.

    Returns one RewriteResult per article, in order. Raises
    RewriteUnavailable on any failure; a response whose length differs from
    the batch is rejected rather than partially applied.
    """

    config = config or settings
    if not articles:
        raise RewriteUnavailable("no articles to rewrite", kind="alignment")

    messages = build_rewrite_messages(articles, config.target_language)

    if credential.provider == "gemini":
        content = _call_gemini(messages, credential.api_key, config)
    else:
        content = _call_chat_completions(messages, credential.api_key, config)

    results = parse_rewrite_response(content, expected_count=len(articles))
    logger.info("rewrite_success", provider=credential.provider, items=len(results))
    return results
