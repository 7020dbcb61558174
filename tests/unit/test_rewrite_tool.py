import json
import types

import httpx
import pytest

from news_brief import config
from news_brief.config import RewriteCredential
from news_brief.errors import RewriteUnavailable
from news_brief.models.news import Article
from news_brief.tools import rewrite_tool
from news_brief.tools.rewrite_tool import chat_completions_url, rewrite_articles


OPENAI_CREDENTIAL = RewriteCredential(
    provider="openai_compatible", api_key="sk-test", source="OPENAI_API_KEY"
)
GEMINI_CREDENTIAL = RewriteCredential(provider="gemini", api_key="g-test", source="GOOGLE_API_KEY")


@pytest.fixture
def articles():
    return [
        Article(
            title=f"Headline {i}",
            description=f"Description {i}",
            source="Reuters",
            url=f"https://example.com/{i}",
        )
        for i in range(1, 4)
    ]


def _rewrite_payload(count: int) -> str:
    return json.dumps(
        [
            {
                "title": f"標題 {i}",
                "summary": "摘要",
                "commentary": "📊 影響",
                "category": "經濟數據",
            }
            for i in range(count)
        ],
        ensure_ascii=False,
    )


def _chat_response(content, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"role": "assistant", "content": content}}]},
    )


def _patch_post(monkeypatch, response=None, error=None, calls=None):
    def fake_post(url, headers=None, json=None, timeout=None):
        if calls is not None:
            calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(
        rewrite_tool,
        "httpx",
        types.SimpleNamespace(post=fake_post, HTTPError=httpx.HTTPError),
    )


@pytest.mark.parametrize(
    "base_url, expected",
    [
        ("https://api.openai.com/v1", "https://api.openai.com/v1/chat/completions"),
        ("https://api.openai.com/v1/", "https://api.openai.com/v1/chat/completions"),
        ("https://relay.example.com", "https://relay.example.com/v1/chat/completions"),
        ("https://relay.example.com//", "https://relay.example.com/v1/chat/completions"),
        (
            "https://relay.example.com/v1/chat/completions/",
            "https://relay.example.com/v1/chat/completions",
        ),
        (
            "https://gateway.example.com/v1beta/openai",
            "https://gateway.example.com/v1beta/openai/chat/completions",
        ),
    ],
)
def test_chat_completions_url(base_url: str, expected: str) -> None:
    assert chat_completions_url(base_url) == expected


def test_rewrite_sends_one_batched_request(monkeypatch, articles) -> None:
    calls = []
    monkeypatch.setattr(config.settings, "api_base_url", "https://relay.example.com/")
    monkeypatch.setattr(config.settings, "ai_model", "gpt-test")
    _patch_post(
        monkeypatch,
        response=_chat_response("```json\n" + _rewrite_payload(3) + "\n```"),
        calls=calls,
    )

    results = rewrite_articles(articles, OPENAI_CREDENTIAL)

    assert len(calls) == 1
    call = calls[0]
    assert call["url"] == "https://relay.example.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"]["model"] == "gpt-test"
    assert call["timeout"] == config.settings.rewrite_timeout_seconds
    user_message = call["json"]["messages"][-1]["content"]
    for article in articles:
        assert article.title in user_message

    assert [r.title for r in results] == ["標題 0", "標題 1", "標題 2"]


def test_non_success_status(monkeypatch, articles) -> None:
    _patch_post(monkeypatch, response=httpx.Response(502, text="bad gateway"))

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, OPENAI_CREDENTIAL)
    assert excinfo.value.kind == "status"
    assert "502" in str(excinfo.value)


def test_transport_error(monkeypatch, articles) -> None:
    _patch_post(monkeypatch, error=httpx.ReadTimeout("read timed out"))

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, OPENAI_CREDENTIAL)
    assert excinfo.value.kind == "transport"


def test_missing_choices(monkeypatch, articles) -> None:
    _patch_post(monkeypatch, response=httpx.Response(200, json={"error": "nope"}))

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, OPENAI_CREDENTIAL)
    assert excinfo.value.kind == "response"


def test_malformed_content(monkeypatch, articles) -> None:
    _patch_post(monkeypatch, response=_chat_response("Here are your translations!"))

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, OPENAI_CREDENTIAL)
    assert excinfo.value.kind == "parse"


def test_misaligned_array_is_rejected(monkeypatch, articles) -> None:
    _patch_post(monkeypatch, response=_chat_response(_rewrite_payload(2)))

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, OPENAI_CREDENTIAL)
    assert excinfo.value.kind == "alignment"


def test_gemini_provider_uses_generative_model(monkeypatch, articles) -> None:
    seen = {}

    class DummyResponse:
        def __init__(self, content: str) -> None:
            self.text = content

    class DummyModel:
        def generate_content(self, prompt, request_options=None):
            seen["prompt"] = prompt
            seen["request_options"] = request_options
            return DummyResponse(_rewrite_payload(3))

    def fake_get_model(api_key: str, model_name: str) -> DummyModel:
        seen["api_key"] = api_key
        seen["model_name"] = model_name
        return DummyModel()

    monkeypatch.setattr(rewrite_tool, "_get_gemini_model", fake_get_model)

    results = rewrite_articles(articles, GEMINI_CREDENTIAL)

    assert len(results) == 3
    assert seen["api_key"] == "g-test"
    assert seen["model_name"] == config.settings.gemini_model
    assert seen["request_options"] == {"timeout": config.settings.rewrite_timeout_seconds}
    assert "Headline 2" in seen["prompt"]


def test_gemini_errors_become_rewrite_unavailable(monkeypatch, articles) -> None:
    class FailingModel:
        def generate_content(self, prompt, request_options=None):
            raise RuntimeError("quota exceeded")

    monkeypatch.setattr(rewrite_tool, "_get_gemini_model", lambda api_key, model_name: FailingModel())

    with pytest.raises(RewriteUnavailable) as excinfo:
        rewrite_articles(articles, GEMINI_CREDENTIAL)
    assert excinfo.value.kind == "transport"


def test_explicit_settings_override_module_settings(monkeypatch, articles) -> None:
    calls = []
    custom = config.Settings(
        _env_file=None,
        api_base_url="https://relay.example.com/v1",
        ai_model="custom-model",
        rewrite_temperature=0.2,
        rewrite_timeout_seconds=5.0,
        target_language="Japanese",
    )
    _patch_post(monkeypatch, response=_chat_response(_rewrite_payload(3)), calls=calls)

    rewrite_articles(articles, OPENAI_CREDENTIAL, custom)

    call = calls[0]
    assert call["url"] == "https://relay.example.com/v1/chat/completions"
    assert call["json"]["model"] == "custom-model"
    assert call["json"]["temperature"] == 0.2
    assert call["timeout"] == 5.0
    assert "Japanese" in call["json"]["messages"][0]["content"]
