from news_brief.config import Settings, resolve_rewrite_credential


def _settings(**keys) -> Settings:
    values = {
        "openai_api_key": None,
        "anthropic_api_key": None,
        "google_api_key": None,
    }
    values.update(keys)
    return Settings(_env_file=None, **values)


def test_no_rewrite_key() -> None:
    assert resolve_rewrite_credential(_settings()) is None


def test_openai_key_wins_over_later_entries() -> None:
    credential = resolve_rewrite_credential(
        _settings(openai_api_key="sk-1", anthropic_api_key="ak-1", google_api_key="g-1")
    )
    assert credential.provider == "openai_compatible"
    assert credential.api_key == "sk-1"
    assert credential.source == "OPENAI_API_KEY"


def test_anthropic_key_uses_openai_compatible_relay() -> None:
    credential = resolve_rewrite_credential(_settings(anthropic_api_key="ak-1", google_api_key="g-1"))
    assert credential.provider == "openai_compatible"
    assert credential.source == "ANTHROPIC_API_KEY"


def test_google_key_selects_gemini() -> None:
    credential = resolve_rewrite_credential(_settings(google_api_key="g-1"))
    assert credential.provider == "gemini"
    assert credential.source == "GOOGLE_API_KEY"


def test_empty_string_is_not_a_key() -> None:
    credential = resolve_rewrite_credential(_settings(openai_api_key="", google_api_key="g-1"))
    assert credential.source == "GOOGLE_API_KEY"
