import pytest
from pydantic import ValidationError

from takedown_assistant.config import AppSettings


def test_defaults():
    settings = AppSettings(anthropic_api_key="k")
    assert settings.has_api_key
    assert settings.ownership_detail_threshold == 30
    assert settings.impact_detail_threshold == 30
    assert settings.minimal_answer_threshold == 20
    assert settings.max_follow_up_retries == 3
    assert settings.max_letter_revisions == 1
    assert (
        settings.follow_up_temperature,
        settings.letter_temperature,
        settings.quality_check_temperature,
    ) == (0.7, 0.6, 0.5)


def test_blank_key_is_not_configured():
    assert not AppSettings(anthropic_api_key="   ").has_api_key


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("IMPACT_DETAIL_THRESHOLD", "50")
    monkeypatch.setenv("MAX_FOLLOW_UP_RETRIES", "1")
    settings = AppSettings()
    assert settings.impact_detail_threshold == 50
    assert settings.max_follow_up_retries == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"letter_temperature": 1.5},
        {"quality_check_max_tokens": 0},
        {"max_letter_revisions": 2},
        {"max_follow_up_retries": -1},
        {"ownership_detail_threshold": -5},
        {"session_ttl_seconds": 0},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        AppSettings(**overrides)


def test_production_requires_explicit_origins():
    with pytest.raises(ValidationError):
        AppSettings(production_mode=True)
    settings = AppSettings(production_mode=True, cors_allowed_origins_raw="https://a.example, https://b.example")
    assert settings.cors_allowed_origins == ["https://a.example", "https://b.example"]
