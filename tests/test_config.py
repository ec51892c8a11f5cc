from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from pollinations_bot.config import DEFAULT_IMAGE_API, DEFAULT_SYSTEM_PROMPT, Config
from pollinations_bot.runtime import BotRuntime

ENV_KEYS = (
    "BOT_TOKEN",
    "BOT_USERNAME",
    "RUN_MODE",
    "WEBHOOK_URL",
    "POLLINATIONS_IMAGE_API",
    "POLLINATIONS_TEXT_API",
    "CONSTRAINED_BUDGET",
    "AUDIO_LEGACY_FALLBACKS",
    "LOG_LEVEL",
    "SYSTEM_PROMPT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = Config(_env_file=None)
    assert config.BOT_USERNAME == "AipolBot"
    assert config.RUN_MODE == "POLLING"
    assert config.POLLINATIONS_IMAGE_API == DEFAULT_IMAGE_API
    assert config.SYSTEM_PROMPT == DEFAULT_SYSTEM_PROMPT
    assert config.AUDIO_LEGACY_FALLBACKS is True
    assert config.CONSTRAINED_BUDGET is False


def test_missing_token_is_rejected_at_start() -> None:
    config = Config(_env_file=None)
    with pytest.raises(ValueError):
        config.require_token()


def test_blank_token_counts_as_missing(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "   ")
    assert Config(_env_file=None).BOT_TOKEN is None


def test_bot_id_comes_from_token(monkeypatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "123456:abc")
    config = Config(_env_file=None)
    assert config.require_token() == "123456:abc"
    assert config.bot_id == 123456


def test_run_mode_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("RUN_MODE", " webhook ")
    assert Config(_env_file=None).RUN_MODE == "WEBHOOK"


def test_invalid_run_mode_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("RUN_MODE", "cron")
    with pytest.raises(ValidationError):
        Config(_env_file=None)


def test_base_urls_are_trimmed_or_defaulted(monkeypatch) -> None:
    monkeypatch.setenv("POLLINATIONS_IMAGE_API", "")
    monkeypatch.setenv("POLLINATIONS_TEXT_API", " https://text.example/ ")
    config = Config(_env_file=None)
    assert config.POLLINATIONS_IMAGE_API == DEFAULT_IMAGE_API
    assert config.POLLINATIONS_TEXT_API == "https://text.example"


def test_timeout_profiles(monkeypatch) -> None:
    long_running = Config(_env_file=None).resolve_timeouts()
    assert long_running.image == 60.0
    assert long_running.image_fallback == 70.0
    assert long_running.transcription == 120.0

    monkeypatch.setenv("CONSTRAINED_BUDGET", "true")
    constrained = Config(_env_file=None).resolve_timeouts()
    assert constrained.image == 25.0
    assert constrained.catalog == 8.0


def test_log_level_is_upper_cased(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Config(_env_file=None).LOG_LEVEL == "DEBUG"


def test_blank_system_prompt_uses_default(monkeypatch) -> None:
    monkeypatch.setenv("SYSTEM_PROMPT", "  ")
    assert Config(_env_file=None).SYSTEM_PROMPT == DEFAULT_SYSTEM_PROMPT
    monkeypatch.setenv("SYSTEM_PROMPT", "Be brief.")
    assert Config(_env_file=None).SYSTEM_PROMPT == "Be brief."


@pytest.mark.parametrize("budget,expected", [("true", True), ("false", False)])
def test_runtime_follows_constrained_budget(monkeypatch, budget: str, expected: bool) -> None:
    monkeypatch.setenv("CONSTRAINED_BUDGET", budget)
    runtime = BotRuntime.from_config(Config(BOT_TOKEN="123456:test-token", _env_file=None))
    try:
        assert runtime.client.constrained is expected
        assert runtime.photo_by_url is expected
        assert runtime.client.timeouts.image == (25.0 if expected else 60.0)
    finally:
        asyncio.run(runtime.client.aclose())
