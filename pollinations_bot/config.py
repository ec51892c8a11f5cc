"""Configuration loading for the bot."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_IMAGE_API = "https://image.pollinations.ai"
DEFAULT_TEXT_API = "https://text.pollinations.ai"
DEFAULT_SYSTEM_PROMPT = "You are a helpful, friendly AI assistant named Pollinations Bot."

_DEFAULT_BASE_URLS = {
    "POLLINATIONS_IMAGE_API": DEFAULT_IMAGE_API,
    "POLLINATIONS_TEXT_API": DEFAULT_TEXT_API,
}


@dataclass
class UpstreamTimeouts:
    image: float
    image_fallback: float
    audio: float
    transcription: float
    chat: float
    catalog: float


class Config(BaseSettings):
    """Application configuration loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    BOT_TOKEN: Optional[str] = Field(default=None)
    BOT_USERNAME: str = Field(default="AipolBot")
    WEBHOOK_URL: Optional[str] = Field(default=None)
    RUN_MODE: str = Field(default="POLLING")
    WEBHOOK_LISTEN: str = Field(default="0.0.0.0")
    WEBHOOK_PORT: int = Field(default=8080)
    POLLINATIONS_IMAGE_API: str = Field(default=DEFAULT_IMAGE_API)
    POLLINATIONS_TEXT_API: str = Field(default=DEFAULT_TEXT_API)
    # Hosting with a hard wall-clock ceiling per invocation (serverless webhook).
    CONSTRAINED_BUDGET: bool = Field(default=False)
    # Undocumented audio request shapes tried after the chat-style POST.
    AUDIO_LEGACY_FALLBACKS: bool = Field(default=True)
    SYSTEM_PROMPT: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_DIR: str = Field(default="logs")

    @field_validator("RUN_MODE", mode="before")
    @classmethod
    def normalize_run_mode(cls, value: object) -> str:
        if value is None or value == "":
            return "POLLING"
        if not isinstance(value, str):
            raise ValueError("RUN_MODE must be a string")
        normalized = value.strip().upper()
        if normalized not in {"POLLING", "WEBHOOK"}:
            raise ValueError("RUN_MODE must be POLLING or WEBHOOK")
        return normalized

    @field_validator("POLLINATIONS_IMAGE_API", "POLLINATIONS_TEXT_API", mode="before")
    @classmethod
    def normalize_base_url(cls, value: object, info: ValidationInfo) -> object:
        if value is None or value == "":
            return _DEFAULT_BASE_URLS[info.field_name]
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("BOT_TOKEN", "WEBHOOK_URL", mode="before")
    @classmethod
    def normalize_optional(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("SYSTEM_PROMPT", mode="before")
    @classmethod
    def normalize_system_prompt(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_SYSTEM_PROMPT
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        if value is None or value == "":
            return "INFO"
        return str(value).strip().upper()

    @property
    def bot_id(self) -> int | None:
        if not self.BOT_TOKEN or ":" not in self.BOT_TOKEN:
            return None
        head = self.BOT_TOKEN.split(":", 1)[0]
        return int(head) if head.isdigit() else None

    def require_token(self) -> str:
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN is not configured")
        return self.BOT_TOKEN

    def resolve_timeouts(self) -> UpstreamTimeouts:
        profile = "constrained" if self.CONSTRAINED_BUDGET else "long_running"
        return UpstreamTimeouts(**_TIMEOUT_PROFILES[profile])


_TIMEOUT_PROFILES = {
    "long_running": {
        "image": 60.0,
        "image_fallback": 70.0,
        "audio": 60.0,
        "transcription": 120.0,
        "chat": 60.0,
        "catalog": 15.0,
    },
    "constrained": {
        "image": 25.0,
        "image_fallback": 25.0,
        "audio": 25.0,
        "transcription": 25.0,
        "chat": 25.0,
        "catalog": 8.0,
    },
}
