"""Runtime container for the collaborators shared by all handlers."""

from __future__ import annotations

from dataclasses import dataclass

from pollinations_bot.config import Config
from pollinations_bot.pollinations_client import PollinationsClient
from pollinations_bot.session_store import InMemorySessionStore


@dataclass
class BotRuntime:
    config: Config
    client: PollinationsClient
    sessions: InMemorySessionStore
    # Photo by URL lets Telegram fetch the image itself; chosen once at start.
    photo_by_url: bool = False
    bot_username: str = "AipolBot"

    @classmethod
    def from_config(cls, config: Config) -> "BotRuntime":
        client = PollinationsClient(
            image_base=config.POLLINATIONS_IMAGE_API,
            text_base=config.POLLINATIONS_TEXT_API,
            timeouts=config.resolve_timeouts(),
            audio_legacy_fallbacks=config.AUDIO_LEGACY_FALLBACKS,
            constrained=config.CONSTRAINED_BUDGET,
        )
        return cls(
            config=config,
            client=client,
            sessions=InMemorySessionStore(),
            photo_by_url=config.CONSTRAINED_BUDGET,
            bot_username=config.BOT_USERNAME,
        )
