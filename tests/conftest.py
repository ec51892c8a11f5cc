from __future__ import annotations

from types import SimpleNamespace
from typing import Callable

import httpx
import pytest

from pollinations_bot.config import Config, UpstreamTimeouts
from pollinations_bot.pollinations_client import PollinationsClient
from pollinations_bot.runtime import BotRuntime
from pollinations_bot.session_store import InMemorySessionStore

IMAGE_BASE = "https://image.test"
TEXT_BASE = "https://text.test"
FAST_TIMEOUTS = UpstreamTimeouts(
    image=5.0, image_fallback=5.0, audio=5.0, transcription=5.0, chat=5.0, catalog=5.0
)


class Upstream:
    """Scripted stand-in for the Pollinations HTTP API."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self, **kwargs) -> PollinationsClient:
        kwargs.setdefault("timeouts", FAST_TIMEOUTS)
        return PollinationsClient(
            image_base=IMAGE_BASE,
            text_base=TEXT_BASE,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self)),
            **kwargs,
        )


class FakeMessage:
    def __init__(self, text: str | None = None, reply_to_message=None) -> None:
        self.text = text
        self.caption = None
        self.reply_to_message = reply_to_message
        self.voice = None
        self.audio = None
        self.message_id = 1
        self.replies: list[str] = []
        self.photos: list[dict] = []
        self.documents: list[dict] = []
        self.voices: list = []
        self.audios: list = []
        self.edits: list[str] = []
        self.deleted = False
        self.children: list[FakeMessage] = []

    async def reply_text(self, text: str, **kwargs) -> "FakeMessage":
        self.replies.append(text)
        child = FakeMessage(text)
        self.children.append(child)
        return child

    async def reply_photo(self, photo, caption=None, **kwargs) -> "FakeMessage":
        self.photos.append({"photo": photo, "caption": caption})
        return FakeMessage()

    async def reply_document(self, document, caption=None, **kwargs) -> "FakeMessage":
        self.documents.append({"document": document, "caption": caption})
        return FakeMessage()

    async def reply_voice(self, voice, **kwargs) -> "FakeMessage":
        self.voices.append(voice)
        return FakeMessage()

    async def reply_audio(self, audio, **kwargs) -> "FakeMessage":
        self.audios.append(audio)
        return FakeMessage()

    async def edit_text(self, text: str, **kwargs) -> "FakeMessage":
        self.edits.append(text)
        return self

    async def delete(self) -> bool:
        self.deleted = True
        return True


def make_update(message: FakeMessage, user_id: int = 42):
    return SimpleNamespace(
        effective_message=message,
        effective_user=SimpleNamespace(id=user_id, first_name="Sam"),
        effective_chat=SimpleNamespace(id=user_id),
        callback_query=None,
    )


@pytest.fixture
def upstream_factory() -> Callable[..., Upstream]:
    return Upstream


@pytest.fixture
def config() -> Config:
    return Config(BOT_TOKEN="123456:test-token", _env_file=None)


@pytest.fixture
def runtime_factory(config: Config) -> Callable[[Upstream], BotRuntime]:
    def factory(upstream: Upstream, **kwargs) -> BotRuntime:
        return BotRuntime(
            config=config,
            client=upstream.client(),
            sessions=InMemorySessionStore(),
            **kwargs,
        )

    return factory


@pytest.fixture
def context_factory() -> Callable[[BotRuntime], SimpleNamespace]:
    def factory(runtime: BotRuntime, bot=None) -> SimpleNamespace:
        return SimpleNamespace(bot_data={"runtime": runtime}, bot=bot)

    return factory
