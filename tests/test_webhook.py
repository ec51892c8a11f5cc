from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from pollinations_bot.config import Config
from pollinations_bot.runtime import BotRuntime
from pollinations_bot.session_store import InMemorySessionStore
from pollinations_bot.webhook import classify_update, create_webhook_app


class FakeBot:
    defaults = None
    username = "AipolBot"

    def __init__(self) -> None:
        self.webhooks: list[str] = []
        self.command_calls = 0

    async def set_webhook(self, url: str) -> bool:
        self.webhooks.append(url)
        return True

    async def set_my_commands(self, commands, scope=None, language_code=None) -> bool:
        self.command_calls += 1
        return True


class FakeApplication:
    def __init__(self) -> None:
        self.bot = FakeBot()
        self.processed: list[object] = []
        self.lifecycle: list[str] = []

    async def initialize(self) -> None:
        self.lifecycle.append("initialize")

    async def start(self) -> None:
        self.lifecycle.append("start")

    async def stop(self) -> None:
        self.lifecycle.append("stop")

    async def shutdown(self) -> None:
        self.lifecycle.append("shutdown")

    async def process_update(self, update) -> None:
        self.processed.append(update)


def _payload(text: str, update_id: int = 1) -> dict:
    return {
        "update_id": update_id,
        "message": {
            "message_id": 5,
            "date": 1700000000,
            "chat": {"id": 9, "type": "private"},
            "from": {"id": 9, "is_bot": False, "first_name": "Sam"},
            "text": text,
        },
    }


@pytest.fixture
def webhook_factory(upstream_factory):
    def factory(**config_values):
        config = Config(BOT_TOKEN="123456:test-token", _env_file=None, **config_values)
        upstream = upstream_factory(lambda request: httpx.Response(500))
        runtime = BotRuntime(config=config, client=upstream.client(), sessions=InMemorySessionStore())
        application = FakeApplication()
        return create_webhook_app(runtime, application), application

    return factory


@pytest.mark.parametrize(
    "text,expected",
    [
        ("/image cat", "background"),
        ("/chat@AipolBot hi", "background"),
        ("/image@OtherBot cat", "ignore"),
        ("/help", "inline"),
        ("just talking", "inline"),
    ],
)
def test_classify_update(text: str, expected: str) -> None:
    update = SimpleNamespace(effective_message=SimpleNamespace(text=text, caption=None))
    assert classify_update(update, "AipolBot") == expected


def test_short_command_is_processed_inline(webhook_factory) -> None:
    app, application = webhook_factory()
    with TestClient(app) as client:
        response = client.post("/", json=_payload("/help"))
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert len(application.processed) == 1
    assert application.lifecycle == ["initialize", "start", "stop", "shutdown"]


def test_other_bot_command_is_ignored(webhook_factory) -> None:
    app, application = webhook_factory()
    with TestClient(app) as client:
        response = client.post("/", json=_payload("/image@OtherBot cat"))
        assert response.json() == {"ok": True}
    assert application.processed == []


def test_long_command_is_acknowledged_then_processed(webhook_factory) -> None:
    app, application = webhook_factory()
    with TestClient(app) as client:
        response = client.post("/", json=_payload("/image a cat"))
        assert response.json() == {"ok": True, "status": "processing"}
    assert len(application.processed) == 1


def test_setup_requires_webhook_url(webhook_factory) -> None:
    app, application = webhook_factory()
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert application.bot.webhooks == []


def test_setup_registers_webhook_and_commands(webhook_factory) -> None:
    app, application = webhook_factory(WEBHOOK_URL="https://hook.test/bot")
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["webhook_url"] == "https://hook.test/bot"
    assert body["bot_id"] == 123456
    assert application.bot.webhooks == ["https://hook.test/bot"]
    assert application.bot.command_calls == 4
