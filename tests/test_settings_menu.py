from __future__ import annotations

import asyncio
from types import SimpleNamespace

import httpx

from pollinations_bot.i18n import t
from pollinations_bot.models import TextModelInfo
from pollinations_bot.session_store import UserSession
from pollinations_bot.settings_menu import (
    CALLBACK_DATA_LIMIT,
    IMAGE_SIZES,
    image_model_menu,
    main_menu,
    settings_callback,
    size_menu,
    text_model_menu,
    voice_menu,
)


class FakeQuery:
    def __init__(self, data: str, user_id: int = 42) -> None:
        self.data = data
        self.from_user = SimpleNamespace(id=user_id)
        self.answers: list[str | None] = []
        self.edits: list[tuple[str, object]] = []

    async def answer(self, text: str | None = None, **kwargs) -> bool:
        self.answers.append(text)
        return True

    async def edit_message_text(self, text: str, reply_markup=None, **kwargs) -> None:
        self.edits.append((text, reply_markup))


def _callback_data(markup) -> list[str]:
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def _press(data: str, runtime, context_factory) -> FakeQuery:
    query = FakeQuery(data)
    update = SimpleNamespace(callback_query=query)

    async def scenario() -> None:
        try:
            await settings_callback(update, context_factory(runtime))
        finally:
            await runtime.client.aclose()

    asyncio.run(scenario())
    return query


def test_main_menu_lists_categories() -> None:
    text, markup = main_menu(UserSession())
    assert "Model: flux" in text
    assert _callback_data(markup) == [
        "settings:image",
        "settings:text",
        "settings:audio",
        "settings:language",
        "settings:other",
    ]


def test_size_menu_marks_current_size() -> None:
    session = UserSession(image_width=1536, image_height=1024)
    _, markup = size_menu(session)
    labels = [button.text for row in markup.inline_keyboard for button in row]
    assert "1536x1024 ✅" in labels
    assert _callback_data(markup)[: len(IMAGE_SIZES)] == [
        f"image:size:{width}:{height}" for width, height in IMAGE_SIZES
    ]


def test_text_model_menu_skips_audio_models() -> None:
    models = [
        TextModelInfo(model="openai", vision=True),
        TextModelInfo(model="openai-audio", type="audio"),
    ]
    _, markup = text_model_menu(UserSession(), models)
    assert _callback_data(markup) == ["text:model:openai", "text:back"]


def test_size_callback_updates_session(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    query = _press("image:size:512:512", runtime, context_factory)

    session = runtime.sessions.get(42)
    assert (session.image_width, session.image_height) == (512, 512)
    assert query.answers == [t("en", "image_size_set", width=512, height=512)]
    assert "512x512" in query.edits[0][0]


def test_unknown_size_is_rejected(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    query = _press("image:size:999:1", runtime, context_factory)

    assert (runtime.sessions.get(42).image_width, runtime.sessions.get(42).image_height) == (1024, 1024)
    assert query.answers == [t("en", "callback_error")]


def test_toggles_flip_flags(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    _press("image:enhance", runtime, context_factory)
    _press("other:private", runtime, context_factory)

    session = runtime.sessions.get(42)
    assert session.enhance_prompt is True
    assert session.private_mode is True


def test_model_selection_uses_catalog(upstream_factory, runtime_factory, context_factory) -> None:
    upstream = upstream_factory(lambda request: httpx.Response(200, json=["flux", "turbo"]))
    runtime = runtime_factory(upstream)

    query = _press("image:model", runtime, context_factory)

    _, markup = query.edits[0]
    assert _callback_data(markup) == ["image:model:flux", "image:model:turbo", "image:back"]


def test_model_choice_is_saved(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    _press("text:model:mistral", runtime, context_factory)

    assert runtime.sessions.get(42).text_model == "mistral"


def test_language_switch_changes_menu_language(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    query = _press("lang:zh", runtime, context_factory)

    assert runtime.sessions.get(42).language == "zh"
    assert query.answers == [t("zh", "language_set")]
    assert query.edits[0][0].startswith("当前设置")


def test_unsupported_language_is_ignored(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    query = _press("lang:xx", runtime, context_factory)

    assert runtime.sessions.get(42).language == "en"
    assert query.edits == []


def test_overlong_catalog_entries_are_left_out() -> None:
    long_name = "x" * 60
    _, markup = image_model_menu(UserSession(), ["flux", long_name])
    assert _callback_data(markup) == ["image:model:flux", "image:back"]
    assert all(len(data.encode("utf-8")) <= CALLBACK_DATA_LIMIT for data in _callback_data(markup))

    _, markup = text_model_menu(UserSession(), [TextModelInfo(model=long_name)])
    assert _callback_data(markup) == ["text:back"]

    _, markup = voice_menu(UserSession(), ["nova", long_name])
    assert _callback_data(markup) == ["audio:voice:nova", "audio:back"]


def test_choice_outside_catalog_is_rejected(upstream_factory, runtime_factory, context_factory) -> None:
    upstream = upstream_factory(lambda request: httpx.Response(200, json=["flux", "turbo"]))
    runtime = runtime_factory(upstream)

    query = _press("image:model:made-up", runtime, context_factory)

    assert runtime.sessions.get(42).image_model == "flux"
    assert query.answers == [t("en", "callback_error")]
    assert query.edits == []


def test_voice_outside_catalog_is_rejected(upstream_factory, runtime_factory, context_factory) -> None:
    runtime = runtime_factory(upstream_factory(lambda request: httpx.Response(500)))

    query = _press("audio:voice:robot", runtime, context_factory)

    assert runtime.sessions.get(42).audio_voice != "robot"
    assert query.answers == [t("en", "callback_error")]
