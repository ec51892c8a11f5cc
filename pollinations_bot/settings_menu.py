"""Inline settings menus for /settings and /language."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from pollinations_bot.i18n import LANGUAGE_NAMES, SUPPORTED_LANGUAGES, t
from pollinations_bot.models import TextModelInfo
from pollinations_bot.runtime import BotRuntime
from pollinations_bot.session_store import UserSession

logger = logging.getLogger(__name__)

IMAGE_SIZES = [
    (512, 512),
    (768, 768),
    (1024, 1024),
    (1024, 1536),
    (1536, 1024),
    (1200, 1800),
    (1800, 1200),
]
CALLBACK_PATTERN = r"^(settings|image|text|audio|other|lang):"
# Telegram rejects the whole keyboard when any callback_data exceeds this.
CALLBACK_DATA_LIMIT = 64

Menu = tuple[str, InlineKeyboardMarkup]


def _button(text: str, data: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=data)


def _fits(data: str) -> bool:
    return len(data.encode("utf-8")) <= CALLBACK_DATA_LIMIT


def _choices(prefix: str, values: Sequence[str]) -> list[tuple[str, str]]:
    """Pair each catalog value with its callback data, dropping values too long to fit."""
    choices = []
    for value in values:
        data = f"{prefix}{value}"
        if not _fits(data):
            logger.warning("catalog entry too long for a button prefix=%s value=%s", prefix, value)
            continue
        choices.append((value, data))
    return choices


def _mark(label: str, selected: bool) -> str:
    return f"{label} ✅" if selected else label


def _pairs(buttons: Sequence[InlineKeyboardButton]) -> list[list[InlineKeyboardButton]]:
    return [list(buttons[index : index + 2]) for index in range(0, len(buttons), 2)]


def _flag(session: UserSession, enabled: bool) -> str:
    return t(session.language, "enabled" if enabled else "disabled")


def main_menu(session: UserSession) -> Menu:
    lang = session.language
    text = t(
        lang,
        "settings_main",
        image_model=session.image_model,
        width=session.image_width,
        height=session.image_height,
        enhance=_flag(session, session.enhance_prompt),
        text_model=session.text_model,
        voice=session.audio_voice,
        private=_flag(session, session.private_mode),
        language=LANGUAGE_NAMES.get(lang, lang),
    )
    keyboard = [
        [_button(t(lang, "button_image"), "settings:image")],
        [_button(t(lang, "button_text"), "settings:text")],
        [_button(t(lang, "button_audio"), "settings:audio")],
        [_button(t(lang, "button_language"), "settings:language")],
        [_button(t(lang, "button_other"), "settings:other")],
    ]
    return text, InlineKeyboardMarkup(keyboard)


def image_menu(session: UserSession) -> Menu:
    lang = session.language
    state = t(lang, "on" if session.enhance_prompt else "off")
    text = t(
        lang,
        "settings_image",
        image_model=session.image_model,
        width=session.image_width,
        height=session.image_height,
        enhance=_flag(session, session.enhance_prompt),
    )
    keyboard = [
        [_button(t(lang, "button_change_model"), "image:model")],
        [_button(t(lang, "button_change_size"), "image:size")],
        [_button(t(lang, "button_enhance", state=state), "image:enhance")],
        [_button(t(lang, "back"), "settings:main")],
    ]
    return text, InlineKeyboardMarkup(keyboard)


def text_menu(session: UserSession) -> Menu:
    lang = session.language
    keyboard = [
        [_button(t(lang, "button_change_model"), "text:model")],
        [_button(t(lang, "back"), "settings:main")],
    ]
    return t(lang, "settings_text", text_model=session.text_model), InlineKeyboardMarkup(keyboard)


def audio_menu(session: UserSession) -> Menu:
    lang = session.language
    keyboard = [
        [_button(t(lang, "button_change_voice"), "audio:voice")],
        [_button(t(lang, "back"), "settings:main")],
    ]
    return t(lang, "settings_audio", voice=session.audio_voice), InlineKeyboardMarkup(keyboard)


def other_menu(session: UserSession) -> Menu:
    lang = session.language
    state = t(lang, "on" if session.private_mode else "off")
    keyboard = [
        [_button(t(lang, "button_private", state=state), "other:private")],
        [_button(t(lang, "back"), "settings:main")],
    ]
    text = t(lang, "settings_other", private=_flag(session, session.private_mode))
    return text, InlineKeyboardMarkup(keyboard)


def language_menu(session: UserSession, *, with_back: bool = True) -> Menu:
    lang = session.language
    keyboard = [
        [_button(_mark(LANGUAGE_NAMES[code], code == lang), f"lang:{code}")]
        for code in SUPPORTED_LANGUAGES
    ]
    if with_back:
        keyboard.append([_button(t(lang, "back"), "settings:main")])
        text = t(lang, "settings_language", language=LANGUAGE_NAMES.get(lang, lang))
    else:
        text = t(lang, "language_prompt")
    return text, InlineKeyboardMarkup(keyboard)


def image_model_menu(session: UserSession, models: Sequence[str]) -> Menu:
    lang = session.language
    buttons = [
        _button(_mark(model, model == session.image_model), data)
        for model, data in _choices("image:model:", models)
    ]
    keyboard = _pairs(buttons)
    keyboard.append([_button(t(lang, "back"), "image:back")])
    return t(lang, "select_image_model", model=session.image_model), InlineKeyboardMarkup(keyboard)


def _text_model_label(info: TextModelInfo, selected: bool) -> str:
    badges = "".join(
        badge
        for badge, enabled in (("👁️", info.vision), ("🤔", info.reasoning), ("🔒", info.censored))
        if enabled
    )
    label = _mark(info.model, selected)
    return f"{label} {badges}" if badges else label


def text_model_menu(session: UserSession, models: Sequence[TextModelInfo]) -> Menu:
    lang = session.language
    by_name = {info.model: info for info in models if info.type == "text"}
    keyboard = [
        [_button(_text_model_label(by_name[name], name == session.text_model), data)]
        for name, data in _choices("text:model:", list(by_name))
    ]
    keyboard.append([_button(t(lang, "back"), "text:back")])
    return t(lang, "select_text_model", model=session.text_model), InlineKeyboardMarkup(keyboard)


def voice_menu(session: UserSession, voices: Sequence[str]) -> Menu:
    lang = session.language
    buttons = [
        _button(_mark(voice, voice == session.audio_voice), data)
        for voice, data in _choices("audio:voice:", voices)
    ]
    keyboard = _pairs(buttons)
    keyboard.append([_button(t(lang, "back"), "audio:back")])
    return t(lang, "select_voice", voice=session.audio_voice), InlineKeyboardMarkup(keyboard)


def size_menu(session: UserSession) -> Menu:
    lang = session.language
    keyboard = [
        [
            _button(
                _mark(
                    f"{width}x{height}",
                    (width, height) == (session.image_width, session.image_height),
                ),
                f"image:size:{width}:{height}",
            )
        ]
        for width, height in IMAGE_SIZES
    ]
    keyboard.append([_button(t(lang, "back"), "image:back")])
    text = t(lang, "select_size", width=session.image_width, height=session.image_height)
    return text, InlineKeyboardMarkup(keyboard)


async def settings_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime: BotRuntime = context.bot_data["runtime"]
    if update.message is None or update.effective_user is None:
        return
    text, markup = main_menu(runtime.sessions.get(update.effective_user.id))
    await update.message.reply_text(text, reply_markup=markup)


async def language_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime: BotRuntime = context.bot_data["runtime"]
    if update.message is None or update.effective_user is None:
        return
    session = runtime.sessions.get(update.effective_user.id)
    text, markup = language_menu(session, with_back=False)
    await update.message.reply_text(text, reply_markup=markup)


async def _show(update: Update, menu: Menu) -> None:
    text, markup = menu
    try:
        await update.callback_query.edit_message_text(text, reply_markup=markup)
    except BadRequest as exc:
        if "not modified" not in str(exc).lower():
            raise


async def _reject_choice(query, lang: str, field: str, value: str) -> None:
    logger.warning("rejected %s not in catalog value=%s", field, value)
    await query.answer(t(lang, "callback_error"))


async def settings_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route settings:, image:, text:, audio:, other: and lang: callbacks."""
    runtime: BotRuntime = context.bot_data["runtime"]
    query = update.callback_query
    if query is None or query.data is None:
        return
    user_id = query.from_user.id
    sessions = runtime.sessions
    session = sessions.get(user_id)
    lang = session.language
    prefix, _, rest = query.data.partition(":")
    action, _, value = rest.partition(":")
    notice: Optional[str] = None
    logger.info("settings callback user_id=%s data=%s", user_id, query.data)

    if prefix == "settings":
        menus = {
            "main": main_menu,
            "image": image_menu,
            "text": text_menu,
            "audio": audio_menu,
            "other": other_menu,
            "language": language_menu,
        }
        builder = menus.get(action)
        if builder is None:
            await query.answer()
            return
        await query.answer()
        await _show(update, builder(session))
        return

    if prefix == "image":
        if action == "model" and not value:
            await query.answer(t(lang, "loading_models"))
            models = await runtime.client.list_image_models()
            await _show(update, image_model_menu(session, models))
            return
        if action == "model":
            if value not in await runtime.client.list_image_models():
                await _reject_choice(query, lang, "image_model", value)
                return
            sessions.update(user_id, image_model=value)
            notice = t(lang, "image_model_set", model=value)
        elif action == "size" and not value:
            await query.answer()
            await _show(update, size_menu(session))
            return
        elif action == "size":
            width, height = _parse_size(value)
            if width is None or height is None:
                await query.answer(t(lang, "callback_error"))
                return
            sessions.update(user_id, image_width=width, image_height=height)
            notice = t(lang, "image_size_set", width=width, height=height)
        elif action == "enhance":
            enabled = not session.enhance_prompt
            sessions.update(user_id, enhance_prompt=enabled)
            notice = t(lang, "enhance_toggled", state=t(lang, _state_key(enabled)))
        await query.answer(notice)
        await _show(update, image_menu(session))
        return

    if prefix == "text":
        if action == "model" and not value:
            await query.answer(t(lang, "loading_models"))
            models = await runtime.client.list_text_models()
            await _show(update, text_model_menu(session, models))
            return
        if action == "model":
            models = await runtime.client.list_text_models()
            if value not in [info.model for info in models if info.type == "text"]:
                await _reject_choice(query, lang, "text_model", value)
                return
            sessions.update(user_id, text_model=value)
            notice = t(lang, "text_model_set", model=value)
        await query.answer(notice)
        await _show(update, text_menu(session))
        return

    if prefix == "audio":
        if action == "voice" and not value:
            await query.answer(t(lang, "loading_models"))
            voices = await runtime.client.list_voices(session.audio_model)
            await _show(update, voice_menu(session, voices))
            return
        if action == "voice":
            if value not in await runtime.client.list_voices(session.audio_model):
                await _reject_choice(query, lang, "audio_voice", value)
                return
            sessions.update(user_id, audio_voice=value)
            notice = t(lang, "voice_set", voice=value)
        await query.answer(notice)
        await _show(update, audio_menu(session))
        return

    if prefix == "other":
        if action == "private":
            enabled = not session.private_mode
            sessions.update(user_id, private_mode=enabled)
            notice = t(lang, "private_toggled", state=t(lang, _state_key(enabled)))
        await query.answer(notice)
        await _show(update, other_menu(session))
        return

    if prefix == "lang" and action in SUPPORTED_LANGUAGES:
        sessions.update(user_id, language=action)
        await query.answer(t(action, "language_set"))
        await _show(update, main_menu(session))
        return

    logger.warning("unknown settings callback data=%s", query.data)
    await query.answer()


def _state_key(enabled: bool) -> str:
    return "state_enabled" if enabled else "state_disabled"


def _parse_size(value: str) -> tuple[Optional[int], Optional[int]]:
    width, _, height = value.partition(":")
    if not width.isdigit() or not height.isdigit():
        return None, None
    size = (int(width), int(height))
    if size not in IMAGE_SIZES:
        return None, None
    return size
