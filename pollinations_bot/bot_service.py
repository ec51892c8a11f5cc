"""Telegram bot service: command routing and result presentation."""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from telegram import (
    BotCommand,
    BotCommandScopeAllGroupChats,
    BotCommandScopeDefault,
    Message,
    Update,
)
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from pollinations_bot.delivery import delete_quietly, edit_quietly, send_photo, send_speech
from pollinations_bot.i18n import SUPPORTED_LANGUAGES, t
from pollinations_bot.models import AudioRequest, ImageRequest, ImageResult
from pollinations_bot.pollinations_client import PayloadTooSmall, UpstreamError, root_cause
from pollinations_bot.prompts import CAPTION_PROMPT_LIMIT, caption_prompt, clean_argument
from pollinations_bot.runtime import BotRuntime
from pollinations_bot.settings_menu import (
    CALLBACK_PATTERN,
    language_command,
    settings_callback,
    settings_command,
)

logger = logging.getLogger(__name__)

TELEGRAM_MESSAGE_LIMIT = 4096
LONG_RUNNING_COMMANDS = frozenset({"image", "tts", "stt", "chat"})
MENU_COMMANDS = (
    "start",
    "help",
    "image",
    "tts",
    "stt",
    "chat",
    "clearchat",
    "models",
    "settings",
    "language",
)
_COMMAND_RE = re.compile(r"^/(\w+)(?:@(\w+))?(?:\s+(.*))?$", re.DOTALL)
_STAGE_TEXTS = {
    "alternative-model": "status_image_alternative",
    "shortened-prompt": "status_image_final",
}


def parse_command(text: Optional[str], bot_username: str) -> Optional[tuple[str, str]]:
    """Split "/cmd@Bot argument" into (cmd, argument).

    Returns None for non-commands and for commands addressed to another bot.
    """
    if not text:
        return None
    match = _COMMAND_RE.match(text.strip())
    if match is None:
        return None
    command, mention, argument = match.groups()
    if mention and mention.lower() != bot_username.lower():
        return None
    return command.lower(), clean_argument(argument)


def _command_argument(message: Message, runtime: BotRuntime) -> str:
    parsed = parse_command(message.text or message.caption, runtime.bot_username)
    return parsed[1] if parsed else ""


def _runtime(context: ContextTypes.DEFAULT_TYPE) -> BotRuntime:
    return context.bot_data["runtime"]


def _failure_kind(exc: BaseException) -> str:
    cause = root_cause(exc)
    if isinstance(cause, httpx.TimeoutException):
        return "timeout"
    if isinstance(cause, httpx.HTTPStatusError):
        return "not_found" if cause.response.status_code == 404 else "rejected"
    if isinstance(cause, PayloadTooSmall):
        return "too_small"
    return "other"


def describe_image_failure(lang: str, exc: BaseException) -> str:
    kind = _failure_kind(exc)
    detail_key = {
        "timeout": "image_failed_timeout",
        "not_found": "image_failed_not_found",
    }.get(kind, "image_failed_other")
    return "\n\n".join(
        [t(lang, "image_failed"), t(lang, detail_key), t(lang, "image_failed_footer")]
    )


def describe_audio_failure(lang: str, exc: BaseException) -> str:
    parts = [t(lang, "tts_failed")]
    detail_key = {
        "too_small": "tts_failed_too_small",
        "timeout": "tts_failed_timeout",
        "rejected": "tts_failed_rejected",
    }.get(_failure_kind(exc))
    if detail_key:
        parts.append(t(lang, detail_key))
    parts.append(t(lang, "tts_failed_footer"))
    return "\n\n".join(parts)


def describe_transcription_failure(lang: str, detail_key: Optional[str] = None) -> str:
    parts = [t(lang, "stt_failed")]
    if detail_key:
        parts.append(t(lang, detail_key))
    parts.append(t(lang, "stt_failed_footer"))
    return "\n\n".join(parts)


def build_caption(
    lang: str,
    *,
    prompt: str,
    model: str,
    width: int,
    height: int,
    alternative_model: bool = False,
    shortened_prompt: bool = False,
) -> str:
    lines = [t(lang, "caption_title"), ""]
    if alternative_model:
        lines.append(t(lang, "caption_alternative_model"))
    if shortened_prompt:
        lines.append(t(lang, "caption_shortened"))
        lines.append(t(lang, "caption_shortened_prompt", prompt=caption_prompt(prompt)))
    else:
        lines.append(t(lang, "caption_prompt", prompt=caption_prompt(prompt)))
    lines.append("")
    lines.append(t(lang, "caption_model", model=model))
    lines.append(t(lang, "caption_resolution", width=width, height=height))
    return "\n".join(lines)


def _result_caption(lang: str, result: ImageResult) -> str:
    return build_caption(
        lang,
        prompt=result.prompt,
        model=result.model,
        width=result.width,
        height=result.height,
        alternative_model=result.used_alternative_model,
        shortened_prompt=result.used_shortened_prompt,
    )


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    if not text:
        return []
    return [text[index : index + limit] for index in range(0, len(text), limit)]


async def _reply_long(message: Message, text: str) -> None:
    for chunk in split_message(text):
        await message.reply_text(chunk)


async def _start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    lang = runtime.sessions.get(user.id).language
    await message.reply_text(t(lang, "start", name=user.first_name or ""))


async def _help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    await message.reply_text(t(runtime.sessions.get(user.id).language, "help"))


async def _send_image_by_url(
    message: Message, runtime: BotRuntime, request: ImageRequest, lang: str
) -> str:
    """Let Telegram fetch the image, shortening the prompt when a fetch fails.

    Telegram rejects a URL it cannot fetch, which is how an upstream failure
    shows up in this mode. Returns the prompt that was sent.
    """
    last_error: Optional[BaseException] = None
    for sent_prompt, url in runtime.client.image_url_candidates(request):
        caption = build_caption(
            lang,
            prompt=sent_prompt,
            model=request.model,
            width=request.width,
            height=request.height,
            shortened_prompt=sent_prompt != request.prompt,
        )
        try:
            await message.reply_photo(photo=url, caption=caption)
        except TelegramError as exc:
            logger.warning("image url rejected chars=%d: %s", len(sent_prompt), exc)
            last_error = exc
            continue
        logger.info("image sent by url chars=%d", len(sent_prompt))
        return sent_prompt
    raise UpstreamError("Telegram could not fetch any image URL") from last_error


async def _image(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    session = runtime.sessions.get(user.id)
    lang = session.language
    prompt = _command_argument(message, runtime)
    if not prompt:
        await message.reply_text(t(lang, "usage_image"))
        return
    request = ImageRequest(
        prompt=prompt,
        model=session.image_model,
        width=session.image_width,
        height=session.image_height,
        enhance=session.enhance_prompt,
        private=session.private_mode,
    )
    logger.info(
        "image request user_id=%s model=%s size=%dx%d chars=%d by_url=%s",
        user.id,
        request.model,
        request.width,
        request.height,
        len(prompt),
        runtime.photo_by_url,
    )

    if runtime.photo_by_url:
        try:
            await _send_image_by_url(message, runtime, request, lang)
        except UpstreamError as exc:
            logger.warning("image by url failed user_id=%s: %s", user.id, exc)
            await message.reply_text(describe_image_failure(lang, exc))
            return
        if len(prompt) > CAPTION_PROMPT_LIMIT:
            await _reply_long(message, t(lang, "full_prompt", prompt=prompt))
        return

    status = await message.reply_text(t(lang, "status_image"))

    async def on_stage(label: str) -> None:
        await edit_quietly(status, t(lang, _STAGE_TEXTS.get(label, "status_image")))

    try:
        result = await runtime.client.generate_image_with_fallback(request, on_stage=on_stage)
    except UpstreamError as exc:
        logger.warning("image generation failed user_id=%s: %s", user.id, exc)
        await delete_quietly(status)
        await message.reply_text(describe_image_failure(lang, exc))
        return

    sent = await send_photo(message, result.data, _result_caption(lang, result))
    await delete_quietly(status)
    if not sent:
        await message.reply_text(t(lang, "delivery_failed"))
        return
    if len(prompt) > CAPTION_PROMPT_LIMIT:
        await _reply_long(message, t(lang, "full_prompt", prompt=prompt))


async def _tts(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    session = runtime.sessions.get(user.id)
    lang = session.language
    text = _command_argument(message, runtime)
    if not text:
        await message.reply_text(t(lang, "usage_tts"))
        return
    status = await message.reply_text(t(lang, "status_tts"))
    request = AudioRequest(text=text, voice=session.audio_voice, model=session.audio_model)
    try:
        data = await runtime.client.generate_audio(request)
    except UpstreamError as exc:
        logger.warning("speech synthesis failed user_id=%s: %s", user.id, exc)
        await delete_quietly(status)
        await message.reply_text(describe_audio_failure(lang, exc))
        return
    sent = await send_speech(message, data)
    await delete_quietly(status)
    if not sent:
        await message.reply_text(t(lang, "delivery_failed"))


def _audio_format(replied: Message) -> str:
    if replied.voice is not None:
        return "ogg"
    mime_type = (replied.audio.mime_type or "") if replied.audio else ""
    subtype = mime_type.rpartition("/")[2].lower()
    if subtype in {"mpeg", "mp3"}:
        return "mp3"
    if subtype in {"ogg", "wav", "webm", "m4a", "mp4", "flac"}:
        return subtype
    return "mp3"


async def _stt(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    lang = runtime.sessions.get(user.id).language
    replied = message.reply_to_message
    media = (replied.voice or replied.audio) if replied is not None else None
    if media is None:
        await message.reply_text(t(lang, "usage_stt"))
        return
    status = await message.reply_text(t(lang, "status_stt"))
    try:
        telegram_file = await context.bot.get_file(media.file_id)
        data = bytes(await telegram_file.download_as_bytearray())
    except TelegramError as exc:
        logger.warning("voice download failed user_id=%s: %s", user.id, exc)
        await delete_quietly(status)
        await message.reply_text(describe_transcription_failure(lang, "stt_failed_download"))
        return

    try:
        text = await runtime.client.transcribe_audio(data, _audio_format(replied))
    except ValueError as exc:
        logger.info("transcription rejected user_id=%s: %s", user.id, exc)
        await delete_quietly(status)
        await message.reply_text(describe_transcription_failure(lang, "stt_failed_too_small"))
        return
    except UpstreamError as exc:
        logger.warning("transcription failed user_id=%s: %s", user.id, exc)
        await delete_quietly(status)
        await message.reply_text(describe_transcription_failure(lang))
        return
    await delete_quietly(status)
    await _reply_long(message, t(lang, "stt_result", text=text))


async def _chat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    sessions = runtime.sessions
    session = sessions.get(user.id)
    lang = session.language
    text = _command_argument(message, runtime)
    if not text:
        await message.reply_text(t(lang, "usage_chat"))
        return
    sessions.append_message(user.id, "user", text)
    messages = [{"role": "system", "content": runtime.config.SYSTEM_PROMPT}]
    messages.extend(sessions.conversation(user.id))
    status = await message.reply_text(t(lang, "status_chat"))
    try:
        reply = await runtime.client.generate_text(
            messages, model=session.text_model, private=session.private_mode
        )
    except UpstreamError as exc:
        logger.warning("chat failed user_id=%s model=%s: %s", user.id, session.text_model, exc)
        await delete_quietly(status)
        key = "chat_failed_timeout" if _failure_kind(exc) == "timeout" else "chat_failed"
        await message.reply_text(t(lang, key))
        return
    sessions.append_message(user.id, "assistant", reply)
    await delete_quietly(status)
    await _reply_long(message, reply)


async def _clearchat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    runtime.sessions.clear_conversation(user.id)
    await message.reply_text(t(runtime.sessions.get(user.id).language, "chat_cleared"))


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


async def _image_models_text(runtime: BotRuntime, lang: str) -> str:
    models = await runtime.client.list_image_models()
    return t(lang, "models_image", items=_bullets(models))


async def _text_models_text(runtime: BotRuntime, lang: str) -> str:
    lines = []
    for info in await runtime.client.list_text_models():
        line = f"{info.model} ({info.type})"
        if info.description:
            line = f"{line}: {info.description}"
        lines.append(line)
    return t(lang, "models_text", items=_bullets(lines))


async def _voices_text(runtime: BotRuntime, lang: str, audio_model: str) -> str:
    voices = await runtime.client.list_voices(audio_model)
    if not voices:
        return t(lang, "no_voices")
    return t(lang, "models_voices", items=_bullets(voices))


async def _models(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    lang = runtime.sessions.get(user.id).language
    sections = [
        await _image_models_text(runtime, lang),
        await _text_models_text(runtime, lang),
        t(lang, "models_hint"),
    ]
    await _reply_long(message, "\n\n".join(sections))


async def _imagemodels(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    lang = runtime.sessions.get(user.id).language
    await _reply_long(message, await _image_models_text(runtime, lang))


async def _textmodels(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    lang = runtime.sessions.get(user.id).language
    await _reply_long(message, await _text_models_text(runtime, lang))


async def _voices(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    runtime = _runtime(context)
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return
    session = runtime.sessions.get(user.id)
    await message.reply_text(await _voices_text(runtime, session.language, session.audio_model))


async def _error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Unhandled error while processing update", exc_info=context.error)
    if not isinstance(update, Update):
        return
    lang = None
    runtime: Optional[BotRuntime] = context.bot_data.get("runtime")
    if runtime is not None and update.effective_user is not None:
        lang = runtime.sessions.get(update.effective_user.id).language
    try:
        if update.callback_query is not None:
            await update.callback_query.answer(t(lang, "callback_error"))
        elif update.effective_message is not None:
            await update.effective_message.reply_text(t(lang, "generic_error"))
    except TelegramError:
        logger.exception("Failed to notify user about an unhandled error")


HANDLERS = {
    "start": _start,
    "help": _help,
    "image": _image,
    "tts": _tts,
    "stt": _stt,
    "chat": _chat,
    "clearchat": _clearchat,
    "models": _models,
    "imagemodels": _imagemodels,
    "textmodels": _textmodels,
    "voices": _voices,
    "settings": settings_command,
    "language": language_command,
}


def build_bot_application(runtime: BotRuntime, *, with_updater: bool = True) -> Application:
    builder = (
        ApplicationBuilder()
        .token(runtime.config.require_token())
        .concurrent_updates(True)
    )
    if not with_updater:
        builder = builder.updater(None)
    application = builder.build()
    application.bot_data["runtime"] = runtime
    for command, handler in HANDLERS.items():
        application.add_handler(CommandHandler(command, handler))
    application.add_handler(CallbackQueryHandler(settings_callback, pattern=CALLBACK_PATTERN))
    application.add_error_handler(_error_handler)
    return application


async def register_commands(application: Application) -> None:
    """Publish the command menu for private and group chats in every language."""
    for language in SUPPORTED_LANGUAGES:
        commands = [BotCommand(name, t(language, f"command_{name}")) for name in MENU_COMMANDS]
        language_code = None if language == "en" else language
        for scope in (BotCommandScopeDefault(), BotCommandScopeAllGroupChats()):
            await application.bot.set_my_commands(
                commands, scope=scope, language_code=language_code
            )
    logger.info("Bot commands registered languages=%s", ",".join(SUPPORTED_LANGUAGES))


async def start_bot(runtime: BotRuntime) -> Application:
    application = build_bot_application(runtime)
    await application.initialize()
    await application.start()
    try:
        await register_commands(application)
    except TelegramError:
        logger.exception("Failed to register bot commands")
    if application.updater is None:
        raise RuntimeError("Bot updater is not available")
    await application.updater.start_polling()
    logger.info("Bot started and polling username=%s", runtime.bot_username)
    return application


async def stop_bot(application: Application | None) -> None:
    if application is None:
        return
    if application.updater and application.updater.running:
        await application.updater.stop()
    await application.stop()
    await application.shutdown()
