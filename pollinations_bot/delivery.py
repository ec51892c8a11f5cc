"""Outbound file payloads and typed-then-generic delivery."""

from __future__ import annotations

import io
import logging
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from telegram import InputFile, Message
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

SendAttempt = Tuple[str, Callable[[], Awaitable[object]]]

IMAGE_FILENAME = "image.jpg"
SPEECH_FILENAME = "speech.mp3"


def input_file(data: bytes, filename: str) -> InputFile:
    """Wrap bytes for upload. Build a new one per send, uploads consume it."""
    buffer = io.BytesIO(data)
    buffer.name = filename
    return InputFile(buffer, filename=filename)


async def _send_first(kind: str, attempts: Sequence[SendAttempt]) -> bool:
    for label, send in attempts:
        try:
            await send()
        except TelegramError as exc:
            logger.warning("delivery %s via=%s failed: %s", kind, label, exc)
            continue
        logger.info("delivery %s via=%s ok", kind, label)
        return True
    return False


async def send_photo(
    message: Message,
    data: bytes,
    caption: Optional[str] = None,
    filename: str = IMAGE_FILENAME,
) -> bool:
    """Reply with a photo; fall back to a document."""
    return await _send_first(
        "photo",
        [
            (
                "photo",
                lambda: message.reply_photo(
                    photo=input_file(data, filename), caption=caption
                ),
            ),
            (
                "document",
                lambda: message.reply_document(
                    document=input_file(data, filename), caption=caption
                ),
            ),
        ],
    )


async def send_speech(
    message: Message, data: bytes, filename: str = SPEECH_FILENAME
) -> bool:
    """Reply with a voice note; fall back to a generic audio file."""
    return await _send_first(
        "speech",
        [
            ("voice", lambda: message.reply_voice(voice=input_file(data, filename))),
            ("audio", lambda: message.reply_audio(audio=input_file(data, filename))),
        ],
    )


async def edit_quietly(message: Optional[Message], text: str) -> None:
    if message is None:
        return
    try:
        await message.edit_text(text)
    except TelegramError as exc:
        logger.debug("status message edit failed: %s", exc)


async def delete_quietly(message: Optional[Message]) -> None:
    if message is None:
        return
    try:
        await message.delete()
    except TelegramError as exc:
        logger.warning("status message delete failed message_id=%s: %s", message.message_id, exc)
