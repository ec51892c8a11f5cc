"""Webhook entry point: Telegram posts updates here instead of long polling."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application

from pollinations_bot.bot_service import (
    LONG_RUNNING_COMMANDS,
    build_bot_application,
    parse_command,
    register_commands,
)
from pollinations_bot.i18n import t
from pollinations_bot.runtime import BotRuntime

logger = logging.getLogger(__name__)


def classify_update(update: Update, bot_username: str) -> str:
    """Return "ignore", "background" or "inline" for an incoming update."""
    message = update.effective_message
    text = (message.text or message.caption) if message is not None else None
    if text and text.startswith("/"):
        parsed = parse_command(text, bot_username)
        if parsed is None:
            return "ignore"
        if parsed[0] in LONG_RUNNING_COMMANDS:
            return "background"
    return "inline"


async def _notify_failure(application: Application, runtime: BotRuntime, update: Update) -> None:
    chat = update.effective_chat
    if chat is None:
        return
    lang = None
    if update.effective_user is not None:
        lang = runtime.sessions.get(update.effective_user.id).language
    try:
        await application.bot.send_message(chat_id=chat.id, text=t(lang, "generic_error"))
    except TelegramError:
        logger.exception("Failed to send failure notice chat_id=%s", chat.id)


async def _process_in_background(
    application: Application, runtime: BotRuntime, update: Update
) -> None:
    try:
        await application.process_update(update)
    except Exception:
        logger.exception("Background processing failed update_id=%s", update.update_id)
        await _notify_failure(application, runtime, update)
    else:
        logger.info("Background processing finished update_id=%s", update.update_id)


def create_webhook_app(
    runtime: BotRuntime, application: Optional[Application] = None
) -> FastAPI:
    """Create the FastAPI app that feeds webhook updates into the bot."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bot_app = application or build_bot_application(runtime, with_updater=False)
        await bot_app.initialize()
        await bot_app.start()
        app.state.runtime = runtime
        app.state.application = bot_app
        app.state.background_tasks = set()
        logger.info("Webhook app started username=%s", runtime.bot_username)
        try:
            yield
        finally:
            pending = list(app.state.background_tasks)
            if pending:
                logger.info("Waiting for %d background updates", len(pending))
                await asyncio.gather(*pending, return_exceptions=True)
            await bot_app.stop()
            await bot_app.shutdown()
            await runtime.client.aclose()

    app = FastAPI(lifespan=lifespan)

    @app.post("/")
    async def receive_update(request: Request) -> dict[str, Any]:
        bot_app: Application = request.app.state.application
        payload = await request.json()
        update = Update.de_json(payload, bot_app.bot)
        if update is None:
            return {"ok": True}
        route = classify_update(update, runtime.bot_username)
        logger.info("Webhook update update_id=%s route=%s", update.update_id, route)
        if route == "ignore":
            return {"ok": True}
        if route == "background":
            # Telegram retries deliveries that are not acknowledged quickly.
            task = asyncio.create_task(_process_in_background(bot_app, runtime, update))
            tasks: set[asyncio.Task] = request.app.state.background_tasks
            tasks.add(task)
            task.add_done_callback(tasks.discard)
            return {"ok": True, "status": "processing"}
        await bot_app.process_update(update)
        return {"ok": True}

    @app.get("/")
    async def setup_webhook(request: Request):
        bot_app: Application = request.app.state.application
        webhook_url = runtime.config.WEBHOOK_URL
        if not webhook_url:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "WEBHOOK_URL is not configured"},
            )
        try:
            await bot_app.bot.set_webhook(webhook_url)
        except TelegramError as exc:
            logger.exception("Failed to set webhook url=%s", webhook_url)
            return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})
        try:
            await register_commands(bot_app)
        except TelegramError:
            logger.exception("Failed to register bot commands")
        logger.info("Webhook set url=%s", webhook_url)
        return {
            "success": True,
            "message": "Webhook set successfully",
            "webhook_url": webhook_url,
            "bot_id": runtime.config.bot_id,
            "bot_username": bot_app.bot.username,
        }

    return app
