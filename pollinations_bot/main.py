"""Service entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import uvicorn

from pollinations_bot.bot_service import start_bot, stop_bot
from pollinations_bot.config import Config
from pollinations_bot.runtime import BotRuntime
from pollinations_bot.webhook import create_webhook_app

logger = logging.getLogger(__name__)


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "service.log")
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, encoding="utf-8"),
        ],
    )
    # httpx logs every request URL at INFO, which includes the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_polling(runtime: BotRuntime) -> None:
    application = await start_bot(runtime)
    try:
        await asyncio.Event().wait()
    finally:
        await stop_bot(application)
        await runtime.client.aclose()


def run_webhook(runtime: BotRuntime) -> None:
    app = create_webhook_app(runtime)
    uvicorn.run(
        app,
        host=runtime.config.WEBHOOK_LISTEN,
        port=runtime.config.WEBHOOK_PORT,
        log_config=None,
    )


def main() -> None:
    config = Config()
    setup_logging(config.LOG_DIR, config.LOG_LEVEL)
    config.require_token()
    runtime = BotRuntime.from_config(config)
    logger.info(
        "Configuration loaded run_mode=%s constrained=%s username=%s",
        config.RUN_MODE,
        config.CONSTRAINED_BUDGET,
        config.BOT_USERNAME,
    )
    try:
        if config.RUN_MODE == "WEBHOOK":
            run_webhook(runtime)
        else:
            asyncio.run(run_polling(runtime))
    except KeyboardInterrupt:
        sys.stdout.write("Service stopped by user.\n")


if __name__ == "__main__":
    main()
