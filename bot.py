from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

from telegram import BotCommand, Update

from kbot.app_factory import build_application, build_runtime
from kbot.config import load_config, load_dotenv
from kbot.dispatcher import BOT_COMMANDS
from kbot.errors import ConfigurationError
from kbot.version import __version__

logger = logging.getLogger("bot")


async def main() -> None:
    env_values = load_dotenv(Path(__file__).with_name(".env"))
    env_values.update(os.environ)
    try:
        config = load_config(Path(__file__).with_name("config.json"), env_values)
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # request URLs carry the Imgbun key
    logging.getLogger("httpx").setLevel(logging.WARNING)

    runtime = build_runtime(config)
    application = build_application(config, runtime)

    try:
        await application.initialize()
        me = await application.bot.get_me()
        await application.bot.set_my_commands([BotCommand(name, description) for name, description in BOT_COMMANDS])
        await application.start()
        await application.updater.start_polling(allowed_updates=[Update.MESSAGE])
        logger.info("kbot %s started as @%s (id=%s)", __version__, me.username, me.id)
        await asyncio.Event().wait()
    finally:
        if application.updater and application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
        await application.shutdown()
        await runtime.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("kbot stopped")
