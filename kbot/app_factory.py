from __future__ import annotations

from typing import Awaitable, Callable

import httpx
from telegram import Update
from telegram.ext import Application, ApplicationBuilder, ContextTypes, MessageHandler, filters

from kbot.config import AppConfig
from kbot.dispatcher import Dispatcher
from kbot.handlers.messages import handle_text_message
from kbot.imgbun import ImgbunClient
from kbot.runtime import RuntimeContext
from kbot.session import SettingsSession
from kbot.settings_store import SessionRegistry


HandlerFn = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]


def register_handlers(application: Application, *, text_handler: HandlerFn) -> None:
    application.add_handler(MessageHandler(filters.TEXT & filters.ChatType.PRIVATE, text_handler))


def build_runtime(
    config: AppConfig,
    *,
    registry: SessionRegistry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RuntimeContext:
    http_client = httpx.AsyncClient(
        base_url=config.imgbun_base_url,
        timeout=config.imgbun_timeout_sec,
        transport=transport,
    )
    registry = registry or SessionRegistry()
    image_client = ImgbunClient(http_client, config.imgbun_api_key, font_size=config.imgbun_font_size)
    session = SettingsSession(registry)
    dispatcher = Dispatcher(session, image_client, registry)
    return RuntimeContext(
        registry=registry,
        session=session,
        image_client=image_client,
        dispatcher=dispatcher,
        http_client=http_client,
    )


def build_application(config: AppConfig, runtime: RuntimeContext) -> Application:
    application = ApplicationBuilder().token(config.telegram_bot_token).concurrent_updates(True).build()
    application.bot_data.update(runtime.to_bot_data())
    register_handlers(application, text_handler=handle_text_message)
    return application
