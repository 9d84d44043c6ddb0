from __future__ import annotations

import logging

from telegram import Message, Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from kbot.dispatcher import ChatEvent, parse_command
from kbot.keyboards import BUTTON_LABELS, render_keyboard
from kbot.models import Reply
from kbot.runtime import RuntimeContext

logger = logging.getLogger("bot")

SEND_PHOTO_FAILED_TEXT = "Failed to send the generated image."


def _runtime(context: ContextTypes.DEFAULT_TYPE) -> RuntimeContext:
    return context.application.bot_data["runtime"]


def event_from_update(update: Update) -> ChatEvent | None:
    message = update.message
    user = update.effective_user
    if not message or not message.text or not user:
        return None
    text = message.text
    parsed = parse_command(text)
    if parsed is not None:
        name, args = parsed
        return ChatEvent(sender_id=user.id, text=text, command=name, args=args, first_name=user.first_name or "")
    button = text.strip()
    if button in BUTTON_LABELS:
        return ChatEvent(sender_id=user.id, text=text, button=button, first_name=user.first_name or "")
    return ChatEvent(sender_id=user.id, text=text, first_name=user.first_name or "")


async def send_reply(message: Message, reply: Reply) -> None:
    markup = render_keyboard(reply.keyboard)
    if reply.is_photo:
        try:
            await message.reply_photo(reply.photo_url, caption=reply.text, reply_markup=markup)
            return
        except TelegramError:
            logger.exception("Failed to send photo chat_id=%s url=%s", message.chat_id, reply.photo_url)
            await message.reply_text(SEND_PHOTO_FAILED_TEXT, reply_markup=markup)
            return
    await message.reply_text(reply.text, reply_markup=markup)


async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    event = event_from_update(update)
    if event is None or update.message is None:
        return
    logger.info(
        "private msg user_id=%s command=%s button=%s",
        event.sender_id,
        event.command,
        event.button,
    )
    reply = await _runtime(context).dispatcher.handle(event)
    await send_reply(update.message, reply)
