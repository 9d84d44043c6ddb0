from __future__ import annotations

import logging
from dataclasses import dataclass

from kbot.errors import ImageError
from kbot.imgbun import ImgbunClient
from kbot.keyboards import BTN_CANCEL, BTN_SAVE, BTN_SETTINGS
from kbot.models import ColorField, Keyboard, Reply
from kbot.session import SettingsSession
from kbot.settings_store import SessionRegistry

logger = logging.getLogger("bot")

GENERIC_ERROR_TEXT = "Something went wrong while handling your message. Please try again."

COMMAND_START = "start"
COMMAND_SETTINGS = "settings"
COMMAND_SAVE = "save_settings"
COMMAND_CANCEL = "cancel_settings"

BOT_COMMANDS: list[tuple[str, str]] = [
    (COMMAND_START, "Show the main menu"),
    (COMMAND_SETTINGS, "Customize image colors"),
    (ColorField.TEXT.command, "Set text color (hex)"),
    (ColorField.BACKGROUND.command, "Set background color (hex)"),
    (COMMAND_SAVE, "Save color settings"),
    (COMMAND_CANCEL, "Discard color changes"),
]


@dataclass(frozen=True)
class ChatEvent:
    sender_id: int
    text: str
    command: str | None = None
    args: tuple[str, ...] = ()
    button: str | None = None
    first_name: str = ""


def parse_command(text: str) -> tuple[str, tuple[str, ...]] | None:
    parts = text.split()
    if not parts or not parts[0].startswith("/") or len(parts[0]) < 2:
        return None
    name = parts[0][1:].split("@", 1)[0].lower()
    if not name:
        return None
    return name, tuple(parts[1:])


class Dispatcher:
    """Single entry point from chat events to replies.

    Events of one user are handled one at a time; different users run concurrently.
    """

    def __init__(
        self,
        session: SettingsSession,
        image_client: ImgbunClient,
        registry: SessionRegistry,
    ) -> None:
        self._session = session
        self._image_client = image_client
        self._registry = registry

    async def handle(self, event: ChatEvent) -> Reply:
        async with self._registry.serialized(event.sender_id):
            try:
                return await self._route(event)
            except Exception:
                logger.exception("event handling failed user_id=%s text=%r", event.sender_id, event.text)
                return Reply(GENERIC_ERROR_TEXT)

    async def _route(self, event: ChatEvent) -> Reply:
        user_id = event.sender_id
        if event.command is not None:
            return self._route_command(event)
        if event.button is not None:
            return self._route_button(user_id, event.button)
        consumed = self._session.take_text(user_id, event.text)
        if consumed is not None:
            return consumed
        return await self._generate(user_id, event.text)

    def _route_command(self, event: ChatEvent) -> Reply:
        user_id = event.sender_id
        name = event.command
        logger.info("command user_id=%s name=%s args=%s", user_id, name, len(event.args))
        if name == COMMAND_START:
            return self._session.start(user_id, event.first_name)
        if name == COMMAND_SETTINGS:
            return self._session.enter(user_id)
        if name == COMMAND_SAVE:
            return self._session.save(user_id)
        if name == COMMAND_CANCEL:
            return self._session.cancel(user_id)
        for field in ColorField:
            if name == field.command:
                value = event.args[0] if event.args else None
                return self._session.set_color(user_id, field, value)
        keyboard = Keyboard.SETTINGS_MENU if self._registry.is_in_settings(user_id) else Keyboard.MAIN_MENU
        return Reply(f"Unknown command /{name}. Use /start to see what I can do.", keyboard)

    def _route_button(self, user_id: int, label: str) -> Reply:
        logger.info("button user_id=%s label=%r", user_id, label)
        if label == BTN_SETTINGS:
            return self._session.enter(user_id)
        if label == BTN_SAVE:
            return self._session.save(user_id)
        if label == BTN_CANCEL:
            return self._session.cancel(user_id)
        raise ValueError(f"Unknown button label {label!r}")

    async def _generate(self, user_id: int, text: str) -> Reply:
        settings = self._session.saved_settings(user_id)
        logger.info("image request user_id=%s chars=%s", user_id, len(text))
        try:
            image = await self._image_client.generate_image(user_id, text, settings)
        except ImageError as exc:
            logger.warning("image generation failed user_id=%s error=%s", user_id, type(exc).__name__)
            return Reply(exc.user_message)
        return Reply(image.caption, photo_url=image.url)
