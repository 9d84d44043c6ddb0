from __future__ import annotations

import logging

from kbot.colors import is_hex_color, normalize_color
from kbot.errors import StateInvariantViolation
from kbot.keyboards import BTN_CANCEL, BTN_SAVE, BTN_SETTINGS
from kbot.models import ColorField, Idle, InSettings, Keyboard, Reply, UserSettings
from kbot.settings_store import SessionRegistry
from kbot.version import __version__

logger = logging.getLogger("session")

INTERNAL_ERROR_TEXT = "An internal state error occurred. You have been exited from settings mode."


class SettingsSession:
    """Per-user settings workflow: enter, edit colors, then save or cancel.

    Edits go to a temporary copy of the user's settings; the saved settings only
    change on save. A user awaiting a color value is still in settings mode, with
    the awaited field recorded as pending.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    def saved_settings(self, user_id: int) -> UserSettings:
        return self._registry.get_or_default(user_id)

    def start(self, user_id: int, first_name: str = "") -> Reply:
        self._exit(user_id)
        name = first_name or "there"
        return Reply(
            f"Hello, {name}! I'm Kbot {__version__}.\n"
            f"Send me text to create an image, or press '{BTN_SETTINGS}' to customize colors."
        )

    def enter(self, user_id: int) -> Reply:
        current = self._registry.get_or_default(user_id)
        self._registry.set_temp(user_id, current)
        self._registry.set_state(user_id, InSettings())
        logger.info("settings enter user_id=%s text=%s bg=%s", user_id, current.text_color, current.bg_color)
        return Reply(
            "You are now in settings mode.\n"
            f"Current colors: Text=#{current.text_color}, Background=#{current.bg_color}\n"
            "Use commands or send the value after them:\n"
            "/tx_color [<value>] - text color (hex)\n"
            "/bg_color [<value>] - background color (hex)",
            Keyboard.SETTINGS_MENU,
        )

    def set_color(self, user_id: int, field: ColorField, value: str | None = None) -> Reply:
        if not self._registry.is_in_settings(user_id):
            logger.info("set color outside settings user_id=%s field=%s", user_id, field.command)
            return Reply(f"This command is only available in settings mode (use '{BTN_SETTINGS}' button).")
        if value is None:
            self._registry.set_state(user_id, InSettings(pending=field))
            logger.info("awaiting color user_id=%s field=%s", user_id, field.command)
            return Reply(
                f"Please send the desired {field.label} (hex, e.g., `{field.example}`):",
                Keyboard.SETTINGS_MENU,
            )
        color = normalize_color(value)
        if not is_hex_color(color):
            return Reply(
                f"'{color}' doesn't look like a valid HEX color (3 or 6 chars, 0-9, A-F). Please try again.",
                Keyboard.SETTINGS_MENU,
            )
        try:
            return self._apply(user_id, field, color, "set_color")
        except StateInvariantViolation as exc:
            return self._recover(user_id, exc)

    def take_text(self, user_id: int, text: str) -> Reply | None:
        """Consume free text while in settings mode; None means the user is idle."""
        state = self._registry.get_state(user_id)
        if not isinstance(state, InSettings):
            return None
        if state.pending is None:
            logger.info("unrecognized text in settings user_id=%s text=%r", user_id, text)
            return Reply(
                f"Please use the commands /tx_color, /bg_color or the '{BTN_SAVE}' / '{BTN_CANCEL}' buttons.",
                Keyboard.SETTINGS_MENU,
            )
        color = normalize_color(text)
        if not is_hex_color(color):
            return Reply(
                f"'{text}' doesn't look like a valid HEX color (3 or 6 chars, 0-9, A-F). "
                f"Please send a correct color value for {state.pending.command}:",
                Keyboard.SETTINGS_MENU,
            )
        try:
            return self._apply(user_id, state.pending, color, "take_text")
        except StateInvariantViolation as exc:
            return self._recover(user_id, exc)

    def save(self, user_id: int) -> Reply:
        if not self._registry.is_in_settings(user_id):
            return Reply("You are not in settings mode.")
        try:
            temp = self._require_temp(user_id, "save")
        except StateInvariantViolation as exc:
            return self._recover(user_id, exc)
        self._registry.set(user_id, temp)
        self._exit(user_id)
        logger.info("settings saved user_id=%s text=%s bg=%s", user_id, temp.text_color, temp.bg_color)
        return Reply("Settings saved successfully!")

    def cancel(self, user_id: int) -> Reply:
        if not self._registry.is_in_settings(user_id):
            return Reply("You are not currently in settings mode.")
        self._exit(user_id)
        logger.info("settings cancelled user_id=%s", user_id)
        return Reply("Settings mode cancelled. Temporary changes have been discarded.")

    def _require_temp(self, user_id: int, where: str) -> UserSettings:
        temp, found = self._registry.get_temp(user_id)
        if not found or temp is None:
            raise StateInvariantViolation(user_id, where)
        return temp

    def _apply(self, user_id: int, field: ColorField, color: str, where: str) -> Reply:
        temp = self._require_temp(user_id, where)
        self._registry.set_temp(user_id, temp.with_color(field, color))
        self._registry.set_state(user_id, InSettings())
        logger.info("temp color set user_id=%s field=%s value=%s", user_id, field.command, color)
        return Reply(
            f"Temporarily set {field.command}: #{color}. Save changes with '{BTN_SAVE}'.",
            Keyboard.SETTINGS_MENU,
        )

    def _recover(self, user_id: int, exc: StateInvariantViolation) -> Reply:
        logger.error("state error, leaving settings mode user_id=%s: %s", user_id, exc)
        self._exit(user_id)
        return Reply(INTERNAL_ERROR_TEXT)

    def _exit(self, user_id: int) -> None:
        self._registry.set_state(user_id, Idle())
        self._registry.clear_temp(user_id)
