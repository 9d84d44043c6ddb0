from __future__ import annotations

from telegram import KeyboardButton, ReplyKeyboardMarkup

from kbot.models import Keyboard

BTN_SETTINGS = "⚙️ Settings"
BTN_SAVE = "💾 Save Settings"
BTN_CANCEL = "◀️ Cancel & Exit"

BUTTON_LABELS = frozenset({BTN_SETTINGS, BTN_SAVE, BTN_CANCEL})

_LAYOUTS: dict[Keyboard, list[list[str]]] = {
    Keyboard.MAIN_MENU: [[BTN_SETTINGS]],
    Keyboard.SETTINGS_MENU: [[BTN_SAVE], [BTN_CANCEL]],
}


def render_keyboard(keyboard: Keyboard) -> ReplyKeyboardMarkup:
    rows = [[KeyboardButton(label) for label in row] for row in _LAYOUTS[keyboard]]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)
