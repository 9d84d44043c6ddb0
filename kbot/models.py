from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


DEFAULT_TEXT_COLOR = "000000"
DEFAULT_BG_COLOR = "FFFFFF"


class ColorField(Enum):
    TEXT = "tx_color"
    BACKGROUND = "bg_color"

    @property
    def command(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return "text color" if self is ColorField.TEXT else "background color"

    @property
    def example(self) -> str:
        return "FF0000" if self is ColorField.TEXT else "FFFFFF"


@dataclass(frozen=True)
class UserSettings:
    text_color: str = DEFAULT_TEXT_COLOR
    bg_color: str = DEFAULT_BG_COLOR

    def with_color(self, field: ColorField, value: str) -> "UserSettings":
        if field is ColorField.TEXT:
            return replace(self, text_color=value)
        return replace(self, bg_color=value)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class InSettings:
    pending: ColorField | None = None


SessionState = Idle | InSettings


class Keyboard(Enum):
    MAIN_MENU = "main"
    SETTINGS_MENU = "settings"


@dataclass(frozen=True)
class Reply:
    text: str
    keyboard: Keyboard = Keyboard.MAIN_MENU
    photo_url: str | None = None

    @property
    def is_photo(self) -> bool:
        return self.photo_url is not None


@dataclass(frozen=True)
class GeneratedImage:
    url: str
    caption: str
