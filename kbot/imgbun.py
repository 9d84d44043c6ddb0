from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from kbot.errors import (
    ConfigurationError,
    ImageServiceUnavailable,
    MissingImageLink,
    RequestBuildFailed,
    ResponseDecodeError,
    UpstreamLogicError,
    UpstreamStatusError,
)
from kbot.models import GeneratedImage, UserSettings
from kbot.version import __version__

IMGBUN_BASE_URL = "https://api.imgbun.com"
IMGBUN_PATH = "/png"
DEFAULT_FONT_SIZE = 16
DEFAULT_TIMEOUT_SEC = 20.0
CAPTION_LIMIT = 1024
TRUNCATION_MARKER = "..."


def _utf16_units(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


def utf16_length(text: str) -> int:
    return sum(_utf16_units(ch) for ch in text)


def build_caption(text: str, limit: int = CAPTION_LIMIT) -> str:
    """Caption for the generated image, at most ``limit`` UTF-16 units as Telegram counts them."""
    caption = f"Image for: '{text}'"
    if utf16_length(caption) <= limit:
        return caption
    budget = limit - 4
    units = 0
    cut = 0
    for ch in caption:
        units += _utf16_units(ch)
        if units > budget:
            break
        cut += 1
    return caption[:cut] + TRUNCATION_MARKER


class ImgbunClient:
    """Client for the Imgbun text-to-image API.

    Each call is independent: one GET request, no retries. Failures are raised as
    ``ImageError`` subclasses in the order they are detected.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        *,
        font_size: int = DEFAULT_FONT_SIZE,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationError("Imgbun API key is not configured")
        self._client = client
        self._api_key = api_key.strip()
        self._font_size = font_size
        self._logger = logging.getLogger("imgbun")

    def _params(self, text: str, settings: UserSettings) -> dict[str, str]:
        return {
            "key": self._api_key,
            "text": text,
            "color": settings.text_color.removeprefix("#"),
            "background": settings.bg_color.removeprefix("#"),
            "size": str(self._font_size),
            "format": "json",
        }

    async def generate_image(self, user_id: int, text: str, settings: UserSettings) -> GeneratedImage:
        try:
            request = self._client.build_request(
                "GET",
                IMGBUN_PATH,
                params=self._params(text, settings),
                headers={"User-Agent": f"kbot/{__version__}"},
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            self._logger.error("request build failed user_id=%s: %s", user_id, exc)
            raise RequestBuildFailed(str(exc)) from exc

        self._logger.info(
            "imgbun request user_id=%s chars=%s color=%s background=%s",
            user_id,
            len(text),
            settings.text_color,
            settings.bg_color,
        )
        try:
            resp = await self._client.send(request)
        except httpx.TransportError as exc:
            self._logger.warning("imgbun unavailable user_id=%s: %s", user_id, type(exc).__name__)
            raise ImageServiceUnavailable(str(exc)) from exc

        if resp.status_code != httpx.codes.OK:
            self._logger.warning("imgbun status=%s user_id=%s", resp.status_code, user_id)
            raise UpstreamStatusError(resp.status_code)

        data = self._decode(resp, user_id)
        status = data.get("status", "")
        if status != "OK":
            message = data.get("message", "")
            self._logger.warning("imgbun failure user_id=%s status=%r message=%r", user_id, status, message)
            raise UpstreamLogicError(status, message)

        direct_link = data.get("direct_link", "")
        if not direct_link:
            self._logger.warning("imgbun returned OK without direct_link user_id=%s", user_id)
            raise MissingImageLink("direct_link is empty")

        self._logger.info("imgbun image ready user_id=%s url=%s", user_id, direct_link)
        return GeneratedImage(url=direct_link, caption=build_caption(text))

    def _decode(self, resp: httpx.Response, user_id: int) -> dict[str, str]:
        try:
            raw: Any = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._logger.warning("imgbun body is not JSON user_id=%s: %s", user_id, exc)
            raise ResponseDecodeError(str(exc)) from exc
        if not isinstance(raw, dict):
            raise ResponseDecodeError(f"expected JSON object, got {type(raw).__name__}")
        data: dict[str, str] = {}
        for key in ("status", "direct_link", "message"):
            value = raw.get(key)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ResponseDecodeError(f"field {key!r} is not a string")
            data[key] = value
        return data
