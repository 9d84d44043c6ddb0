from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from kbot.dispatcher import Dispatcher
from kbot.imgbun import ImgbunClient
from kbot.session import SettingsSession
from kbot.settings_store import SessionRegistry


@dataclass
class RuntimeContext:
    registry: SessionRegistry
    session: SettingsSession
    image_client: ImgbunClient
    dispatcher: Dispatcher
    http_client: httpx.AsyncClient

    def to_bot_data(self) -> dict[str, Any]:
        return {"runtime": self}

    async def aclose(self) -> None:
        await self.http_client.aclose()
