from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from kbot.errors import ConfigurationError
from kbot.imgbun import DEFAULT_FONT_SIZE, DEFAULT_TIMEOUT_SEC, IMGBUN_BASE_URL


@dataclass(frozen=True)
class AppConfig:
    telegram_bot_token: str
    imgbun_api_key: str
    imgbun_base_url: str
    imgbun_timeout_sec: float
    imgbun_font_size: int
    log_level: str

    def __repr__(self) -> str:
        return (
            f"AppConfig(imgbun_base_url={self.imgbun_base_url!r}, "
            f"imgbun_timeout_sec={self.imgbun_timeout_sec}, "
            f"imgbun_font_size={self.imgbun_font_size}, log_level={self.log_level!r})"
        )


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if line.startswith("#"):
        return None
    name, sep, value = line.partition("=")
    name = name.removeprefix("export ").strip()
    if not sep or not name:
        return None
    return name, _unquote(value.strip())


def load_dotenv(path: str | Path) -> dict[str, str]:
    """Read KEY=VALUE pairs from a .env file; a missing file yields no values."""
    env_path = Path(path)
    if not env_path.is_file():
        return {}
    pairs = (_parse_env_line(line) for line in env_path.read_text(encoding="utf-8").splitlines())
    return dict(pair for pair in pairs if pair is not None)


def _require(env_values: Mapping[str, str], key: str) -> str:
    value = str(env_values.get(key, "")).strip()
    if not value:
        raise ConfigurationError(f"{key} environment variable not set")
    return value


def _read_json(path: str | Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        return {}
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{config_path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")
    return raw


def load_config(path: str | Path | None, env_values: Mapping[str, str]) -> AppConfig:
    """Build the config from an optional JSON file plus environment values.

    Secrets come only from the environment. Environment values override the file.
    """
    raw = _read_json(path)
    imgbun_raw = raw.get("imgbun", {}) or {}

    base_url = env_values.get("IMGBUN_BASE_URL") or imgbun_raw.get("base_url", IMGBUN_BASE_URL)
    timeout_raw = env_values.get("IMGBUN_TIMEOUT_SEC") or imgbun_raw.get("timeout_sec", DEFAULT_TIMEOUT_SEC)
    log_level = env_values.get("LOG_LEVEL") or raw.get("log_level", "INFO")
    try:
        timeout_sec = float(timeout_raw)
        font_size = int(imgbun_raw.get("font_size", DEFAULT_FONT_SIZE))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid imgbun settings: {exc}") from exc
    if timeout_sec <= 0:
        raise ConfigurationError("imgbun timeout must be positive")

    level_name = str(log_level).upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise ConfigurationError(f"Unknown log level {log_level!r}")

    return AppConfig(
        telegram_bot_token=_require(env_values, "TELE_TOKEN"),
        imgbun_api_key=_require(env_values, "IMGBUN_API_KEY"),
        imgbun_base_url=str(base_url).rstrip("/"),
        imgbun_timeout_sec=timeout_sec,
        imgbun_font_size=font_size,
        log_level=level_name,
    )
