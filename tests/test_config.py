from __future__ import annotations

import json
from pathlib import Path

import pytest

from kbot.config import load_config, load_dotenv
from kbot.errors import ConfigurationError

ENV = {"TELE_TOKEN": "123:abc", "IMGBUN_API_KEY": "imgbun-key"}


def test_load_dotenv_parses_quotes_and_comments(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "# comment\nTELE_TOKEN='123:abc'\nexport IMGBUN_API_KEY=\"k\"\nBROKEN\n\n",
        encoding="utf-8",
    )
    assert load_dotenv(env_path) == {"TELE_TOKEN": "123:abc", "IMGBUN_API_KEY": "k"}
    assert load_dotenv(tmp_path / "missing.env") == {}


def test_load_dotenv_keeps_equals_and_unmatched_quotes(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "  LOG_LEVEL = debug  \nIMGBUN_BASE_URL=https://api.test/?a=b\nTELE_TOKEN=\"abc'\n=orphan\n",
        encoding="utf-8",
    )
    assert load_dotenv(env_path) == {
        "LOG_LEVEL": "debug",
        "IMGBUN_BASE_URL": "https://api.test/?a=b",
        "TELE_TOKEN": "\"abc'",
    }


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_config(tmp_path / "config.json", ENV)
    assert config.telegram_bot_token == "123:abc"
    assert config.imgbun_api_key == "imgbun-key"
    assert config.imgbun_base_url == "https://api.imgbun.com"
    assert config.imgbun_timeout_sec == 20.0
    assert config.imgbun_font_size == 16
    assert config.log_level == "INFO"


def test_config_file_and_env_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"imgbun": {"base_url": "https://imgbun.local/", "timeout_sec": 5}, "log_level": "debug"}),
        encoding="utf-8",
    )
    config = load_config(config_path, {**ENV, "IMGBUN_TIMEOUT_SEC": "7.5"})
    assert config.imgbun_base_url == "https://imgbun.local"
    assert config.imgbun_timeout_sec == 7.5
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("missing", ["TELE_TOKEN", "IMGBUN_API_KEY"])
def test_missing_secret_is_fatal(missing: str) -> None:
    env = {**ENV, missing: "  "}
    with pytest.raises(ConfigurationError, match=missing):
        load_config(None, env)


def test_invalid_values_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(None, {**ENV, "IMGBUN_TIMEOUT_SEC": "soon"})
    with pytest.raises(ConfigurationError):
        load_config(None, {**ENV, "LOG_LEVEL": "chatty"})
    bad = tmp_path / "config.json"
    bad.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(bad, ENV)


def test_repr_hides_secrets() -> None:
    text = repr(load_config(None, ENV))
    assert "123:abc" not in text
    assert "imgbun-key" not in text
