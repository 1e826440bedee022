from __future__ import annotations

import json
import os
import re
import tomllib
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from buttonoff.models import normalize_hw_addr

from .paths import default_config_path, expand_path

CONFIG_ENV_VAR = "BUTTONOFF_CONFIG"

DEFAULT_TOPIC_TEMPLATE = "/buttonoff/{ButtonID}/pressed"
DEFAULT_DEBOUNCE_PERIOD = timedelta(milliseconds=600)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta:
    """Parse durations such as ``600ms``, ``1.5s`` or ``1m30s``."""
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    seconds = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=seconds)


def format_duration(value: timedelta) -> str:
    ms = value / timedelta(milliseconds=1)
    if ms == int(ms):
        return f"{int(ms)}ms"
    return f"{value.total_seconds()}s"


class GeneralConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    topic_template: str = DEFAULT_TOPIC_TEMPLATE
    drop_unconfigured: bool = False
    debounce_period: timedelta = DEFAULT_DEBOUNCE_PERIOD

    @field_validator("debounce_period", mode="before")
    @classmethod
    def _parse_debounce_period(cls, value: Any) -> Any:
        if isinstance(value, str) and _DURATION_PART.match(value.strip()):
            return parse_duration(value)
        return value

    @field_validator("debounce_period")
    @classmethod
    def _positive_debounce_period(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("debounce_period must be positive")
        return value


class ListenerConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    interface: str = Field(min_length=1)


class MQTTConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    broker_addr: str = Field(min_length=1)
    username: str = ""
    password: str = ""


class ButtonConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    button_id: str = ""
    hw_addr: str

    @field_validator("hw_addr")
    @classmethod
    def _normalize_hw_addr(cls, value: str) -> str:
        return normalize_hw_addr(value)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    listener: ListenerConfig
    mqtt: MQTTConfig
    buttons: list[ButtonConfig] = Field(default_factory=list)


def default_settings() -> Settings:
    return Settings(
        listener=ListenerConfig(interface="eth0"),
        mqtt=MQTTConfig(broker_addr="tcp://127.0.0.1:1883"),
        buttons=[ButtonConfig(button_id="my-button", hw_addr="fc:a6:67:b1:24:41")],
    )


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def _merge(data: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(data)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_config_data(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc


def load_settings(
    path: Path | None, overrides: dict[str, Any] | None = None
) -> Settings:
    """Validate the config at ``path`` (if any) with ``overrides`` applied."""
    data = read_config_data(path) if path is not None else {}
    if overrides:
        data = _merge(data, overrides)

    source = str(path) if path is not None else "command line"
    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {source}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if not exists:
        raise FileNotFoundError(
            f"No config file at {path}. Run 'buttonoff config init' to create one."
        )
    return load_settings(path)


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# buttonoff configuration",
        "",
        "[general]",
        f"topic_template = {_toml_string(settings.general.topic_template)}",
        f"drop_unconfigured = {_toml_bool(settings.general.drop_unconfigured)}",
        "debounce_period = "
        f"{_toml_string(format_duration(settings.general.debounce_period))}",
        "",
        "[listener]",
        f"interface = {_toml_string(settings.listener.interface)}",
        "",
        "[mqtt]",
        f"broker_addr = {_toml_string(settings.mqtt.broker_addr)}",
        f"username = {_toml_string(settings.mqtt.username)}",
        f"password = {_toml_string(settings.mqtt.password)}",
        "",
    ]
    for button in settings.buttons:
        lines.extend(
            [
                "[[buttons]]",
                f"button_id = {_toml_string(button.button_id)}",
                f"hw_addr = {_toml_string(button.hw_addr)}",
                "",
            ]
        )
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
