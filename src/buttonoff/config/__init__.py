from __future__ import annotations

from .paths import (
    APP_NAME,
    CONFIG_FILENAME,
    default_config_path,
    expand_path,
)
from .settings import (
    CONFIG_ENV_VAR,
    DEFAULT_DEBOUNCE_PERIOD,
    DEFAULT_TOPIC_TEMPLATE,
    ButtonConfig,
    GeneralConfig,
    ListenerConfig,
    MQTTConfig,
    Settings,
    default_settings,
    format_duration,
    get_settings,
    load_settings,
    parse_duration,
    render_settings_toml,
    resolve_config_path,
    write_settings,
)

__all__ = [
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_DEBOUNCE_PERIOD",
    "DEFAULT_TOPIC_TEMPLATE",
    "ButtonConfig",
    "GeneralConfig",
    "ListenerConfig",
    "MQTTConfig",
    "Settings",
    "default_config_path",
    "default_settings",
    "expand_path",
    "format_duration",
    "get_settings",
    "load_settings",
    "parse_duration",
    "render_settings_toml",
    "resolve_config_path",
    "write_settings",
]
