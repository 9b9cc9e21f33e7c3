"""Configuration loading: optional JSON file overlaid with environment."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors.internal import ConfigError
from ..logs.logger import logger
from .model import ClientConfig

CONFIG_FILE_ENV = "RELAYCHAT_CONF_FILE"

# Environment variable -> ClientConfig field
ENV_OVERRIDES: dict[str, str] = {
    "IRC_HOST": "host",
    "IRC_PORT": "port",
    "IRC_NICK": "nick",
    "IRC_REALNAME": "realname",
    "IRC_CHANNELS": "channels",
}


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a JSON object from ``path``.

    Raises:
        ConfigError: unreadable file, invalid JSON, or a non-object document.
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Config file not found: {config_path}", data={"path": str(config_path)}
        ) from e
    except (OSError, ValueError) as e:
        raise ConfigError(
            f"Could not read config file {config_path}: {e}",
            data={"path": str(config_path)},
        ) from e
    if not isinstance(raw, dict):
        raise ConfigError(
            "Config file must contain a JSON object", data={"path": str(config_path)}
        )
    return raw


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None and value.strip():
            overrides[field_name] = value.strip()
    return overrides


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **explicit: Any,
) -> ClientConfig:
    """Build a validated ClientConfig.

    Precedence, lowest first: JSON file (``path`` or ``RELAYCHAT_CONF_FILE``),
    environment variables, explicit keyword arguments (``None`` values are
    ignored).

    Raises:
        ConfigError: if the file cannot be read or validation fails.
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get(CONFIG_FILE_ENV)
    data: dict[str, Any] = {}
    if path:
        data.update(load_config_file(path))
    data.update(env_overrides(environ))
    data.update({k: v for k, v in explicit.items() if v is not None})
    try:
        config = ClientConfig.from_dict(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration: {e.error_count()} error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ),
            data={"source": str(path) if path else "environment"},
        ) from e
    logger.log_event(
        "config",
        "loaded",
        level=logging.DEBUG,
        host=config.host,
        port=config.port,
        channels=len(config.channels),
    )
    return config
