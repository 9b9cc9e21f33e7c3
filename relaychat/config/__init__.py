"""Client configuration: pydantic model plus file/environment loading."""

from .loader import CONFIG_FILE_ENV, env_overrides, load_config, load_config_file  # noqa: F401
from .model import ClientConfig, normalize_channels  # noqa: F401

__all__ = [
    "CONFIG_FILE_ENV",
    "ClientConfig",
    "env_overrides",
    "load_config",
    "load_config_file",
    "normalize_channels",
]
