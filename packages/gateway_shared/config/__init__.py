"""Public API for gateway configuration utilities."""

from .loader import CONFIG_FILE_ENV_VAR, load_settings, resolve_config_path
from .models import (
    DEFAULT_CONFIG_PATH,
    MEMORY_STORE_URL,
    REQUIRED_SETTINGS,
    GatewaySettings,
    GenerationSettings,
    LoggingSettings,
    MemorySettings,
    MeteringSettings,
    ServerSettings,
    StoreSettings,
    env_var_name,
    missing_required_settings,
)

__all__ = [
    "CONFIG_FILE_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "GatewaySettings",
    "GenerationSettings",
    "LoggingSettings",
    "MEMORY_STORE_URL",
    "MemorySettings",
    "MeteringSettings",
    "REQUIRED_SETTINGS",
    "ServerSettings",
    "StoreSettings",
    "env_var_name",
    "load_settings",
    "missing_required_settings",
    "resolve_config_path",
]
