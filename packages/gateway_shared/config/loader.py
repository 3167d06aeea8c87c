"""Configuration loading with deterministic precedence.

The cascade is always:
1) CLI/init params
2) Environment variables
3) YAML config file (``~/.config/gateway/gateway.yaml`` or
   ``GATEWAY_CONFIG_FILE``)
4) Model defaults

Environment variable format:
- Prefix: ``GATEWAY_``
- Nested keys: ``__`` separator
- Example: ``GATEWAY_STORE__URL=postgresql://...`` -> ``store.url``
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar, Mapping

from .models import DEFAULT_CONFIG_PATH, GatewaySettings

CONFIG_FILE_ENV_VAR = "GATEWAY_CONFIG_FILE"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> GatewaySettings:
    """Build the single validated settings object for this process.

    Raises ``pydantic.ValidationError`` when any source holds an invalid value.
    """
    resolved_path = resolve_config_path(config_path)

    class _BoundGatewaySettings(GatewaySettings):
        _config_path: ClassVar[Path] = resolved_path

    return _BoundGatewaySettings(**dict(cli_params or {}))


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    """Resolve the YAML path from an explicit value, env override, or default."""
    if config_path is not None:
        return Path(config_path).expanduser()
    override = os.environ.get(CONFIG_FILE_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH
