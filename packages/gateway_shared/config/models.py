"""Typed configuration models for gateway runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "gateway" / "gateway.yaml"
ENV_PREFIX = "GATEWAY_"
ENV_NESTED_DELIMITER = "__"
MEMORY_STORE_URL = "memory://"

Environment = Literal["development", "production", "test"]


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "metered-gateway"


class ServerSettings(BaseModel):
    """HTTP listener and process lifecycle settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "0.0.0.0"
    port: int = Field(default=8080, gt=0, lt=65536)
    environment: Environment = "development"
    drain_timeout_seconds: float = Field(default=8.0, gt=0)
    version: str = "2.0.0"
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Accept a comma-separated origin list as well as a sequence."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def is_production(self) -> bool:
        """Return True when running with production error semantics."""
        return self.environment == "production"


class StoreSettings(BaseModel):
    """Credential store connection settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = ""
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    operation_timeout_seconds: float = Field(default=5.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    create_schema_on_startup: bool = False

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, value: object) -> object:
        """Normalize surrounding whitespace on the connection URL."""
        if isinstance(value, str):
            return value.strip()
        return value


class GenerationSettings(BaseModel):
    """External generation service settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str = ""
    api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-1.5-flash"
    timeout_seconds: float = Field(default=30.0, gt=0)
    temperature: float = Field(default=0.7, ge=0)
    top_k: int = Field(default=40, gt=0)
    top_p: float = Field(default=0.95, gt=0, le=1)
    max_output_tokens: int = Field(default=2048, gt=0)

    @field_validator("api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value: object) -> object:
        """Normalize surrounding whitespace on the API key."""
        if isinstance(value, str):
            return value.strip()
        return value


class MemorySettings(BaseModel):
    """Memory guardian sampling and threshold settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    interval_seconds: float = Field(default=120.0, gt=0)
    warning_mb: int = Field(default=300, gt=0)
    critical_mb: int = Field(default=400, gt=0)
    max_mb: int = Field(default=450, gt=0)

    @model_validator(mode="after")
    def _require_ascending_thresholds(self) -> "MemorySettings":
        """Reject threshold sets that are not strictly ascending."""
        if not self.warning_mb < self.critical_mb < self.max_mb:
            raise ValueError(
                "memory thresholds must be ascending: warning_mb < critical_mb < max_mb"
            )
        return self


class MeteringSettings(BaseModel):
    """Metered endpoint behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cost_per_request: int = Field(default=1, gt=0)
    min_credential_length: int = Field(default=10, gt=0)
    max_message_length: int = Field(default=10_000, gt=0)
    prompt_preview_chars: int = Field(default=500, ge=0, le=2048)
    usage_history_max: int = Field(default=50, gt=0)


class GatewaySettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter=ENV_NESTED_DELIMITER,
        extra="ignore",
        nested_model_default_partial_update=True,
        frozen=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    metering: MeteringSettings = Field(default_factory=MeteringSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply gateway precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )

    @property
    def uses_memory_store(self) -> bool:
        """Return True when the in-process credential store is selected."""
        return self.store.url == MEMORY_STORE_URL


# Dotted setting path -> reason it is required at startup.
REQUIRED_SETTINGS: dict[str, str] = {
    "store.url": "credential store connection",
    "generation.api_key": "generation service key",
}


def env_var_name(dotted_path: str) -> str:
    """Return the environment variable that sets one dotted settings path."""
    segments = [segment.upper() for segment in dotted_path.split(".")]
    return ENV_PREFIX + ENV_NESTED_DELIMITER.join(segments)


def missing_required_settings(settings: GatewaySettings) -> list[str]:
    """Return environment variable names for absent required settings."""
    missing: list[str] = []
    for dotted_path in REQUIRED_SETTINGS:
        section_name, _, field_name = dotted_path.partition(".")
        value = getattr(getattr(settings, section_name), field_name)
        if not isinstance(value, str) or value.strip() == "":
            missing.append(env_var_name(dotted_path))
    return missing
