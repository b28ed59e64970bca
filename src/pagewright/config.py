from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from pagewright.constants import DEFAULTS
from pagewright.exceptions import ConfigError
from pagewright.logging import get_logger

__all__ = [
    "EngineConfig",
    "CacheConfig",
    "ApiConfig",
    "RenderDefaults",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "pagewright.yaml"

# Project file chosen by load_config(); read by settings_customise_sources.
_project_file: ContextVar[Path | None] = ContextVar("_project_file", default=None)


class CacheConfig(BaseModel):
    """Settings for the render result cache.

    Attributes:
        enabled: Cache render results keyed by schema id.
        ttl: Entry lifetime in milliseconds; zero or less never expires.
        max_size: Entries kept before the oldest inserted one is evicted.
    """

    enabled: bool = DEFAULTS.CACHE_ENABLED
    ttl: int = DEFAULTS.CACHE_TTL_MS
    max_size: int = Field(default=DEFAULTS.CACHE_MAX_SIZE, ge=1)


class ApiConfig(BaseModel):
    """Settings for the default HTTP client used by callApi actions."""

    timeout: float = Field(default=DEFAULTS.API_TIMEOUT, gt=0.0)
    max_retries: int = Field(default=DEFAULTS.API_MAX_RETRIES, ge=0, le=10)
    retry_delay: float = Field(default=DEFAULTS.API_RETRY_DELAY, ge=0.0)


class RenderDefaults(BaseModel):
    """Render options applied when a render call does not override them."""

    debug: bool = False
    enable_performance_tracking: bool = False
    register_handlers: bool = True
    timeout: float | None = Field(default=None, gt=0.0)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source backed by a YAML file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._data: dict[str, Any] = {}
        if yaml_file is None or not yaml_file.exists():
            return
        try:
            loaded = yaml.safe_load(yaml_file.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e
        if loaded is None:
            logger.warning(f"Config file {yaml_file} is empty, using defaults.")
        elif not isinstance(loaded, dict):
            raise ConfigError(
                f"Config file {yaml_file} must contain a mapping",
                value=loaded,
            )
        else:
            self._data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._data


class EngineConfig(BaseSettings):
    """Root configuration for a render engine and its event executor.

    Sources, highest priority first: constructor arguments, environment
    variables (``PAGEWRIGHT_`` prefix, ``__`` for nesting), the project file
    ``./pagewright.yaml`` (or an explicit path), and the user file
    ``~/.config/pagewright/config.yaml``.

    Example pagewright.yaml:
        max_depth: 50
        cache:
          enabled: true
          ttl: 30000
          max_size: 200
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGEWRIGHT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    max_depth: int = Field(default=DEFAULTS.MAX_DEPTH, ge=1)
    max_nodes: int = Field(default=DEFAULTS.MAX_NODES, ge=1)
    max_action_depth: int = Field(default=DEFAULTS.MAX_ACTION_DEPTH, ge=1)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    default_options: RenderDefaults = Field(default_factory=RenderDefaults)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources so that earlier entries override later ones."""
        project_file = _project_file.get() or Path.cwd() / PROJECT_CONFIG_NAME
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_file),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Return ~/.config/pagewright/config.yaml."""
    return Path.home() / ".config" / "pagewright" / "config.yaml"


def load_config(config_path: Path | None = None, **overrides: Any) -> EngineConfig:
    """Load configuration with hierarchy: defaults, user, project, env, overrides.

    Args:
        config_path: Project config file. Defaults to ./pagewright.yaml.
        **overrides: Explicit values that win over every file and env source.

    Returns:
        The merged EngineConfig.

    Raises:
        ConfigError: If a file is malformed or a value fails validation.
    """
    project_file = config_path or Path.cwd() / PROJECT_CONFIG_NAME
    if not project_file.exists():
        logger.debug("No project configuration found, using defaults.")

    token = _project_file.set(project_file)
    try:
        return EngineConfig(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_file.reset(token)
