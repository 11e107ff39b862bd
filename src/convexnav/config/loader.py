"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CONVEXNAV__SECTION__KEY)
3. User config (.convexnav/config.yaml in the workspace)
4. Global config (~/.config/convexnav/config.yaml, full nested layout)
5. Built-in defaults (lowest priority)

The result is a read-only snapshot: callers load it once per operation and
hand the relevant sections to the resolver components.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from convexnav.config.models import (
    CacheConfig,
    ConvexNavConfig,
    LoggingConfig,
    NavigatorConfig,
    SearchConfig,
)
from convexnav.config.user_config import load_user_config, user_config_path
from convexnav.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/convexnav/config.yaml").expanduser()

_NAVIGATOR_KEYS = ("convex_path", "frontend_paths", "custom_wrappers", "exclude_patterns")


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with an instance-based YAML source."""

    class ConvexNavSettings(BaseSettings):
        """Root config. Env vars: CONVEXNAV__NAVIGATOR__CONVEX_PATH, CONVEXNAV__CACHE__TTL_SEC, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CONVEXNAV__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        navigator: NavigatorConfig = NavigatorConfig()
        cache: CacheConfig = CacheConfig()
        search: SearchConfig = SearchConfig()
        logging: LoggingConfig = LoggingConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return ConvexNavSettings


def _user_config_to_yaml(workspace_root: Path) -> dict[str, Any]:
    """Map the flat user-facing fields onto the nested config layout."""
    path = user_config_path(workspace_root)
    if not path.exists():
        return {}
    user_config = load_user_config(path)
    # Only keys present in the file, so unset ones fall through to the global config
    values = user_config.model_dump(exclude_unset=True)
    result: dict[str, Any] = {}
    navigator = {key: values[key] for key in _NAVIGATOR_KEYS if values.get(key) is not None}
    if navigator:
        result["navigator"] = navigator
    if "log_level" in values:
        result["logging"] = {"level": values["log_level"]}
    return result


def load_config(workspace_root: Path | None = None, **kwargs: Any) -> ConvexNavConfig:
    """Load config: defaults < global yaml < workspace yaml < env vars < kwargs.

    Args:
        workspace_root: Workspace to load .convexnav/config.yaml from.
                        Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    workspace_root = workspace_root or Path.cwd()

    yaml_config = _user_config_to_yaml(workspace_root)

    global_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if global_config:
        yaml_config = _deep_merge(global_config, yaml_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return ConvexNavConfig.model_validate(settings.model_dump())
