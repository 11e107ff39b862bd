"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: global yaml < workspace yaml < env vars < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from convexnav.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
)
from convexnav.config.models import CacheConfig
from convexnav.core.errors import ConfigError, ErrorCode


def _write_workspace_config(workspace: Path, content: str) -> None:
    config_dir = workspace / ".convexnav"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(content)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("cache:\n  ttl_sec: 5\n")

        assert _load_yaml(yaml_file) == {"cache": {"ttl_sec": 5}}

    def test_returns_empty_for_yaml_null(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "null.yaml"
        yaml_file.write_text("null\n")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("cache:\n  ttl_sec:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"navigator": {"convex_path": "convex", "custom_wrappers": ["a"]}}
        override = {"navigator": {"convex_path": "backend"}}

        result = _deep_merge(base, override)

        assert result == {"navigator": {"convex_path": "backend", "custom_wrappers": ["a"]}}

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}

        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})

        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_when_no_files(self, tmp_path: Path) -> None:
        with patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.navigator.convex_path == ""
        assert config.navigator.frontend_paths == []
        assert "**/node_modules/**" in config.navigator.exclude_patterns
        assert config.cache.ttl_sec == 30.0
        assert config.search.ripgrep_path == "rg"
        assert config.logging.level == "WARNING"

    def test_loads_workspace_config(self, tmp_path: Path) -> None:
        """Flat workspace fields land in the nested sections."""
        _write_workspace_config(
            tmp_path,
            "convex_path: packages/backend/convex\n"
            "frontend_paths:\n  - apps/web\n"
            "custom_wrappers:\n  - authedQuery\n"
            "log_level: DEBUG\n",
        )

        with patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.navigator.convex_path == "packages/backend/convex"
        assert config.navigator.frontend_paths == ["apps/web"]
        assert config.navigator.custom_wrappers == ["authedQuery"]
        assert config.logging.level == "DEBUG"

    def test_global_config_under_workspace_config(self, tmp_path: Path) -> None:
        # Given a global file setting two navigator keys and the cache TTL
        global_path = tmp_path / "global.yaml"
        global_path.write_text(
            "navigator:\n  convex_path: from-global\n  custom_wrappers: [adminQuery]\ncache:\n  ttl_sec: 10\n"
        )
        workspace = tmp_path / "ws"
        workspace.mkdir()
        _write_workspace_config(workspace, "convex_path: from-workspace\n")

        # When
        with patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", global_path):
            config = load_config(workspace)

        # Then the workspace wins only for the keys it sets
        assert config.navigator.convex_path == "from-workspace"
        assert config.navigator.custom_wrappers == ["adminQuery"]
        assert config.cache.ttl_sec == 10

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        _write_workspace_config(tmp_path, "convex_path: from-yaml\n")

        with (
            patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(
                os.environ,
                {
                    "CONVEXNAV__NAVIGATOR__CONVEX_PATH": "from-env",
                    "CONVEXNAV__CACHE__TTL_SEC": "5",
                },
            ),
        ):
            config = load_config(tmp_path)

        assert config.navigator.convex_path == "from-env"
        assert config.cache.ttl_sec == 5.0

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        with (
            patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"CONVEXNAV__CACHE__TTL_SEC": "5"}),
        ):
            config = load_config(tmp_path, cache=CacheConfig(ttl_sec=1.0))

        assert config.cache.ttl_sec == 1.0

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        _write_workspace_config(tmp_path, "custom_wrappers:\n  - not-an-identifier\n")

        with (
            patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "custom_wrappers" in exc_info.value.message

    def test_raises_config_error_for_bad_env_value(self, tmp_path: Path) -> None:
        with (
            patch("convexnav.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"CONVEXNAV__CACHE__TTL_SEC": "0"}),
            pytest.raises(ConfigError),
        ):
            load_config(tmp_path)


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert GLOBAL_CONFIG_PATH.parts[-2:] == ("convexnav", "config.yaml")
