"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global yaml < repo yaml < env < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from covgather.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
)
from covgather.config.models import GcovConfig, LoggingConfig
from covgather.core.errors import ConfigError, ErrorCode


def _write_repo_config(root: Path, text: str) -> None:
    config_dir = root / ".covgather"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("gcov:\n  executable: gcov-12\n")

        assert _load_yaml(yaml_file) == {"gcov": {"executable": "gcov-12"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Invalid YAML syntax is reported with the file path."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("gcov:\n  flags:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR
        assert str(yaml_file) in exc_info.value.message


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_empty_dicts(self) -> None:
        assert _deep_merge({}, {}) == {}

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_merge(self) -> None:
        base = {"gcov": {"executable": "gcov", "timeout_sec": 10}}
        override = {"gcov": {"executable": "gcov-12"}}

        assert _deep_merge(base, override) == {"gcov": {"executable": "gcov-12", "timeout_sec": 10}}

    def test_override_replaces_non_dict(self) -> None:
        assert _deep_merge({"gcov": "x"}, {"gcov": {"executable": "y"}}) == {
            "gcov": {"executable": "y"}
        }

    def test_does_not_mutate_base(self) -> None:
        base = {"gcov": {"executable": "gcov"}}
        _deep_merge(base, {"gcov": {"executable": "other"}})
        assert base == {"gcov": {"executable": "gcov"}}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_defaults_when_no_files(self, tmp_path: Path) -> None:
        with patch("covgather.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.logging.level == "INFO"
        assert config.gcov.executable == "gcov"
        assert config.gcov.flags == ["-i", "-m", "-b"]
        assert config.gcov.delete_raw_artifacts is True
        assert config.view.show_non_project_sources is False

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "gcov:\n  executable: gcov-12\n  timeout_sec: 5\n")

        with patch("covgather.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.gcov.executable == "gcov-12"
        assert config.gcov.timeout_sec == 5.0

    def test_repo_config_overrides_global(self, tmp_path: Path) -> None:
        global_path = tmp_path / "global.yaml"
        global_path.write_text(
            "gcov:\n  executable: gcov-11\n  delete_raw_artifacts: false\n"
        )
        _write_repo_config(tmp_path, "gcov:\n  executable: gcov-12\n")

        with patch("covgather.config.loader.GLOBAL_CONFIG_PATH", global_path):
            config = load_config(tmp_path)

        assert config.gcov.executable == "gcov-12"
        assert config.gcov.delete_raw_artifacts is False

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "view:\n  show_non_project_sources: false\n")

        with (
            patch("covgather.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"COVGATHER__VIEW__SHOW_NON_PROJECT_SOURCES": "true"}),
        ):
            config = load_config(tmp_path)

        assert config.view.show_non_project_sources is True

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "logging:\n  level: DEBUG\n")

        with (
            patch("covgather.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"COVGATHER__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(
                tmp_path,
                logging=LoggingConfig(level="ERROR"),
                gcov=GcovConfig(executable="/opt/gcov"),
            )

        assert config.logging.level == "ERROR"
        assert config.gcov.executable == "/opt/gcov"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        _write_repo_config(tmp_path, "gcov:\n  timeout_sec: -1\n")

        with (
            patch("covgather.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "gcov.timeout_sec" in exc_info.value.message


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_path_object(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)

    def test_is_in_user_config(self) -> None:
        assert GLOBAL_CONFIG_PATH.parts[-2:] == ("covgather", "config.yaml")
