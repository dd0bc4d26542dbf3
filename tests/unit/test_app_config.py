"""Unit tests for the app_config module."""
import os
from unittest.mock import patch, mock_open, MagicMock

import pytest
import yaml

from locale_lint.app_config import (
    DEFAULT_MAX_LOCALE_FILE_SIZE,
    DEFAULT_SCAN_CONCURRENCY,
    LintConfig,
    build_lint_config,
    load_app_config,
    parse_severity,
)
from locale_lint.errors import ConfigurationError
from locale_lint.models import Severity


class TestLintConfig:
    """Test cases for the LintConfig dataclass."""

    def test_defaults(self):
        """Defaults enable every diagnostic at warning severity."""
        config = LintConfig()

        assert config.enabled is True
        assert config.default_locale == "en"
        assert config.locale_globs is None
        assert config.missing_severity is Severity.WARNING
        assert config.untranslated_enabled is True
        assert config.max_locale_file_size == DEFAULT_MAX_LOCALE_FILE_SIZE
        assert config.scan_concurrency == DEFAULT_SCAN_CONCURRENCY


class TestParseSeverity:

    @pytest.mark.parametrize("value, expected", [
        ("error", Severity.ERROR),
        (" Error ", Severity.ERROR),
        ("information", Severity.INFO),
        ("hint", Severity.HINT),
        (None, Severity.WARNING),
        ("loud", Severity.WARNING),
    ])
    def test_parse_severity(self, value, expected):
        assert parse_severity(value) is expected


class TestBuildLintConfig:
    """Test cases for building a LintConfig from a configuration mapping."""

    def test_file_values_are_applied(self, tmp_path):
        config = build_lint_config({
            "default_locale": "de",
            "locale_globs": ["translations/*.json"],
            "diagnostics": {
                "missing_severity": "error",
                "untranslated_same_as_default_enabled": False,
                "missing_reference_severity": "info",
            },
            "scan": {"concurrency": 8, "max_locale_file_size": 1024, "cache_capacity": 5},
        }, str(tmp_path))

        assert config.workspace_roots == [str(tmp_path)]
        assert config.default_locale == "de"
        assert config.locale_globs == ["translations/*.json"]
        assert config.missing_severity is Severity.ERROR
        assert config.untranslated_enabled is False
        assert config.missing_reference_severity is Severity.INFO
        assert config.placeholder_severity is Severity.WARNING
        assert config.scan_concurrency == 8
        assert config.max_locale_file_size == 1024
        assert config.cache_capacity == 5

    def test_environment_overrides_file_values(self, tmp_path):
        file_config = {"default_locale": "de", "scan": {"concurrency": 8}}

        with patch.dict(os.environ, {
            "LOCALE_LINT_DEFAULT_LOCALE": "fr",
            "LOCALE_LINT_INDEX_CONCURRENCY": "3",
            "LOCALE_LINT_MAX_LOCALE_SIZE": "4096",
            "LOCALE_LINT_VERBOSE": "true",
        }):
            config = build_lint_config(file_config, str(tmp_path))

        assert config.default_locale == "fr"
        assert config.scan_concurrency == 3
        assert config.max_locale_file_size == 4096
        assert config.verbose_logging is True

    def test_relative_roots_are_resolved_against_project_root(self, tmp_path):
        other = str(tmp_path / "elsewhere")

        config = build_lint_config({"workspace_roots": ["ignored"]}, str(tmp_path), ["web", other])

        assert config.workspace_roots == [os.path.join(str(tmp_path), "web"), other]

    @pytest.mark.parametrize("scan", [{"concurrency": 0}, {"concurrency": "many"}, {"max_locale_file_size": -1}])
    def test_invalid_limits_raise(self, tmp_path, scan):
        with pytest.raises(ConfigurationError):
            build_lint_config({"scan": scan}, str(tmp_path))

    def test_locale_globs_must_be_a_list(self, tmp_path):
        with pytest.raises(ConfigurationError):
            build_lint_config({"locale_globs": "locales/*.json"}, str(tmp_path))


class TestLoadAppConfig:
    """Test cases for the load_app_config function."""

    def test_load_config_with_valid_yaml_file(self):
        """Test loading configuration from a valid YAML file."""
        mock_config = {
            "default_locale": "es",
            "diagnostics": {"placeholder_severity": "error"},
            "logging": {
                "log_level": "DEBUG",
                "log_file_path": "test.log"
            }
        }

        with patch("builtins.open", mock_open(read_data=yaml.dump(mock_config))):
            with patch("os.path.exists", return_value=True):
                with patch("os.access", return_value=True):
                    with patch("locale_lint.app_config.load_dotenv"):
                        with patch("locale_lint.app_config.setup_logger") as mock_logger:
                            mock_logger.return_value = MagicMock()
                            config = load_app_config()

        assert config.default_locale == "es"
        assert config.placeholder_severity is Severity.ERROR
        assert config.log_file_path == "test.log"
        mock_logger.assert_called_once_with("DEBUG", "test.log", True)

    def test_load_config_with_missing_file_uses_defaults(self, capsys):
        """Test that missing config file results in default values."""
        with patch("os.path.exists", return_value=False):
            with patch("locale_lint.app_config.setup_logger") as mock_logger:
                mock_logger.return_value = MagicMock()
                config = load_app_config()

        assert config.default_locale == "en"
        assert config.workspace_roots == [os.getcwd()]
        assert "not found" in capsys.readouterr().err
        mock_logger.assert_called_once_with("INFO", None, True)

    def test_verbose_environment_forces_debug_logging(self):
        with patch("os.path.exists", return_value=False):
            with patch("locale_lint.app_config.setup_logger") as mock_logger:
                mock_logger.return_value = MagicMock()
                with patch.dict(os.environ, {"LOCALE_LINT_VERBOSE": "1"}):
                    load_app_config()

        assert mock_logger.call_args[0][0] == "DEBUG"

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path, capsys):
        config_file = tmp_path / "locale-lint.yaml"
        config_file.write_text("default_locale: [unclosed", encoding="utf-8")

        with patch("locale_lint.app_config.setup_logger") as mock_logger:
            mock_logger.return_value = MagicMock()
            config = load_app_config(str(config_file))

        assert config.default_locale == "en"
        assert "Invalid YAML" in capsys.readouterr().err

    def test_custom_config_file_path(self, tmp_path):
        """Test using custom config file path via environment variable."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(yaml.dump({"default_locale": "pt"}), encoding="utf-8")

        with patch("locale_lint.app_config.setup_logger") as mock_logger:
            mock_logger.return_value = MagicMock()
            with patch.dict(os.environ, {"LOCALE_LINT_CONFIG_FILE": str(config_file)}):
                config = load_app_config(workspace_roots=[str(tmp_path)])

        assert config.default_locale == "pt"
        assert config.workspace_roots == [str(tmp_path)]

    def test_load_config_with_dotenv_file(self):
        """Test that .env file is loaded properly."""
        with patch("os.path.exists") as mock_exists:
            mock_exists.side_effect = lambda path: path.endswith(os.sep + ".env")
            with patch("locale_lint.app_config.load_dotenv") as mock_load_dotenv:
                with patch("locale_lint.app_config.setup_logger") as mock_logger:
                    mock_logger.return_value = MagicMock()
                    load_app_config()

        mock_load_dotenv.assert_called_once_with(os.path.join(os.getcwd(), ".env"))
