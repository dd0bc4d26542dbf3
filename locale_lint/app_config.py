"""Application configuration for locale-lint."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from locale_lint.errors import ConfigurationError
from locale_lint.logging_config import setup_logger
from locale_lint.models import Severity

DEFAULT_CONFIG_FILE_NAME = 'locale-lint.yaml'
DEFAULT_MAX_LOCALE_FILE_SIZE = 2 * 1024 * 1024
DEFAULT_SCAN_CONCURRENCY = 16
DEFAULT_CACHE_CAPACITY = 50


@dataclass
class LintConfig:
    """Application configuration dataclass."""
    # Workspace
    workspace_roots: List[str] = field(default_factory=list)
    enabled: bool = True
    default_locale: str = 'en'
    locale_globs: Optional[List[str]] = None

    # Diagnostics
    missing_severity: Severity = Severity.WARNING
    untranslated_enabled: bool = True
    untranslated_severity: Severity = Severity.WARNING
    invalid_severity: Severity = Severity.WARNING
    placeholder_severity: Severity = Severity.WARNING
    missing_reference_enabled: bool = True
    missing_reference_severity: Severity = Severity.WARNING
    missing_default_severity: Severity = Severity.WARNING

    # Scanning
    max_locale_file_size: int = DEFAULT_MAX_LOCALE_FILE_SIZE
    scan_concurrency: int = DEFAULT_SCAN_CONCURRENCY
    cache_capacity: int = DEFAULT_CACHE_CAPACITY

    # Logging
    verbose_logging: bool = False
    log_file_path: Optional[str] = None
    log_to_console: bool = True


def parse_severity(value: Optional[str]) -> Severity:
    """Map a severity name onto :class:`Severity`; unknown or empty names mean warning."""
    normalized = (value or '').strip().lower()
    if normalized == 'information':
        normalized = 'info'
    try:
        return Severity(normalized)
    except ValueError:
        return Severity.WARNING


def _positive_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{name}' must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigurationError(f"'{name}' must be positive, got {number}")
    return number


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _load_dotenv_files(project_root: str) -> None:
    """Load .env files from project root or docker directory."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        load_dotenv(dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        load_dotenv(dotenv_path_docker_dir)


def _load_yaml_config(project_root: str, config_file: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to an empty dict on any problem."""
    default_config_path = os.path.join(project_root, DEFAULT_CONFIG_FILE_NAME)
    config_file = config_file or os.environ.get('LOCALE_LINT_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any], verbose: bool) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging') or {}
    log_level_str = 'DEBUG' if verbose else str(log_config.get('log_level', 'INFO')).upper()
    log_file_path = log_config.get('log_file_path')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _log_dotenv_status(logger: logging.Logger, project_root: str) -> None:
    """Log the status of .env file loading."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        logger.debug("Loaded environment variables from: %s", dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        logger.debug("Loaded environment variables from: %s", dotenv_path_docker_dir)


def _resolve_roots(config: Dict[str, Any], project_root: str,
                   workspace_roots: Optional[List[str]]) -> List[str]:
    roots = workspace_roots or config.get('workspace_roots') or [project_root]
    return [os.path.abspath(os.path.join(project_root, root)) for root in roots]


def build_lint_config(config: Dict[str, Any], project_root: str,
                      workspace_roots: Optional[List[str]] = None) -> LintConfig:
    """
    Build a :class:`LintConfig` from a configuration mapping and the environment.

    Environment variables win over file values for the default locale, the
    scan limits and the verbose flag.

    Raises:
        ConfigurationError: If a numeric limit is not a positive integer.
    """
    diagnostics = config.get('diagnostics') or {}
    scan = config.get('scan') or {}
    log_config = config.get('logging') or {}

    default_locale = os.environ.get('LOCALE_LINT_DEFAULT_LOCALE') or config.get('default_locale') or 'en'
    max_size = os.environ.get('LOCALE_LINT_MAX_LOCALE_SIZE', scan.get('max_locale_file_size', DEFAULT_MAX_LOCALE_FILE_SIZE))
    concurrency = os.environ.get('LOCALE_LINT_INDEX_CONCURRENCY', scan.get('concurrency', DEFAULT_SCAN_CONCURRENCY))
    verbose_env = os.environ.get('LOCALE_LINT_VERBOSE')
    verbose = _env_flag(verbose_env) if verbose_env is not None else bool(log_config.get('verbose', False))

    locale_globs = config.get('locale_globs')
    if locale_globs is not None and not isinstance(locale_globs, list):
        raise ConfigurationError("'locale_globs' must be a list of glob patterns")

    return LintConfig(
        workspace_roots=_resolve_roots(config, project_root, workspace_roots),
        enabled=bool(config.get('enabled', True)),
        default_locale=str(default_locale),
        locale_globs=[str(glob) for glob in locale_globs] if locale_globs else None,
        missing_severity=parse_severity(diagnostics.get('missing_severity')),
        untranslated_enabled=bool(diagnostics.get('untranslated_same_as_default_enabled', True)),
        untranslated_severity=parse_severity(diagnostics.get('untranslated_same_as_default_severity')),
        invalid_severity=parse_severity(diagnostics.get('invalid_base_value_severity')),
        placeholder_severity=parse_severity(diagnostics.get('placeholder_severity')),
        missing_reference_enabled=bool(diagnostics.get('missing_reference_enabled', True)),
        missing_reference_severity=parse_severity(diagnostics.get('missing_reference_severity')),
        missing_default_severity=parse_severity(diagnostics.get('missing_default_severity')),
        max_locale_file_size=_positive_int(max_size, 'max_locale_file_size'),
        scan_concurrency=_positive_int(concurrency, 'concurrency'),
        cache_capacity=_positive_int(scan.get('cache_capacity', DEFAULT_CACHE_CAPACITY), 'cache_capacity'),
        verbose_logging=verbose,
        log_file_path=log_config.get('log_file_path'),
        log_to_console=bool(log_config.get('log_to_console', True)),
    )


def load_app_config(config_file: Optional[str] = None,
                    workspace_roots: Optional[List[str]] = None) -> LintConfig:
    """
    Load application configuration from the YAML file, .env and environment variables.

    Args:
        config_file: Explicit configuration file; defaults to ``$LOCALE_LINT_CONFIG_FILE``
            or ``locale-lint.yaml`` in the current directory.
        workspace_roots: Roots to scan; override ``workspace_roots`` from the file.

    Returns:
        LintConfig: The loaded application configuration.
    """
    project_root = os.getcwd()

    _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root, config_file)

    lint_config = build_lint_config(config, project_root, workspace_roots)

    logger = _setup_logger_from_config(config, lint_config.verbose_logging)
    _log_dotenv_status(logger, project_root)
    logger.debug("Workspace roots: %s", ", ".join(lint_config.workspace_roots))

    return lint_config
