import json
import logging
import os
from typing import Union

import pytest

from locale_lint.app_config import LintConfig
from locale_lint.diagnostic_engine import DiagnosticEngine
from locale_lint.locale_index import LocaleIndex
from locale_lint.logging_config import LOGGER_NAME
from locale_lint.project_config import ProjectConfigService


class Workspace:
    """A throwaway workspace root with helpers to create and delete files."""

    def __init__(self, root: str):
        self.root = root

    def path(self, relative_path: str) -> str:
        return os.path.join(self.root, *relative_path.split('/'))

    def write(self, relative_path: str, content: Union[str, bytes, dict, list]) -> str:
        file_path = self.path(relative_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        if isinstance(content, (dict, list)):
            content = json.dumps(content, ensure_ascii=False, indent=2)
        mode = 'wb' if isinstance(content, bytes) else 'w'
        encoding = None if isinstance(content, bytes) else 'utf-8'
        with open(file_path, mode, encoding=encoding) as f:
            f.write(content)
        return file_path

    def remove(self, relative_path: str) -> None:
        os.remove(self.path(relative_path))


@pytest.fixture
def workspace(tmp_path):
    """Function-scoped fixture providing an empty workspace root."""
    return Workspace(str(tmp_path))


@pytest.fixture
def lint_config(workspace):
    """Default configuration scanning only the test workspace."""
    return LintConfig(workspace_roots=[workspace.root], scan_concurrency=4)


@pytest.fixture
def locale_index(lint_config):
    return LocaleIndex(lint_config)


@pytest.fixture
def engine(locale_index, lint_config):
    return DiagnosticEngine(locale_index, ProjectConfigService(lint_config.default_locale), cache_capacity=8)


@pytest.fixture(autouse=True)
def clean_locale_lint_env(monkeypatch):
    """Keep developer environment variables from leaking into configuration tests."""
    for name in list(os.environ):
        if name.startswith('LOCALE_LINT_'):
            monkeypatch.delenv(name, raising=False)




@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler and propagation changes made by setup_logger during a test."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
