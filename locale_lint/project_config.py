import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

from locale_lint.models import ProjectConfig

logger = logging.getLogger(__name__)

PACKAGE_JSON = 'package.json'
PROJECT_SECTION = 'aiI18n'


def project_config_from_package(package: Any, default_locale: str) -> ProjectConfig:
    """Read the ``aiI18n`` section of a decoded package.json; declared locales default to ``['en']``."""
    section = package.get(PROJECT_SECTION) if isinstance(package, dict) else None
    section = section if isinstance(section, dict) else {}

    raw_locales = section.get('locales')
    if isinstance(raw_locales, list):
        locales = [str(locale) for locale in raw_locales if locale is not None and str(locale)]
    else:
        locales = ['en']

    src_root = section.get('srcRoot')
    return ProjectConfig(
        declared_locales=locales,
        default_locale=default_locale,
        src_root=src_root if isinstance(src_root, str) and src_root else None,
    )


class ProjectConfigService:
    """Per-root project settings from ``package.json``, cached until invalidated."""

    def __init__(self, default_locale: str = 'en'):
        self._default_locale = default_locale
        self._cache: Dict[str, Optional[ProjectConfig]] = {}

    def _read(self, root: str) -> Optional[ProjectConfig]:
        package_path = os.path.join(root, PACKAGE_JSON)
        if not os.path.isfile(package_path):
            return None
        try:
            with open(package_path, 'r', encoding='utf-8-sig') as f:
                package = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read project config from %s: %s", package_path, e)
            return None
        return project_config_from_package(package, self._default_locale)

    async def read_config(self, root: str) -> Optional[ProjectConfig]:
        root = os.path.abspath(root)
        if root in self._cache:
            return self._cache[root]
        config = await asyncio.to_thread(self._read, root)
        self._cache[root] = config
        return config

    def invalidate(self, root: Optional[str] = None) -> None:
        if root is None:
            self._cache.clear()
        else:
            self._cache.pop(os.path.abspath(root), None)
