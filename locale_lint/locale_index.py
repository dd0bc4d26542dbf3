"""
The locale index: every translation key known in the workspace, with its
value per locale and the file that owns each (key, locale) pair, plus the
reverse map from file to the keys it declares.

Only two operations mutate the index: ``build_index`` (full rebuild) and
``update_file`` (incremental, one file). Both finish their file I/O before
touching the maps, so a merge never straddles an ``await``.
"""
import asyncio
import json
import logging
import os
from typing import Dict, Iterable, List, Optional, Set, Tuple

from tqdm import tqdm

from locale_lint.app_config import LintConfig
from locale_lint.concurrency import CancellationToken, map_limit
from locale_lint.discovery import find_locale_files, find_workspace_root, resolve_globs
from locale_lint.json_catalog_parser import parse_json_catalog
from locale_lint.locale_paths import (
    decode_locale_text,
    infer_json_target,
    infer_php_target,
    infer_po_locale,
    infer_resx_locale,
    read_file_bytes,
)
from locale_lint.models import (
    CatalogEntry,
    FileContribution,
    LocaleLocation,
    ScanResult,
    TranslationRecord,
)
from locale_lint.php_array_parser import parse_php_array
from locale_lint.po_parser import parse_po
from locale_lint.resx_parser import parse_resx

logger = logging.getLogger(__name__)


class _FileTooLarge(Exception):
    pass


class LocaleIndex:
    """Owner of the key -> record and file -> keys maps."""

    def __init__(self, config: LintConfig):
        self._config = config
        self._default_locale = config.default_locale
        self._key_map: Dict[str, TranslationRecord] = {}
        self._file_to_keys: Dict[str, FileContribution] = {}
        # (key, locale) pairs declared by more than one file at some point
        self._contested: Set[Tuple[str, str]] = set()
        self._initializing: Optional[asyncio.Task] = None
        self._initialized = False

    @property
    def config(self) -> LintConfig:
        return self._config

    @property
    def default_locale(self) -> str:
        return self._default_locale

    async def ensure_initialized(self, force: bool = False) -> None:
        """
        Build the index once.

        Callers arriving while a build is running await that same build
        instead of starting another scan.
        """
        if not force and self._initialized:
            return
        if self._initializing is not None and not force:
            await asyncio.shield(self._initializing)
            return
        task = asyncio.ensure_future(self.build_index())
        self._initializing = task
        try:
            await asyncio.shield(task)
        finally:
            if self._initializing is task:
                self._initializing = None

    async def build_index(self, cancel_token: Optional[CancellationToken] = None) -> ScanResult:
        """
        Rebuild the whole index from the workspace roots.

        Returns:
            ScanResult: How many files were found and processed, and whether
            the scan was cancelled before finishing.
        """
        self._key_map.clear()
        self._file_to_keys.clear()
        self._contested.clear()
        self._default_locale = self._config.default_locale

        if not self._config.enabled:
            logger.info("Locale indexing is disabled by configuration")
            self._initialized = True
            return ScanResult()

        globs = resolve_globs(self._config.locale_globs)
        files: List[str] = []
        seen: Set[str] = set()
        for root in self._config.workspace_roots:
            found = await asyncio.to_thread(find_locale_files, root, globs)
            for file_path in found:
                if file_path not in seen:
                    seen.add(file_path)
                    files.append(file_path)

        logger.info("Indexing %d locale file(s) across %d root(s)", len(files), len(self._config.workspace_roots))
        with tqdm(total=len(files), desc="Indexing locale files", unit="file", disable=None) as progress:
            outcome = await map_limit(files, self._config.scan_concurrency, self._index_file, cancel_token, progress)

        if outcome.cancelled:
            logger.warning("Index build cancelled after %d of %d file(s)", outcome.processed, len(files))
        else:
            self._initialized = True
            logger.info("Indexed %d key(s) in %d locale(s)", len(self._key_map), len(self.get_all_locales()))
        return ScanResult(files_total=len(files), files_processed=outcome.processed, cancelled=outcome.cancelled)

    async def update_file(self, file_path: str) -> None:
        """
        Re-index a single file after it changed on disk.

        The file's previous contribution is retracted and the file is parsed
        again. A deleted file only has its contribution retracted. If the
        path no longer yields a locale, the previously known one is kept.
        """
        file_path = os.path.abspath(file_path)
        self._default_locale = self._config.default_locale

        text: Optional[str] = None
        vanished = False
        try:
            text = await self._read_locale_text(file_path)
        except FileNotFoundError:
            vanished = True
        except _FileTooLarge:
            logger.debug("Skipping oversized locale file %s", file_path)
        except OSError as e:
            logger.error("Failed to read locale file %s: %s", file_path, e)

        existing = self._file_to_keys.get(file_path)
        previous_locale = existing.locale if existing else None
        if existing:
            self._retract(file_path, existing)

        if vanished or text is None:
            self._file_to_keys.pop(file_path, None)
            return

        self._ingest(file_path, text, previous_locale)

    async def _index_file(self, file_path: str) -> None:
        try:
            text = await self._read_locale_text(file_path)
        except _FileTooLarge:
            logger.debug("Skipping oversized locale file %s", file_path)
            return
        except OSError as e:
            logger.error("Failed to read locale file %s: %s", file_path, e)
            return
        self._ingest(file_path, text, None)

    async def _read_locale_text(self, file_path: str) -> str:
        stat = await asyncio.to_thread(os.stat, file_path)
        if stat.st_size > self._config.max_locale_file_size:
            raise _FileTooLarge(file_path)
        data = await asyncio.to_thread(read_file_bytes, file_path)
        return decode_locale_text(data)

    def _relative_path(self, file_path: str) -> str:
        root = find_workspace_root(file_path, self._config.workspace_roots)
        if root is None:
            return file_path
        return os.path.relpath(file_path, root)

    def _parse(self, file_path: str, text: str,
               previous_locale: Optional[str]) -> Tuple[Optional[str], List[CatalogEntry]]:
        """Infer the locale of ``file_path`` and parse it; the locale is None when unknown."""
        ext = os.path.splitext(file_path)[1].lower()
        rel_path = self._relative_path(file_path)
        blank = not text.strip()

        if ext == '.json':
            target = infer_json_target(rel_path)
            locale = target.locale if target else previous_locale
            namespace = target.namespace if target else ''
            if not locale or blank:
                return locale, []
            return locale, list(parse_json_catalog(text, locale, namespace))

        if ext == '.php':
            target = infer_php_target(rel_path)
            if target is None:
                return None, []
            return target.locale, list(parse_php_array(text, target.locale, target.namespace))

        if ext == '.resx':
            locale = infer_resx_locale(rel_path, self._default_locale) or previous_locale
            if not locale:
                return None, []
            return locale, list(parse_resx(text, locale))

        if ext == '.po':
            locale = infer_po_locale(rel_path) or previous_locale
            if not locale:
                return None, []
            return locale, list(parse_po(text, locale))

        return None, []

    def _ingest(self, file_path: str, text: str, previous_locale: Optional[str]) -> None:
        try:
            locale, entries = self._parse(file_path, text, previous_locale)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse JSON in %s: %s", file_path, e)
            self._file_to_keys.pop(file_path, None)
            return

        if not locale:
            logger.debug("Cannot infer a locale for %s; skipping", file_path)
            self._file_to_keys.pop(file_path, None)
            return

        contribution = FileContribution(locale)
        self._file_to_keys[file_path] = contribution
        for entry in entries:
            self._register(entry, file_path, contribution)
        logger.debug("Indexed %d key(s) for locale '%s' from %s", len(contribution.keys), locale, file_path)

    def _register(self, entry: CatalogEntry, file_path: str, contribution: FileContribution) -> None:
        record = self._key_map.get(entry.key)
        if record is None:
            record = TranslationRecord(key=entry.key, default_locale=self._default_locale)
            self._key_map[entry.key] = record
        record.locales[entry.locale] = entry.value

        location = record.location_for(entry.locale)
        if location is None:
            record.locations.append(LocaleLocation(entry.locale, file_path))
        elif location.file != file_path:
            # The most recently updated file owns the pair
            self._contested.add((entry.key, entry.locale))
            location.file = file_path

        contribution.add(entry.key, entry.value)

    def _retract(self, file_path: str, contribution: FileContribution) -> None:
        locale = contribution.locale
        for key in contribution.keys:
            record = self._key_map.get(key)
            if record is None:
                continue
            location = record.location_for(locale)
            if location is None or location.file != file_path:
                # Another file owns this pair; leave it alone
                continue
            record.locations.remove(location)
            record.locales.pop(locale, None)
            if (key, locale) in self._contested:
                self._restore_from_other_declarer(record, locale, file_path)
            if not record.locales:
                del self._key_map[key]
        contribution.keys.clear()

    def _restore_from_other_declarer(self, record: TranslationRecord, locale: str, retracted_file: str) -> None:
        for other_path, other in self._file_to_keys.items():
            if other_path == retracted_file or other.locale != locale:
                continue
            if record.key in other.keys:
                record.locales[locale] = other.keys[record.key]
                record.locations.append(LocaleLocation(locale, other_path))
                return
        self._contested.discard((record.key, locale))

    def get_record(self, key: str) -> Optional[TranslationRecord]:
        return self._key_map.get(key)

    def get_all_keys(self) -> List[str]:
        return list(self._key_map)

    def get_keys_for_file(self, file_path: str) -> Optional[FileContribution]:
        return self._file_to_keys.get(os.path.abspath(file_path))

    def get_files(self) -> List[str]:
        return list(self._file_to_keys)

    def get_all_locales(self) -> List[str]:
        """Locales with at least one contributing file."""
        locales: Dict[str, None] = {}
        for contribution in self._file_to_keys.values():
            if contribution.locale:
                locales[contribution.locale] = None
        return list(locales)

    def iter_records(self) -> Iterable[TranslationRecord]:
        return self._key_map.values()

    def find_translations_for_base_text(self, base_text: str,
                                        default_locale_override: Optional[str] = None) -> Dict[str, str]:
        """
        Collect known translations of a default-locale text across all keys.

        When two keys disagree on a locale's translation, the first value
        seen is kept.
        """
        result: Dict[str, str] = {}
        if not base_text:
            return result
        base_locale = default_locale_override or self._default_locale
        for record in self._key_map.values():
            if record.locales.get(base_locale) != base_text:
                continue
            for locale, value in record.locales.items():
                if locale == base_locale or not isinstance(value, str) or not value.strip():
                    continue
                result.setdefault(locale, value)
        return result

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        """Copy of every key's values by locale."""
        return {key: dict(record.locales) for key, record in self._key_map.items()}
