"""
Diagnostics over the locale index.

The engine reads the index through its public queries only. Its own state
is limited to caches (file text and key ranges, the last diagnostics per
file) and the optional reports loaded from ``scripts/``.
"""
import asyncio
import logging
import os
from typing import Dict, Iterable, List, Optional, Sequence, Set

from locale_lint.app_config import DEFAULT_CACHE_CAPACITY, LintConfig
from locale_lint.concurrency import CancellationToken, map_limit
from locale_lint.discovery import find_workspace_root
from locale_lint.key_locator import KeyLocator, compute_line_starts, offset_range
from locale_lint.locale_index import LocaleIndex
from locale_lint.locale_paths import decode_locale_text, read_file_bytes
from locale_lint.models import (
    AnalysisBatch,
    DiagnosticCode,
    DiagnosticIssue,
    IgnorePatternSet,
    ProjectConfig,
    Severity,
    StyleSuggestion,
    TextRange,
    TranslationRecord,
)
from locale_lint.project_config import ProjectConfigService
from locale_lint.reports import (
    LocaleKey,
    load_ignore_patterns,
    load_style_report,
    load_untranslated_allow_list,
)
from locale_lint.source_scanner import find_translation_calls
from locale_lint.text_heuristics import (
    extract_placeholders,
    is_ignored_text,
    is_probably_constant_across_locales,
    is_probably_non_translatable,
    normalize_whitespace,
    placeholders_in_order,
)

logger = logging.getLogger(__name__)


def _has_value(record: TranslationRecord, locale: str) -> bool:
    value = record.locales.get(locale)
    return isinstance(value, str) and bool(value.strip())


class DiagnosticEngine:
    """Computes diagnostics for locale files and application source files."""

    def __init__(self, index: LocaleIndex, project_config_service: ProjectConfigService,
                 cache_capacity: int = DEFAULT_CACHE_CAPACITY):
        self._index = index
        self._project_config_service = project_config_service
        self._locator = KeyLocator(cache_capacity)
        self._diagnostics_by_file: Dict[str, List[DiagnosticIssue]] = {}

        self._style_issues: Dict[LocaleKey, StyleSuggestion] = {}
        self._style_loaded = False
        self._untranslated_allowed: Set[LocaleKey] = set()
        self._untranslated_report_active = False
        self._ignore_patterns = IgnorePatternSet()
        self._ignore_loaded = False

    async def load_reports(self, roots: Sequence[str], force: bool = False) -> None:
        """Load the style report, the untranslated allow-list and the ignore patterns."""
        if force or not self._style_loaded:
            self._style_issues = await asyncio.to_thread(load_style_report, roots)
            self._style_loaded = True
        if force or not self._untranslated_report_active:
            self._untranslated_allowed = await asyncio.to_thread(load_untranslated_allow_list, roots)
            self._untranslated_report_active = bool(self._untranslated_allowed)
        if force or not self._ignore_loaded:
            self._ignore_patterns = await asyncio.to_thread(load_ignore_patterns, roots)
            self._ignore_loaded = True

    def invalidate_untranslated_report_keys(self, keys: Iterable[str]) -> None:
        """
        Forget allow-list entries for keys that were just edited, in every
        locale. Once no entries remain the allow-list stops filtering.
        """
        keys = list(keys)
        if not self._untranslated_report_active or not keys:
            return
        locales = self._index.get_all_locales()
        for key in keys:
            for locale in locales:
                self._untranslated_allowed.discard((key, locale))
        if not self._untranslated_allowed:
            self._untranslated_report_active = False

    def reset_caches(self) -> None:
        self._diagnostics_by_file.clear()
        self._locator.clear()
        self._style_issues = {}
        self._style_loaded = False
        self._untranslated_allowed = set()
        self._untranslated_report_active = False
        self._ignore_patterns = IgnorePatternSet()
        self._ignore_loaded = False

    def diagnostics_for(self, file_path: str) -> List[DiagnosticIssue]:
        """Diagnostics from the last analysis of ``file_path``."""
        return list(self._diagnostics_by_file.get(os.path.abspath(file_path), []))

    @staticmethod
    def _locales_to_check(config: LintConfig, discovered: Sequence[str],
                          project_config: Optional[ProjectConfig],
                          forced_locales: Optional[Sequence[str]]) -> List[str]:
        """Default locale first, then configured, discovered and forced locales."""
        locales: Dict[str, None] = {config.default_locale: None}
        configured = project_config.declared_locales if project_config else []
        for locale in list(configured) + list(discovered) + list(forced_locales or []):
            if locale:
                locales[locale] = None
        return list(locales)

    async def analyze_file(self, file_path: str, config: LintConfig,
                           extra_keys: Optional[Sequence[str]] = None,
                           forced_locales: Optional[Sequence[str]] = None) -> List[DiagnosticIssue]:
        """
        Diagnose one locale file.

        Args:
            file_path: The locale file.
            config: Current configuration (severities, default locale).
            extra_keys: Keys to check in addition to the ones the file declares,
                e.g. keys just removed from it.
            forced_locales: Locales to check even if no file declares them yet.

        Returns:
            List[DiagnosticIssue]: Empty when the file is outside every
            workspace root or its locale is unknown.
        """
        file_path = os.path.abspath(file_path)
        self._locator.invalidate(file_path)
        if not config.enabled:
            return []

        root = find_workspace_root(file_path, config.workspace_roots)
        if root is None:
            logger.debug("No workspace root for %s", file_path)
            return []

        contribution = self._index.get_keys_for_file(file_path)
        if contribution is None or not contribution.locale:
            logger.debug("Cannot determine locale for file: %s", file_path)
            return []
        file_locale = contribution.locale
        keys = list(dict.fromkeys(list(contribution.keys) + list(extra_keys or [])))

        project_config = await self._project_config_service.read_config(root)
        locales = self._locales_to_check(config, self._index.get_all_locales(), project_config, forced_locales)
        logger.debug("Analyzing %s: %d key(s) for locale '%s'", file_path, len(keys), file_locale)

        issues: List[DiagnosticIssue] = []
        for key in keys:
            record = self._index.get_record(key)
            if record is None:
                continue
            for issue in self._analyze_record(file_path, file_locale, record, locales, config):
                issue.range = await self._locator.locate(file_path, key)
                issues.append(issue)

        self._diagnostics_by_file[file_path] = issues
        logger.debug("Found %d diagnostic(s) for %s", len(issues), file_path)
        return issues

    def _analyze_record(self, file_path: str, file_locale: str, record: TranslationRecord,
                        locales: Sequence[str], config: LintConfig) -> List[DiagnosticIssue]:
        key = record.key
        default_locale = record.default_locale or config.default_locale
        default_raw = record.locales.get(default_locale)
        if default_raw is None:
            default_raw = record.locales.get(config.default_locale)
        has_default = isinstance(default_raw, str) and bool(default_raw.strip())
        default_value = default_raw if has_default else ''
        default_placeholders = placeholders_in_order(default_value)

        base_non_translatable = has_default and is_probably_non_translatable(default_value)
        base_ignored = has_default and is_ignored_text(default_value, self._ignore_patterns)

        issues: List[DiagnosticIssue] = []

        # Ignore patterns only silence other diagnostics, they never flag the base value
        if file_locale == default_locale and base_non_translatable:
            issues.append(DiagnosticIssue(
                range=TextRange.empty(),
                message=f'Invalid/non-translatable value "{key}" [{default_locale}]',
                severity=config.invalid_severity,
                code=DiagnosticCode.INVALID_BASE_VALUE,
                key=key,
                locale=default_locale,
            ))

        if not has_default:
            present = [locale for locale in locales if locale != default_locale and _has_value(record, locale)]
            if present:
                reporter = record.location_for(present[0])
                if reporter is not None and reporter.file == file_path:
                    issues.append(DiagnosticIssue(
                        range=TextRange.empty(),
                        message=(f'Missing default translation for "{key}" [{default_locale}] '
                                 f'(present in: {", ".join(present)})'),
                        severity=config.missing_default_severity,
                        code=DiagnosticCode.MISSING_DEFAULT,
                        key=key,
                        locale=default_locale,
                    ))

        default_location = record.location_for(default_locale)
        owns_default = default_location is not None and default_location.file == file_path

        for locale in locales:
            if locale == default_locale:
                continue
            location = record.location_for(locale)
            if location is not None:
                # The file owning this locale reports for it
                if location.file != file_path:
                    continue
            elif not owns_default:
                continue

            issues.extend(self.analyze_key_for_locale(
                key,
                locale,
                record.locales.get(locale),
                default_value,
                default_placeholders,
                config,
                is_probably_constant_across_locales(record, default_locale, default_value, locale),
                base_non_translatable or base_ignored,
            ))
        return issues

    def analyze_key_for_locale(self, key: str, locale: str, value: Optional[str], default_value: str,
                               default_placeholders: Sequence[str], config: LintConfig,
                               constant_like: bool, base_suppressed: bool) -> List[DiagnosticIssue]:
        """
        Check one (key, locale) pair: missing, then untranslated, then
        placeholder parity, then style. A missing value stops the checks.
        """
        issues: List[DiagnosticIssue] = []

        def add(message: str, severity: Severity, code: DiagnosticCode) -> None:
            issues.append(DiagnosticIssue(TextRange.empty(), message, severity, code, key=key, locale=locale))

        if not value or not value.strip():
            if not base_suppressed:
                add(f'Missing translation for "{key}" [{locale}]', config.missing_severity, DiagnosticCode.MISSING)
            return issues

        if config.untranslated_enabled and value == default_value:
            allowed_by_report = (not self._untranslated_report_active
                                 or (key, locale) in self._untranslated_allowed)
            if not constant_like and not base_suppressed and allowed_by_report:
                add(f'Untranslated (same as default) "{key}" [{locale}]',
                    config.untranslated_severity, DiagnosticCode.UNTRANSLATED)

        if default_placeholders and extract_placeholders(value) != set(default_placeholders):
            expected = ', '.join(default_placeholders)
            add(f'Placeholder mismatch "{key}" [{locale}] (expected: {expected})',
                config.placeholder_severity, DiagnosticCode.PLACEHOLDER_MISMATCH)

        style = self._style_issues.get((key, locale))
        if style is not None and not self._is_stale_style(style, value):
            parts = []
            if style.current is not None:
                parts.append(f'current: {style.current}')
            if style.suggested is not None:
                parts.append(f'suggested: {style.suggested}')
            details = f" ({' | '.join(parts)})" if parts else ''
            add(f'Style suggestion "{key}" [{locale}]{details}', Severity.INFO, DiagnosticCode.STYLE)

        return issues

    @staticmethod
    def _is_stale_style(style: StyleSuggestion, value: str) -> bool:
        """A suggestion is stale once the value moved away from ``current`` or already equals ``suggested``."""
        normalized_value = normalize_whitespace(value)
        current = normalize_whitespace(style.current) if style.current else ''
        suggested = normalize_whitespace(style.suggested) if style.suggested else ''
        if current:
            return normalized_value != current
        return bool(suggested) and normalized_value == suggested

    async def analyze_files(self, file_paths: Sequence[str], config: LintConfig,
                            cancel_token: Optional[CancellationToken] = None) -> AnalysisBatch:
        """Analyze several locale files with bounded concurrency."""
        batch = AnalysisBatch()
        logger.info("Analyzing %d file(s)...", len(file_paths))

        async def analyze(file_path: str) -> None:
            batch.diagnostics[os.path.abspath(file_path)] = await self.analyze_file(file_path, config)

        outcome = await map_limit(list(file_paths), config.scan_concurrency, analyze, cancel_token)
        batch.files_processed = outcome.processed
        batch.cancelled = outcome.cancelled
        if batch.cancelled:
            logger.warning("Analysis cancelled after %d of %d file(s)", outcome.processed, len(file_paths))
        return batch

    async def analyze_all(self, config: LintConfig,
                          cancel_token: Optional[CancellationToken] = None) -> AnalysisBatch:
        """Analyze every file that owns at least one (key, locale) pair."""
        files: Dict[str, None] = {}
        for key in self._index.get_all_keys():
            record = self._index.get_record(key)
            if record is None:
                continue
            for location in record.locations:
                files[location.file] = None
        return await self.analyze_files(list(files), config, cancel_token)

    async def analyze_source_file(self, file_path: str, config: LintConfig) -> List[DiagnosticIssue]:
        """Report translation calls in application source that reference unknown keys."""
        if not config.enabled or not config.missing_reference_enabled:
            return []
        file_path = os.path.abspath(file_path)
        try:
            data = await asyncio.to_thread(read_file_bytes, file_path)
        except OSError as e:
            logger.warning("Cannot read source file %s: %s", file_path, e)
            return []

        text = decode_locale_text(data)
        line_starts = compute_line_starts(text)
        issues: List[DiagnosticIssue] = []
        for call in find_translation_calls(text, file_path):
            if self._index.get_record(call.key) is not None:
                continue
            issues.append(DiagnosticIssue(
                range=offset_range(line_starts, call.key_start, call.key_end),
                message=f'Missing translation key "{call.key}" (not defined in any locale file)',
                severity=config.missing_reference_severity,
                code=DiagnosticCode.MISSING_REFERENCE,
                key=call.key,
            ))
        self._diagnostics_by_file[file_path] = issues
        return issues
