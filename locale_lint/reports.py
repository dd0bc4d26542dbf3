"""
Loaders for the optional JSON reports kept under ``scripts/`` in each
workspace root: the style report, the untranslated allow-list and the
ignore-pattern files.

Every report is optional. A missing file contributes nothing; a file that
cannot be read, is not JSON or does not match its schema is logged at debug
level and also contributes nothing.
"""
import json
import logging
import os
from typing import Any, Dict, Iterator, Optional, Sequence, Set, Tuple

import jsonschema

from locale_lint.models import IgnorePatternSet, StyleSuggestion

logger = logging.getLogger(__name__)

STYLE_REPORT_PATH = os.path.join('scripts', '.i18n-untranslated-style.json')
UNTRANSLATED_REPORT_PATH = os.path.join('scripts', '.i18n-untranslated-untranslated.json')
IGNORE_PATTERNS_PATH = os.path.join('scripts', 'i18n-ignore-patterns.json')
AUTO_IGNORE_PATTERNS_PATH = os.path.join('scripts', '.i18n-auto-ignore.json')

# Both report files share the per-locale "files" layout. Individual entries
# with unexpected field types are skipped rather than rejecting the report.
LOCALE_REPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "issues": {"type": "array"},
                },
            },
        },
    },
}

IGNORE_PATTERNS_SCHEMA = {
    "type": "object",
    "properties": {
        "exact": {"type": "array"},
        "exactInsensitive": {"type": "array"},
        "exact_insensitive": {"type": "array"},
        "contains": {"type": "array"},
    },
}

LocaleKey = Tuple[str, str]


def read_report_json(path: str, schema: Dict[str, Any]) -> Optional[Any]:
    """Read and validate one report; None when it is absent or unusable."""
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            document = json.load(f)
        jsonschema.validate(instance=document, schema=schema)
        return document
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        logger.debug("Ignoring report %s: invalid JSON (%s)", path, e)
    except jsonschema.ValidationError as e:
        logger.debug("Ignoring report %s: unexpected structure (%s)", path, e.message)
    except OSError as e:
        logger.debug("Ignoring report %s: %s", path, e)
    return None


def _iter_locale_issues(document: Any) -> Iterator[Tuple[str, Dict[str, Any]]]:
    for file_entry in document.get('files') or []:
        locale = file_entry.get('locale')
        if not isinstance(locale, str) or not locale:
            continue
        for issue in file_entry.get('issues') or []:
            if isinstance(issue, dict) and isinstance(issue.get('keyPath'), str) and issue['keyPath']:
                yield locale, issue


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def load_style_report(roots: Sequence[str]) -> Dict[LocaleKey, StyleSuggestion]:
    """Style suggestions keyed by ``(key, locale)``; the first root mentioning a pair wins."""
    suggestions: Dict[LocaleKey, StyleSuggestion] = {}
    for root in roots:
        document = read_report_json(os.path.join(root, STYLE_REPORT_PATH), LOCALE_REPORT_SCHEMA)
        if document is None:
            continue
        for locale, issue in _iter_locale_issues(document):
            pair = (issue['keyPath'], locale)
            if pair in suggestions:
                continue
            suggestions[pair] = StyleSuggestion(
                key_path=issue['keyPath'],
                locale=locale,
                english=_optional_str(issue.get('english')),
                current=_optional_str(issue.get('current')),
                suggested=_optional_str(issue.get('suggested')),
            )
    logger.debug("Loaded %d style suggestion(s)", len(suggestions))
    return suggestions


def load_untranslated_allow_list(roots: Sequence[str]) -> Set[LocaleKey]:
    """``(key, locale)`` pairs a previous untranslated scan flagged."""
    allowed: Set[LocaleKey] = set()
    for root in roots:
        document = read_report_json(os.path.join(root, UNTRANSLATED_REPORT_PATH), LOCALE_REPORT_SCHEMA)
        if document is None:
            continue
        for locale, issue in _iter_locale_issues(document):
            allowed.add((issue['keyPath'], locale))
    logger.debug("Loaded %d untranslated allow-list entr(ies)", len(allowed))
    return allowed


def _string_items(values: Any) -> Set[str]:
    return {value for value in values or [] if isinstance(value, str) and value}


def load_ignore_patterns(roots: Sequence[str]) -> IgnorePatternSet:
    """Merge ignore patterns from the hand-written and generated files of every root."""
    merged = IgnorePatternSet()
    for root in roots:
        for relative_path in (IGNORE_PATTERNS_PATH, AUTO_IGNORE_PATTERNS_PATH):
            document = read_report_json(os.path.join(root, relative_path), IGNORE_PATTERNS_SCHEMA)
            if document is None:
                continue
            merged.merge(IgnorePatternSet(
                exact=_string_items(document.get('exact')),
                exact_case_insensitive=(_string_items(document.get('exactInsensitive'))
                                        | _string_items(document.get('exact_insensitive'))),
                contains=_string_items(document.get('contains')),
            ))
    return merged
