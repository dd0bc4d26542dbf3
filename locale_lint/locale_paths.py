"""
Path heuristics that decide which locale (and namespace) a catalog file
belongs to, plus byte decoding for locale files.

Inference is best effort. A file whose path matches none of the rules
contributes nothing to the index; that is a known limitation of relying on
directory and file naming conventions.
"""
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r'^[A-Za-z0-9_-]+$')
_PO_SEGMENT_RE = re.compile(r'^[A-Za-z0-9_@.-]+$')
# en, fr-FR, pt_BR, zh-Hant, sr-Latn-RS
_LOCALE_CODE_RE = re.compile(r'^[a-z]{2,3}(?:[-_][A-Za-z0-9]{2,4}){0,2}$')
_RESX_CULTURE_RE = re.compile(r'^(.+?)\.([A-Za-z]{2}(?:-[A-Za-z0-9]{2,})?)\.resx$')

PO_LOCALE_MARKERS = ('locale', 'locales', 'translations')


@dataclass(frozen=True)
class LocaleTarget:
    """Where a file's entries go: its locale and an optional key prefix."""
    locale: str
    namespace: str = ''


def split_path(file_path: str) -> List[str]:
    normalized = file_path.replace('\\', '/')
    return [part for part in normalized.split('/') if part]


def looks_like_locale_code(segment: str) -> bool:
    return bool(_LOCALE_CODE_RE.match(segment))


def _last_index(parts: List[str], name: str) -> int:
    for i in range(len(parts) - 1, -1, -1):
        if parts[i] == name:
            return i
    return -1


def _strip_extension(segment: str) -> str:
    return os.path.splitext(segment)[0]


def _namespace_below(parts: List[str], locale_index: int) -> str:
    """Dotted namespace from the path segments below a locale directory."""
    below = parts[locale_index + 1:]
    if not below:
        return ''
    below = below[:-1] + [_strip_extension(below[-1])]
    return '.'.join(segment for segment in below if segment)


def infer_json_target(file_path: str) -> Optional[LocaleTarget]:
    """
    Infer the locale of a JSON catalog. First match wins:

    1. ``.../auto/<locale>/...`` or ``.../auto/<locale>.json``
    2. ``.../locales/<locale>/...``
    3. ``<name>.<locale>.json``
    4. ``.../<locale>/<namespace>.json`` (locale-shaped directory, non-locale stem)
    5. ``<locale>.json``

    Under rules 2 and 4 the path below the locale directory becomes the
    namespace (``locales/en/common.json`` -> ``common``). Generated
    ``auto/`` catalogs already carry their top-level keys, so rule 1 adds none.
    """
    parts = split_path(file_path)
    if not parts:
        return None

    auto_index = _last_index(parts, 'auto')
    if 0 <= auto_index < len(parts) - 1:
        raw = parts[auto_index + 1]
        if auto_index + 1 == len(parts) - 1:
            return LocaleTarget(_strip_extension(raw))
        return LocaleTarget(raw)

    locales_index = _last_index(parts, 'locales')
    if 0 <= locales_index < len(parts) - 1:
        candidate = parts[locales_index + 1]
        if locales_index + 1 == len(parts) - 1:
            # locales/en.json
            candidate = _strip_extension(candidate)
            if _SEGMENT_RE.match(candidate):
                return LocaleTarget(candidate)
        elif _SEGMENT_RE.match(candidate):
            return LocaleTarget(candidate, _namespace_below(parts, locales_index + 1))

    file_name = parts[-1]
    if not file_name.lower().endswith('.json'):
        return None
    base = file_name[:-len('.json')]
    if '.' in base:
        candidate = base.rsplit('.', 1)[1]
        if _SEGMENT_RE.match(candidate):
            return LocaleTarget(candidate)
        return None

    if len(parts) >= 2 and looks_like_locale_code(parts[-2]) and not looks_like_locale_code(base):
        return LocaleTarget(parts[-2], base)

    if _SEGMENT_RE.match(base):
        return LocaleTarget(base)
    return None


def infer_po_locale(file_path: str) -> Optional[str]:
    """``.../locale/<locale>/LC_MESSAGES/x.po`` (also ``locales`` and ``translations``)."""
    parts = split_path(file_path)
    for marker in PO_LOCALE_MARKERS:
        index = _last_index(parts, marker)
        if 0 <= index < len(parts) - 1:
            candidate = parts[index + 1]
            if _PO_SEGMENT_RE.match(candidate):
                return candidate
    return None


def infer_resx_locale(file_path: str, default_locale: str) -> Optional[str]:
    """``Strings.fr-FR.resx`` -> ``fr-FR``; a culture-neutral ``Strings.resx`` is the default locale."""
    file_name = os.path.basename(file_path.replace('\\', '/'))
    match = _RESX_CULTURE_RE.match(file_name)
    if match:
        return match.group(2)
    if file_name.lower().endswith('.resx') and len(file_name) > len('.resx'):
        return default_locale
    return None


def infer_php_target(file_path: str) -> Optional[LocaleTarget]:
    """``lang/<locale>/<sub>/<file>.php`` -> locale plus ``<sub>.<file>`` key prefix."""
    parts = split_path(file_path)
    lang_index = _last_index(parts, 'lang')
    if lang_index < 0 or lang_index + 2 >= len(parts):
        return None
    locale = parts[lang_index + 1]
    root = _namespace_below(parts, lang_index + 1)
    if not locale or not root:
        return None
    return LocaleTarget(locale, root)


def read_file_bytes(file_path: str) -> bytes:
    with open(file_path, 'rb') as f:
        return f.read()


def decode_locale_text(data: bytes) -> str:
    """
    Decode locale file bytes.

    UTF-8 is the fast path. Files exported by Windows tooling as "Unicode"
    are UTF-16LE; any NUL byte switches to that decoding, dropping a leading
    FF FE byte-order mark. No other encodings are attempted.
    """
    if not data:
        return ''
    if b'\x00' not in data:
        return data.decode('utf-8-sig', errors='replace')
    start = 2 if data[:2] == b'\xff\xfe' else 0
    body = data[start:]
    if len(body) % 2:
        body = body[:-1]
    return body.decode('utf-16-le', errors='replace')
