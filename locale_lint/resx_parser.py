import re
from typing import Iterator

from locale_lint.models import CatalogEntry

_DATA_RE = re.compile(r'<data\s+[^>]*name="([^"]+)"[^>]*>([\s\S]*?)</data>', re.IGNORECASE)
_VALUE_RE = re.compile(r'<value[^>]*>([\s\S]*?)</value>', re.IGNORECASE)
_NEWLINES_RE = re.compile(r'(?:\r?\n)+')

# &amp; goes last so "&amp;lt;" decodes to the literal text "&lt;".
_ENTITIES = (
    ('&lt;', '<'),
    ('&gt;', '>'),
    ('&quot;', '"'),
    ('&apos;', "'"),
    ('&amp;', '&'),
)


def decode_entities(text: str) -> str:
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def parse_resx(text: str, locale: str) -> Iterator[CatalogEntry]:
    """
    Extract ``<data name="K"><value>V</value></data>`` entries from a .resx file.

    Internal newlines are collapsed to single spaces. Entries without a
    ``<value>`` element, or with a blank one, are skipped.
    """
    for match in _DATA_RE.finditer(text):
        name = decode_entities(match.group(1))
        value_match = _VALUE_RE.search(match.group(2))
        if not value_match:
            continue
        raw_value = value_match.group(1).strip()
        if not raw_value:
            continue
        normalized = decode_entities(_NEWLINES_RE.sub(' ', raw_value).strip())
        if not normalized:
            continue
        yield CatalogEntry(name, locale, normalized)
