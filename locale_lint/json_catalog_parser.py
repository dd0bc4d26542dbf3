import json
from typing import Any, Iterator, Optional

from locale_lint.models import CatalogEntry

# Field names tried, in order, on array-catalog entries (go-i18n style).
CATALOG_ID_FIELDS = ('id', 'key')
CATALOG_VALUE_FIELDS = ('translation', 'message', 'text', 'other')


def _join(prefix: str, segment: str) -> str:
    return f"{prefix}.{segment}" if prefix else segment


def _catalog_value(element: dict) -> Optional[Any]:
    for field_name in CATALOG_VALUE_FIELDS:
        value = element.get(field_name)
        if value is not None:
            return value
    return None


def walk_json(node: Any, locale: str, prefix: str = '') -> Iterator[CatalogEntry]:
    """
    Walk an already decoded JSON document and yield its translations.

    Objects nest keys with dots; string leaves become entries. Arrays are
    treated as catalogs of ``{id|key, translation|message|text|other}``
    objects: the entry's id, not its array position, extends the key.

    Args:
        node: The decoded JSON value.
        locale: The locale the file belongs to.
        prefix: Dotted key prefix (namespace) for every emitted key.

    Yields:
        CatalogEntry: One entry per string leaf or catalog element.
    """
    if isinstance(node, list):
        for element in node:
            if not isinstance(element, dict):
                continue
            id_value = None
            for field_name in CATALOG_ID_FIELDS:
                candidate = element.get(field_name)
                if isinstance(candidate, str) and candidate:
                    id_value = candidate
                    break
            if not id_value:
                continue
            raw_value = _catalog_value(element)
            if not isinstance(raw_value, str) or not raw_value.strip():
                continue
            yield CatalogEntry(_join(prefix, id_value), locale, raw_value)
        return

    if not isinstance(node, dict):
        return

    for key, value in node.items():
        next_key = _join(prefix, key)
        if isinstance(value, str):
            yield CatalogEntry(next_key, locale, value)
        elif isinstance(value, (dict, list)):
            yield from walk_json(value, locale, next_key)


def parse_json_catalog(text: str, locale: str, prefix: str = '') -> Iterator[CatalogEntry]:
    """
    Parse the text of a JSON locale file.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON.
    """
    document = json.loads(text)
    return walk_json(document, locale, prefix)
