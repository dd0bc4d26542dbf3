"""Locate translation keys inside locale files for diagnostic ranges."""
import asyncio
import bisect
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from locale_lint.caching import LRUCache
from locale_lint.locale_paths import decode_locale_text, read_file_bytes
from locale_lint.models import TextRange

logger = logging.getLogger(__name__)

_WHITESPACE = ' \t\r\n'


@dataclass
class CachedFileText:
    text: str
    line_starts: List[int]
    key_ranges: Dict[str, TextRange] = field(default_factory=dict)


def compute_line_starts(text: str) -> List[int]:
    starts = [0]
    index = text.find('\n')
    while index != -1:
        starts.append(index + 1)
        index = text.find('\n', index + 1)
    return starts


def offset_range(line_starts: Sequence[int], start: int, end: int) -> TextRange:
    """Build a :class:`TextRange` from character offsets."""
    start_line = bisect.bisect_right(line_starts, start) - 1
    end_line = bisect.bisect_right(line_starts, end) - 1
    return TextRange(
        start_offset=start,
        end_offset=end,
        start_line=start_line,
        start_character=start - line_starts[start_line],
        end_line=end_line,
        end_character=end - line_starts[end_line],
    )


def _find_followed_by(text: str, needle: str, follower: str, start: int = 0) -> int:
    """Offset of ``needle`` whose next non-blank text is ``follower``, or -1."""
    index = text.find(needle, start)
    while index != -1:
        cursor = index + len(needle)
        while cursor < len(text) and text[cursor] in _WHITESPACE:
            cursor += 1
        if text.startswith(follower, cursor):
            return index
        index = text.find(needle, index + len(needle))
    return -1


def _find_nested_key(text: str, segments: List[str], quotes: Sequence[str], follower: str) -> int:
    """
    Find the last segment of a dotted key, walking parent segments first so
    that ``a.title`` is found under ``a`` rather than at the first ``title``.
    Parents that cannot be found (e.g. a namespace taken from the file path)
    are skipped. Returns the offset of the segment text, or -1.
    """
    def find(segment: str, start: int) -> int:
        best = -1
        for quote in quotes:
            found = _find_followed_by(text, f"{quote}{segment}{quote}", follower, start)
            if found != -1 and (best == -1 or found < best):
                best = found
        return best

    cursor = 0
    for parent in segments[:-1]:
        found = find(parent, cursor)
        if found != -1:
            cursor = found + len(parent) + 2
    position = find(segments[-1], cursor)
    if position == -1 and cursor:
        position = find(segments[-1], 0)
    return position + 1 if position != -1 else -1


def find_key_offset(text: str, key: str, extension: str) -> Optional[int]:
    """Start offset of the key text in ``text`` for a file of the given extension."""
    extension = extension.lower()
    if extension == '.po':
        needle = f'msgid "{key}"'
        index = text.find(needle)
        return index + len('msgid "') if index != -1 else None
    if extension == '.resx':
        needle = f'name="{key}"'
        index = text.find(needle)
        return index + len('name="') if index != -1 else None

    segments = key.split('.')
    if not segments[-1]:
        return None
    if extension == '.json':
        position = _find_nested_key(text, segments, ('"',), ':')
    elif extension == '.php':
        position = _find_nested_key(text, segments, ("'", '"'), '=>')
    else:
        return None
    return position if position != -1 else None


def located_length(key: str, extension: str) -> int:
    if extension.lower() in ('.po', '.resx'):
        return len(key)
    return len(key.split('.')[-1])


class KeyLocator:
    """
    Per-file text cache plus key range lookup.

    Entries hold the decoded text, its line starts and every range already
    resolved for the file. The cache is bounded; callers invalidate a file's
    entry whenever the file may have changed.
    """

    def __init__(self, capacity: int):
        self._cache: LRUCache[CachedFileText] = LRUCache(capacity)

    def invalidate(self, file_path: str) -> None:
        self._cache.invalidate(file_path)

    def clear(self) -> None:
        self._cache.clear()

    async def _load(self, file_path: str) -> Optional[CachedFileText]:
        cached = self._cache.get(file_path)
        if cached is not None:
            return cached
        try:
            data = await asyncio.to_thread(read_file_bytes, file_path)
        except OSError as e:
            logger.debug("Cannot read %s for key ranges: %s", file_path, e)
            return None
        text = decode_locale_text(data)
        cached = CachedFileText(text=text, line_starts=compute_line_starts(text))
        self._cache.put(file_path, cached)
        return cached

    async def locate(self, file_path: str, key: str) -> TextRange:
        """Range of ``key`` in ``file_path``; an empty range when it cannot be found."""
        cached = await self._load(file_path)
        if cached is None:
            return TextRange.empty()
        existing = cached.key_ranges.get(key)
        if existing is not None:
            return existing

        extension = os.path.splitext(file_path)[1]
        offset = find_key_offset(cached.text, key, extension)
        if offset is None:
            return TextRange.empty()
        text_range = offset_range(cached.line_starts, offset, offset + located_length(key, extension))
        cached.key_ranges[key] = text_range
        return text_range
