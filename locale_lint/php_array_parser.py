"""
Recursive-descent scanner for PHP language files of the form::

    <?php
    return [
        'welcome' => 'Welcome, :name',
        'auth' => array(
            'failed' => "These credentials do not match.",
        ),
    ];

Only string values are collected; numbers, constants, closures and function
calls are skipped with bracket depth tracked exactly. Malformed input never
raises: an unterminated string or array stops the scan and whatever was
collected up to that point is returned.
"""
import re
from typing import Iterator, List, Optional, Tuple

from locale_lint.models import CatalogEntry

_RETURN_ARRAY_RE = re.compile(r'return[\s\S]*?(\[|array\s*\()', re.IGNORECASE)

_DOUBLE_QUOTED_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'v': '\v',
    'e': '\x1b',
    'f': '\f',
    '\\': '\\',
    '$': '$',
    '"': '"',
}

_CLOSERS = {'[': ']', '(': ')', '{': '}'}


class _UnterminatedInput(Exception):
    """Internal signal: the text ended inside a string or array."""


class _PhpArrayScanner:

    def __init__(self, text: str, locale: str, root_prefix: str):
        self.text = text
        self.length = len(text)
        self.locale = locale
        self.root_prefix = root_prefix
        self.entries: List[CatalogEntry] = []

    def skip_whitespace_and_comments(self, pos: int) -> int:
        text = self.text
        while pos < self.length:
            ch = text[pos]
            if ch in ' \t\r\n':
                pos += 1
                continue
            if ch == '/' and pos + 1 < self.length:
                nxt = text[pos + 1]
                if nxt == '/':
                    end = text.find('\n', pos + 2)
                    pos = self.length if end == -1 else end + 1
                    continue
                if nxt == '*':
                    end = text.find('*/', pos + 2)
                    pos = self.length if end == -1 else end + 2
                    continue
            break
        return pos

    def parse_string(self, start: int) -> Tuple[str, int]:
        """Decode the quoted literal at ``start``; returns (value, position after it)."""
        text = self.text
        quote = text[start]
        pos = start + 1
        chunks = []
        while pos < self.length:
            ch = text[pos]
            if ch == '\\' and pos + 1 < self.length:
                nxt = text[pos + 1]
                if quote == "'":
                    chunks.append(nxt if nxt in "'\\" else ch + nxt)
                else:
                    chunks.append(_DOUBLE_QUOTED_ESCAPES.get(nxt, ch + nxt))
                pos += 2
                continue
            if ch == quote:
                return ''.join(chunks), pos + 1
            chunks.append(ch)
            pos += 1
        raise _UnterminatedInput()

    def skip_value(self, pos: int, close: str) -> int:
        """Skip a non-string value up to the next ``,`` or ``close`` at the same depth."""
        text = self.text
        stack = []
        while pos < self.length:
            pos = self.skip_whitespace_and_comments(pos)
            if pos >= self.length:
                break
            ch = text[pos]
            if ch in ('"', "'"):
                _, pos = self.parse_string(pos)
                continue
            if ch in _CLOSERS:
                stack.append(_CLOSERS[ch])
            elif stack and ch == stack[-1]:
                stack.pop()
            elif not stack and ch in (',', close):
                return pos
            pos += 1
        raise _UnterminatedInput()

    def match_array_keyword(self, pos: int) -> Optional[int]:
        """Return the position of ``(`` when ``array(`` starts at ``pos``."""
        if self.text[pos:pos + 5].lower() != 'array':
            return None
        after = self.skip_whitespace_and_comments(pos + 5)
        if after < self.length and self.text[after] == '(':
            return after
        return None

    def register(self, key_path: str, value: str) -> None:
        full_key = f"{self.root_prefix}.{key_path}" if self.root_prefix else key_path
        self.entries.append(CatalogEntry(full_key, self.locale, value))

    def parse_array(self, start: int, prefix: str) -> int:
        text = self.text
        close = ']' if text[start] == '[' else ')'
        pos = start + 1
        while True:
            pos = self.skip_whitespace_and_comments(pos)
            if pos >= self.length:
                raise _UnterminatedInput()
            ch = text[pos]
            if ch == close:
                return pos + 1
            if ch == ',':
                pos += 1
                continue

            if ch not in ('"', "'"):
                # Integer keys, list items without keys, constants...
                pos = self.skip_value(pos, close)
                continue

            key, pos = self.parse_string(pos)
            pos = self.skip_whitespace_and_comments(pos)
            if text[pos:pos + 2] != '=>':
                # A bare string list item.
                pos = self.skip_value(pos, close)
                continue

            pos = self.skip_whitespace_and_comments(pos + 2)
            if pos >= self.length:
                raise _UnterminatedInput()

            key_path = f"{prefix}.{key}" if prefix else key
            value_char = text[pos]
            if value_char in ('"', "'"):
                value, pos = self.parse_string(pos)
                self.register(key_path, value)
            elif value_char == '[':
                pos = self.parse_array(pos, key_path)
            else:
                paren = self.match_array_keyword(pos)
                if paren is not None:
                    pos = self.parse_array(paren, key_path)
                else:
                    pos = self.skip_value(pos, close)

    def run(self) -> List[CatalogEntry]:
        match = _RETURN_ARRAY_RE.search(self.text)
        if not match:
            return self.entries
        start = match.start(1)
        if self.text[start] != '[':
            start = self.match_array_keyword(start)
            if start is None:
                return self.entries
        try:
            self.parse_array(start, '')
        except _UnterminatedInput:
            pass
        return self.entries


def parse_php_array(text: str, locale: str, root_prefix: str = '') -> Iterator[CatalogEntry]:
    """
    Extract translations from the array returned by a PHP language file.

    Args:
        text: The PHP source text.
        locale: The locale the file belongs to.
        root_prefix: Dotted prefix derived from the file's location
            (``lang/en/auth.php`` -> ``auth``).

    Returns:
        Iterator[CatalogEntry]: Entries in source order; partial on malformed input.
    """
    return iter(_PhpArrayScanner(text, locale, root_prefix).run())
