"""
Scanner for application source files.

Finds translation calls such as ``t('key')`` or ``__('key')`` and ignores
call-shaped text that sits inside comments or string literals.
"""
import bisect
import os
import re
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Pattern, Sequence, Tuple

JS_SOURCE_EXTENSIONS = ('.js', '.jsx', '.mjs', '.cjs', '.ts', '.tsx', '.vue', '.svelte')
PHP_SOURCE_EXTENSIONS = ('.php',)
# Files whose markup may bind a call as an attribute value
COMPONENT_TEMPLATE_EXTENSIONS = ('.vue', '.svelte')
BLADE_EXTENSION = '.blade.php'

_KEY = r'''(['"])([A-Za-z0-9_.\-]+)\1'''

JS_CALL_PATTERNS: List[Pattern[str]] = [
    # t('k'), $t('k'), i18n.t('k')
    re.compile(r'(?:\bi18n\.|\$|(?<![\w$.]))t\s*\(\s*' + _KEY + r'\s*[,)]'),
]

PHP_CALL_PATTERNS: List[Pattern[str]] = [
    re.compile(r'(?<![\w$>:])__\s*\(\s*' + _KEY + r'\s*[,)]'),
    re.compile(r'(?<![\w$>:])trans\s*\(\s*' + _KEY + r'\s*[,)]'),
    re.compile(r'@lang\s*\(\s*' + _KEY + r'\s*[,)]'),
    re.compile(r'(?<![\w$>:])trans_choice\s*\(\s*' + _KEY + r'\s*,'),
]

# PHP regions of a Blade template; everything else is markup
_BLADE_REGION_RE = re.compile(
    r'(?P<comment>\{\{--.*?--\}\})'
    r'|(?P<verbatim>@\{\{.*?\}\})'
    r'|\{!!(?P<raw>.*?)!!\}'
    r'|\{\{(?P<echo>.*?)\}\}'
    r'|@php\b(?!\s*\()(?P<block>.*?)(?:@endphp|\Z)'
    r'|<\?(?:php\b|=)(?P<php>.*?)(?:\?>|\Z)',
    re.DOTALL,
)


class TranslationCall(NamedTuple):
    key: str
    call_start: int
    key_start: int
    key_end: int


@dataclass
class SourceRanges:
    """Half-open ``(start, end)`` offset ranges of comments and string literals."""
    comments: List[Tuple[int, int]] = field(default_factory=list)
    strings: List[Tuple[int, int]] = field(default_factory=list)


class _SourceScanner:
    def __init__(self, text: str, multiline_strings: bool):
        self.text = text
        self.length = len(text)
        self.multiline_strings = multiline_strings
        self.ranges = SourceRanges()

    def scan_code(self, pos: int, in_interpolation: bool = False) -> int:
        """Scan code from ``pos``; inside ``${...}`` return just after the closing brace."""
        text = self.text
        depth = 0
        while pos < self.length:
            char = text[pos]
            following = text[pos + 1] if pos + 1 < self.length else ''
            if char == '/' and following == '/':
                end = pos + 2
                while end < self.length and text[end] not in '\r\n':
                    end += 1
                self.ranges.comments.append((pos, end))
                pos = end
            elif char == '/' and following == '*':
                end = text.find('*/', pos + 2, self.length)
                end = self.length if end == -1 else end + 2
                self.ranges.comments.append((pos, end))
                pos = end
            elif char in ('"', "'"):
                pos = self.scan_quoted(pos, char)
            elif char == '`':
                pos = self.scan_template(pos)
            elif char == '{':
                depth += 1
                pos += 1
            elif char == '}':
                if in_interpolation and depth == 0:
                    return pos + 1
                depth = max(0, depth - 1)
                pos += 1
            else:
                pos += 1
        return pos

    def scan_region(self, start: int, end: int) -> None:
        """Scan ``text[start:end]`` as code; recorded ranges stop at ``end``."""
        self.length = end
        try:
            self.scan_code(start)
        finally:
            self.length = len(self.text)

    def scan_quoted(self, start: int, quote: str) -> int:
        text = self.text
        pos = start + 1
        while pos < self.length:
            char = text[pos]
            if char == '\\':
                pos += 2
                continue
            if char == quote:
                pos += 1
                break
            if char == '\n' and not self.multiline_strings:
                break
            pos += 1
        end = min(pos, self.length)
        self.ranges.strings.append((start, end))
        return end

    def scan_template(self, start: int) -> int:
        """Template literals are recorded as their text segments; ``${...}`` is scanned as code."""
        text = self.text
        segment_start = start
        pos = start + 1
        while pos < self.length:
            char = text[pos]
            if char == '\\':
                pos += 2
            elif char == '`':
                self.ranges.strings.append((segment_start, pos + 1))
                return pos + 1
            elif char == '$' and pos + 1 < self.length and text[pos + 1] == '{':
                self.ranges.strings.append((segment_start, pos))
                pos = self.scan_code(pos + 2, in_interpolation=True)
                segment_start = pos
            else:
                pos += 1
        self.ranges.strings.append((segment_start, self.length))
        return self.length


def scan_source(text: str, multiline_strings: bool = True) -> SourceRanges:
    """
    Compute comment and string-literal ranges of ``text``.

    Handles ``//`` and ``/* */`` comments, single and double quoted strings
    with backslash escapes, and template literals with ``${...}``
    interpolation. With ``multiline_strings`` false, a quoted string also
    ends at a newline, as in JavaScript.
    """
    scanner = _SourceScanner(text, multiline_strings)
    scanner.scan_code(0)
    return scanner.ranges


def scan_blade_source(text: str) -> SourceRanges:
    """
    Compute comment and string-literal ranges of a Blade template.

    Only the PHP regions (``{{ }}``, ``{!! !!}``, ``@php ... @endphp`` and
    ``<?php ... ?>``) are scanned as code. ``{{-- --}}`` is a comment and an
    escaped ``@{{ }}`` is literal output. Quotes in the surrounding markup
    never open a string.
    """
    scanner = _SourceScanner(text, multiline_strings=True)
    for match in _BLADE_REGION_RE.finditer(text):
        if match.group('comment') is not None:
            scanner.ranges.comments.append(match.span())
        elif match.group('verbatim') is not None:
            scanner.ranges.strings.append(match.span())
        else:
            name = next(group for group in ('raw', 'echo', 'block', 'php') if match.group(group) is not None)
            scanner.scan_region(*match.span(name))
    return scanner.ranges


def _containing_range(ranges: Sequence[Tuple[int, int]], position: int) -> Optional[Tuple[int, int]]:
    # Ranges are produced in order and never overlap
    index = bisect.bisect_right(ranges, (position, float('inf'))) - 1
    if index >= 0:
        start, end = ranges[index]
        if start <= position < end:
            return start, end
    return None


def _is_bound_attribute_call(text: str, string_range: Tuple[int, int], call_start: int) -> bool:
    """True for template bindings such as ``:title="t('k')"``: an ``="`` value starting with the call."""
    opening = string_range[0]
    if opening == 0 or text[opening - 1] != '=':
        return False
    return text[opening + 1:call_start].strip() == ''


def is_suppressed(text: str, ranges: SourceRanges, call_start: int, allow_bound_attributes: bool = False) -> bool:
    if _containing_range(ranges.comments, call_start) is not None:
        return True
    string_range = _containing_range(ranges.strings, call_start)
    if string_range is None:
        return False
    return not (allow_bound_attributes and _is_bound_attribute_call(text, string_range, call_start))


def call_patterns_for(file_path: str) -> List[Pattern[str]]:
    lower = file_path.lower()
    if lower.endswith(PHP_SOURCE_EXTENSIONS):
        return PHP_CALL_PATTERNS
    if lower.endswith(JS_SOURCE_EXTENSIONS):
        return JS_CALL_PATTERNS
    return []


def find_translation_calls(text: str, file_path: str) -> List[TranslationCall]:
    """
    Translation calls in ``text`` outside comments and string literals,
    ordered by position. The pattern set is chosen from the file extension;
    unknown extensions yield nothing.
    """
    patterns = call_patterns_for(file_path)
    if not patterns:
        return []
    lower = file_path.lower()
    is_js = not lower.endswith(PHP_SOURCE_EXTENSIONS)
    allow_bound_attributes = lower.endswith(COMPONENT_TEMPLATE_EXTENSIONS)
    if lower.endswith(BLADE_EXTENSION):
        ranges = scan_blade_source(text)
    else:
        ranges = scan_source(text, multiline_strings=not is_js)

    calls: List[TranslationCall] = []
    seen = set()
    for pattern in patterns:
        for match in pattern.finditer(text):
            call_start = match.start()
            if call_start in seen or is_suppressed(text, ranges, call_start, allow_bound_attributes):
                continue
            seen.add(call_start)
            calls.append(TranslationCall(
                key=match.group(2),
                call_start=call_start,
                key_start=match.start(2),
                key_end=match.end(2),
            ))
    calls.sort(key=lambda call: call.call_start)
    return calls


def is_source_file(file_path: str) -> bool:
    return bool(call_patterns_for(os.path.basename(file_path)))
