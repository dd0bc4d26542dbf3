"""
Text heuristics used by the diagnostic engine.

``is_probably_non_translatable`` runs an ordered list of independent
predicates over a default-locale value. Each predicate answers one question
about an already whitespace-normalized string, so they can be tested and
tuned one at a time.
"""
import re
from typing import Callable, List, Optional, Set, Tuple

from locale_lint.models import IgnorePatternSet, TranslationRecord

# Non-default locales whose value must equal the default for a short token to
# count as constant across locales.
REQUIRED_SAME = 1

_SINGLE_PLACEHOLDER_RE = re.compile(r'\{[A-Za-z0-9_]+(?:\.[A-Za-z0-9_]+)*\}')
_DOUBLE_PLACEHOLDER_RE = re.compile(r'\{\{\s*[^}]+\s*\}\}')
_SIMPLE_PLACEHOLDER_RE = re.compile(r'\{[A-Za-z0-9_]+\}')
_PUNCTUATION_RE = re.compile(r'''[()\[\]{},.:;'"!?\-_]''')
_WHITESPACE_RE = re.compile(r'\s+')

_KEBAB_TOKEN_RE = re.compile(r'^[a-z][a-z0-9]*(-[a-z0-9]+)+$', re.IGNORECASE)
_CSS_UTILITY_TOKEN_RE = re.compile(r'^-?[a-z][a-z0-9]*(?:-[a-z0-9/:%]+)+$')
_LETTERS_DIGITS_TOKEN_RE = re.compile(r'^[a-z]+[0-9]+$')
CSS_KEYWORDS = frozenset({
    'absolute', 'relative', 'fixed', 'sticky', 'static',
    'transform', 'inline', 'block', 'flex', 'grid',
})

_STYLE_BLOCK_RE = re.compile(r'\{[^}]*:[^;]+;[^}]*\}')
_DIRECTIVE_ATTRIBUTE_RE = re.compile(r'@\w+\s*=')
_CSS_DECLARATION_RE = re.compile(r'^\s*(height|width|margin|padding|font(?:-family)?|color|background|border)[^;{]*;?\s*$')
_FONT_STACK_RE = re.compile(r'^\s*(sans|serif|mono|monospace|system)\s*\([^)]+\)\s*$', re.IGNORECASE)
_UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)
_CSS_TOKEN_CHARS_RE = re.compile(r'^[A-Za-z0-9:._\-\[\]]+$')
_JS_KEYWORD_RE = re.compile(r'\b(const|let|var|function|return|if|else|for|while|class|async|await)\b')
_QUOTED_PROPERTY_RE = re.compile(r'''['"][^'"]+['"]\s*:''')
_URL_RE = re.compile(r'^(https?://|www\.)', re.IGNORECASE)
_UNIX_PATH_RE = re.compile(r'^/[A-Za-z0-9_/-]+/?$')
_UNC_PATH_RE = re.compile(r'^\\\\[^\s]+')
_DRIVE_PATH_RE = re.compile(r'^[A-Za-z]:[\\/][^\s]*$')
_QUERY_FRAGMENT_RE = re.compile(r'^[?#][A-Za-z0-9_.-]+=')
_QUERY_STRING_RE = re.compile(r'^[A-Za-z0-9_.-]+=[^&\s]*(&[A-Za-z0-9_.-]+=[^&\s]*)+$')


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def extract_placeholders(text: str) -> Set[str]:
    """Return the ``{name}``, ``{a.b}`` and ``{{ expr }}`` tokens found in ``text``."""
    if not text:
        return set()
    tokens = set(_SINGLE_PLACEHOLDER_RE.findall(text))
    tokens.update(_DOUBLE_PLACEHOLDER_RE.findall(text))
    return tokens


def placeholders_in_order(text: str) -> List[str]:
    """Distinct placeholder tokens in order of first appearance."""
    if not text:
        return []
    found = [(m.start(), m.group(0)) for m in _SINGLE_PLACEHOLDER_RE.finditer(text)]
    found.extend((m.start(), m.group(0)) for m in _DOUBLE_PLACEHOLDER_RE.finditer(text))
    found.sort()
    return list(dict.fromkeys(token for _, token in found))


def _strip_placeholders(text: str) -> str:
    return _SINGLE_PLACEHOLDER_RE.sub(' ', _DOUBLE_PLACEHOLDER_RE.sub(' ', text))


def is_placeholder_only(text: str) -> bool:
    """True for values made of placeholders and punctuation, e.g. ``{a} {b}`` or ``({count})``."""
    trimmed = (text or '').strip()
    if not trimmed:
        return False
    stripped = _PUNCTUATION_RE.sub(' ', _strip_placeholders(trimmed))
    stripped = normalize_whitespace(stripped)
    if not stripped:
        return True
    if not re.search(r'[A-Za-z]', stripped):
        return True
    letters = re.sub(r'[^A-Za-z]', '', stripped)
    return len(letters) <= 1 and len(stripped) <= 3


def is_css_with_placeholders(text: str) -> bool:
    """True for utility classes mixed with placeholders, e.g. ``font-medium {color}``."""
    if not _SIMPLE_PLACEHOLDER_RE.search(text):
        return False
    remainder = _SIMPLE_PLACEHOLDER_RE.sub('', text).strip()
    tokens = remainder.split()
    if not tokens:
        return True
    return all(_KEBAB_TOKEN_RE.match(token) for token in tokens)


def is_css_utility_string(text: str) -> bool:
    """True when at least three tokens, and 60% of all tokens, look like CSS utilities."""
    tokens = _strip_placeholders(text).split()
    if len(tokens) < 3:
        return False
    css_like = 0
    for token in tokens:
        lower = token.lower()
        if (lower in CSS_KEYWORDS
                or _CSS_UTILITY_TOKEN_RE.match(lower)
                or _LETTERS_DIGITS_TOKEN_RE.match(lower)):
            css_like += 1
    return css_like >= 3 and css_like / len(tokens) >= 0.6


def is_inline_style_block(text: str) -> bool:
    return bool(_STYLE_BLOCK_RE.search(text))


def is_markup_attribute_fragment(text: str) -> bool:
    for marker in ('class="', "class='", 'style="', "style='"):
        if marker in text:
            return True
    return bool(_DIRECTIVE_ATTRIBUTE_RE.search(text))


def is_css_declaration(text: str) -> bool:
    return bool(_CSS_DECLARATION_RE.match(text))


def is_font_stack_call(text: str) -> bool:
    return bool(_FONT_STACK_RE.match(text))


def is_template_expression_with_logic(text: str) -> bool:
    if not _DOUBLE_PLACEHOLDER_RE.search(text):
        return False
    return bool(re.search(r'[?:]', text)) or '||' in text or '&&' in text or bool(re.search(r'\.length\b', text))


def is_uuid(text: str) -> bool:
    return bool(_UUID_RE.match(text))


def is_complex_css_token(text: str) -> bool:
    """Single tokens such as ``hover:bg-blue-500`` or ``w-[200px]``."""
    if re.search(r'\s', text):
        return False
    return bool(re.search(r'[:\[\]]', text)) and bool(_CSS_TOKEN_CHARS_RE.match(text))


def is_js_code(text: str) -> bool:
    return bool(re.search(r'[{};]', text)) and bool(_JS_KEYWORD_RE.search(text))


def is_object_literal_snippet(text: str) -> bool:
    if 'gtag(' in text:
        return True
    return bool(re.search(r'[{}]', text)) and bool(_QUOTED_PROPERTY_RE.search(text))


def is_url(text: str) -> bool:
    return bool(_URL_RE.match(text))


def is_filesystem_path(text: str) -> bool:
    return bool(_UNIX_PATH_RE.match(text) or _UNC_PATH_RE.match(text) or _DRIVE_PATH_RE.match(text))


def is_query_string(text: str) -> bool:
    if re.search(r'\s', text):
        return False
    return bool(_QUERY_FRAGMENT_RE.match(text) or _QUERY_STRING_RE.match(text))


def is_single_character(text: str) -> bool:
    return len(text) == 1


NON_TRANSLATABLE_PREDICATES: List[Tuple[str, Callable[[str], bool]]] = [
    ('placeholder-only', is_placeholder_only),
    ('css-with-placeholders', is_css_with_placeholders),
    ('css-utility-string', is_css_utility_string),
    ('inline-style-block', is_inline_style_block),
    ('markup-attribute', is_markup_attribute_fragment),
    ('css-declaration', is_css_declaration),
    ('font-stack', is_font_stack_call),
    ('template-logic', is_template_expression_with_logic),
    ('uuid', is_uuid),
    ('complex-css-token', is_complex_css_token),
    ('js-code', is_js_code),
    ('object-literal', is_object_literal_snippet),
    ('url', is_url),
    ('filesystem-path', is_filesystem_path),
    ('query-string', is_query_string),
    ('single-character', is_single_character),
]


def non_translatable_reason(text: str) -> str:
    """Name of the first predicate matching ``text``, or an empty string."""
    normalized = normalize_whitespace(text)
    if not normalized:
        return ''
    for name, predicate in NON_TRANSLATABLE_PREDICATES:
        if predicate(normalized):
            return name
    return ''


def is_probably_non_translatable(text: str) -> bool:
    """True when the value looks like an extraction mistake rather than user-facing text."""
    return bool(non_translatable_reason(text))


def is_probably_constant_across_locales(record: TranslationRecord, default_locale: str, default_value: str,
                                         locale: Optional[str] = None) -> bool:
    """
    True for short token-like defaults (at most three words, 24 characters,
    no sentence punctuation) that at least ``REQUIRED_SAME`` other locales
    keep unchanged, such as brand names or units.

    ``locale`` is the locale being checked; its own value never counts.
    """
    base = (default_value or '').strip()
    if not base:
        return False
    normalized = normalize_whitespace(base)
    if len(normalized.split(' ')) > 3 or len(normalized) > 24 or re.search(r'[.!?]', normalized):
        return False

    same = 0
    for other, value in record.locales.items():
        if other in (default_locale, locale) or not isinstance(value, str):
            continue
        if value.strip() == base:
            same += 1
    return same >= REQUIRED_SAME


def is_ignored_text(text: str, patterns: IgnorePatternSet) -> bool:
    """Match a value against user ignore patterns after whitespace normalization."""
    normalized = normalize_whitespace(text)
    if not normalized or patterns.is_empty():
        return False
    if normalized in patterns.exact:
        return True
    lower = normalized.lower()
    if any(str(candidate).lower() == lower for candidate in patterns.exact_case_insensitive):
        return True
    return any(fragment and str(fragment) in normalized for fragment in patterns.contains)
