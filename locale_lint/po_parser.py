from typing import Iterator, List, Optional

from locale_lint.models import CatalogEntry

_PO_ESCAPES = {
    '"': '"',
    '\\': '\\',
    'n': '\n',
    't': '\t',
    'r': '\r',
}

# Parser states
_IDLE = 'idle'
_IN_CONTEXT = 'msgctxt'
_IN_MSGID = 'msgid'
_IN_PLURAL_ID = 'msgid_plural'
_IN_MSGSTR = 'msgstr'
_IN_OTHER_FORM = 'msgstr[n]'


def decode_po_string(fragment: str) -> str:
    """Decode the quoted part of a gettext line (``"Hello \\"you\\""`` -> ``Hello "you"``)."""
    start = fragment.find('"')
    end = fragment.rfind('"')
    if start == -1 or end <= start:
        return ''
    body = fragment[start + 1:end]
    chunks = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == '\\' and i + 1 < len(body):
            nxt = body[i + 1]
            chunks.append(_PO_ESCAPES.get(nxt, ch + nxt))
            i += 2
            continue
        chunks.append(ch)
        i += 1
    return ''.join(chunks)


class _PoEntryBuilder:

    def __init__(self):
        self.msgid_parts: Optional[List[str]] = None
        self.msgstr_parts: Optional[List[str]] = None

    def reset(self) -> None:
        self.msgid_parts = None
        self.msgstr_parts = None

    def flush(self, locale: str) -> Optional[CatalogEntry]:
        if self.msgid_parts is None:
            self.reset()
            return None
        msgid = ''.join(self.msgid_parts)
        msgstr = ''.join(self.msgstr_parts) if self.msgstr_parts else ''
        self.reset()
        if not msgid:
            # Header entry
            return None
        # Gettext convention: an empty msgstr means "not translated yet".
        return CatalogEntry(msgid, locale, msgstr or msgid)


def parse_po(text: str, locale: str) -> Iterator[CatalogEntry]:
    """
    Parse a gettext catalog with a line-oriented state machine.

    The singular ``msgid`` is the key. Continuation lines are appended to
    whichever of msgid / msgstr is currently open. For plural entries the
    first form (``msgstr[0]``) is the value. An empty msgstr falls back to
    the msgid text.
    """
    builder = _PoEntryBuilder()
    state = _IDLE

    for raw_line in text.splitlines():
        line = raw_line.strip()

        if not line:
            entry = builder.flush(locale)
            if entry:
                yield entry
            state = _IDLE
            continue

        if line.startswith('#'):
            continue

        if line.startswith('msgctxt'):
            entry = builder.flush(locale)
            if entry:
                yield entry
            state = _IN_CONTEXT
            continue

        if line.startswith('msgid_plural'):
            state = _IN_PLURAL_ID
            continue

        if line.startswith('msgid'):
            if state != _IN_CONTEXT:
                entry = builder.flush(locale)
                if entry:
                    yield entry
            builder.msgid_parts = [decode_po_string(line[len('msgid'):])]
            builder.msgstr_parts = None
            state = _IN_MSGID
            continue

        if line.startswith('msgstr['):
            index = line[len('msgstr['):line.find(']')] if ']' in line else ''
            if index.strip() == '0':
                builder.msgstr_parts = [decode_po_string(line[line.find(']') + 1:])]
                state = _IN_MSGSTR
            else:
                state = _IN_OTHER_FORM
            continue

        if line.startswith('msgstr'):
            builder.msgstr_parts = [decode_po_string(line[len('msgstr'):])]
            state = _IN_MSGSTR
            continue

        if line.startswith('"'):
            fragment = decode_po_string(line)
            if state == _IN_MSGID and builder.msgid_parts is not None:
                builder.msgid_parts.append(fragment)
            elif state == _IN_MSGSTR and builder.msgstr_parts is not None:
                builder.msgstr_parts.append(fragment)

    entry = builder.flush(locale)
    if entry:
        yield entry
