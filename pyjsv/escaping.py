"""
Scalar quoting rules for the JSV and JSON wire formats.

JSV writes a string bare unless doing so would be ambiguous:

    hello world      ->  hello world
    a,b              ->  "a,b"
    a "b" c          ->  "a ""b"" c"
    (empty string)   ->  ""
    null             ->  "null"
    123              ->  "123"
    true             ->  "true"

Inside a quoted JSV scalar the only escape is a doubled quote. Whitespace
inside a bare scalar is kept verbatim; whitespace around structural
delimiters is not significant, so strings with leading or trailing
whitespace are quoted. A bare scalar spelled like a number or boolean is
read back as one, so strings with that text are quoted too. Keys are
always read as strings and skip that rule.

JSON uses standard JSON string quoting.
"""

from __future__ import annotations

import json
import re
from json.decoder import scanstring

from pyjsv.errors import MalformedInputError

# =============================================================================
# Constants
# =============================================================================

QUOTE = '"'
NULL_TOKEN = "null"
BOOL_TOKENS = ("true", "false")

# Number grammar shared by both formats, plus the non-finite spellings
# Python's json module accepts
NUMBER_RE = re.compile(
    r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|NaN|-?Infinity"
)

# Characters that force a JSV value to be quoted
JSV_ESCAPE_CHARS = frozenset('[]{},"')

# Keys additionally stop at the key/value separator
JSV_KEY_ESCAPE_CHARS = JSV_ESCAPE_CHARS | {":"}

WHITESPACE = " \t\r\n"


# =============================================================================
# JSV
# =============================================================================


def needs_quotes(s: str, escape_chars: frozenset = JSV_ESCAPE_CHARS) -> bool:
    """Check if a string must be quoted to survive a JSV round trip."""
    if not s or s == NULL_TOKEN:
        return True
    if s[0] in WHITESPACE or s[-1] in WHITESPACE:
        return True
    return any(c in escape_chars for c in s)


def reads_as_literal(s: str) -> bool:
    """Check if bare text would be read back as a number or boolean."""
    return s in BOOL_TOKENS or NUMBER_RE.fullmatch(s) is not None


def escape_jsv(s: str) -> str:
    """Render a string as a JSV scalar, quoting only when required."""
    if not needs_quotes(s) and not reads_as_literal(s):
        return s
    return QUOTE + s.replace(QUOTE, QUOTE + QUOTE) + QUOTE


def escape_jsv_key(s: str) -> str:
    """Render a string as a JSV object key."""
    if not needs_quotes(s, JSV_KEY_ESCAPE_CHARS):
        return s
    return QUOTE + s.replace(QUOTE, QUOTE + QUOTE) + QUOTE


def unescape_jsv(token: str) -> str:
    """
    Inverse of escape_jsv for a single complete token.

    Quoted tokens lose their outer quotes and have doubled quotes collapsed;
    anything else is returned unchanged.
    """
    if len(token) >= 2 and token[0] == QUOTE and token[-1] == QUOTE:
        return token[1:-1].replace(QUOTE + QUOTE, QUOTE)
    return token


def scan_jsv_quoted(text: str, pos: int) -> tuple[str, int]:
    """
    Scan a quoted JSV scalar starting at the opening quote.

    Returns:
        The unescaped value and the offset just past the closing quote.

    Raises:
        MalformedInputError: If the closing quote is missing.
    """
    start = pos
    pos += 1
    parts = []
    while True:
        end = text.find(QUOTE, pos)
        if end < 0:
            raise MalformedInputError("Unterminated quoted scalar", start)
        parts.append(text[pos:end])
        if text.startswith(QUOTE + QUOTE, end):
            # Doubled quote is a literal quote
            parts.append(QUOTE)
            pos = end + 2
            continue
        return "".join(parts), end + 1


def scan_jsv_unquoted(text: str, pos: int, delimiters: frozenset) -> tuple[str, int]:
    """
    Scan a bare JSV scalar up to the next structural delimiter.

    Surrounding whitespace is trimmed; whitespace inside the value is kept.

    Returns:
        The value and the offset of the delimiter (or end of input).
    """
    end = pos
    length = len(text)
    while end < length and text[end] not in delimiters:
        end += 1
    return text[pos:end].strip(WHITESPACE), end


# =============================================================================
# JSON
# =============================================================================


def quote_json(s: str) -> str:
    """Render a string as a JSON string literal."""
    return json.dumps(s, ensure_ascii=False)


def scan_json_string(text: str, pos: int) -> tuple[str, int]:
    """
    Scan a JSON string literal starting at the opening quote.

    Returns:
        The decoded value and the offset just past the closing quote.
    """
    try:
        return scanstring(text, pos + 1, True)
    except json.JSONDecodeError as e:
        raise MalformedInputError(e.msg, e.pos) from e
