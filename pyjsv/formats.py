"""
Format adapters for JSON and JSV.

The writer and parser cores are shared between formats; everything that
differs at token level lives here:

- how a string scalar or object key is rendered,
- how a scalar token is recognized and decoded,
- how an object key token is recognized and decoded.

Both formats use the same structural tokens: { } [ ] : ,
"""

from __future__ import annotations

from pyjsv.errors import MalformedInputError
from pyjsv.escaping import (
    NULL_TOKEN,
    NUMBER_RE,
    QUOTE,
    WHITESPACE,
    escape_jsv,
    escape_jsv_key,
    quote_json,
    scan_json_string,
    scan_jsv_quoted,
    scan_jsv_unquoted,
)
from pyjsv.latebound import (
    LateBool,
    LateBoundValue,
    LateNull,
    LateNumber,
    LateString,
)


class FormatAdapter:
    """
    Token-level rules for one wire format.

    Subclasses implement rendering (render_string, render_key) and lexing
    (read_scalar, read_key). Lexing methods take the full input and an
    offset and return the decoded token plus the offset just past it.
    """

    name: str = "format"

    OBJECT_OPEN = "{"
    OBJECT_CLOSE = "}"
    ARRAY_OPEN = "["
    ARRAY_CLOSE = "]"
    KEY_SEPARATOR = ":"
    ITEM_SEPARATOR = ","
    NULL = NULL_TOKEN

    # Characters that end a scalar value inside a container
    VALUE_DELIMITERS = frozenset(",}]")

    def render_string(self, s: str) -> str:
        raise NotImplementedError

    def render_key(self, s: str) -> str:
        raise NotImplementedError

    def read_scalar(self, text: str, pos: int) -> tuple[LateBoundValue, int]:
        raise NotImplementedError

    def read_key(self, text: str, pos: int) -> tuple[str, int]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


# =============================================================================
# JSON
# =============================================================================

_JSON_LITERALS = {
    "true": LateBool(value=True),
    "false": LateBool(value=False),
    "null": LateNull(),
}


class JsonFormat(FormatAdapter):
    """Standard JSON: strings and keys always double-quoted."""

    name = "json"

    def render_string(self, s: str) -> str:
        return quote_json(s)

    def render_key(self, s: str) -> str:
        return quote_json(s)

    def read_scalar(self, text: str, pos: int) -> tuple[LateBoundValue, int]:
        if text[pos] == QUOTE:
            value, end = scan_json_string(text, pos)
            return LateString(value=value), end

        for literal, node in _JSON_LITERALS.items():
            if text.startswith(literal, pos):
                end = pos + len(literal)
                self._check_boundary(text, end)
                return node, end

        match = NUMBER_RE.match(text, pos)
        if match is None:
            raise MalformedInputError(f"Unexpected character {text[pos]!r}", pos)
        end = match.end()
        self._check_boundary(text, end)
        return LateNumber(text=match.group()), end

    def read_key(self, text: str, pos: int) -> tuple[str, int]:
        if pos >= len(text) or text[pos] != QUOTE:
            raise MalformedInputError("Expected double-quoted key", pos)
        return scan_json_string(text, pos)

    @staticmethod
    def _check_boundary(text: str, end: int) -> None:
        # A literal must be followed by whitespace, a delimiter or end of input
        if end < len(text) and text[end] not in WHITESPACE and text[end] not in ",:]}":
            raise MalformedInputError(f"Unexpected character {text[end]!r}", end)


# =============================================================================
# JSV
# =============================================================================


class JsvFormat(FormatAdapter):
    """
    JSV: scalars and keys are bare unless quoting is required.

    Bare scalars are typed on read: `null`, `true`/`false` and numbers
    become the matching node, everything else is a string. Quoted scalars
    are always strings.
    """

    name = "jsv"

    KEY_DELIMITERS = frozenset(":,}")

    def render_string(self, s: str) -> str:
        return escape_jsv(s)

    def render_key(self, s: str) -> str:
        return escape_jsv_key(s)

    def read_scalar(self, text: str, pos: int) -> tuple[LateBoundValue, int]:
        if text[pos] == QUOTE:
            value, end = scan_jsv_quoted(text, pos)
            return LateString(value=value), end

        value, end = scan_jsv_unquoted(text, pos, self.VALUE_DELIMITERS)
        if value == NULL_TOKEN:
            return LateNull(), end
        if value == "true":
            return LateBool(value=True), end
        if value == "false":
            return LateBool(value=False), end
        if NUMBER_RE.fullmatch(value):
            return LateNumber(text=value), end
        return LateString(value=value), end

    def read_key(self, text: str, pos: int) -> tuple[str, int]:
        if pos < len(text) and text[pos] == QUOTE:
            return scan_jsv_quoted(text, pos)
        key, end = scan_jsv_unquoted(text, pos, self.KEY_DELIMITERS)
        if not key:
            raise MalformedInputError("Expected key", pos)
        return key, end


JSON = JsonFormat()
JSV = JsvFormat()

_FORMATS: dict[str, FormatAdapter] = {JSON.name: JSON, JSV.name: JSV}


def get_format(fmt: str | FormatAdapter) -> FormatAdapter:
    """Look up a format adapter by name ("json" or "jsv")."""
    if isinstance(fmt, FormatAdapter):
        return fmt
    try:
        return _FORMATS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown format {fmt!r}; expected one of {sorted(_FORMATS)}") from None
