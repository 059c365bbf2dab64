"""
Format reader core.

Parsing is split in two steps:

1. Parser tokenizes the text with a format adapter and builds a
   LateBoundValue tree (recursive descent over objects and arrays).
2. materialize() turns that tree into the target type using its
   descriptor.

With no target type the tree itself is returned.
"""

from __future__ import annotations

from typing import Any

from pyjsv.config import SerializerConfig, get_config
from pyjsv.errors import MalformedInputError
from pyjsv.escaping import WHITESPACE
from pyjsv.formats import FormatAdapter
from pyjsv.latebound import LateArray, LateBoundValue, LateObject
from pyjsv.serialize import resolve
from pyjsv.stypes import TypeDescriptor


class Parser:
    """Recursive descent parser producing LateBoundValue trees."""

    def __init__(self, text: str, format: FormatAdapter, max_depth: int = 64):
        self.text = text
        self.format = format
        self.max_depth = max_depth
        self.pos = 0
        self.length = len(text)

    def parse(self) -> LateBoundValue:
        """Parse the whole input as a single value."""
        value = self._parse_value(0)
        self.skip_whitespace()
        if self.pos < self.length:
            raise MalformedInputError(
                f"Unexpected trailing content {self.text[self.pos]!r}", self.pos
            )
        return value

    def skip_whitespace(self) -> None:
        while self.pos < self.length and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek_char(self) -> str:
        if self.pos >= self.length:
            return ""
        return self.text[self.pos]

    def expect(self, char: str) -> None:
        self.skip_whitespace()
        if self.peek_char() != char:
            raise self._unexpected(f"expected {char!r}")
        self.pos += 1

    def _unexpected(self, detail: str) -> MalformedInputError:
        if self.pos >= self.length:
            return MalformedInputError(f"Unexpected end of input, {detail}", self.pos)
        return MalformedInputError(f"Unexpected character {self.text[self.pos]!r}, {detail}", self.pos)

    def _parse_value(self, depth: int) -> LateBoundValue:
        if depth >= self.max_depth:
            raise MalformedInputError("Maximum nesting depth exceeded", self.pos)

        self.skip_whitespace()
        c = self.peek_char()
        fmt = self.format

        if c == fmt.OBJECT_OPEN:
            return self._parse_object(depth)
        if c == fmt.ARRAY_OPEN:
            return self._parse_array(depth)
        if c == "" or c in (fmt.OBJECT_CLOSE, fmt.ARRAY_CLOSE, fmt.KEY_SEPARATOR, fmt.ITEM_SEPARATOR):
            raise self._unexpected("expected a value")

        value, self.pos = fmt.read_scalar(self.text, self.pos)
        return value

    def _parse_object(self, depth: int) -> LateObject:
        """Parse an object {key:value,...}"""
        fmt = self.format
        self.expect(fmt.OBJECT_OPEN)
        entries = []

        self.skip_whitespace()
        if self.peek_char() == fmt.OBJECT_CLOSE:
            self.pos += 1
            return LateObject(entries=())

        while True:
            self.skip_whitespace()
            if self.pos >= self.length:
                raise self._unexpected("unterminated object")
            key, self.pos = fmt.read_key(self.text, self.pos)
            self.expect(fmt.KEY_SEPARATOR)
            value = self._parse_value(depth + 1)
            entries.append((key, value))

            self.skip_whitespace()
            c = self.peek_char()
            if c == fmt.ITEM_SEPARATOR:
                self.pos += 1
                continue
            if c == fmt.OBJECT_CLOSE:
                self.pos += 1
                return LateObject(entries=tuple(entries))
            raise self._unexpected(f"expected {fmt.ITEM_SEPARATOR!r} or {fmt.OBJECT_CLOSE!r}")

    def _parse_array(self, depth: int) -> LateArray:
        """Parse an array [value,...]"""
        fmt = self.format
        self.expect(fmt.ARRAY_OPEN)
        items = []

        self.skip_whitespace()
        if self.peek_char() == fmt.ARRAY_CLOSE:
            self.pos += 1
            return LateArray(items=())

        while True:
            items.append(self._parse_value(depth + 1))

            self.skip_whitespace()
            c = self.peek_char()
            if c == fmt.ITEM_SEPARATOR:
                self.pos += 1
                continue
            if c == fmt.ARRAY_CLOSE:
                self.pos += 1
                return LateArray(items=tuple(items))
            raise self._unexpected(f"expected {fmt.ITEM_SEPARATOR!r} or {fmt.ARRAY_CLOSE!r}")


def parse(text: str, format: FormatAdapter, max_depth: int = 64) -> LateBoundValue:
    """Parse text into a LateBoundValue tree."""
    return Parser(text, format, max_depth).parse()


def materialize(node: LateBoundValue, target: Any) -> Any:
    """
    Convert a parsed node into an instance of `target`.

    Args:
        node: The parsed tree.
        target: A type, a typing annotation, a TypeDescriptor, or None to
            return the node unchanged.
    """
    if target is None:
        return node
    descriptor = target if isinstance(target, TypeDescriptor) else resolve(target)
    return descriptor.read(node)


def read(
    text: str,
    target: Any,
    format: FormatAdapter,
    config: SerializerConfig | None = None,
) -> Any:
    """Parse `text` in the given format and materialize it as `target`."""
    config = config or get_config()
    return materialize(parse(text, format, config.max_depth), target)
