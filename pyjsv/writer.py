"""
Format writer core.

The writer walks a value through its descriptors and emits tokens through
a format adapter. Descriptors decide what to write (fields, elements,
entries); the WriteContext decides how containers and separators look and
applies the cross-cutting rules:

- None values write as `null`, except object members whose value is None,
  which are omitted unless `include_null_values` is set
- a value whose type differs from its declared descriptor is dispatched on
  its own runtime type
- nesting deeper than `max_depth` raises UnsupportedShapeError

The writer never mutates the value being written.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Iterable, Sequence, TextIO

from pyjsv.config import SerializerConfig, get_config
from pyjsv.errors import UnsupportedShapeError
from pyjsv.formats import FormatAdapter
from pyjsv.latebound import LateNull
from pyjsv.serialize import resolve
from pyjsv.stypes import TypeDescriptor

logger = logging.getLogger(__name__)


class WriteContext:
    """
    State for one serialize call.

    Attributes:
        format: The format adapter emitting tokens.
        config: The configuration in effect for this call.
        sink: Text stream receiving output.
        depth: Current nesting depth.
    """

    def __init__(self, format: FormatAdapter, config: SerializerConfig, sink: TextIO):
        self.format = format
        self.config = config
        self.sink = sink
        self.depth = 0

    def write(self, value: Any, descriptor: TypeDescriptor | None = None) -> None:
        """
        Write a value, using `descriptor` if it fits the value's type.

        Args:
            value: The value to write.
            descriptor: The declared descriptor, or None to dispatch on the
                value's runtime type.

        Raises:
            UnsupportedShapeError: If nesting exceeds config.max_depth.
        """
        if value is None:
            self.write_null()
            return

        if descriptor is None or not descriptor.accepts(value):
            descriptor = resolve(type(value))

        self.depth += 1
        try:
            if self.depth > self.config.max_depth:
                raise UnsupportedShapeError(type(value), self.depth)
            descriptor.write(value, self)
        finally:
            self.depth -= 1

    # =========================================================================
    # Scalars
    # =========================================================================

    def write_null(self) -> None:
        self.sink.write(self.format.NULL)

    def write_literal(self, text: str) -> None:
        """Write a bare token (number or boolean)."""
        self.sink.write(text)

    def write_string(self, text: str) -> None:
        """Write a text scalar, quoted per the format's rules."""
        self.sink.write(self.format.render_string(text))

    def key_text(self, key: Any, descriptor: TypeDescriptor | None = None) -> str:
        """Text form of a mapping key."""
        if isinstance(key, str):
            return key
        if descriptor is None or not descriptor.accepts(key):
            descriptor = resolve(type(key))
        return descriptor.to_text(key)

    # =========================================================================
    # Containers
    # =========================================================================

    def write_array(
        self,
        items: Iterable[Any],
        element: TypeDescriptor | None = None,
        positional: Sequence[TypeDescriptor] | None = None,
    ) -> None:
        """
        Write a sequence.

        Elements are written with `element` (or the positional descriptor
        for their index). Without a declared element descriptor, the first
        non-null element's type is used for the rest.
        """
        fmt = self.format
        sink = self.sink
        sink.write(fmt.ARRAY_OPEN)
        for i, item in enumerate(items):
            if i:
                sink.write(fmt.ITEM_SEPARATOR)
            if positional is not None and i < len(positional):
                self.write(item, positional[i])
                continue
            if item is not None:
                if element is None:
                    element = resolve(type(item))
                elif not element.accepts(item) and logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Element %d is %s, not %r; dispatching on its own type",
                        i,
                        type(item).__qualname__,
                        element.python_type,
                    )
            self.write(item, element)
        sink.write(fmt.ARRAY_CLOSE)

    def write_object(self, members: Iterable[tuple[str, Any, TypeDescriptor | None]]) -> None:
        """
        Write an object from (key, value, descriptor) triples.

        Members whose value is None (or a null late-bound node) are skipped
        unless config.include_null_values is set.
        """
        fmt = self.format
        sink = self.sink
        include_nulls = self.config.include_null_values
        sink.write(fmt.OBJECT_OPEN)
        first = True
        for key, value, descriptor in members:
            if not include_nulls and (value is None or isinstance(value, LateNull)):
                continue
            if not first:
                sink.write(fmt.ITEM_SEPARATOR)
            first = False
            sink.write(fmt.render_key(key))
            sink.write(fmt.KEY_SEPARATOR)
            self.write(value, descriptor)
        sink.write(fmt.OBJECT_CLOSE)


def write(
    value: Any,
    descriptor: TypeDescriptor | None,
    format: FormatAdapter,
    sink: TextIO,
    config: SerializerConfig | None = None,
) -> None:
    """Write `value` to `sink` in the given format."""
    WriteContext(format, config or get_config(), sink).write(value, descriptor)


def write_to_text(
    value: Any,
    format: FormatAdapter,
    config: SerializerConfig | None = None,
    descriptor: TypeDescriptor | None = None,
) -> str:
    """Write `value` and return the text."""
    sink = io.StringIO()
    write(value, descriptor, format, sink, config)
    return sink.getvalue()
