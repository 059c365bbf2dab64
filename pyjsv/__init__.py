"""
pyjsv - convention-based JSON and JSV text serialization.

This library converts Python values to and from two text formats without
per-type schema declarations:

- JSON: standard JSON
- JSV: a compact CSV-hybrid with the same structure as JSON, where scalars
  and keys are only quoted when they have to be

Supported shapes:

- Scalars (int, float, bool, str, Decimal, datetime, date, time,
  timedelta, UUID, Enum, bytes, Path)
- Collections (list, tuple, set, frozenset, deque and typed generics)
- Mappings (dict and other Mapping types, any key type)
- Records (dataclasses, pydantic models, named tuples, plain classes)
- Compact types written as one scalar via to_text()/from_text()
- Late-bound values for untyped documents

Basic Usage:
    >>> from pyjsv import to_jsv, from_jsv, to_json, from_json
    >>>
    >>> @dataclass
    ... class Person:
    ...     name: str
    ...     age: int = 0
    >>>
    >>> to_jsv(Person("Ada Lovelace", 36))
    '{name:Ada Lovelace,age:36}'
    >>> to_json(Person("Ada Lovelace", 36))
    '{"name":"Ada Lovelace","age":36}'
    >>>
    >>> # Deserialize into a type
    >>> from_jsv("{name:Ada Lovelace,age:36}", Person)
    Person(name='Ada Lovelace', age=36)
    >>>
    >>> # Or without one, as a LateBoundValue
    >>> from_json('{"a":[1,2,3]}').to_python()
    {'a': [1, 2, 3]}

Records, mappings and late-bound objects are interchangeable on the wire:
a record can be read back as dict[str, Any] and that dict written and read
back as the record.

Configuration:
    >>> from pyjsv import configure, SerializerConfig
    >>> configure(include_null_values=True)          # process default
    >>> to_json(obj, config=SerializerConfig())      # per call

To serialize types you cannot modify:
    >>> from pyjsv import register_hook
    >>> register_hook(Money, lambda m: f"{m.amount} {m.currency}", Money.parse)
"""

from __future__ import annotations

from typing import Any, TextIO

from pyjsv.compact import CompactTextConvertible
from pyjsv.config import SerializerConfig, configure, get_config, reset_config
from pyjsv.errors import (
    MalformedInputError,
    MissingConversionError,
    SerializationError,
    TypeMismatchError,
    UnsupportedShapeError,
)
from pyjsv.escaping import escape_jsv, unescape_jsv
from pyjsv.formats import JSON, JSV, FormatAdapter, get_format
from pyjsv.latebound import (
    LateArray,
    LateBool,
    LateBoundValue,
    LateNull,
    LateNumber,
    LateObject,
    LateString,
)
from pyjsv.reader import read
from pyjsv.registry import register_compact, register_hook, unregister_hook
from pyjsv.serialize import resolve
from pyjsv.stypes import TypeDescriptor
from pyjsv.writer import write, write_to_text


def serialize_to_text(
    value: Any,
    fmt: str | FormatAdapter = "jsv",
    *,
    config: SerializerConfig | None = None,
) -> str:
    """
    Serialize a value to text.

    Args:
        value: Any Python value.
        fmt: "jsv" (default) or "json".
        config: Optional configuration; defaults to the process default.

    Returns:
        The serialized text.

    Raises:
        UnsupportedShapeError: If the value nests deeper than max_depth
            (usually a circular reference).
        MissingConversionError: If a compact type has no stringify path.

    Example:
        >>> serialize_to_text({"a": [1, 2], "b": "x,y"})
        '{a:[1,2],b:"x,y"}'
    """
    return write_to_text(value, get_format(fmt), config)


def serialize_to_stream(
    value: Any,
    sink: TextIO,
    fmt: str | FormatAdapter = "jsv",
    *,
    config: SerializerConfig | None = None,
) -> None:
    """Serialize a value to a text stream (anything with a write(str) method)."""
    write(value, None, get_format(fmt), sink, config)


def deserialize_from_text(
    text: str,
    target: Any = None,
    fmt: str | FormatAdapter = "jsv",
    *,
    config: SerializerConfig | None = None,
):
    """
    Deserialize text into an instance of `target`.

    Args:
        text: Serialized text.
        target: The type to build (a class or typing annotation such as
            list[int] or dict[str, Person]). None returns a LateBoundValue.
        fmt: "jsv" (default) or "json".
        config: Optional configuration; defaults to the process default.

    Returns:
        The deserialized value.

    Raises:
        MalformedInputError: If the text cannot be tokenized.
        TypeMismatchError: If the document's shape does not fit `target`.
        MissingConversionError: If a compact type has no parse path.

    Example:
        >>> deserialize_from_text("[1,2,3]", list[int])
        [1, 2, 3]
        >>> deserialize_from_text('{"A":1,"Z":99}', Point, "json")  # Z ignored
        Point(A=1)
    """
    return read(text, target, get_format(fmt), config)


def deserialize_from_stream(
    source: TextIO,
    target: Any = None,
    fmt: str | FormatAdapter = "jsv",
    *,
    config: SerializerConfig | None = None,
):
    """Deserialize the full contents of a text stream."""
    return read(source.read(), target, get_format(fmt), config)


def to_json(value: Any, *, config: SerializerConfig | None = None) -> str:
    """Serialize a value to JSON."""
    return serialize_to_text(value, JSON, config=config)


def from_json(text: str, target: Any = None, *, config: SerializerConfig | None = None):
    """Deserialize JSON; without `target` the result is a LateBoundValue."""
    return deserialize_from_text(text, target, JSON, config=config)


def to_jsv(value: Any, *, config: SerializerConfig | None = None) -> str:
    """Serialize a value to JSV."""
    return serialize_to_text(value, JSV, config=config)


def from_jsv(text: str, target: Any = None, *, config: SerializerConfig | None = None):
    """Deserialize JSV; without `target` the result is a LateBoundValue."""
    return deserialize_from_text(text, target, JSV, config=config)


class TextSerializer:
    """
    A serializer bound to one format and, optionally, one configuration.

    Example:
        >>> serializer = JsonSerializer(SerializerConfig(include_null_values=True))
        >>> serializer.serialize_to_string({"a": None})
        '{"a":null}'
    """

    format: FormatAdapter

    def __init__(self, config: SerializerConfig | None = None):
        self.config = config

    def serialize_to_string(self, value: Any) -> str:
        return serialize_to_text(value, self.format, config=self.config)

    def serialize_to_stream(self, value: Any, sink: TextIO) -> None:
        serialize_to_stream(value, sink, self.format, config=self.config)

    def deserialize_from_string(self, text: str, target: Any = None):
        return deserialize_from_text(text, target, self.format, config=self.config)

    def deserialize_from_stream(self, source: TextIO, target: Any = None):
        return deserialize_from_stream(source, target, self.format, config=self.config)


class JsonSerializer(TextSerializer):
    format = JSON


class JsvSerializer(TextSerializer):
    format = JSV


# JSV is the type serializer's native format
TypeSerializer = JsvSerializer


__all__ = [
    # Core API
    "serialize_to_text",
    "serialize_to_stream",
    "deserialize_from_text",
    "deserialize_from_stream",
    "to_json",
    "from_json",
    "to_jsv",
    "from_jsv",
    # Serializers
    "TextSerializer",
    "JsonSerializer",
    "JsvSerializer",
    "TypeSerializer",
    # Registration
    "register_hook",
    "register_compact",
    "unregister_hook",
    "CompactTextConvertible",
    # Configuration
    "SerializerConfig",
    "configure",
    "get_config",
    "reset_config",
    # Types
    "TypeDescriptor",
    "resolve",
    "FormatAdapter",
    "LateBoundValue",
    "LateNull",
    "LateBool",
    "LateNumber",
    "LateString",
    "LateArray",
    "LateObject",
    # Escaping
    "escape_jsv",
    "unescape_jsv",
    # Errors
    "SerializationError",
    "MalformedInputError",
    "TypeMismatchError",
    "MissingConversionError",
    "UnsupportedShapeError",
]
