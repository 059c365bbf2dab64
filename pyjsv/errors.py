"""
Exception types raised by pyjsv.

Every failure surfaced to callers derives from SerializationError, which is
itself a ValueError so existing `except ValueError` handlers keep working.
Unknown keys and missing record fields are tolerated during reads and never
raise.
"""

from __future__ import annotations

from typing import Any


class SerializationError(ValueError):
    """Base class for all pyjsv errors."""

    pass


class MalformedInputError(SerializationError):
    """
    Raised when the tokenizer meets an unexpected character, an unterminated
    quoted scalar or container, or trailing content after the top-level value.

    Attributes:
        offset: Character offset into the input where the problem was found.
    """

    def __init__(self, message: str, offset: int):
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")


class TypeMismatchError(SerializationError):
    """
    Raised when the input token's shape does not match the target kind,
    e.g. a scalar where a record was expected, or when scalar text cannot
    be coerced into the target type.
    """

    def __init__(self, expected: str, found: str, python_type: Any = None):
        self.expected = expected
        self.found = found
        self.python_type = python_type
        target = f" for {_type_name(python_type)}" if python_type is not None else ""
        super().__init__(f"Expected {expected}{target}, found {found}")


class MissingConversionError(SerializationError):
    """
    Raised on first use of a compact type that has only one half of its
    text conversion pair.

    Attributes:
        python_type: The compact type.
        missing: Either "stringify" or "parse".
    """

    def __init__(self, python_type: type, missing: str):
        self.python_type = python_type
        self.missing = missing
        super().__init__(
            f"{_type_name(python_type)} has no {missing} conversion; "
            f"define {'to_text()' if missing == 'stringify' else 'from_text(text)'} "
            f"or register one with register_compact()"
        )


class UnsupportedShapeError(SerializationError):
    """Raised when writing exceeds the configured maximum nesting depth."""

    def __init__(self, python_type: Any, depth: int):
        self.python_type = python_type
        self.depth = depth
        super().__init__(
            f"Cannot serialize {_type_name(python_type)}: nesting depth {depth} "
            f"exceeds max_depth (circular reference?)"
        )


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)
