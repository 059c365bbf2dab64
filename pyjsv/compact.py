"""
Struct compaction.

A compact type is written as one text scalar instead of a structured
object. Detection is structural; the type does not need to inherit from
anything:

- stringify: a zero-argument `to_text()` method, or a `__str__` the class
  defines itself (inherited `object`, `Enum` and pydantic `BaseModel`
  implementations do not count)
- parse: a `from_text(text)` or `parse(text)` classmethod/staticmethod

    >>> class Size:
    ...     def __init__(self, w, h):
    ...         self.w, self.h = w, h
    ...     def to_text(self):
    ...         return f"{self.w}x{self.h}"
    ...     @classmethod
    ...     def from_text(cls, text):
    ...         w, h = text.split("x")
    ...         return cls(int(w), int(h))
    >>> to_jsv(Size(20, 10))
    '20x10'

A type with only one half of the pair is still compact; the missing half
raises MissingConversionError when it is first needed.

Types you cannot modify are adapted with pyjsv.register_compact().
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from pydantic import BaseModel

# __str__ implementations that do not count as a stringify path
_INHERITED_STR_OWNERS = (object, Enum, BaseModel, Exception)

_PARSE_NAMES = ("from_text", "parse")


@runtime_checkable
class CompactTextConvertible(Protocol):
    """Explicit form of the compact conversion pair."""

    def to_text(self) -> str: ...

    @classmethod
    def from_text(cls, text: str) -> Any: ...


def find_stringify(cls: type) -> Callable[[Any], str] | None:
    """Return the stringify function for a class, or None."""
    to_text = inspect.getattr_static(cls, "to_text", None)
    if to_text is not None and callable(getattr(cls, "to_text")):
        return lambda value: value.to_text()
    if _overrides_str(cls):
        return str
    return None


def find_parse(cls: type) -> Callable[[str], Any] | None:
    """Return the parse-from-text function for a class, or None."""
    for name in _PARSE_NAMES:
        attr = inspect.getattr_static(cls, name, None)
        if isinstance(attr, (classmethod, staticmethod)):
            return getattr(cls, name)
    return None


def is_compact(cls: type) -> bool:
    """
    Check if a class should be serialized as a compact scalar.

    Either explicit name (`to_text`, `from_text`) is enough on its own; an
    overridden `__str__` only counts together with a parse method.
    """
    to_text = inspect.getattr_static(cls, "to_text", None)
    if to_text is not None and callable(getattr(cls, "to_text")):
        return True
    if isinstance(inspect.getattr_static(cls, "from_text", None), (classmethod, staticmethod)):
        return True
    return _overrides_str(cls) and find_parse(cls) is not None


def _overrides_str(cls: type) -> bool:
    for klass in cls.__mro__:
        if klass in _INHERITED_STR_OWNERS:
            return False
        if "__str__" in klass.__dict__:
            return True
    return False
