"""
Type descriptor cache and classification for the pyjsv library.

This module maps types to their TypeDescriptor. Classification happens
once per type and the result is cached for the life of the process:

    >>> resolve(list[int])
    SequenceDescriptor(kind='sequence', python_type=<class 'list'>, element_type=<class 'int'>, ...)

Classification order (first match wins):
1. A registered hook (see pyjsv.registry)
2. A compact text conversion pair (see pyjsv.compact)
3. Mappings
4. Collections without serializable named fields
5. Built-in scalars
6. Records (everything else)
7. Unspecified or dynamic targets (None, Any, object, unions, LateBoundValue)

Concurrency:
    The cache is a plain dict. Two threads resolving the same type for the
    first time may both classify it; the first stored descriptor wins and
    the other is discarded. Both are equal, so nothing observable changes.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections import abc
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel

from pyjsv.compact import find_parse, find_stringify, is_compact
from pyjsv.latebound import LateBoundValue
from pyjsv.registry import lookup_hook
from pyjsv.stypes import (
    CompactDescriptor,
    HookDescriptor,
    LateBoundDescriptor,
    MappingDescriptor,
    RecordDescriptor,
    ScalarDescriptor,
    SequenceDescriptor,
    TypeDescriptor,
    is_namedtuple,
    scalar_name,
)

logger = logging.getLogger(__name__)

# Maps types (classes or typing annotations) to their descriptors.
_descriptor_cache: dict[Any, TypeDescriptor] = {}

_LATE_BOUND = LateBoundDescriptor(python_type=Any)

# Iterable scalars that must never be treated as sequences
_TEXT_TYPES = (str, bytes, bytearray)


def resolve(tp: Any) -> TypeDescriptor:
    """
    Return the descriptor for a type, classifying it on first use.

    Args:
        tp: A class, a typing annotation (list[int], Optional[Foo], ...),
            or None for "unspecified".

    Returns:
        The cached TypeDescriptor. Resolution never fails; types with no
        eligible members resolve to an empty record.
    """
    inner = _unwrap(tp)
    if inner is not tp:
        # Wrapper annotations are never cached, so evicting the wrapped type
        # is enough to pick up a newly registered hook
        return resolve(inner)

    try:
        return _descriptor_cache[tp]
    except KeyError:
        pass
    except TypeError:
        # Unhashable annotation; classify uncached
        return describe_type(tp)

    descriptor = describe_type(tp)
    logger.debug("Classified %r as %s", tp, descriptor.kind)
    return _descriptor_cache.setdefault(tp, descriptor)


def evict(tp: Any) -> None:
    """Drop a cached descriptor, e.g. after a hook is registered."""
    _descriptor_cache.pop(tp, None)


def clear_cache() -> None:
    """Drop all cached descriptors."""
    _descriptor_cache.clear()


def _unwrap(tp: Any) -> Any:
    """Return the type an Annotated, Optional or Literal annotation stands for."""
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin is Annotated:
        return args[0]
    if origin is Union or origin is types.UnionType:
        options = [a for a in args if a is not type(None)]
        if len(options) == 1:
            # Optional[X]: null is handled by the reader and writer cores
            return options[0]
    if origin is Literal and args:
        return type(args[0])
    return tp


def describe_type(tp: Any) -> TypeDescriptor:
    """
    Classify a type without consulting the cache.

    This is a total, deterministic function of the type's shape and the
    registered hooks.
    """
    if tp is None or tp is Any or tp is object:
        return _LATE_BOUND

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    inner = _unwrap(tp)
    if inner is not tp:
        return resolve(inner)

    if origin is Union or origin is types.UnionType:
        return LateBoundDescriptor(python_type=tp)

    if origin is Literal:
        return _LATE_BOUND

    cls = origin if origin is not None else tp
    if not isinstance(cls, type):
        # TypeVar, ForwardRef, string annotations, ...
        return LateBoundDescriptor(python_type=tp)

    # 1. Custom hook
    hook = lookup_hook(cls)
    if hook is not None:
        return HookDescriptor(python_type=cls, encode=hook.encode, decode=hook.decode)

    if issubclass(cls, LateBoundValue):
        return LateBoundDescriptor(python_type=cls)

    # 2. Compact text conversion pair
    if is_compact(cls):
        return CompactDescriptor(
            python_type=cls,
            encode=find_stringify(cls),
            decode=find_parse(cls),
        )

    # 3. Mappings
    if issubclass(cls, abc.Mapping):
        return MappingDescriptor.for_type(cls, args)

    # 4. Collections, unless they also expose named fields
    if (
        issubclass(cls, abc.Iterable)
        and not issubclass(cls, _TEXT_TYPES)
        and scalar_name(cls) is None
        and not _has_named_fields(cls)
    ):
        return SequenceDescriptor.for_type(cls, args)

    # 5. Built-in scalars
    scalar = ScalarDescriptor.for_type(cls)
    if scalar is not None:
        return scalar

    # 6. Records
    return RecordDescriptor.for_class(cls)


def _has_named_fields(cls: type) -> bool:
    """
    Check if an enumerable class also has fields meant for serialization.

    Fields win over enumeration: such a class is a record.
    """
    if is_namedtuple(cls) or dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel):
        return True
    if cls.__module__ in ("builtins", "collections", "collections.abc", "typing"):
        return False
    return any(
        not name.startswith("_")
        for klass in cls.__mro__
        for name in klass.__dict__.get("__annotations__", {})
    )
