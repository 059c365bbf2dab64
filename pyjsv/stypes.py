"""
Type descriptors for the pyjsv library.

A TypeDescriptor is the cached, immutable serialization strategy for one
type. Each kind is a pydantic model subclass discriminated by `kind`:

- ScalarDescriptor: numbers, booleans, text, temporal values, UUIDs, enums
- CompactDescriptor: types written as one scalar via a to_text/from_text pair
- HookDescriptor: types with a registered custom hook
- SequenceDescriptor: list, tuple, set, frozenset, deque and generics
- MappingDescriptor: dict and other mappings; keys always written as text
- RecordDescriptor: dataclasses, pydantic models, named tuples, plain classes
- LateBoundDescriptor: Any, object, unions, LateBoundValue

Each kind provides:
- write(): emit a value through a WriteContext
- materialize(): build a value from a parsed LateBoundValue node

Descriptors never hold other descriptors directly. Element, key, value and
field types are resolved through the cache when used, which lets a record
refer to itself.

Ignored Fields:
    Classes can define a `_serialize_ignore` attribute (frozenset of
    strings) naming fields that are never written. Names starting with an
    underscore are always skipped.

    Example:
        class Session:
            _serialize_ignore = frozenset({'connection'})
"""

from __future__ import annotations

import base64
import dataclasses
import inspect
import logging
import math
import typing
import uuid
from collections import abc, defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, ClassVar, Literal, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from pyjsv.errors import MissingConversionError, TypeMismatchError
from pyjsv.latebound import (
    LateArray,
    LateBool,
    LateBoundValue,
    LateNull,
    LateNumber,
    LateObject,
    LateString,
)

if TYPE_CHECKING:
    from pyjsv.writer import WriteContext
else:
    WriteContext = Any

logger = logging.getLogger(__name__)

MISSING = dataclasses.MISSING


def _resolve(tp: Any) -> "TypeDescriptor":
    from pyjsv.serialize import resolve

    return resolve(tp)


# =============================================================================
# Base Class
# =============================================================================


class TypeDescriptor(BaseModel):
    """
    Abstract base class for all type descriptors.

    Each subclass must implement:
    - kind: A literal string discriminator
    - write(): Emit a value of this type through the writer
    - materialize(): Build a value of this type from a parsed node
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["kind"]
    python_type: Any

    def accepts(self, value: Any) -> bool:
        """Check if this descriptor can write `value` without re-dispatch."""
        return type(value) is self.python_type

    def write(self, value: Any, context: WriteContext) -> None:
        """Write a non-None value of this type."""
        raise NotImplementedError

    def read(self, node: LateBoundValue) -> Any:
        """Materialize a node; null reads as None for every kind."""
        if isinstance(node, LateNull):
            return None
        return self.materialize(node)

    def materialize(self, node: LateBoundValue) -> Any:
        """Build a value of this type from a non-null node."""
        raise NotImplementedError

    def to_text(self, value: Any) -> str:
        """Text form of a value when it is used as a mapping key."""
        return str(value)

    def zero_value(self) -> Any:
        """Value given to record fields that are absent from the input."""
        return None

    def _mismatch(self, expected: str, node: LateBoundValue) -> TypeMismatchError:
        return TypeMismatchError(expected, node.type, self.python_type)


# =============================================================================
# Scalar Types
# =============================================================================


def _float_to_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(float(value))


def _int_from_text(text: str, tp: type) -> int:
    try:
        value = int(text)
    except ValueError:
        # Accept integral floats such as "3.0" or "1e3"
        number = float(text)
        if not number.is_integer():
            raise
        value = int(number)
    return value if tp is int else tp(value)


def _bool_from_text(text: str, tp: type) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _enum_from_text(text: str, tp: type) -> Enum:
    try:
        return tp[text]
    except KeyError:
        for member in tp:
            if str(member.value) == text:
                return member
        raise


def _bytes_from_text(text: str, tp: type) -> bytes:
    data = base64.b64decode(text, validate=True)
    return data if tp is bytes else tp(data)


# Maps scalar names to (to_text, from_text) functions
_SCALAR_CODECS: dict[str, tuple[Callable[[Any], str], Callable[[str, type], Any]]] = {
    "none": (lambda v: "null", lambda t, tp: None),
    "bool": (lambda v: "true" if v else "false", _bool_from_text),
    "enum": (lambda v: v.name, _enum_from_text),
    "int": (lambda v: str(int(v)), _int_from_text),
    "float": (_float_to_text, lambda t, tp: tp(t)),
    "decimal": (str, lambda t, tp: tp(t)),
    "str": (str, lambda t, tp: t if tp is str else tp(t)),
    "bytes": (lambda v: base64.b64encode(bytes(v)).decode("ascii"), _bytes_from_text),
    "datetime": (lambda v: v.isoformat(), lambda t, tp: tp.fromisoformat(t)),
    "date": (lambda v: v.isoformat(), lambda t, tp: tp.fromisoformat(t)),
    "time": (lambda v: v.isoformat(), lambda t, tp: tp.fromisoformat(t)),
    "timedelta": (lambda v: _float_to_text(v.total_seconds()), lambda t, tp: tp(seconds=float(t))),
    "uuid": (str, lambda t, tp: tp(t)),
    "path": (str, lambda t, tp: tp(t)),
}

# Order matters: Enum before int (IntEnum), datetime before date
_SCALAR_BASES: tuple[tuple[type | tuple[type, ...], str], ...] = (
    (type(None), "none"),
    (bool, "bool"),
    (Enum, "enum"),
    (int, "int"),
    (float, "float"),
    (Decimal, "decimal"),
    (str, "str"),
    ((bytes, bytearray), "bytes"),
    (datetime, "datetime"),
    (date, "date"),
    (time, "time"),
    (timedelta, "timedelta"),
    (uuid.UUID, "uuid"),
    (PurePath, "path"),
)

# Scalars written without quotes in both formats
_BARE_SCALARS = frozenset({"bool", "int", "float", "decimal", "timedelta"})

_ZERO_VALUES = {
    "bool": False,
    "int": 0,
    "float": 0.0,
    "decimal": Decimal(0),
    "timedelta": timedelta(0),
}


def scalar_name(cls: type) -> str | None:
    """Return the scalar name for a class, or None if it is not a scalar."""
    for base, name in _SCALAR_BASES:
        if issubclass(cls, base):
            return name
    return None


class ScalarDescriptor(TypeDescriptor):
    """
    Descriptor for built-in scalar types.

    Numbers and booleans are written bare; everything else is written as a
    string scalar quoted per the format's rules. Reading coerces from the
    scalar's text, so "5" reads into an int field.
    """

    kind: Literal["scalar"] = "scalar"
    scalar: str

    @classmethod
    def for_type(cls, python_type: type) -> "ScalarDescriptor | None":
        name = scalar_name(python_type)
        if name is None:
            return None
        return cls(python_type=python_type, scalar=name)

    def accepts(self, value: Any) -> bool:
        return type(value) is self.python_type

    def write(self, value: Any, context: WriteContext) -> None:
        text = self.to_text(value)
        if self.scalar in _BARE_SCALARS:
            context.write_literal(text)
        else:
            context.write_string(text)

    def to_text(self, value: Any) -> str:
        return _SCALAR_CODECS[self.scalar][0](value)

    def materialize(self, node: LateBoundValue) -> Any:
        text = node.scalar_text()
        if text is None:
            raise self._mismatch(self.scalar, node)
        try:
            return _SCALAR_CODECS[self.scalar][1](text, self.python_type)
        except (ValueError, TypeError, KeyError, ArithmeticError) as e:
            raise TypeMismatchError(self.scalar, repr(text), self.python_type) from e

    def zero_value(self) -> Any:
        return _ZERO_VALUES.get(self.scalar)


# =============================================================================
# Compact and Hook Types
# =============================================================================


class CompactDescriptor(TypeDescriptor):
    """
    Descriptor for types written as a single text scalar.

    `encode` or `decode` may be missing; the gap is reported as
    MissingConversionError on first use rather than at resolution.
    """

    kind: Literal["compact"] = "compact"
    encode: Optional[Callable[[Any], str]] = None
    decode: Optional[Callable[[str], Any]] = None

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.python_type)

    def write(self, value: Any, context: WriteContext) -> None:
        context.write_string(self.to_text(value))

    def to_text(self, value: Any) -> str:
        if self.encode is None:
            raise MissingConversionError(self.python_type, "stringify")
        text = self.encode(value)
        if not isinstance(text, str):
            raise TypeMismatchError("str from text conversion", type(text).__name__, self.python_type)
        return text

    def materialize(self, node: LateBoundValue) -> Any:
        text = node.scalar_text()
        if text is None:
            raise self._mismatch("scalar", node)
        if self.decode is None:
            raise MissingConversionError(self.python_type, "parse")
        return self.decode(text)


class HookDescriptor(CompactDescriptor):
    """Descriptor for types with a registered custom hook."""

    kind: Literal["hook"] = "hook"

    def accepts(self, value: Any) -> bool:
        return type(value) is self.python_type


# =============================================================================
# Collection Types
# =============================================================================

def _concrete_container(cls: type, default: type) -> Any:
    # Abstract collection types materialize as built-in containers
    if inspect.isabstract(cls) or cls.__module__ in ("collections.abc", "typing"):
        return set if issubclass(cls, abc.Set) else default
    if issubclass(cls, defaultdict):
        return dict
    return cls


class SequenceDescriptor(TypeDescriptor):
    """
    Descriptor for ordered and unordered collections.

    Elements are assumed homogeneous: they are written with the declared
    element type, or with the first non-null element's type. An element of
    a different type is dispatched on its own type.

    Fixed-length tuple annotations (tuple[int, str]) read and write each
    position with its own type.
    """

    kind: Literal["sequence"] = "sequence"
    element_type: Any = Field(default_factory=lambda: Any)
    positional_types: Optional[tuple] = None
    container: Any = list

    @classmethod
    def for_type(cls, python_type: type, args: tuple) -> "SequenceDescriptor":
        element_type: Any = Any
        positional = None
        if args:
            if issubclass(python_type, tuple) and not (len(args) == 2 and args[1] is Ellipsis):
                positional = tuple(args)
            else:
                element_type = args[0]
        return cls(
            python_type=python_type,
            element_type=element_type,
            positional_types=positional,
            container=_concrete_container(python_type, list),
        )

    def write(self, value: Any, context: WriteContext) -> None:
        if self.positional_types is not None:
            context.write_array(value, positional=[_resolve(t) for t in self.positional_types])
            return
        element = None if self.element_type is Any else _resolve(self.element_type)
        context.write_array(value, element=element)

    def materialize(self, node: LateBoundValue) -> Any:
        if not isinstance(node, LateArray):
            raise self._mismatch("array", node)
        if self.positional_types is not None:
            items = []
            for i, item in enumerate(node.items):
                tp = self.positional_types[i] if i < len(self.positional_types) else Any
                items.append(_resolve(tp).read(item))
        else:
            element = _resolve(self.element_type)
            items = [element.read(item) for item in node.items]
        return self.container(items)

    def zero_value(self) -> Any:
        return self.container(())


class MappingDescriptor(TypeDescriptor):
    """
    Descriptor for key-value mappings.

    Keys are always written as text: non-string keys go through their own
    descriptor's to_text() and are parsed back through the declared key
    type on read.
    """

    kind: Literal["mapping"] = "mapping"
    key_type: Any = Field(default_factory=lambda: Any)
    value_type: Any = Field(default_factory=lambda: Any)
    container: Any = dict

    @classmethod
    def for_type(cls, python_type: type, args: tuple) -> "MappingDescriptor":
        key_type, value_type = (args + (Any, Any))[:2] if args else (Any, Any)
        return cls(
            python_type=python_type,
            key_type=key_type,
            value_type=value_type,
            container=_concrete_container(python_type, dict),
        )

    def write(self, value: Any, context: WriteContext) -> None:
        key_descriptor = None if self.key_type in (Any, str) else _resolve(self.key_type)
        value_descriptor = None if self.value_type is Any else _resolve(self.value_type)
        context.write_object(
            (context.key_text(key, key_descriptor), item, value_descriptor)
            for key, item in value.items()
        )

    def materialize(self, node: LateBoundValue) -> Any:
        if not isinstance(node, LateObject):
            raise self._mismatch("object", node)
        key_descriptor = None if self.key_type in (Any, str) else _resolve(self.key_type)
        value_descriptor = _resolve(self.value_type)
        result = {}
        for key, item in node.entries:
            if key_descriptor is not None:
                key = key_descriptor.materialize(LateString(value=key))
            result[key] = value_descriptor.read(item)
        return result if self.container is dict else self.container(result)

    def zero_value(self) -> Any:
        return self.container()


# =============================================================================
# Record Type
# =============================================================================


def _get_ignored_fields(cls: type) -> frozenset:
    """
    Get ignored field names from a class hierarchy.

    Walks the MRO to collect all _serialize_ignore attributes.
    """
    result = set()
    for klass in cls.__mro__:
        ignored = klass.__dict__.get("_serialize_ignore")
        if ignored:
            result.update(ignored)
    return frozenset(result)


def _type_hints(cls: type) -> dict[str, Any]:
    """Resolved annotations for a class, falling back to Any when unresolvable."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError, AttributeError):
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for name in klass.__dict__.get("__annotations__", {}):
                hints[name] = Any
        return hints


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def is_namedtuple(cls: type) -> bool:
    return issubclass(cls, tuple) and isinstance(getattr(cls, "_fields", None), tuple)


def camel_case(name: str) -> str:
    """Convert snake_case to camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _fold(name: str) -> str:
    # Case- and underscore-insensitive key used to match camelCase input
    return name.replace("_", "").lower()


class RecordField(BaseModel):
    """One serializable field of a record type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    wire_name: str
    type_hint: Any = Field(default_factory=lambda: Any)
    default: Any = MISSING
    default_factory: Optional[Callable[[], Any]] = None
    init: bool = True

    @property
    def descriptor(self) -> TypeDescriptor:
        return _resolve(self.type_hint)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.default_factory is not None

    def default_value(self) -> Any:
        """Declared default, or the zero value of the field's type."""
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not MISSING:
            return self.default
        return self.descriptor.zero_value()


class RecordDescriptor(TypeDescriptor):
    """
    Descriptor for structured values written as named fields.

    Fields are kept in declaration order. Reading matches keys exactly
    first, then case- and underscore-insensitively; unknown keys are
    ignored and absent fields take their default or zero value.

    The style records how instances are rebuilt:
    - dataclass: the generated __init__ with defaults applied
    - pydantic: model_construct(), no validation
    - namedtuple: the tuple constructor
    - plain: a blank instance via __new__ with attributes set one by one
    """

    kind: Literal["record"] = "record"
    style: Literal["dataclass", "pydantic", "namedtuple", "plain"] = "plain"
    members: tuple[RecordField, ...] = ()

    @classmethod
    def for_class(cls, python_type: type) -> "RecordDescriptor":
        ignored = _get_ignored_fields(python_type)

        def eligible(name: str) -> bool:
            return not name.startswith("_") and name not in ignored

        members: list[RecordField] = []

        if dataclasses.is_dataclass(python_type):
            style = "dataclass"
            hints = _type_hints(python_type)
            for f in dataclasses.fields(python_type):
                if not eligible(f.name) or f.metadata.get("serialize", True) is False:
                    continue
                members.append(
                    RecordField(
                        name=f.name,
                        wire_name=f.metadata.get("name", f.name),
                        type_hint=hints.get(f.name, Any),
                        default=f.default,
                        default_factory=None if f.default_factory is MISSING else f.default_factory,
                        init=f.init,
                    )
                )

        elif issubclass(python_type, BaseModel):
            style = "pydantic"
            for name, info in python_type.model_fields.items():
                if not eligible(name) or info.exclude:
                    continue
                required = info.is_required()
                members.append(
                    RecordField(
                        name=name,
                        wire_name=info.alias or name,
                        type_hint=info.annotation if info.annotation is not None else Any,
                        default=MISSING if required or info.default_factory else info.default,
                        default_factory=info.default_factory,
                    )
                )

        elif is_namedtuple(python_type):
            style = "namedtuple"
            hints = _type_hints(python_type)
            defaults = getattr(python_type, "_field_defaults", {})
            for name in python_type._fields:
                if not eligible(name):
                    continue
                members.append(
                    RecordField(
                        name=name,
                        wire_name=name,
                        type_hint=hints.get(name, Any),
                        default=defaults.get(name, MISSING),
                    )
                )

        else:
            style = "plain"
            members = _plain_fields(python_type, eligible)

        return cls(python_type=python_type, style=style, members=tuple(members))

    def write(self, value: Any, context: WriteContext) -> None:
        config = context.config
        entries = []
        for f in self.members:
            item = getattr(value, f.name, None)
            if config.exclude_default_values and f.has_default and item == f.default_value():
                continue
            name = camel_case(f.wire_name) if config.emit_camel_case_names else f.wire_name
            entries.append((name, item, f.descriptor))
        context.write_object(entries)

    def materialize(self, node: LateBoundValue) -> Any:
        if not isinstance(node, LateObject):
            raise self._mismatch("object", node)

        exact = dict(node.entries)
        folded = {_fold(key): item for key, item in node.entries}

        values = {}
        matched = set()
        for f in self.members:
            for key in (f.wire_name, f.name):
                if key in exact:
                    matched.add(key)
                    values[f.name] = f.descriptor.read(exact[key])
                    break
            else:
                for key in (f.wire_name, f.name):
                    if _fold(key) in folded:
                        matched.add(_fold(key))
                        values[f.name] = f.descriptor.read(folded[_fold(key)])
                        break

        if logger.isEnabledFor(logging.DEBUG):
            unknown = [k for k in exact if k not in matched and _fold(k) not in matched]
            if unknown:
                logger.debug(
                    "Ignoring unknown keys for %s: %s", self.python_type.__qualname__, unknown
                )

        return self.build(values)

    def build(self, values: dict[str, Any]) -> Any:
        """Build an instance from field values, filling in absent fields."""
        tp = self.python_type

        if self.style == "pydantic":
            for f in self.members:
                if f.name not in values and not f.has_default:
                    values[f.name] = f.default_value()
            return tp.model_construct(**values)

        if self.style == "namedtuple":
            by_name = {f.name: f for f in self.members}
            defaults = getattr(tp, "_field_defaults", {})
            args = []
            for name in tp._fields:
                if name in values:
                    args.append(values[name])
                elif name in by_name:
                    args.append(by_name[name].default_value())
                else:
                    args.append(defaults.get(name))
            return tp._make(args)

        if self.style == "dataclass":
            by_name = {f.name: f for f in self.members}
            kwargs = {}
            late = {}
            for dc_field in dataclasses.fields(tp):
                name = dc_field.name
                if name in values:
                    (kwargs if dc_field.init else late)[name] = values[name]
                elif (
                    dc_field.init
                    and dc_field.default is MISSING
                    and dc_field.default_factory is MISSING
                ):
                    field = by_name.get(name)
                    kwargs[name] = field.default_value() if field is not None else None
            obj = tp(**kwargs)
            for name, value in late.items():
                object.__setattr__(obj, name, value)
            return obj

        # Create blank instance without calling __init__
        obj = tp.__new__(tp)
        for f in self.members:
            setattr(obj, f.name, values[f.name] if f.name in values else f.default_value())
        return obj


def _plain_fields(cls: type, eligible: Callable[[str], bool]) -> list[RecordField]:
    """
    Discover fields of a plain class.

    Annotated attributes come first (base classes before subclasses), then
    read/write properties. Classes without annotations fall back to the
    parameters of __init__.
    """
    members: list[RecordField] = []
    seen = set()

    for name, hint in _type_hints(cls).items():
        if not eligible(name) or _is_class_var(hint):
            continue
        default = MISSING
        for klass in cls.__mro__:
            if name in klass.__dict__:
                default = klass.__dict__[name]
                break
        if isinstance(default, property) or callable(default):
            continue
        members.append(RecordField(name=name, wire_name=name, type_hint=hint, default=default))
        seen.add(name)

    if not members and cls.__init__ is not object.__init__:
        try:
            signature = inspect.signature(cls.__init__)
        except (TypeError, ValueError):
            signature = None
        if signature is not None:
            for i, param in enumerate(signature.parameters.values()):
                if i == 0 or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                    continue
                if not eligible(param.name):
                    continue
                hint = Any if param.annotation is param.empty else param.annotation
                if isinstance(hint, str):
                    hint = Any
                default = MISSING if param.default is param.empty else param.default
                members.append(
                    RecordField(name=param.name, wire_name=param.name, type_hint=hint, default=default)
                )
                seen.add(param.name)

    for klass in reversed(cls.__mro__):
        for name, attr in klass.__dict__.items():
            if (
                isinstance(attr, property)
                and attr.fset is not None
                and name not in seen
                and eligible(name)
            ):
                try:
                    hint = typing.get_type_hints(attr.fget).get("return", Any)
                except (NameError, TypeError, AttributeError):
                    hint = Any
                members.append(RecordField(name=name, wire_name=name, type_hint=hint, default=MISSING))
                seen.add(name)

    return members


# =============================================================================
# Late-Bound Type
# =============================================================================


class LateBoundDescriptor(TypeDescriptor):
    """
    Descriptor for values whose type is not known statically.

    Writing dispatches on the node variant of a LateBoundValue; any other
    value is dispatched on its runtime type by the writer. Reading returns
    the node itself when the target is a LateBoundValue type, otherwise
    its plain Python form.
    """

    kind: Literal["latebound"] = "latebound"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, LateBoundValue)

    def write(self, value: LateBoundValue, context: WriteContext) -> None:
        if isinstance(value, LateNull):
            context.write_null()
        elif isinstance(value, LateBool):
            context.write_literal(value.scalar_text())
        elif isinstance(value, LateNumber):
            context.write_literal(value.text)
        elif isinstance(value, LateString):
            context.write_string(value.value)
        elif isinstance(value, LateArray):
            context.write_array(value.items)
        elif isinstance(value, LateObject):
            context.write_object((key, item, None) for key, item in value.entries)
        else:
            raise TypeMismatchError("late-bound node", type(value).__name__)

    def read(self, node: LateBoundValue) -> Any:
        return self.materialize(node)

    def materialize(self, node: LateBoundValue) -> Any:
        if self._wants_node():
            if not isinstance(node, self.python_type):
                raise self._mismatch(self.python_type.model_fields["type"].default, node)
            return node
        return node.to_python()

    def _wants_node(self) -> bool:
        return isinstance(self.python_type, type) and issubclass(self.python_type, LateBoundValue)
