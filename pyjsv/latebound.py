"""
Late-bound values.

A LateBoundValue is the parsed form of a document when no concrete target
type is known. It is a closed tagged union of frozen pydantic models, one
per JSON/JSV shape, discriminated by the `type` field:

- LateNull
- LateBool: value
- LateNumber: text (the number exactly as written, e.g. "1.50")
- LateString: value
- LateArray: items
- LateObject: entries, an ordered tuple of (key, value) pairs

Nodes are immutable. Convert them to plain Python with to_python(), or
into a concrete type on demand with convert():

    >>> node = from_jsv("{name:Ada,age:36}")
    >>> node.get("name")
    LateString(type='string', value='Ada')
    >>> node.convert(Person)
    Person(name='Ada', age=36)
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Integer literals as accepted by both formats
_INT_RE = re.compile(r"-?\d+")


class LateBoundValue(BaseModel):
    """
    Base class for all late-bound node types.

    The 'type' field is the discriminator pydantic uses to tell variants
    apart when validating nested nodes.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["type"]

    def to_python(self) -> Any:
        """Convert to plain Python (None, bool, int, float, str, list, dict)."""
        raise NotImplementedError

    def scalar_text(self) -> str | None:
        """Text of a scalar node, or None for null and containers."""
        return None

    def is_null(self) -> bool:
        return False

    def get(self, key: str, default: Any = None) -> Any:
        """Look up an object entry by key."""
        return default

    def __len__(self) -> int:
        return 0

    def convert(self, target: Any) -> Any:
        """Materialize this node as an instance of `target`."""
        from pyjsv.reader import materialize

        return materialize(self, target)

    @classmethod
    def from_python(cls, obj: Any) -> "LateBoundValue":
        """
        Build a node tree from a Python value.

        Plain JSON-shaped values are converted directly; anything else goes
        through the JSON writer and parser.
        """
        if isinstance(obj, LateBoundValue):
            return obj
        if obj is None:
            return LateNull()
        if isinstance(obj, bool):
            return LateBool(value=obj)
        if type(obj) is int:
            return LateNumber(text=str(obj))
        if type(obj) is str:
            return LateString(value=obj)
        if type(obj) in (list, tuple):
            return LateArray(items=tuple(cls.from_python(item) for item in obj))
        if type(obj) is dict and all(isinstance(k, str) for k in obj):
            return LateObject(
                entries=tuple((k, cls.from_python(v)) for k, v in obj.items())
            )

        from pyjsv.formats import JSON
        from pyjsv.reader import parse
        from pyjsv.writer import write_to_text

        return parse(write_to_text(obj, JSON), JSON)


# =============================================================================
# Scalar Variants
# =============================================================================


class LateNull(LateBoundValue):
    type: Literal["null"] = "null"

    def to_python(self) -> None:
        return None

    def is_null(self) -> bool:
        return True


class LateBool(LateBoundValue):
    type: Literal["bool"] = "bool"
    value: bool

    def to_python(self) -> bool:
        return self.value

    def scalar_text(self) -> str:
        return "true" if self.value else "false"


class LateNumber(LateBoundValue):
    """
    A number, kept as the text it was written with.

    Keeping the text lets a number be materialized as int, float, Decimal
    or even str without losing precision or formatting.
    """

    type: Literal["number"] = "number"
    text: str

    def to_python(self) -> int | float:
        return self.as_number()

    def scalar_text(self) -> str:
        return self.text

    def as_int(self) -> int:
        return int(self.text)

    def as_float(self) -> float:
        return float(self.text)

    def as_number(self) -> int | float:
        """Return an int for integer literals, otherwise a float."""
        if _INT_RE.fullmatch(self.text):
            return int(self.text)
        return float(self.text)


class LateString(LateBoundValue):
    type: Literal["string"] = "string"
    value: str

    def to_python(self) -> str:
        return self.value

    def scalar_text(self) -> str:
        return self.value


# =============================================================================
# Container Variants
# =============================================================================


class LateArray(LateBoundValue):
    type: Literal["array"] = "array"
    items: tuple[LateNode, ...] = ()

    def to_python(self) -> list:
        return [item.to_python() for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def index(self, i: int) -> LateBoundValue:
        return self.items[i]


class LateObject(LateBoundValue):
    type: Literal["object"] = "object"
    entries: tuple[tuple[str, LateNode], ...] = ()

    def to_python(self) -> dict:
        return {key: value.to_python() for key, value in self.entries}

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.entries:
            if k == key:
                return v
        return default

    def keys(self) -> list[str]:
        return [k for k, _ in self.entries]

    def items(self) -> Iterator[tuple[str, LateBoundValue]]:
        return iter(self.entries)


LateNode = Annotated[
    Union[LateNull, LateBool, LateNumber, LateString, LateArray, LateObject],
    Field(discriminator="type"),
]

LateArray.model_rebuild()
LateObject.model_rebuild()
