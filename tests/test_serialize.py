"""Tests for pyjsv serialization/deserialization of typed values."""

import io
import math
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum, IntEnum
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal, NamedTuple, Optional, Union

import pytest
from pydantic import BaseModel, Field

from pyjsv import (
    JsonSerializer,
    JsvSerializer,
    MissingConversionError,
    SerializationError,
    TypeMismatchError,
    TypeSerializer,
    UnsupportedShapeError,
    deserialize_from_stream,
    deserialize_from_text,
    from_json,
    from_jsv,
    register_compact,
    register_hook,
    resolve,
    serialize_to_stream,
    serialize_to_text,
    to_json,
    to_jsv,
    unregister_hook,
)
from pyjsv.config import SerializerConfig
from pyjsv.stypes import MappingDescriptor, RecordField, SequenceDescriptor


def roundtrip(obj, target=None, fmt="jsv", **kwargs):
    """Serialize and deserialize an object, returning the result."""
    text = serialize_to_text(obj, fmt, **kwargs)
    return deserialize_from_text(text, target or type(obj), fmt, **kwargs)


# ============================================================================
# Module-level classes for record tests (type hints must resolve)
# ============================================================================


@dataclass
class Person:
    name: str
    age: int = 0


@dataclass
class Team:
    name: str
    members: list[Person] = field(default_factory=list)
    lead: Optional[Person] = None


@dataclass
class Profile:
    name: str
    nickname: Optional[str] = None


@dataclass
class Upper:
    A: int = 0


@dataclass
class Employee:
    first_name: str
    last_name: str


@dataclass
class Session:
    _serialize_ignore = frozenset({"token"})

    user: str
    token: str = ""
    secret: str = field(default="", metadata={"serialize": False})
    record_id: int = field(default=0, metadata={"name": "id"})


@dataclass
class Coordinates:
    x: int
    y: int


@dataclass
class Node:
    value: int
    next: Optional["Node"] = None


class Color(Enum):
    RED = 1
    GREEN = 2


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


@dataclass
class Task:
    title: str
    color: Color = Color.RED
    priority: Priority = Priority.LOW
    due: Optional[date] = None


class Account(BaseModel):
    account_id: int = Field(alias="id")
    owner: str
    tags: list[str] = []


class Pair(NamedTuple):
    left: int
    right: str = "r"


class Point:
    x: int
    y: int

    def __init__(self, x=0, y=0):
        self.x = x
        self.y = y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)


class Legacy:
    def __init__(self, a, b=2):
        self.a = a
        self.b = b


class Thermostat:
    def __init__(self):
        self._celsius = 0.0

    @property
    def celsius(self) -> float:
        return self._celsius

    @celsius.setter
    def celsius(self, value):
        self._celsius = value

    @property
    def fahrenheit(self) -> float:
        return self._celsius * 9 / 5 + 32


# ============================================================================
# Module-level compact types
# ============================================================================


@dataclass(frozen=True)
class Size:
    w: int
    h: int

    def to_text(self):
        return f"{self.w}x{self.h}"

    @classmethod
    def from_text(cls, text):
        w, h = text.split("x")
        return cls(int(w), int(h))


@dataclass
class Window:
    title: str
    size: Size


class Version:
    def __init__(self, major, minor):
        self.major = major
        self.minor = minor

    def __str__(self):
        return f"{self.major}.{self.minor}"

    @staticmethod
    def parse(text):
        major, minor = text.split(".")
        return Version(int(major), int(minor))


class WriteOnly:
    def to_text(self):
        return "w"


class ReadOnly:
    def __init__(self, text=""):
        self.text = text

    @classmethod
    def from_text(cls, text):
        return cls(text)


@dataclass
class Money:
    amount: Decimal
    currency: str


def parse_money(text):
    amount, currency = text.split(" ")
    return Money(Decimal(amount), currency)


@dataclass
class Wallet:
    cash: Optional[Money] = None


@dataclass
class Note:
    title: str
    to_text: str = ""


class Incomparable:
    def __eq__(self, other):
        raise TypeError("Incomparable values cannot be compared")

    __hash__ = object.__hash__


@dataclass
class Holder:
    value: Any = None


class Temperature:
    def __init__(self, degrees):
        self.degrees = degrees


# ============================================================================
# Tests
# ============================================================================


class TestScalars:
    """Test serialization of built-in scalar types."""

    def test_int(self):
        assert to_jsv(42) == "42"
        assert roundtrip(42) == 42
        assert roundtrip(-1) == -1
        assert roundtrip(0, fmt="json") == 0

    def test_float(self):
        assert roundtrip(3.14) == 3.14
        assert roundtrip(-0.5) == -0.5
        assert roundtrip(1e20, fmt="json") == 1e20

    def test_non_finite_float(self):
        assert to_jsv(float("nan")) == "NaN"
        assert to_json(float("-inf")) == "-Infinity"
        assert math.isnan(roundtrip(float("nan")))
        assert roundtrip(float("inf"), fmt="json") == float("inf")

    def test_bool(self):
        assert to_jsv(True) == "true"
        assert roundtrip(True) is True
        assert roundtrip(False, fmt="json") is False

    def test_str(self):
        assert roundtrip("hello") == "hello"
        assert roundtrip("") == ""
        assert roundtrip("unicode: é ü 你好") == "unicode: é ü 你好"
        assert roundtrip("a,b", fmt="json") == "a,b"

    def test_str_that_looks_like_a_number(self):
        assert to_jsv("123") == '"123"'
        assert roundtrip("123") == "123"
        assert roundtrip("true") == "true"

    def test_none(self):
        assert to_jsv(None) == "null"
        assert to_json(None) == "null"
        assert from_jsv("null", int) is None
        assert from_jsv("null", Person) is None

    def test_decimal_keeps_precision(self):
        result = roundtrip(Decimal("1.50"))
        assert isinstance(result, Decimal)
        assert str(result) == "1.50"

    def test_temporal(self):
        moment = datetime(2024, 1, 2, 3, 4, 5)
        assert to_jsv(moment) == "2024-01-02T03:04:05"
        assert to_json(moment) == '"2024-01-02T03:04:05"'
        assert roundtrip(moment) == moment
        assert roundtrip(datetime(2024, 1, 2, tzinfo=timezone.utc)) == datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert roundtrip(date(2024, 2, 29)) == date(2024, 2, 29)
        assert roundtrip(time(3, 4, 5)) == time(3, 4, 5)

    def test_timedelta_as_seconds(self):
        assert to_jsv(timedelta(minutes=1, seconds=30)) == "90.0"
        assert roundtrip(timedelta(minutes=1, seconds=30)) == timedelta(seconds=90)

    def test_uuid(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert to_jsv(value) == "12345678-1234-5678-1234-567812345678"
        assert roundtrip(value) == value

    def test_bytes_as_base64(self):
        assert to_jsv(b"\x00\x01hi") == "AAFoaQ=="
        assert roundtrip(b"\x00\x01hi") == b"\x00\x01hi"

    def test_enum_by_name(self):
        assert to_jsv(Color.GREEN) == "GREEN"
        assert roundtrip(Color.GREEN) is Color.GREEN
        assert roundtrip(Priority.HIGH, fmt="json") is Priority.HIGH

    def test_enum_reads_value(self):
        assert from_jsv("1", Color) is Color.RED

    def test_path(self):
        assert roundtrip(PurePosixPath("/tmp/a b")) == PurePosixPath("/tmp/a b")

    def test_scalar_coercion(self):
        assert from_jsv('"5"', int) == 5
        assert from_jsv("3.0", int) == 3
        assert from_jsv("42", str) == "42"
        assert from_jsv("1", float) == 1.0


class TestCollections:
    """Test serialization of sequences and mappings."""

    def test_list(self):
        assert to_jsv([1, 2, 3]) == "[1,2,3]"
        assert to_json([1, 2, 3]) == "[1,2,3]"
        assert from_jsv("[1,2,3]", list[int]) == [1, 2, 3]
        assert from_json("[1,2,3]", list[int]) == [1, 2, 3]
        assert roundtrip([], list[int]) == []

    def test_strings_quoted_only_when_needed(self):
        assert to_jsv(["a,b", "c", ""]) == '["a,b",c,""]'
        assert from_jsv('["a,b",c,""]', list[str]) == ["a,b", "c", ""]

    def test_heterogeneous_list(self):
        assert to_jsv([1, "a", 2.5, None]) == "[1,a,2.5,null]"
        assert from_jsv("[1,a,2.5,null]", list[Any]) == [1, "a", 2.5, None]

    def test_optional_elements(self):
        assert from_jsv("[1,null,3]", list[Optional[int]]) == [1, None, 3]

    def test_tuple(self):
        assert roundtrip((1, 2, 3), tuple[int, ...]) == (1, 2, 3)
        assert roundtrip((1, "x"), tuple[int, str]) == (1, "x")
        assert to_jsv((1, "x")) == "[1,x]"

    def test_set_and_deque(self):
        assert roundtrip({3, 1, 2}, set[int]) == {1, 2, 3}
        assert roundtrip(frozenset({"a"}), frozenset[str]) == frozenset({"a"})
        result = roundtrip(deque([1, 2]), deque[int])
        assert isinstance(result, deque)
        assert list(result) == [1, 2]

    def test_dict(self):
        assert to_jsv({"a": 1, "b": "x y"}) == "{a:1,b:x y}"
        assert to_json({"a": 1, "b": "x y"}) == '{"a":1,"b":"x y"}'
        assert roundtrip({"a": 1, "b": 2}, dict[str, int]) == {"a": 1, "b": 2}
        assert roundtrip({}, dict[str, int]) == {}

    def test_dict_with_int_keys(self):
        assert to_jsv({1: "a", 2: "b"}) == "{1:a,2:b}"
        assert to_json({1: "a"}) == '{"1":"a"}'
        assert roundtrip({1: "a", 2: "b"}, dict[int, str]) == {1: "a", 2: "b"}

    def test_dict_with_enum_keys(self):
        assert to_jsv({Color.RED: 1}) == "{RED:1}"
        assert from_jsv("{RED:1}", dict[Color, int]) == {Color.RED: 1}

    def test_keys_needing_quotes(self):
        assert to_jsv({"a:b": 1}) == '{"a:b":1}'
        assert from_jsv('{"a:b":1}', dict[str, int]) == {"a:b": 1}

    def test_values_with_colons_stay_bare(self):
        assert to_jsv({"t": "10:30"}) == "{t:10:30}"
        assert from_jsv("{t:10:30}", dict[str, str]) == {"t": "10:30"}

    def test_untyped_containers_keep_string_values(self):
        value = {"code": "123", "flag": "true", "nan": "NaN", "n": 5}
        assert to_jsv(value) == '{code:"123",flag:"true",nan:"NaN",n:5}'
        assert from_jsv(to_jsv(value), dict) == value
        assert from_jsv(to_jsv(["1", "2"]), list) == ["1", "2"]
        assert roundtrip(["1", 2, "false"], list) == ["1", 2, "false"]

    def test_nested_collections(self):
        nested = {"a": [1, 2], "b": [], "c": [3]}
        assert roundtrip(nested, dict[str, list[int]]) == nested
        assert roundtrip([[1], [2, 3]], list[list[int]]) == [[1], [2, 3]]


class TestRecords:
    """Test serialization of dataclasses, pydantic models, named tuples and plain classes."""

    def test_dataclass(self):
        ada = Person("Ada Lovelace", 36)
        assert to_jsv(ada) == "{name:Ada Lovelace,age:36}"
        assert to_json(ada) == '{"name":"Ada Lovelace","age":36}'
        assert roundtrip(ada) == ada
        assert roundtrip(ada, fmt="json") == ada

    def test_nested_records(self):
        team = Team("core", [Person("Ada", 36), Person("Alan", 41)], lead=Person("Grace", 85))
        assert to_jsv(team) == (
            "{name:core,members:[{name:Ada,age:36},{name:Alan,age:41}],lead:{name:Grace,age:85}}"
        )
        assert roundtrip(team) == team
        assert roundtrip(team, fmt="json") == team

    def test_list_of_records(self):
        people = [Person("Ada", 36), Person("Alan", 41)]
        assert roundtrip(people, list[Person]) == people
        assert roundtrip({"x": Person("Ada", 1)}, dict[str, Person]) == {"x": Person("Ada", 1)}

    def test_missing_fields_use_defaults(self):
        assert from_jsv("{name:Ada}", Person) == Person("Ada", 0)
        assert from_jsv("{}", Team) == Team(None, [], None)

    def test_missing_required_field_gets_zero_value(self):
        assert from_jsv("{x:1}", Coordinates) == Coordinates(1, 0)

    def test_unknown_keys_ignored(self):
        assert from_json('{"A":1,"Z":99}', Upper) == Upper(A=1)
        assert from_jsv("{name:Ada,extra:[1,{a:b}],age:3}", Person) == Person("Ada", 3)

    def test_case_insensitive_keys(self):
        assert from_json('{"NAME":"Ada","Age":3}', Person) == Person("Ada", 3)
        assert from_jsv("{FirstName:Ada,LASTNAME:Lovelace}", Employee) == Employee("Ada", "Lovelace")

    def test_exact_key_wins_over_folded(self):
        assert from_jsv("{AGE:1,age:2,name:x}", Person) == Person("x", 2)

    def test_field_coercion(self):
        assert from_jsv("{name:123,age:3.0}", Person) == Person("123", 3)

    def test_ignored_and_renamed_fields(self):
        session = Session("ada", token="t", secret="s", record_id=7)
        assert to_jsv(session) == "{user:ada,id:7}"
        assert from_jsv("{user:ada,id:7,token:x,secret:y}", Session) == Session("ada", record_id=7)

    def test_enum_and_optional_fields(self):
        task = Task("ship", Color.GREEN, Priority.HIGH, date(2024, 5, 1))
        assert to_jsv(task) == "{title:ship,color:GREEN,priority:HIGH,due:2024-05-01}"
        assert roundtrip(task) == task

    def test_pydantic_model(self):
        account = Account(id=1, owner="ada", tags=["a", "b c"])
        assert to_jsv(account) == "{id:1,owner:ada,tags:[a,b c]}"
        assert roundtrip(account) == account
        assert roundtrip(account, fmt="json") == account

    def test_pydantic_model_defaults(self):
        assert from_jsv("{id:2,owner:bob}", Account) == Account(id=2, owner="bob")

    def test_namedtuple(self):
        assert to_jsv(Pair(1, "x")) == "{left:1,right:x}"
        assert roundtrip(Pair(1, "x")) == Pair(1, "x")
        assert from_jsv("{left:2}", Pair) == Pair(2, "r")

    def test_plain_class(self):
        assert to_jsv(Point(1, 2)) == "{x:1,y:2}"
        assert roundtrip(Point(1, 2)) == Point(1, 2)
        assert from_jsv("{y:5}", Point) == Point(0, 5)

    def test_plain_class_from_init_signature(self):
        assert to_jsv(Legacy(1)) == "{a:1,b:2}"
        result = from_jsv("{a:1}", Legacy)
        assert result.a == 1
        assert result.b == 2

    def test_plain_class_properties(self):
        t = Thermostat()
        t.celsius = 21.5
        assert to_jsv(t) == "{celsius:21.5}"
        result = from_jsv("{celsius:30}", Thermostat)
        assert result.celsius == 30.0
        assert result.fahrenheit == 86.0

    def test_self_referencing_type(self):
        chain = Node(1, Node(2, Node(3)))
        assert to_jsv(chain) == "{value:1,next:{value:2,next:{value:3}}}"
        assert roundtrip(chain) == chain


class TestCrossShape:
    """Records, mappings and late-bound objects share one wire shape."""

    def test_record_reads_as_dict(self):
        text = to_jsv(Person("Ada", 36))
        assert from_jsv(text, dict[str, Any]) == {"name": "Ada", "age": 36}

    def test_record_with_numeric_text_reads_as_dict(self):
        text = to_jsv(Person("123", 36))
        assert text == '{name:"123",age:36}'
        assert from_jsv(text, dict[str, Any]) == {"name": "123", "age": 36}

    def test_dict_reads_as_record(self):
        text = to_jsv({"name": "Ada", "age": 36})
        assert from_jsv(text, Person) == Person("Ada", 36)

    def test_record_reads_as_other_record(self):
        text = to_json(Employee("Ada", "Lovelace"))
        assert from_json(text, Profile) == Profile(name=None)

    def test_late_bound_converts_to_record(self):
        node = from_jsv(to_jsv(Person("Ada", 36)))
        assert node.convert(Person) == Person("Ada", 36)

    def test_union_reads_as_plain_python(self):
        assert from_jsv("5", Union[int, str]) == 5
        assert from_jsv("{a:[1]}", Any) == {"a": [1]}


class TestNullHandling:
    """Test null omission and inclusion."""

    def test_null_members_omitted_by_default(self):
        assert to_jsv(Profile("Ada")) == "{name:Ada}"
        assert to_json({"a": 1, "b": None}) == '{"a":1}'

    def test_null_members_included(self):
        config = SerializerConfig(include_null_values=True)
        assert to_jsv(Profile("Ada"), config=config) == "{name:Ada,nickname:null}"
        assert to_json({"a": None}, config=config) == '{"a":null}'

    def test_null_reads_as_none(self):
        assert from_jsv("{name:Ada,nickname:null}", Profile) == Profile("Ada", None)

    def test_quoted_null_is_a_string(self):
        assert to_jsv("null") == '"null"'
        assert roundtrip(Profile("Ada", "null")) == Profile("Ada", "null")

    def test_null_elements_kept(self):
        assert to_jsv([None, 1]) == "[null,1]"


class TestCompact:
    """Test types written as a single text scalar."""

    def test_to_text_from_text(self):
        assert to_jsv(Size(20, 10)) == "20x10"
        assert to_json(Size(20, 10)) == '"20x10"'
        assert from_jsv("20x10", Size) == Size(20, 10)
        assert roundtrip(Size(20, 10), fmt="json") == Size(20, 10)

    def test_compact_field(self):
        window = Window("Main", Size(20, 10))
        assert to_jsv(window) == "{title:Main,size:20x10}"
        assert roundtrip(window) == window

    def test_compact_elements_and_keys(self):
        assert roundtrip([Size(1, 2), Size(3, 4)], list[Size]) == [Size(1, 2), Size(3, 4)]
        assert to_jsv({Size(1, 2): "a"}) == "{1x2:a}"

    def test_str_and_parse(self):
        assert to_jsv(Version(1, 2)) == '"1.2"'
        result = from_jsv('"1.2"', Version)
        assert (result.major, result.minor) == (1, 2)

    def test_non_callable_to_text_is_not_compact(self):
        assert resolve(Note).kind == "record"
        assert to_jsv(Note("a", "b")) == "{title:a,to_text:b}"
        assert roundtrip(Note("a", "b")) == Note("a", "b")

    def test_missing_parse(self):
        assert to_jsv(WriteOnly()) == "w"
        with pytest.raises(MissingConversionError) as exc_info:
            from_jsv("w", WriteOnly)
        assert exc_info.value.missing == "parse"

    def test_missing_stringify(self):
        assert from_jsv("r", ReadOnly).text == "r"
        with pytest.raises(MissingConversionError) as exc_info:
            to_jsv(ReadOnly("r"))
        assert exc_info.value.missing == "stringify"
        assert "register_compact" in str(exc_info.value)

    def test_compact_from_container_is_mismatch(self):
        with pytest.raises(TypeMismatchError):
            from_jsv("{w:1}", Size)

    def test_descriptor_kind(self):
        assert resolve(Size).kind == "compact"
        assert resolve(Version).kind == "compact"
        assert resolve(Window).kind == "record"


class TestHooks:
    """Test custom hooks registered for types."""

    def test_hook_overrides_convention(self):
        assert to_jsv(Money(Decimal("5.00"), "USD")) == "{amount:5.00,currency:USD}"
        assert resolve(Money).kind == "record"

        register_hook(Money, lambda m: f"{m.amount} {m.currency}", parse_money)
        try:
            assert resolve(Money).kind == "hook"
            assert to_jsv(Money(Decimal("5.00"), "USD")) == "5.00 USD"
            assert to_json([Money(Decimal("1"), "EUR")]) == '["1 EUR"]'
            assert from_jsv("5.00 USD", Money) == Money(Decimal("5.00"), "USD")
        finally:
            unregister_hook(Money)

        assert resolve(Money).kind == "record"
        assert to_jsv(Money(Decimal("5.00"), "USD")) == "{amount:5.00,currency:USD}"

    def test_hook_reaches_optional_fields(self):
        assert resolve(Optional[Money]).kind == "record"
        assert to_jsv(Wallet(Money(Decimal("5"), "USD"))) == "{cash:{amount:5,currency:USD}}"

        register_hook(Money, lambda m: f"{m.amount} {m.currency}", parse_money)
        try:
            assert resolve(Optional[Money]).kind == "hook"
            assert to_jsv(Wallet(Money(Decimal("5"), "USD"))) == "{cash:5 USD}"
            assert from_jsv("{cash:5 USD}", Wallet) == Wallet(Money(Decimal("5"), "USD"))
        finally:
            unregister_hook(Money)

        assert to_jsv(Wallet(Money(Decimal("5"), "USD"))) == "{cash:{amount:5,currency:USD}}"

    def test_register_compact(self):
        register_compact(Temperature, lambda t: f"{t.degrees}C", lambda s: Temperature(float(s[:-1])))
        try:
            assert to_jsv({"today": Temperature(21.5)}) == "{today:21.5C}"
            assert from_jsv("{today:21.5C}", dict[str, Temperature])["today"].degrees == 21.5
        finally:
            unregister_hook(Temperature)

    def test_hook_requires_callables(self):
        with pytest.raises(TypeError):
            register_hook(Temperature, "not callable", parse_money)


class TestConfigOptions:
    """Test per-call configuration."""

    def test_exclude_default_values(self):
        config = SerializerConfig(exclude_default_values=True)
        assert to_jsv(Person("Ada"), config=config) == "{name:Ada}"
        assert to_jsv(Person("Ada", 36), config=config) == "{name:Ada,age:36}"
        assert to_jsv(Team("core"), config=config) == "{name:core}"

    def test_exclude_default_values_propagates_comparison_errors(self):
        config = SerializerConfig(exclude_default_values=True)
        assert to_jsv(Holder(), config=config) == "{}"
        with pytest.raises(TypeError, match="cannot be compared"):
            to_jsv(Holder(Incomparable()), config=config)

    def test_camel_case_names(self):
        config = SerializerConfig(emit_camel_case_names=True)
        text = to_jsv(Employee("Ada", "Lovelace"), config=config)
        assert text == "{firstName:Ada,lastName:Lovelace}"
        assert from_jsv(text, Employee) == Employee("Ada", "Lovelace")

    def test_camel_case_leaves_mapping_keys(self):
        config = SerializerConfig(emit_camel_case_names=True)
        assert to_jsv({"snake_key": 1}, config=config) == "{snake_key:1}"


class TestDepth:
    """Test the nesting depth guard."""

    def test_cycle_raises(self):
        node = Node(1)
        node.next = node
        with pytest.raises(UnsupportedShapeError) as exc_info:
            to_jsv(node)
        assert exc_info.value.depth == 65

    def test_list_cycle_raises(self):
        x = [1]
        x.append(x)
        with pytest.raises(UnsupportedShapeError):
            to_json(x)

    def test_custom_max_depth(self):
        config = SerializerConfig(max_depth=2)
        assert to_jsv([1], config=config) == "[1]"
        with pytest.raises(UnsupportedShapeError):
            to_jsv([[[1]]], config=config)

    def test_errors_are_value_errors(self):
        assert issubclass(UnsupportedShapeError, SerializationError)
        assert issubclass(SerializationError, ValueError)


class TestTypeMismatch:
    """Test errors raised when a document does not fit the target."""

    def test_scalar_text_not_coercible(self):
        with pytest.raises(TypeMismatchError):
            from_jsv("abc", int)
        with pytest.raises(TypeMismatchError):
            from_jsv("maybe", bool)
        with pytest.raises(TypeMismatchError):
            from_jsv("not-a-uuid", uuid.UUID)

    def test_array_for_record(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            from_jsv("[1,2]", Person)
        assert exc_info.value.expected == "object"
        assert exc_info.value.found == "array"
        assert exc_info.value.python_type is Person

    def test_object_for_list(self):
        with pytest.raises(TypeMismatchError):
            from_jsv("{a:1}", list[int])

    def test_container_for_scalar(self):
        with pytest.raises(TypeMismatchError):
            from_json("[1]", int)

    def test_bad_element(self):
        with pytest.raises(TypeMismatchError):
            from_jsv("[1,x]", list[int])


class TestSerializers:
    """Test the serializer classes and stream entry points."""

    def test_json_serializer(self):
        serializer = JsonSerializer(SerializerConfig(include_null_values=True))
        assert serializer.serialize_to_string(Profile("Ada")) == '{"name":"Ada","nickname":null}'
        assert serializer.deserialize_from_string('{"name":"Ada"}', Profile) == Profile("Ada")

    def test_jsv_serializer(self):
        serializer = JsvSerializer()
        assert serializer.serialize_to_string([Person("Ada", 1)]) == "[{name:Ada,age:1}]"
        assert TypeSerializer is JsvSerializer

    def test_serializer_streams(self):
        serializer = JsonSerializer()
        sink = io.StringIO()
        serializer.serialize_to_stream(Person("Ada", 36), sink)
        assert sink.getvalue() == '{"name":"Ada","age":36}'
        assert serializer.deserialize_from_stream(io.StringIO(sink.getvalue()), Person) == Person("Ada", 36)

    def test_stream_functions(self):
        sink = io.StringIO()
        serialize_to_stream({"a": [1, 2]}, sink)
        assert sink.getvalue() == "{a:[1,2]}"
        assert deserialize_from_stream(io.StringIO("{a:[1,2]}"), dict[str, list[int]]) == {"a": [1, 2]}

    def test_format_names(self):
        assert serialize_to_text([1], "JSON") == "[1]"
        with pytest.raises(ValueError):
            serialize_to_text([1], "xml")


class TestDescriptorCache:
    """Test type classification and caching."""

    def test_descriptor_identity(self):
        assert resolve(Person) is resolve(Person)
        assert resolve(list[int]) is resolve(list[int])

    def test_optional_shares_descriptor(self):
        assert resolve(Optional[Person]) is resolve(Person)

    def test_wrapper_annotations_share_descriptor(self):
        assert resolve(Annotated[Person, "meta"]) is resolve(Person)
        assert resolve(Person | None) is resolve(Person)
        assert resolve(Literal["a", "b"]) is resolve(str)

    def test_untyped_defaults(self):
        assert SequenceDescriptor(python_type=list).element_type is Any
        mapping = MappingDescriptor(python_type=dict)
        assert mapping.key_type is Any
        assert mapping.value_type is Any
        assert RecordField(name="a", wire_name="a").type_hint is Any

    def test_kinds(self):
        assert resolve(int).kind == "scalar"
        assert resolve(Color).kind == "scalar"
        assert resolve(list[int]).kind == "sequence"
        assert resolve(dict[int, str]).kind == "mapping"
        assert resolve(Person).kind == "record"
        assert resolve(Account).kind == "record"
        assert resolve(Pair).kind == "record"
        assert resolve(Any).kind == "latebound"
        assert resolve(Union[int, str]).kind == "latebound"

    def test_record_members(self):
        descriptor = resolve(Session)
        assert [f.name for f in descriptor.members] == ["user", "record_id"]
        assert [f.wire_name for f in descriptor.members] == ["user", "id"]
        assert descriptor.style == "dataclass"

    def test_sequence_element(self):
        descriptor = resolve(list[int])
        assert descriptor.element_type is int
        assert descriptor.container is list
