"""
Reflection model consumed by the completors.

These are snapshots: a reflector builds them from source and the completors
only read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol, Union

PRIMITIVE_TYPES = frozenset(
    {
        "string", "int", "float", "bool", "array", "null", "callable",
        "iterable", "resource", "object", "void", "false", "true", "never",
    }
)

# Types that carry no information for completion
UNKNOWN_TYPES = frozenset({"mixed", "<missing>", ""})


@dataclass(frozen=True)
class Type:
    """A static type; `name` is None when the type could not be inferred."""

    name: str | None = None

    @classmethod
    def unknown(cls) -> Type:
        return cls(None)

    @classmethod
    def from_string(cls, type_name: str | None) -> Type:
        if type_name is None:
            return cls.unknown()
        type_name = type_name.strip().lstrip("?").lstrip("\\")
        if type_name.lower() in UNKNOWN_TYPES:
            return cls.unknown()
        if type_name.lower() in PRIMITIVE_TYPES:
            return cls(type_name.lower())
        return cls(type_name)

    def is_defined(self) -> bool:
        return self.name is not None

    def is_primitive(self) -> bool:
        return self.name is not None and self.name in PRIMITIVE_TYPES

    def short(self) -> str:
        if self.name is None:
            return "<unknown>"
        return self.name.rsplit("\\", 1)[-1]

    def __str__(self) -> str:
        return self.name if self.name is not None else "<unknown>"


@dataclass(frozen=True)
class Types:
    """Ordered collection of candidate types."""

    types: tuple[Type, ...] = ()

    @classmethod
    def from_types(cls, *types: Type) -> Types:
        return cls(tuple(types))

    def __iter__(self):
        return iter(self.types)

    def __len__(self) -> int:
        return len(self.types)

    def best(self) -> Type:
        for type_ in self.types:
            if type_.is_defined():
                return type_
        return Type.unknown()


class Visibility(Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    def is_public(self) -> bool:
        return self is Visibility.PUBLIC

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DefaultValue:
    """Default of a parameter; `None` is a valid defined default (PHP null)."""

    value: object = None
    is_defined: bool = False

    @classmethod
    def none(cls) -> DefaultValue:
        return cls()

    @classmethod
    def from_value(cls, value: object) -> DefaultValue:
        return cls(value=value, is_defined=True)


@dataclass(frozen=True)
class ReflectionParameter:
    name: str
    type: Type = field(default_factory=Type.unknown)
    default: DefaultValue = field(default_factory=DefaultValue.none)


@dataclass(frozen=True)
class ReflectionMethod:
    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_abstract: bool = False
    parameters: tuple[ReflectionParameter, ...] = ()
    inferred_return_types: Types = field(default_factory=Types)


@dataclass(frozen=True)
class ReflectionProperty:
    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    inferred_types: Types = field(default_factory=Types)


@dataclass(frozen=True)
class ReflectionConstant:
    name: str
    visibility: Visibility = Visibility.PUBLIC


@dataclass(frozen=True)
class ReflectionClass:
    name: str
    methods: tuple[ReflectionMethod, ...] = ()
    properties: tuple[ReflectionProperty, ...] = ()
    constants: tuple[ReflectionConstant, ...] = ()
    parent: str | None = None
    interfaces: tuple[str, ...] = ()
    is_abstract: bool = False

    kind = "class"

    def find_method(self, name: str) -> ReflectionMethod | None:
        return next((m for m in self.methods if m.name.lower() == name.lower()), None)

    def find_property(self, name: str) -> ReflectionProperty | None:
        return next((p for p in self.properties if p.name == name), None)


@dataclass(frozen=True)
class ReflectionInterface:
    name: str
    methods: tuple[ReflectionMethod, ...] = ()
    constants: tuple[ReflectionConstant, ...] = ()
    parents: tuple[str, ...] = ()

    kind = "interface"

    def find_method(self, name: str) -> ReflectionMethod | None:
        return next((m for m in self.methods if m.name.lower() == name.lower()), None)


ClassLike = Union[ReflectionClass, ReflectionInterface]


@dataclass(frozen=True)
class ReflectionFunction:
    """A function declared outside any class body."""

    name: str
    parameters: tuple[ReflectionParameter, ...] = ()
    inferred_return_types: Types = field(default_factory=Types)

    @property
    def short_name(self) -> str:
        return self.name.rsplit("\\", 1)[-1]


@dataclass(frozen=True)
class Symbol:
    """The symbol an offset resolved to, e.g. the variable `this`."""

    name: str
    symbol_type: str = "unknown"   # variable, class, property, method, unknown


@dataclass(frozen=True)
class SymbolContext:
    """Result of reflecting an offset: the symbol, its types and any issues."""

    symbol: Symbol
    types: Types = field(default_factory=Types)
    issues: tuple[str, ...] = ()

    def with_issue(self, issue: str) -> SymbolContext:
        return replace(self, issues=self.issues + (issue,))

    def with_types(self, types: Types) -> SymbolContext:
        return replace(self, types=types)


class Reflector(Protocol):
    def reflect_offset(self, source: str, offset: int) -> SymbolContext: ...

    def reflect_class_like(self, name: str) -> ClassLike:
        """Raises NotFound when no such class or interface exists."""
        ...
