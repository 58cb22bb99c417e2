from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class NodeKind(Enum):
    """Classification of the syntax node under the cursor."""

    MEMBER_ACCESS = "member_access"     # $object->member, $object?->member
    SCOPED_ACCESS = "scoped_access"     # Foo::member, self::member
    QUALIFIED_NAME = "qualified_name"   # Foo, Foo\Bar, \Foo\Bar
    OTHER = "other"


# Indexes into Node.import_tables
CLASS_IMPORTS = 0
FUNCTION_IMPORTS = 1
CONST_IMPORTS = 2


@dataclass(frozen=True)
class ResolvedName:
    """A `use` statement entry: local alias and the name it resolves to."""

    alias: str
    fully_qualified_name: str


@dataclass(frozen=True)
class Node:
    """The node found at a position, with the scope information around it."""

    kind: NodeKind
    start: int
    end: int
    text: str
    namespace: str | None = None
    import_tables: tuple[tuple[ResolvedName, ...], ...] = ((), (), ())

    @property
    def class_imports(self) -> tuple[ResolvedName, ...]:
        return self.import_tables[CLASS_IMPORTS]


class NodeLocator(Protocol):
    def node_at(self, source: str, position: int) -> Node: ...
