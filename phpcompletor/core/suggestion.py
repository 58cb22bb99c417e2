"""
Suggestion records and the containers that carry them to the caller.

A completion request produces suggestions (what can be inserted at the
cursor) and issues (short human-readable reasons why some candidates could
not be completed). Both are plain values owned by the request.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum


class SuggestionType(Enum):
    """Kind of a suggestion."""

    METHOD = "method"
    PROPERTY = "property"
    CONSTANT = "constant"
    CLASS = "class"

    @property
    def code(self) -> str:
        """Short code used on the wire: f(unction), m(ember) or t(ype)."""
        if self is SuggestionType.METHOD:
            return "f"
        if self is SuggestionType.CLASS:
            return "t"
        return "m"


@dataclass(frozen=True)
class Range:
    """Half-open `[start, end)` offset range in the source."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range [{self.start}, {self.end})")

    @classmethod
    def point(cls, offset: int) -> Range:
        return cls(offset, offset)

    def is_empty(self) -> bool:
        return self.start == self.end

    def to_list(self) -> list[int]:
        return [self.start, self.end]


@dataclass(frozen=True)
class Suggestion:
    """A single completion candidate."""

    type: SuggestionType
    name: str
    short_description: str = ""
    class_import: str | None = None
    range: Range | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Suggestion name must not be empty")

    @classmethod
    def create(cls, type: SuggestionType, name: str, info: str) -> Suggestion:
        return cls(type=type, name=name, short_description=info)

    @property
    def info(self) -> str:
        return self.short_description

    def to_dict(self) -> dict:
        return {
            "type": self.type.code,
            "kind": self.type.value,
            "name": self.name,
            "info": self.short_description,
            "class_import": self.class_import,
            "range": self.range.to_list() if self.range else None,
        }


class Suggestions:
    """Ordered, appendable collection of suggestions."""

    def __init__(self, suggestions: Iterable[Suggestion] | None = None):
        self._suggestions: list[Suggestion] = list(suggestions or [])

    def __iter__(self) -> Iterator[Suggestion]:
        return iter(self._suggestions)

    def __len__(self) -> int:
        return len(self._suggestions)

    def add(self, suggestion: Suggestion) -> None:
        self._suggestions.append(suggestion)

    def to_list(self) -> list[dict]:
        return [suggestion.to_dict() for suggestion in self._suggestions]


@dataclass(frozen=True)
class Issues:
    """Issue strings gathered while completing."""

    messages: tuple[str, ...] = ()

    @classmethod
    def from_strings(cls, messages: Iterable[str]) -> Issues:
        return cls(tuple(messages))

    def __iter__(self) -> Iterator[str]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class Response:
    """
    Result of one completion request.

    `suggestions` may be a lazy iterator (class-name completion streams one
    suggestion per scanned file); it can be consumed once.
    """

    suggestions: Iterable[Suggestion] = field(default_factory=Suggestions)
    issues: Issues = field(default_factory=Issues)

    def to_dict(self) -> dict:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "issues": list(self.issues),
        }
