"""
Tolerant node lookup for PHP source that may be incomplete mid-edit.

This is not a parser. It classifies the text around a position into one of
the node kinds the completors care about, and collects the namespace and
`use` statements that are in scope at that position.
"""

from __future__ import annotations

import re

from phpcompletor.parser.nodes import Node, NodeKind, ResolvedName
from phpcompletor.parser.text import (
    ACCESSORS,
    NAME_CHARS,
    normalize_line_breaks,
    skip_back,
    word_bounds,
)

RESERVED_WORDS = frozenset(
    """
    abstract and array as break callable case catch class clone const continue
    declare default do echo else elseif empty enddeclare endfor endforeach endif
    endswitch endwhile enum extends final finally fn for foreach function global
    goto if implements include include_once instanceof insteadof interface isset
    list match namespace new or print private protected public readonly require
    require_once return static switch throw trait try unset use var while xor
    yield
    """.split()
)


class TolerantNodeLocator:
    """Finds the node at a position using text patterns only."""

    NAMESPACE_PATTERN = re.compile(r"\bnamespace\s+([\w\\]+)\s*[;{]")
    USE_PATTERN = re.compile(r"\buse\s+(?:(function|const)\s+)?([\\\w][^;()]*);")

    def node_at(self, source: str, position: int) -> Node:
        text = normalize_line_breaks(source)
        namespace = self.namespace_at(text, position)
        import_tables = self.import_tables_at(text, position)

        def make(kind: NodeKind, start: int, end: int) -> Node:
            return Node(
                kind=kind,
                start=start,
                end=end,
                text=text[start:end],
                namespace=namespace,
                import_tables=import_tables,
            )

        if not text:
            return make(NodeKind.OTHER, 0, 0)

        position = min(max(position, 0), len(text) - 1)

        accessor_start = self._accessor_at(text, position)
        if accessor_start is None and text[position] == "$":
            accessor_start = self._static_property_accessor(text, position)
        if accessor_start is not None:
            return self._access_node(text, accessor_start, make)

        start, end = word_bounds(text, position)
        if start == end:
            return make(NodeKind.OTHER, position, position + 1)

        before = skip_back(text, start - 1)
        if before >= 0 and text[before] == "$":
            accessor_start = self._static_property_accessor(text, before)
            if accessor_start is not None:
                return self._access_node(text, accessor_start, make)
        elif before >= 2 and text[before - 1:before + 1] in ACCESSORS:
            return self._access_node(text, before - 1, make)

        word = text[start:end]
        if (
            (start > 0 and text[start - 1] == "$")
            or word[0].isdigit()
            or word.lower() in RESERVED_WORDS
            or text[max(start - 2, 0):start] == "<?"
        ):
            return make(NodeKind.OTHER, start, end)

        return make(NodeKind.QUALIFIED_NAME, start, end)

    def namespace_at(self, text: str, position: int) -> str | None:
        """Name of the last namespace declared before `position`."""
        namespace = None
        for match in self.NAMESPACE_PATTERN.finditer(text, 0, max(position, 0)):
            namespace = match.group(1).strip("\\")
        return namespace

    def import_tables_at(
        self, text: str, position: int
    ) -> tuple[tuple[ResolvedName, ...], ...]:
        """
        Collect the `use` imports visible at `position`.

        Returns three tables: class imports, function imports and constant
        imports. Trait `use` statements inside class bodies are ignored.
        """
        tables: dict[str, list[ResolvedName]] = {"": [], "function": [], "const": []}
        head = text[:max(position, 0)]

        for match in self.USE_PATTERN.finditer(head):
            if self._class_body_depth(head, match.start()) > 0:
                continue
            tables[match.group(1) or ""].extend(self._parse_use_clause(match.group(2)))

        return (
            tuple(tables[""]),
            tuple(tables["function"]),
            tuple(tables["const"]),
        )

    def _class_body_depth(self, text: str, pos: int) -> int:
        braced_namespaces = len(
            [m for m in self.NAMESPACE_PATTERN.finditer(text, 0, pos) if m.group(0).endswith("{")]
        )
        depth = text.count("{", 0, pos) - text.count("}", 0, pos)
        return depth - braced_namespaces

    def _parse_use_clause(self, clause: str) -> list[ResolvedName]:
        clause = clause.strip()
        if "{" in clause:
            prefix, _, group = clause.partition("{")
            prefix = prefix.strip().strip("\\")
            parts = [f"{prefix}\\{part.strip()}" for part in group.rstrip("} ").split(",") if part.strip()]
        else:
            parts = [part.strip() for part in clause.split(",") if part.strip()]

        names = []
        for part in parts:
            pieces = re.split(r"\s+as\s+", part, maxsplit=1)
            fqn = pieces[0].strip().strip("\\")
            alias = pieces[1].strip() if len(pieces) > 1 else fqn.rsplit("\\", 1)[-1]
            names.append(ResolvedName(alias=alias, fully_qualified_name=fqn))
        return names

    def _accessor_at(self, text: str, position: int) -> int | None:
        # An accessor at offset 0 has no receiver and is never scanned for
        if position > 0 and text[position:position + 2] in ACCESSORS:
            return position
        if position > 1 and text[position - 1:position + 1] in ACCESSORS:
            return position - 1
        return None

    def _static_property_accessor(self, text: str, dollar: int) -> int | None:
        """Start of the `::` in front of the `$` of `Foo::$bar`."""
        before = skip_back(text, dollar - 1)
        if before >= 2 and text[before - 1:before + 1] == "::":
            return before - 1
        return None

    def _access_node(self, text: str, accessor_start: int, make) -> Node:
        kind = (
            NodeKind.MEMBER_ACCESS
            if text[accessor_start:accessor_start + 2] == "->"
            else NodeKind.SCOPED_ACCESS
        )

        end = accessor_start + 2
        while end < len(text) and text[end] == " ":
            end += 1
        if kind is NodeKind.SCOPED_ACCESS and end < len(text) and text[end] == "$":
            end += 1
        while end < len(text) and text[end] in NAME_CHARS:
            end += 1

        receiver_end = accessor_start
        if receiver_end > 0 and text[receiver_end - 1] == "?":
            receiver_end -= 1
        start = expression_start(text, receiver_end)

        return make(kind, start, end)


def expression_start(text: str, end: int) -> int:
    """
    Walk back from `end` (exclusive) over a receiver expression.

    Handles variables, names, call parentheses and chained accessors,
    e.g. `$this->foo()->bar` or `\\Foo\\Bar::baz()`.
    """
    pos = skip_back(text, end - 1)

    while pos >= 0:
        char = text[pos]
        if char == ")":
            pos = _matching_open(text, pos, "(", ")") - 1
        elif char == "]":
            pos = _matching_open(text, pos, "[", "]") - 1
        elif char in NAME_CHARS or char == "$":
            pos -= 1
        elif pos >= 1 and text[pos - 1:pos + 1] in ACCESSORS:
            pos -= 2
            if pos >= 0 and text[pos] == "?":
                pos -= 1
        else:
            break

    return pos + 1


def _matching_open(text: str, close: int, opener: str, closer: str) -> int:
    depth = 0
    pos = close
    while pos >= 0:
        if text[pos] == closer:
            depth += 1
        elif text[pos] == opener:
            depth -= 1
            if depth == 0:
                return pos
        pos -= 1
    return 0
