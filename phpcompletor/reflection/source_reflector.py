"""
Source based type reflection.

Answers the two questions the member completor asks:
- what are the candidate types of the expression ending at an offset?
- what members does a class or interface declare?

Classes are read from the sources given to the reflector and, when a
workspace filesystem is available, from workspace files named after the
class. A reflector is meant to live for a single request.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from phpcompletor.exceptions import NotFound
from phpcompletor.parser.locator import TolerantNodeLocator, expression_start
from phpcompletor.parser.text import normalize_line_breaks, skip_back
from phpcompletor.reflection.class_parser import (
    ParsedClassLike,
    PhpClassParser,
    blank_comments,
    find_closing_brace,
    find_closing_paren,
    resolve_class_name,
)
from phpcompletor.reflection.types import (
    ClassLike,
    ReflectionClass,
    ReflectionFunction,
    Symbol,
    SymbolContext,
    Type,
    Types,
    Visibility,
)
from phpcompletor.workspace.filesystem import Filesystem

# Guards against self-referencing assignments such as `$a = $a->next();`
MAX_DEPTH = 8

FUNCTION_PATTERN = re.compile(r"\bfunction\s*&?\s*\w*\s*\(")
NAME_PATTERN = re.compile(r"^\\?[A-Za-z_][\w\\]*$")
NEW_PATTERN = re.compile(r"^new\s+([\\\w]+)")


class _Scope:
    """Where an expression is being resolved: file text, namespace, class."""

    def __init__(
        self,
        source: str,
        text: str,
        offset: int,
        namespace: str | None,
        imports: tuple,
        enclosing: ParsedClassLike | None,
    ):
        self.source = source
        self.text = text
        self.offset = offset
        self.namespace = namespace
        self.imports = imports
        self.enclosing = enclosing

    @property
    def class_name(self) -> str | None:
        return self.enclosing.name if self.enclosing else None

    @property
    def parent_name(self) -> str | None:
        declaration = self.enclosing.declaration if self.enclosing else None
        return declaration.parent if isinstance(declaration, ReflectionClass) else None

    def resolve(self, name: str) -> str:
        return resolve_class_name(
            name, self.namespace, self.imports, self.class_name, self.parent_name
        )


class SourceReflector:
    """Reflects PHP code from in-memory sources and workspace files."""

    def __init__(
        self,
        sources: Iterable[str] = (),
        filesystem: Filesystem | None = None,
        parser: PhpClassParser | None = None,
    ):
        self.parser = parser or PhpClassParser()
        self.filesystem = filesystem
        self.locator = TolerantNodeLocator()
        self._classes: list[ParsedClassLike] = []
        self._functions: list[ReflectionFunction] = []
        self._sources: set[str] = set()
        self._parsed_paths: set[str] = set()

        for source in sources:
            self.add_source(source)

    def add_source(self, source: str) -> list[ParsedClassLike]:
        """Make the classes declared in `source` available for reflection."""
        parsed = self.parser.parse(source)
        if source not in self._sources:
            self._sources.add(source)
            self._classes.extend(parsed.classes)
            self._functions.extend(parsed.functions)
        return parsed.classes

    def reflect_offset(self, source: str, offset: int) -> SymbolContext:
        """
        Resolve the expression ending at `offset` to its candidate types.

        Args:
            source: PHP source text
            offset: Offset just past the expression, e.g. the end of `$foo`
                    in `$foo->`

        Returns:
            SymbolContext naming the symbol and its types. Types are never
            empty: an expression that cannot be inferred has one undefined
            type.
        """
        text = normalize_line_breaks(blank_comments(source))
        end = skip_back(text, min(offset, len(text)) - 1) + 1
        if end > 0 and text[end - 1] == "?":
            # nullsafe `?->`
            end -= 1
        expression = text[expression_start(text, end):end].strip()

        enclosing = None
        for candidate in self.add_source(source):
            if candidate.contains(offset):
                enclosing = candidate

        scope = _Scope(
            source=source,
            text=text,
            offset=end,
            namespace=self.locator.namespace_at(text, end),
            imports=self.locator.import_tables_at(text, end)[0],
            enclosing=enclosing,
        )

        return self._resolve_expression(expression, scope, 0)

    def reflect_class_like(self, name: str) -> ClassLike:
        """
        Find a class or interface by fully-qualified name.

        Inherited members (from the parent class and implemented or extended
        interfaces) are merged after the declaration's own members; private
        members are not inherited.

        Raises:
            NotFound: if no declaration with this name is known
        """
        return self._reflect_class_like(name.lstrip("\\"), set())

    def reflect_function(self, name: str) -> ReflectionFunction:
        """
        Find a function by fully-qualified name (case-insensitive, like PHP).

        Raises:
            NotFound: if no function with this name is known
        """
        name = name.lstrip("\\")
        lower = name.lower()
        for function in self._functions:
            if function.name.lower() == lower:
                return function
        raise NotFound(name)

    def _reflect_class_like(self, name: str, seen: set[str]) -> ClassLike:
        parsed = self._find(name)
        if parsed is None:
            raise NotFound(name)

        declaration = parsed.declaration
        seen = seen | {declaration.name.lower()}

        if isinstance(declaration, ReflectionClass):
            parents = ([declaration.parent] if declaration.parent else []) + list(declaration.interfaces)
        else:
            parents = list(declaration.parents)

        for parent_name in parents:
            if parent_name.lower() in seen:
                continue
            try:
                parent = self._reflect_class_like(parent_name, seen)
            except NotFound:
                continue
            declaration = _merge(declaration, parent)

        return declaration

    def _find(self, name: str) -> ParsedClassLike | None:
        found = self._lookup(name)
        if found is None and self.filesystem is not None:
            self._load_workspace_candidates(name)
            found = self._lookup(name)
        return found

    def _lookup(self, name: str) -> ParsedClassLike | None:
        lower = name.lower()
        for parsed in self._classes:
            if parsed.name.lower() == lower:
                return parsed

        if "\\" not in name:
            for parsed in self._classes:
                if parsed.short_name.lower() == lower:
                    return parsed

        return None

    def _load_workspace_candidates(self, name: str) -> None:
        short_name = name.rsplit("\\", 1)[-1]
        files = self.filesystem.file_list().php_files().filter(
            lambda record: Path(record.filename).stem == short_name
        )
        for record in files:
            if record.path in self._parsed_paths:
                continue
            self._parsed_paths.add(record.path)
            try:
                content = Path(record.path).read_text(encoding="utf-8", errors="ignore")
            except OSError:
                continue
            self.add_source(content)

    def _resolve_expression(self, expression: str, scope: _Scope, depth: int) -> SymbolContext:
        expression = _strip_parens(expression.strip())

        if depth > MAX_DEPTH or not expression:
            return _unknown(expression or "<missing>")

        access = _split_last_access(expression)
        if access is not None:
            return self._resolve_member(*access, scope=scope, depth=depth)

        lower = expression.lower()
        if lower == "$this":
            return self._class_context("this", "variable", scope.class_name)
        if lower in ("self", "static"):
            return self._class_context(lower, "class", scope.class_name)
        if lower == "parent":
            return self._class_context("parent", "class", scope.parent_name)

        literal = literal_type(expression)
        if literal is not None:
            return SymbolContext(Symbol(expression, "literal"), Types.from_types(literal))

        new_match = NEW_PATTERN.match(expression)
        if new_match:
            return self._class_context(new_match.group(1), "class", scope.resolve(new_match.group(1)))

        if expression.startswith("$") and NAME_PATTERN.match(expression[1:]):
            return self._resolve_variable(expression[1:], scope, depth)

        if NAME_PATTERN.match(expression):
            return self._class_context(expression, "class", scope.resolve(expression))

        return _unknown(expression)

    def _class_context(self, symbol: str, symbol_type: str, class_name: str | None) -> SymbolContext:
        return SymbolContext(
            Symbol(symbol, symbol_type),
            Types.from_types(Type.from_string(class_name)),
        )

    def _resolve_member(
        self, receiver: str, accessor: str, member: str, scope: _Scope, depth: int
    ) -> SymbolContext:
        receiver_context = self._resolve_expression(receiver, scope, depth + 1)
        is_call = member.endswith(")")
        name_match = re.match(r"\$?(\w+)", member)
        name = name_match.group(1) if name_match else member
        is_static_property = accessor == "::" and member.startswith("$")

        types: list[Type] = []
        for receiver_type in receiver_context.types:
            if not receiver_type.is_defined() or receiver_type.is_primitive():
                continue
            try:
                class_like = self.reflect_class_like(str(receiver_type))
            except NotFound:
                continue

            if is_call:
                method = class_like.find_method(name)
                if method is not None:
                    types.extend(method.inferred_return_types)
            elif accessor == "->" or is_static_property:
                if isinstance(class_like, ReflectionClass):
                    prop = class_like.find_property(name)
                    if prop is not None:
                        types.extend(prop.inferred_types)

        return SymbolContext(
            symbol=Symbol(name, "method" if is_call else "property"),
            types=Types(tuple(types) or (Type.unknown(),)),
            issues=receiver_context.issues,
        )

    def _resolve_variable(self, name: str, scope: _Scope, depth: int) -> SymbolContext:
        region_start = _enclosing_function_start(scope.text, scope.offset)
        region = scope.text[region_start:scope.offset]
        symbol = Symbol(name, "variable")
        var = re.escape(name)

        best_position = -1
        best: Types | None = None

        assignments = list(re.finditer(rf"\${var}\b\s*=(?![=>])\s*([^;]+);", region))
        assignment = assignments[-1] if assignments else None
        if assignment is not None:
            rhs = assignment.group(1).strip()
            resolved = self._resolve_expression(rhs, scope, depth + 1)
            best_position = assignment.start()
            best = resolved.types
            docblock = self._var_docblock(scope, region_start, name, before=region_start + assignment.start())
            if docblock is not None:
                best = docblock

        parameter = re.search(
            rf"([?\\\w|]+)\s+&?(?:\.\.\.)?\${var}\b", region[:_parameters_end(region)]
        ) if region_start else None
        if parameter is not None and parameter.start() > best_position:
            best_position = parameter.start()
            best = self._resolved_types(parameter.group(1), scope)

        if best is None:
            docblock = self._var_docblock(scope, region_start, name, before=scope.offset)
            if docblock is not None:
                best = docblock

        return SymbolContext(symbol, best if best is not None else Types.from_types(Type.unknown()))

    def _var_docblock(self, scope: _Scope, region_start: int, name: str, before: int) -> Types | None:
        """An inline `/** @var Type $name */` whose end is only whitespace away from `before`."""
        pattern = re.compile(rf"/\*\*\s*@var\s+([^\s*]+)\s+\${re.escape(name)}\s*\*/")
        matches = list(pattern.finditer(scope.source, region_start, before))
        if not matches:
            return None
        found = matches[-1]
        if scope.source[found.end():before].strip() and before != scope.offset:
            return None
        return self._resolved_types(found.group(1), scope)

    def _resolved_types(self, declared: str, scope: _Scope) -> Types:
        return Types(
            tuple(
                Type.from_string(scope.resolve(part))
                for part in re.split(r"[|&]", declared)
                if part.strip("()")
            )
        )


def _merge(child: ClassLike, parent: ClassLike) -> ClassLike:
    method_names = {method.name.lower() for method in child.methods}
    constant_names = {constant.name for constant in child.constants}
    inherited = {
        "methods": child.methods + tuple(
            method for method in parent.methods
            if method.name.lower() not in method_names and method.visibility is not Visibility.PRIVATE
        ),
        "constants": child.constants + tuple(
            constant for constant in parent.constants
            if constant.name not in constant_names and constant.visibility is not Visibility.PRIVATE
        ),
    }
    if isinstance(child, ReflectionClass) and isinstance(parent, ReflectionClass):
        property_names = {prop.name for prop in child.properties}
        inherited["properties"] = child.properties + tuple(
            prop for prop in parent.properties
            if prop.name not in property_names and prop.visibility is not Visibility.PRIVATE
        )
    return replace(child, **inherited)


def literal_type(expression: str) -> Type | None:
    """Type of a literal expression, or None if it is not a literal."""
    lower = expression.strip().lower()
    if not lower:
        return None
    if lower[0] in "'\"":
        return Type("string")
    if re.match(r"^-?\d+$", lower):
        return Type("int")
    if re.match(r"^-?(\d+\.\d*|\.\d+)([e][+-]?\d+)?$", lower):
        return Type("float")
    if lower in ("true", "false"):
        return Type("bool")
    if lower == "null":
        return Type("null")
    if lower.startswith("[") or re.match(r"^array\s*\(", lower):
        return Type("array")
    return None


def _unknown(name: str) -> SymbolContext:
    return SymbolContext(Symbol(name), Types.from_types(Type.unknown()))


def _strip_parens(expression: str) -> str:
    while expression.startswith("(") and find_closing_paren(expression, 0) == len(expression) - 1:
        expression = expression[1:-1].strip()
    return expression


def _split_last_access(expression: str) -> tuple[str, str, str] | None:
    """Split `a->b()->c` into (`a->b()`, `->`, `c`) at the last top-level accessor."""
    depth = 0
    pos = len(expression) - 1
    while pos > 0:
        char = expression[pos]
        if char in ")]":
            depth += 1
        elif char in "([":
            depth -= 1
        elif depth == 0 and expression[pos - 1:pos + 1] in ("->", "::"):
            accessor = expression[pos - 1:pos + 1]
            receiver = expression[:pos - 1].rstrip("?").strip()
            member = expression[pos + 1:].strip()
            if receiver:
                return receiver, accessor, member
            return None
        pos -= 1
    return None


def _enclosing_function_start(text: str, offset: int) -> int:
    """Start of the function whose body contains `offset`, or 0."""
    for match in reversed(list(FUNCTION_PATTERN.finditer(text, 0, offset))):
        close = find_closing_paren(text, match.end() - 1)
        body_start = text.find("{", close)
        if body_start == -1 or body_start >= offset:
            continue
        if find_closing_brace(text, body_start) >= offset:
            return match.start()
    return 0


def _parameters_end(region: str) -> int:
    """End of the parameter list of the function `region` starts with."""
    open_paren = region.find("(")
    if open_paren == -1:
        return 0
    return find_closing_paren(region, open_paren)
