"""
PHP class-like declaration parser used by the source reflector.

Regex based, like the rest of the text tooling here: comments are blanked
out, class bodies are found by brace matching and members are read from the
top level of each body only.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from phpcompletor.parser.locator import TolerantNodeLocator
from phpcompletor.parser.nodes import ResolvedName
from phpcompletor.reflection.literals import parse_literal, split_top_level
from phpcompletor.reflection.types import (
    PRIMITIVE_TYPES,
    ClassLike,
    DefaultValue,
    ReflectionClass,
    ReflectionConstant,
    ReflectionFunction,
    ReflectionInterface,
    ReflectionMethod,
    ReflectionParameter,
    ReflectionProperty,
    Type,
    Types,
    Visibility,
)


@dataclass
class ParsedClassLike:
    """A class-like declaration together with where it lives in the file."""

    declaration: ClassLike
    short_name: str
    namespace: str | None
    imports: tuple[ResolvedName, ...]
    start: int        # offset of the declaration keyword
    body_start: int   # offset of the opening brace
    body_end: int     # offset of the closing brace

    @property
    def name(self) -> str:
        return self.declaration.name

    def contains(self, offset: int) -> bool:
        return self.body_start < offset <= self.body_end


@dataclass
class ParsedFile:
    namespace: str | None = None
    classes: list[ParsedClassLike] = field(default_factory=list)
    functions: list[ReflectionFunction] = field(default_factory=list)


class PhpClassParser:
    """Parses class and interface declarations out of PHP source."""

    # Patterns
    NAMESPACE_PATTERN = re.compile(r"\bnamespace\s+([\w\\]+)\s*[;{]")
    CLASS_PATTERN = re.compile(
        r"(?<![\w$:>])((?:(?:abstract|final|readonly)\s+)*)"
        r"(class|interface|trait|enum)\s+(\w+)"
        r"([^{;]*)\{",
        re.IGNORECASE,
    )
    EXTENDS_PATTERN = re.compile(r"\bextends\s+([\w\\\s,]+?)(?=\bimplements\b|$)", re.IGNORECASE)
    IMPLEMENTS_PATTERN = re.compile(r"\bimplements\s+([\w\\\s,]+)", re.IGNORECASE)
    METHOD_PATTERN = re.compile(
        r"((?:(?:abstract|final|public|protected|private|static)\s+)*)"
        r"function\s+&?\s*(\w+)\s*\(",
        re.IGNORECASE,
    )
    FUNCTION_PATTERN = re.compile(r"(?<![\w$>:])function\s+&?\s*(\w+)\s*\(", re.IGNORECASE)
    RETURN_TYPE_PATTERN = re.compile(r"\s*:\s*([?\w\\|&]+)")
    PROPERTY_PATTERN = re.compile(
        r"((?:(?:public|protected|private|var|static|readonly)\s+)+)"
        r"(?:([?\w\\|]+)\s+)?"
        r"\$(\w+)",
        re.IGNORECASE,
    )
    CONSTANT_PATTERN = re.compile(
        r"((?:(?:public|protected|private|final)\s+)*)"
        r"const\s+(?:[?\w\\]+\s+)?(\w+)\s*=",
        re.IGNORECASE,
    )
    CASE_PATTERN = re.compile(r"\bcase\s+(\w+)\s*[=;]")
    PARAMETER_PATTERN = re.compile(
        r"^(?:(?:public|protected|private|readonly)\s+)*"
        r"(?:([?\w\\|&]+)\s+)?"
        r"&?(?:\.\.\.)?\$(\w+)"
        r"(?:\s*=\s*(.+))?$",
        re.DOTALL,
    )
    VAR_TAG_PATTERN = re.compile(r"@var\s+([^\s*]+)")
    RETURN_TAG_PATTERN = re.compile(r"@return\s+([^\s*]+)")

    def __init__(self) -> None:
        self._locator = TolerantNodeLocator()

    def parse(self, source: str) -> ParsedFile:
        """Parse all class-like and function declarations in `source`."""
        code = blank_comments(source)
        parsed = ParsedFile(namespace=self._locator.namespace_at(code, len(code)))

        for match in self.CLASS_PATTERN.finditer(code):
            body_start = match.end() - 1
            body_end = find_closing_brace(code, body_start)
            parsed.classes.append(
                self._parse_class_like(source, code, match, body_start, body_end)
            )

        parsed.functions.extend(self._parse_functions(source, code, parsed.classes))

        return parsed

    def _parse_class_like(
        self, source: str, code: str, match: re.Match, body_start: int, body_end: int
    ) -> ParsedClassLike:
        modifiers = match.group(1).lower()
        keyword = match.group(2).lower()
        short_name = match.group(3)
        header = match.group(4)

        namespace = self._locator.namespace_at(code, match.start())
        imports = self._locator.import_tables_at(code, match.start())[0]
        fqn = f"{namespace}\\{short_name}" if namespace else short_name

        scope = _Scope(fqn, namespace, imports)
        extends = self._names(self.EXTENDS_PATTERN, header, scope)
        if keyword != "interface":
            scope.parent = extends[0] if extends else None

        body = blank_nested(code[body_start + 1:body_end])
        offset = body_start + 1

        methods = tuple(self._parse_methods(source, body, offset, scope))
        constants = tuple(self._parse_constants(body, keyword))

        if keyword == "interface":
            declaration: ClassLike = ReflectionInterface(
                name=fqn,
                methods=methods,
                constants=constants,
                parents=tuple(extends),
            )
        else:
            declaration = ReflectionClass(
                name=fqn,
                methods=methods,
                properties=tuple(self._parse_properties(source, body, offset, scope)),
                constants=constants,
                parent=scope.parent,
                interfaces=tuple(self._names(self.IMPLEMENTS_PATTERN, header, scope)),
                is_abstract="abstract" in modifiers,
            )

        return ParsedClassLike(
            declaration=declaration,
            short_name=short_name,
            namespace=namespace,
            imports=imports,
            start=match.start(),
            body_start=body_start,
            body_end=body_end,
        )

    def _names(self, pattern: re.Pattern, header: str, scope: _Scope) -> list[str]:
        match = pattern.search(header)
        if not match:
            return []
        return [scope.resolve(name.strip()) for name in match.group(1).split(",") if name.strip()]

    def _parse_methods(self, source: str, body: str, offset: int, scope: _Scope):
        for match in self.METHOD_PATTERN.finditer(body):
            modifiers = match.group(1).lower().split()
            close = find_closing_paren(body, match.end() - 1)
            params = body[match.end():close]

            yield ReflectionMethod(
                name=match.group(2),
                visibility=_visibility(modifiers),
                is_static="static" in modifiers,
                is_abstract="abstract" in modifiers,
                parameters=tuple(self._parse_parameters(params, scope)),
                inferred_return_types=self._return_types(
                    source, body, close, offset + match.start(), scope
                ),
            )

    def _parse_functions(self, source: str, code: str, classes: list[ParsedClassLike]):
        for match in self.FUNCTION_PATTERN.finditer(code):
            if any(c.body_start < match.start() < c.body_end for c in classes):
                continue

            namespace = self._locator.namespace_at(code, match.start())
            imports = self._locator.import_tables_at(code, match.start())[0]
            name = match.group(1)
            scope = _Scope(None, namespace, imports)
            close = find_closing_paren(code, match.end() - 1)

            yield ReflectionFunction(
                name=f"{namespace}\\{name}" if namespace else name,
                parameters=tuple(self._parse_parameters(code[match.end():close], scope)),
                inferred_return_types=self._return_types(source, code, close, match.start(), scope),
            )

    def _return_types(
        self, source: str, code: str, close: int, declared_at: int, scope: _Scope
    ) -> Types:
        """Declared return type after `)`, else the `@return` docblock tag."""
        return_match = self.RETURN_TYPE_PATTERN.match(code, close + 1)
        if return_match:
            return scope.types(return_match.group(1))

        docblock = docblock_before(source, declared_at)
        tag = self.RETURN_TAG_PATTERN.search(docblock)
        if tag:
            return scope.types(tag.group(1))
        return Types()

    def _parse_parameters(self, params: str, scope: _Scope):
        for text in split_top_level(params):
            match = self.PARAMETER_PATTERN.match(text.strip())
            if not match:
                continue
            type_name, name, default = match.groups()
            yield ReflectionParameter(
                name=name,
                type=scope.types(type_name).best() if type_name else Type.unknown(),
                default=DefaultValue.from_value(parse_literal(default)) if default else DefaultValue.none(),
            )

    def _parse_properties(self, source: str, body: str, offset: int, scope: _Scope):
        # Promoted constructor properties are declared inside the parameter
        # list, which stays visible at the top level of the body.
        for match in self.PROPERTY_PATTERN.finditer(body):
            modifiers = match.group(1).lower().split()
            if match.group(2) and match.group(2).lower() == "function":
                continue

            types = scope.types(match.group(2)) if match.group(2) else Types()
            if not len(types):
                docblock = docblock_before(source, offset + match.start())
                tag = self.VAR_TAG_PATTERN.search(docblock)
                if tag:
                    types = scope.types(tag.group(1))

            yield ReflectionProperty(
                name=match.group(3),
                visibility=_visibility(modifiers),
                is_static="static" in modifiers,
                inferred_types=types,
            )

    def _parse_constants(self, body: str, keyword: str):
        for match in self.CONSTANT_PATTERN.finditer(body):
            yield ReflectionConstant(
                name=match.group(2),
                visibility=_visibility(match.group(1).lower().split()),
            )
        if keyword == "enum":
            for match in self.CASE_PATTERN.finditer(body):
                yield ReflectionConstant(name=match.group(1))


class _Scope:
    """Name resolution context of one class-like declaration."""

    def __init__(self, fqn: str | None, namespace: str | None, imports: tuple[ResolvedName, ...]):
        self.fqn = fqn
        self.namespace = namespace
        self.imports = imports
        self.parent: str | None = None

    def resolve(self, name: str) -> str:
        return resolve_class_name(name, self.namespace, self.imports, self.fqn, self.parent)

    def types(self, declared: str) -> Types:
        return Types(
            tuple(
                Type.from_string(self.resolve(part.strip("()")))
                for part in re.split(r"[|&]", declared)
                if part.strip("()")
            )
        )


def resolve_class_name(
    name: str,
    namespace: str | None,
    imports: tuple[ResolvedName, ...],
    current_class: str | None = None,
    parent_class: str | None = None,
) -> str:
    """Resolve a name as written in source to its fully-qualified form."""
    name = name.strip().lstrip("?")
    lower = name.lower()

    if lower in PRIMITIVE_TYPES or lower == "mixed":
        return lower
    if name.endswith("[]"):
        return "array"
    if lower in ("self", "static", "$this"):
        return current_class or name
    if lower == "parent":
        return parent_class or name
    if name.startswith("\\"):
        return name[1:]

    first, _, rest = name.partition("\\")
    for imported in imports:
        if imported.alias.lower() == first.lower():
            return imported.fully_qualified_name + (f"\\{rest}" if rest else "")

    return f"{namespace}\\{name}" if namespace else name


def _visibility(modifiers: list[str]) -> Visibility:
    if "private" in modifiers:
        return Visibility.PRIVATE
    if "protected" in modifiers:
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _skip_string(text: str, pos: int) -> int:
    """Return the offset just past the string literal starting at `pos`."""
    quote = text[pos]
    pos += 1
    while pos < len(text):
        if text[pos] == "\\":
            pos += 2
            continue
        if text[pos] == quote:
            return pos + 1
        pos += 1
    return pos


def blank_comments(source: str) -> str:
    """Replace comments with spaces, keeping offsets and line breaks."""
    chars = list(source)
    pos = 0
    while pos < len(source):
        char = source[pos]
        if char in "'\"":
            pos = _skip_string(source, pos)
            continue

        end = None
        if source.startswith("/*", pos):
            end = source.find("*/", pos + 2)
            end = len(source) if end == -1 else end + 2
        elif source.startswith("//", pos) or (char == "#" and not source.startswith("#[", pos)):
            end = source.find("\n", pos)
            end = len(source) if end == -1 else end

        if end is None:
            pos += 1
            continue

        for i in range(pos, end):
            if chars[i] not in "\r\n":
                chars[i] = " "
        pos = end

    return "".join(chars)


def blank_strings(source: str) -> str:
    """Replace the contents of string literals with spaces, keeping the quotes."""
    chars = list(source)
    pos = 0
    while pos < len(source):
        if source[pos] in "'\"":
            end = min(_skip_string(source, pos), len(source))
            closed = end - 1 > pos and source[end - 1] == source[pos]
            for i in range(pos + 1, end - 1 if closed else end):
                if chars[i] not in "\r\n":
                    chars[i] = " "
            pos = end
            continue
        pos += 1
    return "".join(chars)


def find_closing_brace(code: str, open_index: int) -> int:
    """Offset of the brace closing the one at `open_index` (end of text if unbalanced)."""
    depth = 0
    pos = open_index
    while pos < len(code):
        char = code[pos]
        if char in "'\"":
            pos = _skip_string(code, pos)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return len(code)


def find_closing_paren(code: str, open_index: int) -> int:
    depth = 0
    pos = open_index
    while pos < len(code):
        char = code[pos]
        if char in "'\"":
            pos = _skip_string(code, pos)
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return len(code)


def blank_nested(body: str) -> str:
    """Blank out everything inside nested braces, so only the top level remains."""
    chars = list(body)
    depth = 0
    pos = 0
    while pos < len(body):
        char = body[pos]
        if char in "'\"":
            end = _skip_string(body, pos)
            if depth > 0:
                for i in range(pos, min(end, len(body))):
                    chars[i] = " "
            pos = end
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif depth > 0:
            chars[pos] = " "
        pos += 1
    return "".join(chars)


def docblock_before(source: str, offset: int) -> str:
    """The `/** */` block directly in front of a declaration, or ''."""
    head = source[:offset].rstrip()
    if not head.endswith("*/"):
        return ""
    start = head.rfind("/**")
    if start == -1:
        return ""
    return head[start:]
