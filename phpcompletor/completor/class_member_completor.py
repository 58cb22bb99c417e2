"""
Member completion: methods, properties and constants after `->` or `::`.
"""

from __future__ import annotations

from dataclasses import replace

from phpcompletor.completor.cursor_context import resolve_offset
from phpcompletor.core.suggestion import (
    Issues,
    Range,
    Response,
    Suggestion,
    Suggestions,
    SuggestionType,
)
from phpcompletor.exceptions import NotFound
from phpcompletor.parser.locator import TolerantNodeLocator
from phpcompletor.parser.nodes import NodeKind, NodeLocator
from phpcompletor.parser.text import normalize_line_breaks, skip_back
from phpcompletor.reflection.literals import export_inline
from phpcompletor.reflection.types import (
    ClassLike,
    ReflectionClass,
    ReflectionMethod,
    ReflectionParameter,
    ReflectionProperty,
    Reflector,
    SymbolContext,
    Type,
)

# Symbols that see non-public members of their own class
PRIVILEGED_SYMBOLS = ("this", "self")


class ClassMemberCompletor:
    """Completes members of the class(es) an expression resolves to."""

    def __init__(self, reflector: Reflector, locator: NodeLocator | None = None):
        self.reflector = reflector
        self.locator = locator or TolerantNodeLocator()

    def could_complete(self, source: str, offset: int) -> bool:
        """
        Check if the cursor sits in a member or scoped access expression.

        A False result only means this completor does not apply here.
        """
        position = skip_back(normalize_line_breaks(source), offset - 1)
        node = self.locator.node_at(source, position)

        match node.kind:
            case NodeKind.MEMBER_ACCESS | NodeKind.SCOPED_ACCESS:
                return True
            case NodeKind.QUALIFIED_NAME | NodeKind.OTHER:
                return False

    def complete(self, source: str, offset: int) -> Response:
        """
        Complete members at `offset`.

        Raises:
            NoAccessorFound: if no `->` or `::` precedes the cursor; callers
                should check could_complete() first
        """
        context = resolve_offset(source, offset)
        symbol_context = self.reflector.reflect_offset(source, context.corrected_offset)

        suggestions, symbol_context = self.build(
            symbol_context,
            symbol_context.types,
            context.partial_text.strip(),
            Range.point(offset),
        )

        return Response(suggestions, Issues.from_strings(symbol_context.issues))

    def build(
        self,
        symbol_context: SymbolContext,
        types,
        partial: str = "",
        replace_range: Range | None = None,
    ) -> tuple[Suggestions, SymbolContext]:
        """Suggestions for each candidate type, in the order given."""
        suggestions = Suggestions()
        for type_ in types:
            symbol_context = self._populate_suggestions(
                symbol_context, type_, suggestions, partial, replace_range
            )
        return suggestions, symbol_context

    def _populate_suggestions(
        self,
        symbol_context: SymbolContext,
        type_: Type,
        suggestions: Suggestions,
        partial: str,
        replace_range: Range | None,
    ) -> SymbolContext:
        if not type_.is_defined():
            return symbol_context

        if type_.is_primitive():
            return symbol_context.with_issue(
                f"Cannot complete members on scalar value ({type_})"
            )

        try:
            class_like: ClassLike = self.reflector.reflect_class_like(str(type_))
        except NotFound:
            return symbol_context.with_issue(f'Could not find class "{type_}"')

        public_only = symbol_context.symbol.name not in PRIVILEGED_SYMBOLS

        # Member names match case-insensitively; `Foo::$ba` matches `bar`
        prefix = partial.lstrip("$").lower()

        def add(suggestion: Suggestion) -> None:
            if suggestion.name.lower().startswith(prefix):
                suggestions.add(replace(suggestion, range=replace_range))

        for method in class_like.methods:
            if method.name == "__construct":
                continue
            if public_only and not method.visibility.is_public():
                continue
            add(Suggestion.create(SuggestionType.METHOD, method.name, method_info(method)))

        if isinstance(class_like, ReflectionClass):
            for prop in class_like.properties:
                if public_only and not prop.visibility.is_public():
                    continue
                add(Suggestion.create(SuggestionType.PROPERTY, prop.name, property_info(prop)))

        for constant in class_like.constants:
            add(Suggestion.create(SuggestionType.CONSTANT, constant.name, f"const {constant.name}"))

        return symbol_context


def method_info(method: ReflectionMethod) -> str:
    """Short description, e.g. `pub bar(Foo $foo, $limit = 10): int|null`."""
    info = [str(method.visibility)[:3], " ", method.name]
    if method.is_abstract:
        info.insert(0, "abstract ")

    param_infos = [parameter_info(parameter) for parameter in method.parameters]
    info.append(f"({', '.join(param_infos)})")

    if len(method.inferred_return_types) > 0:
        info.append(": " + "|".join(t.short() for t in method.inferred_return_types))

    return "".join(info)


def parameter_info(parameter: ReflectionParameter) -> str:
    """E.g. `Foo $foo`, `$limit = 10`."""
    info = []
    if parameter.type.is_defined():
        info.append(parameter.type.short())
    info.append(f"${parameter.name}")
    if parameter.default.is_defined:
        info.append(f"= {export_inline(parameter.default.value)}")
    return " ".join(info)


def property_info(prop: ReflectionProperty) -> str:
    """Short description, e.g. `pro static $instance: Foo`."""
    info = [str(prop.visibility)[:3]]
    if prop.is_static:
        info.append(" static")
    info.append(f" ${prop.name}")

    best = prop.inferred_types.best()
    if best.is_defined():
        info.append(f": {best.short()}")

    return "".join(info)
