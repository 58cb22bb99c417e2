"""
Signature help: the parameters of the function or method being called.

The cursor must sit inside the argument list of a call whose callee can be
reflected: a function declared in a known source, a method reached through
`->` or `::`, or a constructor (`new Foo(`).
"""

from __future__ import annotations

from phpcompletor.completor.class_member_completor import parameter_info
from phpcompletor.core.signature import ParameterInformation, SignatureHelp, SignatureInformation
from phpcompletor.exceptions import CouldNotHelpWithSignature, NotFound
from phpcompletor.parser.locator import TolerantNodeLocator
from phpcompletor.parser.nodes import FUNCTION_IMPORTS
from phpcompletor.parser.text import ACCESSORS, normalize_line_breaks, skip_back, word_bounds
from phpcompletor.reflection.class_parser import blank_comments, blank_strings
from phpcompletor.reflection.source_reflector import SourceReflector
from phpcompletor.reflection.types import ReflectionParameter, Types

# Words that open an argument-like list but are not calls
DECLARATION_WORDS = ("function", "fn")


class SignatureHelper:
    """Builds signature help from source reflection."""

    def __init__(self, reflector: SourceReflector, locator: TolerantNodeLocator | None = None):
        self.reflector = reflector
        self.locator = locator or TolerantNodeLocator()

    def signature_help(self, source: str, offset: int) -> SignatureHelp:
        """
        Signatures of the call whose argument list contains `offset`.

        Raises:
            CouldNotHelpWithSignature: when the cursor is not inside a call,
                or the callee cannot be reflected
        """
        text = normalize_line_breaks(blank_strings(blank_comments(source)))
        call = open_call(text, min(offset, len(text)))
        if call is None:
            raise CouldNotHelpWithSignature("cursor is not inside an argument list")
        open_paren, argument = call

        name_end = skip_back(text, open_paren - 1) + 1
        name_start, _ = word_bounds(text, name_end - 1)
        name = text[name_start:name_end]
        if not name or name[0].isdigit() or (name_start > 0 and text[name_start - 1] == "$"):
            raise CouldNotHelpWithSignature("call target is not a name")

        self.reflector.add_source(source)

        before = skip_back(text, name_start - 1)
        word_start, word_end = word_bounds(text, before)
        word = text[word_start:word_end].lower()

        if before >= 1 and text[before - 1:before + 1] in ACCESSORS:
            signatures = self._method_signatures(source, before - 1, name)
        elif word == "new":
            signatures = self._method_signatures(source, name_end, "__construct")
        elif word in DECLARATION_WORDS:
            raise CouldNotHelpWithSignature("cursor is inside a declaration")
        else:
            signatures = self._function_signatures(text, name_start, name)

        if not signatures:
            raise CouldNotHelpWithSignature(f'could not reflect "{name}"')

        parameter_count = len(signatures[0].parameters)
        return SignatureHelp(
            signatures=tuple(signatures),
            active_signature=0,
            active_parameter=argument if argument < parameter_count else None,
        )

    def _method_signatures(self, source: str, receiver_end: int, name: str) -> list[SignatureInformation]:
        symbol_context = self.reflector.reflect_offset(source, receiver_end)

        signatures = []
        for type_ in symbol_context.types:
            if not type_.is_defined() or type_.is_primitive():
                continue
            try:
                class_like = self.reflector.reflect_class_like(str(type_))
            except NotFound:
                continue
            method = class_like.find_method(name)
            if method is not None:
                signatures.append(
                    signature_information(method.name, method.parameters, method.inferred_return_types)
                )
        return signatures

    def _function_signatures(self, text: str, position: int, name: str) -> list[SignatureInformation]:
        for candidate in self._function_candidates(text, position, name):
            try:
                function = self.reflector.reflect_function(candidate)
            except NotFound:
                continue
            return [
                signature_information(
                    function.short_name, function.parameters, function.inferred_return_types
                )
            ]
        return []

    def _function_candidates(self, text: str, position: int, name: str) -> list[str]:
        """Names to try, in PHP's order: imports, current namespace, global."""
        if name.startswith("\\"):
            return [name[1:]]

        if "\\" not in name:
            imports = self.locator.import_tables_at(text, position)[FUNCTION_IMPORTS]
            for imported in imports:
                if imported.alias.lower() == name.lower():
                    return [imported.fully_qualified_name]

        namespace = self.locator.namespace_at(text, position)
        if not namespace:
            return [name]
        if "\\" in name:
            return [f"{namespace}\\{name}"]
        return [f"{namespace}\\{name}", name]


def signature_information(
    name: str, parameters: tuple[ReflectionParameter, ...], return_types: Types
) -> SignatureInformation:
    """Label like `send(string $to, int $retries = 3): bool`."""
    labels = tuple(parameter_info(parameter) for parameter in parameters)
    label = f"{name}({', '.join(labels)})"
    if len(return_types) > 0:
        label += ": " + "|".join(t.short() for t in return_types)
    return SignatureInformation(
        label=label,
        parameters=tuple(ParameterInformation(text) for text in labels),
    )


def open_call(text: str, offset: int) -> tuple[int, int] | None:
    """
    Find the unclosed `(` before `offset` and the index of the argument the
    cursor is in. None when a statement boundary comes first.
    """
    depth = 0
    argument = 0
    pos = offset - 1
    while pos >= 0:
        char = text[pos]
        if char in ")]}":
            depth += 1
        elif char in "([{":
            if depth > 0:
                depth -= 1
            elif char == "(":
                return pos, argument
            elif char == "[":
                # inside an array literal: its commas are not argument separators
                argument = 0
            else:
                return None
        elif depth == 0:
            if char == ";":
                return None
            if char == ",":
                argument += 1
        pos -= 1
    return None
