"""
Completion capabilities.

Provides member completion after `->` / `::` and class name completion with
automatic `use` statements.
"""

import re

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionParams,
    LogMessageParams,
    MessageType,
    Position,
    Range,
    TextEdit,
)

from phpcompletor.core.suggestion import Response, Suggestion, SuggestionType
from phpcompletor.lsp.capabilities.capabilities import CompletionCapability

KIND_MAP = {
    SuggestionType.METHOD: CompletionItemKind.Method,
    SuggestionType.PROPERTY: CompletionItemKind.Property,
    SuggestionType.CONSTANT: CompletionItemKind.Constant,
    SuggestionType.CLASS: CompletionItemKind.Class,
}

USE_LINE_PATTERN = re.compile(r"^\s*use\s+[\\\w]")
NAMESPACE_LINE_PATTERN = re.compile(r"^\s*namespace\s+[\\\w]+\s*;")
OPEN_TAG_PATTERN = re.compile(r"^\s*<\?php")


def position_to_offset(source: str, position: Position) -> int:
    """Convert an LSP position to an offset in `source`."""
    lines = source.split("\n")
    offset = 0
    for i in range(min(position.line, len(lines))):
        offset += len(lines[i]) + 1

    if position.line < len(lines):
        offset += min(position.character, len(lines[position.line]))

    return min(offset, len(source))


def offset_to_position(source: str, offset: int) -> Position:
    """Convert an offset in `source` to an LSP position."""
    head = source[:offset]
    line = head.count("\n")
    return Position(line=line, character=len(head) - (head.rfind("\n") + 1))


def import_text_edit(source: str, fqn: str) -> TextEdit:
    """
    Edit inserting `use <fqn>;`.

    The statement goes after the last `use` line before the first class-like
    declaration, else after the namespace line, else after the open tag.
    """
    lines = source.split("\n")
    insert_line = 0

    for i, line in enumerate(lines):
        if re.match(r"^\s*(?:(?:abstract|final|readonly)\s+)*(?:class|interface|trait|enum)\s", line):
            break
        if USE_LINE_PATTERN.match(line) or NAMESPACE_LINE_PATTERN.match(line) or OPEN_TAG_PATTERN.match(line):
            insert_line = i + 1

    position = Position(line=insert_line, character=0)
    return TextEdit(range=Range(start=position, end=position), new_text=f"use {fqn};\n")


def to_completion_item(suggestion: Suggestion, source: str) -> CompletionItem:
    item = CompletionItem(
        label=suggestion.name,
        kind=KIND_MAP[suggestion.type],
        detail=suggestion.short_description,
    )

    # A point range is a pure insertion; the client replaces the typed word
    if suggestion.range is not None and not suggestion.range.is_empty():
        item.text_edit = TextEdit(
            range=Range(
                start=offset_to_position(source, suggestion.range.start),
                end=offset_to_position(source, suggestion.range.end),
            ),
            new_text=suggestion.name,
        )

    if suggestion.class_import:
        item.additional_text_edits = [import_text_edit(source, suggestion.class_import)]

    return item


class _EngineCompletionCapability(CompletionCapability):
    """Shared request plumbing: document lookup and result conversion."""

    def _document(self, params: CompletionParams) -> tuple[str, int]:
        doc = self.server.workspace.get_text_document(params.text_document.uri)
        source = doc.source
        return source, position_to_offset(source, params.position)

    def _to_completion_list(self, response: Response, source: str) -> CompletionList:
        items = [to_completion_item(suggestion, source) for suggestion in response.suggestions]

        for issue in response.issues:
            self.server.window_log_message(
                LogMessageParams(type=MessageType.Info, message=f"{self.name}: {issue}")
            )

        return CompletionList(is_incomplete=False, items=items)


class MemberCompletionCapability(_EngineCompletionCapability):
    """Completes methods, properties and constants of the accessed class."""

    @property
    def name(self) -> str:
        return "member_completion"

    @property
    def description(self) -> str:
        return "Complete class members after -> and ::"

    async def can_handle(self, params: CompletionParams) -> bool:
        source, offset = self._document(params)
        engine = self.server.create_engine(source)
        return engine.member_completor.could_complete(source, offset)

    async def complete(self, params: CompletionParams) -> CompletionList:
        source, offset = self._document(params)
        engine = self.server.create_engine(source)
        return self._to_completion_list(engine.member_completor.complete(source, offset), source)


class ClassCompletionCapability(_EngineCompletionCapability):
    """Completes class names found in the workspace."""

    @property
    def name(self) -> str:
        return "class_completion"

    @property
    def description(self) -> str:
        return "Complete class names from workspace files, adding use statements"

    async def can_handle(self, params: CompletionParams) -> bool:
        source, offset = self._document(params)
        engine = self.server.create_engine(source)
        if engine.class_completor is None or offset == 0:
            return False
        if engine.member_completor.could_complete(source, offset):
            return False
        node = engine.locator.node_at(source, offset - 1)
        return engine.class_completor.qualifier().could_complete(node) is not None

    async def complete(self, params: CompletionParams) -> CompletionList:
        source, offset = self._document(params)
        engine = self.server.create_engine(source)
        return self._to_completion_list(engine.complete(source, offset), source)
