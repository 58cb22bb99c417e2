"""
Class name completion from the workspace files.

Every PHP file in the workspace (narrowed by the name typed so far) is asked
for its best class candidate, and each file with a candidate yields exactly
one suggestion. Suggestions are produced lazily so the caller can stop early.
"""

from __future__ import annotations

from collections.abc import Iterator

from phpcompletor.core.suggestion import Range, Suggestion, SuggestionType
from phpcompletor.parser.nodes import Node, NodeKind, ResolvedName
from phpcompletor.workspace.file_to_class import ClassCandidate, FileToClassLocator
from phpcompletor.workspace.filesystem import FileRecord, Filesystem


class ClassQualifier:
    """Accepts the nodes class name completion applies to."""

    def could_complete(self, node: Node) -> Node | None:
        match node.kind:
            case NodeKind.QUALIFIED_NAME:
                return node
            case NodeKind.MEMBER_ACCESS | NodeKind.SCOPED_ACCESS | NodeKind.OTHER:
                return None


class ClassCompletor:
    def __init__(self, filesystem: Filesystem, file_to_class: FileToClassLocator):
        self.filesystem = filesystem
        self.file_to_class = file_to_class

    def qualifier(self) -> ClassQualifier:
        return ClassQualifier()

    def complete(self, node: Node, source: str, offset: int) -> Iterator[Suggestion]:
        files = self.filesystem.file_list().php_files()

        if node.kind is NodeKind.QUALIFIED_NAME:
            prefix = node.text
            files = files.filter(lambda record: record.filename.startswith(prefix))

        current_namespace = node.namespace
        imports = node.import_tables

        record: FileRecord
        for record in files:
            candidates = self.file_to_class.file_to_class_candidates(record.path)

            if candidates.none_found():
                continue

            best = candidates.best()
            yield Suggestion(
                type=SuggestionType.CLASS,
                name=best.name,
                short_description=str(best),
                class_import=class_name_for_import(best, imports, current_namespace),
                range=suggestion_range(node, offset),
            )


def class_name_for_import(
    candidate: ClassCandidate,
    imports: tuple[tuple[ResolvedName, ...], ...],
    current_namespace: str | None,
) -> str | None:
    """The name to import for `candidate`, or None when it is already reachable."""
    if (current_namespace or "") == (candidate.namespace or ""):
        return None

    for resolved_name in imports[0]:
        if str(candidate) == resolved_name.fully_qualified_name:
            return None

    return str(candidate)


def suggestion_range(node: Node, offset: int) -> Range:
    """Replace the whole name being typed, or insert at the cursor."""
    match node.kind:
        case NodeKind.QUALIFIED_NAME:
            return Range(node.start, node.end)
        case NodeKind.MEMBER_ACCESS | NodeKind.SCOPED_ACCESS | NodeKind.OTHER:
            return Range.point(offset)
