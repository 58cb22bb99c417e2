"""
FileToClass: guess which class a PHP file declares.

The scan reads the namespace and class-like declarations of a file with
regular expressions, and ranks them so the declaration named after the file
(PSR-4 style) comes first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from lsprotocol.types import LogMessageParams, MessageType

from phpcompletor.reflection.class_parser import blank_comments

if TYPE_CHECKING:
    from phpcompletor.lsp.php_language_server import PhpLanguageServer


@dataclass(frozen=True)
class ClassCandidate:
    """A class-like name a file is believed to declare."""

    name: str
    namespace: str | None = None

    @classmethod
    def from_fqn(cls, fqn: str) -> ClassCandidate:
        namespace, _, name = fqn.lstrip("\\").rpartition("\\")
        return cls(name=name, namespace=namespace or None)

    def __str__(self) -> str:
        return f"{self.namespace}\\{self.name}" if self.namespace else self.name


class ClassCandidates:
    """Ranked candidates for one file, best first."""

    def __init__(self, candidates: list[ClassCandidate] | None = None):
        self._candidates = candidates or []

    def __iter__(self):
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def none_found(self) -> bool:
        return not self._candidates

    def best(self) -> ClassCandidate:
        if not self._candidates:
            raise LookupError("No class candidates found")
        return self._candidates[0]


class FileToClassLocator(Protocol):
    def file_to_class_candidates(self, path: str) -> ClassCandidates: ...


class FileToClass:
    """Reads class candidates from PHP files on disk."""

    def __init__(self, server: PhpLanguageServer | None = None) -> None:
        self.server = server

        self._namespace_pattern = re.compile(r"\bnamespace\s+([\w\\]+)\s*[;{]", re.IGNORECASE)
        self._class_pattern = re.compile(
            r"(?<![\w$:>])(?:(?:abstract|final|readonly)\s+)*"   # optional modifiers
            r"(?:class|interface|trait|enum)\s+(\w+)",            # declaration name
            re.IGNORECASE,
        )

    def file_to_class_candidates(self, path: str) -> ClassCandidates:
        """Candidates declared in `path`; empty when the file cannot be read."""
        file_path = Path(path)
        try:
            with open(file_path, "r", encoding="utf-8", errors="ignore") as f:
                content = f.read()
        except OSError as e:
            # Log error but continue
            if self.server:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Warning,
                        message=f"Error reading PHP file {file_path}: {e}",
                    )
                )
            return ClassCandidates()

        return self.candidates_from_source(content, file_path.stem)

    def candidates_from_source(self, content: str, stem: str) -> ClassCandidates:
        code = blank_comments(content)
        candidates = []

        for match in self._class_pattern.finditer(code):
            namespace = None
            for namespace_match in self._namespace_pattern.finditer(code, 0, match.start()):
                namespace = namespace_match.group(1).strip("\\")
            candidates.append(ClassCandidate(name=match.group(1), namespace=namespace))

        # Stable sort: declarations named after the file first
        candidates.sort(key=lambda candidate: candidate.name != stem)
        return ClassCandidates(candidates)
