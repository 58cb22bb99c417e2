from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from phpcompletor.config import CompletorConfig


@dataclass(frozen=True)
class FileRecord:
    """A file in the workspace."""

    path: str
    filename: str

    @classmethod
    def from_path(cls, path: Path) -> FileRecord:
        return cls(path=str(path), filename=path.name)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lstrip(".").lower()


class FileList:
    """
    Lazy, filterable sequence of file records.

    Filters are applied while iterating, so nothing is read from disk until
    the list is consumed.
    """

    def __init__(
        self,
        records: Callable[[], Iterable[FileRecord]],
        php_extensions: tuple[str, ...] = ("php",),
    ):
        self._records = records
        self._php_extensions = php_extensions

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records())

    def filter(self, predicate: Callable[[FileRecord], bool]) -> FileList:
        source = self._records
        return FileList(
            lambda: (record for record in source() if predicate(record)),
            self._php_extensions,
        )

    def php_files(self) -> FileList:
        return self.filter(lambda record: record.extension in self._php_extensions)

    @classmethod
    def from_records(cls, records: Iterable[FileRecord]) -> FileList:
        records = list(records)
        return cls(lambda: iter(records))


class Filesystem(Protocol):
    def file_list(self) -> FileList: ...


class WorkspaceFilesystem:
    """Lists the files under a workspace root, skipping excluded directories."""

    def __init__(self, root: Path, config: CompletorConfig | None = None):
        self.root = root
        self.config = config or CompletorConfig()

    def file_list(self) -> FileList:
        return FileList(self._walk, self.config.file_extensions)

    def _walk(self) -> Iterator[FileRecord]:
        for root, dirs, files in os.walk(self.root):
            # Prune in place so os.walk does not descend
            dirs[:] = sorted(d for d in dirs if d not in self.config.exclude_dirs)
            for file in sorted(files):
                yield FileRecord.from_path(Path(root) / file)
