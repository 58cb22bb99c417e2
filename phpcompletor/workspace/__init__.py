"""Workspace collaborators: file listing and file to class lookup."""
from .file_to_class import ClassCandidate, ClassCandidates, FileToClass
from .filesystem import FileList, FileRecord, WorkspaceFilesystem

__all__ = [
    'ClassCandidate',
    'ClassCandidates',
    'FileToClass',
    'FileList',
    'FileRecord',
    'WorkspaceFilesystem',
]
