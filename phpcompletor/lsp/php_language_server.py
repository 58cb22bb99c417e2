from __future__ import annotations

from pathlib import Path

from pygls.lsp.server import LanguageServer

from phpcompletor.completor.class_completor import ClassCompletor
from phpcompletor.completor.class_member_completor import ClassMemberCompletor
from phpcompletor.completor.signature_helper import SignatureHelper
from phpcompletor.config import CompletorConfig
from phpcompletor.engine import CompletionEngine
from phpcompletor.lsp.capabilities.capabilities import CapabilityManager
from phpcompletor.reflection.source_reflector import SourceReflector
from phpcompletor.workspace.file_to_class import FileToClass
from phpcompletor.workspace.filesystem import WorkspaceFilesystem


class PhpLanguageServer(LanguageServer):
    """
    Custom Language Server with completion-specific attributes.

    Attributes:
        workspace_root: Root of the opened workspace, None until initialized
        config: Settings read from the workspace configuration file
        capability_manager: Dispatches requests to capabilities
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.workspace_root: Path | None = None
        self.config: CompletorConfig = CompletorConfig()
        self.capability_manager: CapabilityManager | None = None

    def create_engine(self, source: str) -> CompletionEngine:
        """
        Build the completion engine for one request.

        Everything created here belongs to the request: the reflector only
        knows the current document and the workspace files it reads.
        """
        filesystem = (
            WorkspaceFilesystem(self.workspace_root, self.config)
            if self.workspace_root
            else None
        )
        reflector = SourceReflector(sources=[source], filesystem=filesystem)

        return CompletionEngine(
            member_completor=ClassMemberCompletor(reflector),
            class_completor=(
                ClassCompletor(filesystem, FileToClass(server=self))
                if filesystem
                else None
            ),
            max_suggestions=self.config.max_suggestions,
        )

    def create_signature_helper(self, source: str) -> SignatureHelper:
        """Build a request-scoped signature helper for `source`."""
        filesystem = (
            WorkspaceFilesystem(self.workspace_root, self.config)
            if self.workspace_root
            else None
        )
        return SignatureHelper(SourceReflector(sources=[source], filesystem=filesystem))
