"""
LSP Capabilities Manager

This module manages LSP feature handlers using a plugin architecture.

Design Principles:
1. Plugin-based (add capabilities without modifying core)
2. Type-safe (abstract base class)
3. Composable (multiple handlers for same feature)
4. Testable (isolated capability handlers)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionList,
    CompletionParams,
    LogMessageParams,
    MessageType,
    SignatureHelp,
    SignatureHelpParams,
)


if TYPE_CHECKING:
    from phpcompletor.lsp.php_language_server import PhpLanguageServer


class Capability(ABC):
    """
    Base class for all LSP capability handlers.

    Each capability handles one LSP feature and decides whether it can
    handle a specific request based on context.
    """

    def __init__(self, server: PhpLanguageServer) -> None:
        self.server = server

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this capability."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this capability does."""
        pass

    @abstractmethod
    async def can_handle(self, params) -> bool:
        """Check if the capability can handle the request."""
        pass


class CompletionCapability(Capability):
    """Base class for completion capabilities."""

    @abstractmethod
    async def can_handle(self, params: CompletionParams) -> bool:
        """
        Check if this capability can handle the completion request.

        Returns True if this capability should provide completions
        for the current context.
        """
        pass

    @abstractmethod
    async def complete(self, params: CompletionParams) -> CompletionList:
        """
        Provide completion items.

        Only called if can_handle() returns True.
        """
        pass


class SignatureHelpCapability(Capability):
    """Base class for signature help capabilities."""

    @abstractmethod
    async def can_handle(self, params: SignatureHelpParams) -> bool:
        pass

    @abstractmethod
    async def signature_help(self, params: SignatureHelpParams) -> SignatureHelp | None:
        """Provide the signatures of the call around the cursor."""
        pass


class CapabilityManager:
    """
    Central manager for all LSP capabilities.

    Usage:
        # In server initialization
        ls.capability_manager = CapabilityManager(ls)
    """

    def __init__(
        self,
        server: PhpLanguageServer,
        capabilities: dict[str, Capability] | None = None,
    ):
        self.server = server

        # Default capabilities
        if capabilities is None:
            from phpcompletor.lsp.capabilities.completion_capabilities import (
                ClassCompletionCapability,
                MemberCompletionCapability,
            )
            from phpcompletor.lsp.capabilities.signature_help_capabilities import (
                CallSignatureHelpCapability,
            )

            capabilities = {
                "member_completion": MemberCompletionCapability(server),
                "class_completion": ClassCompletionCapability(server),
                "signature_help": CallSignatureHelpCapability(server),
            }

        self.capabilities = capabilities

    def get_capabilities_by_type(self, capability_type: type) -> list[Capability]:
        """Get all capabilities of a specific type (e.g., all CompletionCapability)."""
        return [
            cap
            for cap in self.capabilities.values()
            if isinstance(cap, capability_type)
        ]

    async def handle_completion(self, params: CompletionParams) -> CompletionList:
        """
        Handle completion requests by delegating to capable handlers.

        This aggregates results from all completion capabilities that
        can handle the request. A failing capability is logged and skipped.
        """
        all_items = []

        for capability in self.get_capabilities_by_type(CompletionCapability):
            try:
                if await capability.can_handle(params):
                    result = await capability.complete(params)  # pyright: ignore
                    all_items.extend(result.items)
            except Exception as e:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Completion error in {capability.name}: {e}"
                    )
                )

        return CompletionList(is_incomplete=False, items=all_items)

    async def handle_signature_help(self, params: SignatureHelpParams) -> SignatureHelp | None:
        """
        Handle signature help requests by delegating to capable handlers.

        Returns the first non-None result.
        """
        for capability in self.get_capabilities_by_type(SignatureHelpCapability):
            if await capability.can_handle(params):
                result = await capability.signature_help(params)  # pyright: ignore
                if result:
                    return result

        return None
