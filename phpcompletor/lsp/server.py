from pathlib import Path

from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_SIGNATURE_HELP,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    SignatureHelpOptions,
    SignatureHelpParams,
)

from phpcompletor.config import load_config
from phpcompletor.exceptions import ConfigError
from phpcompletor.lsp.capabilities.capabilities import CapabilityManager
from phpcompletor.lsp.php_language_server import PhpLanguageServer


def create_server() -> PhpLanguageServer:
    """
    Creates and returns a configured Language Server instance.

    The LanguageServer class from pygls handles:
    - JSON-RPC communication with clients (editors)
    - Request/response lifecycle
    - Notifications and event handling
    """
    server = PhpLanguageServer("phpcompletor", "0.1.0")

    @server.feature(INITIALIZE)
    def initialize(ls: PhpLanguageServer, params: InitializeParams):
        """
        Initialize the server and set up any necessary state.
        """

        # Get workspace root from LSP params
        if params.root_uri:
            ls.workspace_root = Path(params.root_uri.replace("file://", ""))

        if ls.workspace_root is None:
            ls.window_log_message(
                LogMessageParams(
                    MessageType.Info, "No workspace root, class completion disabled"
                )
            )
        else:
            try:
                ls.config = load_config(ls.workspace_root)
            except ConfigError as e:
                ls.window_log_message(
                    LogMessageParams(MessageType.Warning, f"{e}; using defaults")
                )

        # Initialize capability manager
        ls.capability_manager = CapabilityManager(ls)

    @server.feature(
        TEXT_DOCUMENT_COMPLETION,
        CompletionOptions(trigger_characters=[">", ":", "\\"]),
    )
    async def completion(ls: PhpLanguageServer, params: CompletionParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_completion(params)
        return CompletionList(is_incomplete=False, items=[])

    @server.feature(
        TEXT_DOCUMENT_SIGNATURE_HELP,
        SignatureHelpOptions(trigger_characters=["(", ","]),
    )
    async def signature_help(ls: PhpLanguageServer, params: SignatureHelpParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_signature_help(params)
        return None

    return server
