"""
Signature help capability.

Shows the parameters of the function, method or constructor being called
while the user types its arguments.
"""

from lsprotocol.types import (
    LogMessageParams,
    MessageType,
    ParameterInformation,
    SignatureHelp,
    SignatureHelpParams,
    SignatureInformation,
)

from phpcompletor.core import signature
from phpcompletor.exceptions import CouldNotHelpWithSignature
from phpcompletor.lsp.capabilities.capabilities import SignatureHelpCapability
from phpcompletor.lsp.capabilities.completion_capabilities import position_to_offset


def to_lsp_signature_help(result: signature.SignatureHelp) -> SignatureHelp:
    return SignatureHelp(
        signatures=[
            SignatureInformation(
                label=information.label,
                parameters=[ParameterInformation(label=p.label) for p in information.parameters],
            )
            for information in result.signatures
        ],
        active_signature=result.active_signature,
        active_parameter=result.active_parameter,
    )


class CallSignatureHelpCapability(SignatureHelpCapability):
    """Signature of the call around the cursor."""

    @property
    def name(self) -> str:
        return "signature_help"

    @property
    def description(self) -> str:
        return "Show function and method signatures inside argument lists"

    async def can_handle(self, params: SignatureHelpParams) -> bool:
        return True

    async def signature_help(self, params: SignatureHelpParams) -> SignatureHelp | None:
        doc = self.server.workspace.get_text_document(params.text_document.uri)
        source = doc.source
        offset = position_to_offset(source, params.position)

        try:
            result = self.server.create_signature_helper(source).signature_help(source, offset)
        except CouldNotHelpWithSignature as e:
            self.server.window_log_message(
                LogMessageParams(type=MessageType.Log, message=f"{self.name}: {e}")
            )
            return None

        return to_lsp_signature_help(result)
