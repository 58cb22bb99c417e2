"""
Signature help records: the signatures of the call around the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParameterInformation:
    label: str

    def to_dict(self) -> dict:
        return {"label": self.label}


@dataclass(frozen=True)
class SignatureInformation:
    """One callable signature, e.g. `send(string $to, int $retries = 3): bool`."""

    label: str
    parameters: tuple[ParameterInformation, ...] = ()

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "parameters": [p.to_dict() for p in self.parameters],
        }


@dataclass(frozen=True)
class SignatureHelp:
    """
    Result of one signature help request.

    `active_parameter` is None when the argument being typed has no
    matching parameter (or the callable takes none).
    """

    signatures: tuple[SignatureInformation, ...]
    active_signature: int = 0
    active_parameter: int | None = None

    def to_dict(self) -> dict:
        return {
            "signatures": [s.to_dict() for s in self.signatures],
            "active_signature": self.active_signature,
            "active_parameter": self.active_parameter,
        }
