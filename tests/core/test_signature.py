"""
Tests for phpcompletor/core/signature.py
"""

from phpcompletor.core.signature import ParameterInformation, SignatureHelp, SignatureInformation


def test_signature_help_to_dict():
    result = SignatureHelp(
        signatures=(
            SignatureInformation("send(string $to)", (ParameterInformation("string $to"),)),
        ),
        active_parameter=0,
    )

    assert result.to_dict() == {
        "signatures": [
            {"label": "send(string $to)", "parameters": [{"label": "string $to"}]},
        ],
        "active_signature": 0,
        "active_parameter": 0,
    }


def test_no_active_parameter_by_default():
    result = SignatureHelp(signatures=(SignatureInformation("hello()"),))

    assert result.active_signature == 0
    assert result.active_parameter is None
