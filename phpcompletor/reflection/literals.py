"""
PHP literal values: parse default-value expressions and render them back
the way PHP's `var_export()` does.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

INT_PATTERN = re.compile(r"^[+-]?(0x[0-9a-fA-F]+|0b[01]+|\d+)$")
FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class RawLiteral:
    """An expression that is not a plain literal, e.g. `self::LIMIT`."""

    text: str


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on `separator` outside of brackets and quotes."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in "'\"":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    if "".join(current).strip():
        parts.append("".join(current))

    return [part.strip() for part in parts]


def parse_literal(text: str) -> object:
    """Convert a PHP literal expression to a Python value."""
    text = text.strip()
    lower = text.lower()

    if lower == "null":
        return None
    if lower in ("true", "false"):
        return lower == "true"

    if len(text) >= 2 and text[0] == text[-1] == "'":
        return re.sub(r"\\([\\'])", r"\1", text[1:-1])
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return re.sub(r'\\([\\"$])', r"\1", text[1:-1])

    if INT_PATTERN.match(text):
        return _parse_int(text)
    if FLOAT_PATTERN.match(text):
        return float(text)

    if text.startswith("[") and text.endswith("]"):
        return _parse_array(text[1:-1])
    if lower.startswith("array") and text.endswith(")"):
        inner = text[5:].strip()
        if inner.startswith("("):
            return _parse_array(inner[1:-1])

    return RawLiteral(text)


def _parse_int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("+-").lower()
    if digits.startswith("0x"):
        return sign * int(digits[2:], 16)
    if digits.startswith("0b"):
        return sign * int(digits[2:], 2)
    if len(digits) > 1 and digits.startswith("0") and set(digits) <= set("01234567"):
        return sign * int(digits, 8)
    return sign * int(digits)


def _parse_array(body: str) -> list | dict:
    elements = split_top_level(body)
    if not any(_split_pair(element) for element in elements):
        return [parse_literal(element) for element in elements]

    result: dict = {}
    next_index = 0
    for element in elements:
        pair = _split_pair(element)
        if pair is None:
            result[next_index] = parse_literal(element)
            next_index += 1
            continue
        key = parse_literal(pair[0])
        if isinstance(key, RawLiteral):
            key = key.text
        result[key] = parse_literal(pair[1])
        if isinstance(key, int):
            next_index = key + 1
    return result


def _split_pair(element: str) -> tuple[str, str] | None:
    parts = split_top_level(element.replace("=>", "\0"), "\0")
    if len(parts) == 2:
        return parts[0], parts[1]
    return None


def export(value: object, indent: str = "") -> str:
    """Render `value` like PHP's `var_export($value, true)`."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
    if isinstance(value, RawLiteral):
        return value.text
    if isinstance(value, list):
        value = dict(enumerate(value))
    if isinstance(value, dict):
        lines = ["array (\n"]
        for key, item in value.items():
            rendered = export(item, indent + "  ")
            if isinstance(item, (list, dict)):
                lines.append(f"{indent}  {export(key)} => \n{indent}  {rendered},\n")
            else:
                lines.append(f"{indent}  {export(key)} => {rendered},\n")
        lines.append(f"{indent})")
        return "".join(lines)
    return repr(value)


def export_inline(value: object) -> str:
    """`var_export()` output with line breaks removed."""
    return export(value).replace("\n", "")
