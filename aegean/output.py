"""Render values as text tables, JSON or a small flat YAML dialect."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping, Sequence
from typing import Any, TextIO

from aegean.types import to_wire

FORMAT_TEXT = "text"
FORMAT_JSON = "json"
FORMAT_YAML = "yaml"

_FORMATS = (FORMAT_TEXT, FORMAT_JSON, FORMAT_YAML)

_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)

_QUOTE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


def validate(format: str) -> None:
    """Raise ValueError unless ``format`` is text, json or yaml."""
    if format not in _FORMATS:
        raise ValueError(
            f"unsupported output format {_quote(format)} (use text|json|yaml)"
        )


def to_json(stream: TextIO, value: Any) -> None:
    """Write ``value`` as JSON indented by two spaces, followed by a newline."""
    text = json.dumps(_prepare(value), indent=2, ensure_ascii=False)
    for raw, escaped in _JSON_ESCAPES:
        text = text.replace(raw, escaped)
    stream.write(text + "\n")


def to_yaml(stream: TextIO, value: Any) -> None:
    """Write ``value`` as simple YAML with mapping keys in sorted order."""
    _write_yaml(stream, _prepare(value), 0)


def table(stream: TextIO, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    """Write a fixed-width table: a header line, a divider line, then the rows."""
    widths = [_width(header) for header in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], _width(cell))

    def write_row(cells: Sequence[str]) -> None:
        last = len(cells) - 1
        parts = [
            cell if i == last else _pad(cell, widths[i] if i < len(widths) else 0)
            for i, cell in enumerate(cells)
        ]
        stream.write("  ".join(parts) + "\n")

    write_row(headers)
    write_row(["-" * width for width in widths])
    for row in rows:
        write_row(row)


def _width(text: str) -> int:
    # Column widths count UTF-8 bytes.
    return len(text.encode("utf-8"))


def _pad(text: str, width: int) -> str:
    return text + " " * max(0, width - _width(text))


def _normalize_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _numbers(value: Any) -> Any:
    """Normalise numbers in already wire-shaped data, keeping key order."""
    if isinstance(value, dict):
        return {key: _numbers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_numbers(item) for item in value]
    if isinstance(value, bool):
        return value
    return _normalize_number(value)


def _prepare(value: Any) -> Any:
    """Turn ``value`` into plain JSON data; plain mappings get sorted keys."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return _normalize_number(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _numbers(to_wire(value))
    if isinstance(value, Mapping):
        return {str(key): _prepare(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [_prepare(item) for item in value]
    return to_wire(value)


def _write_yaml(stream: TextIO, value: Any, indent: int) -> None:
    prefix = "  " * indent
    if isinstance(value, dict):
        for key in sorted(value):
            child = value[key]
            if isinstance(child, (dict, list)):
                stream.write(f"{prefix}{key}:\n")
                _write_yaml(stream, child, indent + 1)
            else:
                stream.write(f"{prefix}{key}: {_yaml_scalar(child)}\n")
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, (dict, list)):
                stream.write(f"{prefix}-\n")
                _write_yaml(stream, item, indent + 1)
            else:
                stream.write(f"{prefix}- {_yaml_scalar(item)}\n")
    else:
        stream.write(_yaml_scalar(value) + "\n")


def _yaml_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        normalized = _normalize_number(value)
        text = str(normalized) if isinstance(normalized, int) else repr(value)
    else:
        text = str(value)
    if text == "":
        return '""'
    if any(ch in text for ch in ":#\n") or text.startswith(" ") or text.endswith(" "):
        return _quote(text)
    return text


def _quote(text: str) -> str:
    """Double-quote ``text`` with backslash escapes for unprintable characters."""
    parts = ['"']
    for ch in text:
        if ch in _QUOTE_ESCAPES:
            parts.append(_QUOTE_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        else:
            code = ord(ch)
            if code < 0x20 or code == 0x7F:
                parts.append(f"\\x{code:02x}")
            elif code < 0x10000:
                parts.append(f"\\u{code:04x}")
            else:
                parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)