"""Human readable ``field: value`` rendering of entities."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Mapping

__all__ = ["to_text"]

_INDENT = "  "


def to_text(entity: Any) -> str:
    """Render a dataclass entity, one field per line.

    Fields holding their zero value are left out. Output depends only on the
    entity, so identical entities always render identically.
    """

    if not is_dataclass(entity) or isinstance(entity, type):
        raise TypeError(f"cannot render {type(entity).__name__}")
    lines: list[str] = []
    _render_fields(entity, 0, lines)
    return "\n".join(lines) + "\n" if lines else ""


def _render_fields(entity: Any, depth: int, lines: list[str]) -> None:
    for item in fields(entity):
        _render_value(item.name, getattr(entity, item.name), depth, lines)


def _render_value(name: str, value: Any, depth: int, lines: list[str]) -> None:
    prefix = _INDENT * depth
    if _is_zero(value):
        return
    if is_dataclass(value):
        lines.append(f"{prefix}{name}: <")
        _render_fields(value, depth + 1, lines)
        lines.append(f"{prefix}>")
        return
    if isinstance(value, Mapping):
        for key in sorted(value):
            lines.append(f"{prefix}{name}: <")
            lines.append(f"{prefix}{_INDENT}key: {_scalar(key)}")
            _render_value("value", value[key], depth + 1, lines)
            lines.append(f"{prefix}>")
        return
    if isinstance(value, (list, tuple)):
        for element in value:
            _render_value(name, element, depth, lines)
        return
    lines.append(f"{prefix}{name}: {_scalar(value)}")


def _is_zero(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, int, float)) and not isinstance(value, Enum):
        return not value
    return False


def _scalar(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(str(value), ensure_ascii=False)
