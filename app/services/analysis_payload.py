"""Typed accessors over loosely-structured webhook payloads.

Upstream key casing is not guaranteed, so every read goes through
``get_field``: exact key first, then the first key whose lowercase form
matches. ``MISSING`` distinguishes an absent key from an explicit ``null``.
"""

from __future__ import annotations

import json
import math
from typing import Any

MISSING: Any = object()


def get_field(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict):
        return MISSING
    if key in obj:
        return obj[key]
    target = key.lower()
    for candidate in obj:
        if isinstance(candidate, str) and candidate.lower() == target:
            return obj[candidate]
    return MISSING


def coerce_number(value: Any) -> float | None:
    """Return a finite float for numbers and numeric strings, else None."""
    if value is MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def get_number(obj: Any, key: str, default: float) -> float:
    number = coerce_number(get_field(obj, key))
    return default if number is None else number


def _list_item_text(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, (dict, list)):
        return json.dumps(item, ensure_ascii=False)
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item).strip()


def get_list(obj: Any, key: str) -> list[str]:
    value = get_field(obj, key)
    if isinstance(value, list):
        items = (_list_item_text(item) for item in value)
        return [item for item in items if item]
    if isinstance(value, str):
        return [segment.strip() for segment in value.split(",") if segment.strip()]
    return []


def as_text(value: Any) -> str | None:
    """String form of a present, non-empty value; None when the caller should fall back."""
    if value is MISSING or value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, bool):
        return "true" if value else None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False) if value else None
    if isinstance(value, (int, float)) and value == 0:
        return None
    return str(value)


def get_text(obj: Any, *keys: str) -> str | None:
    """First non-empty text among ``keys``, read in order."""
    for key in keys:
        text = as_text(get_field(obj, key))
        if text is not None:
            return text
    return None
