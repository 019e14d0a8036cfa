# haul_core/common/sanitize.py
"""
Coercion helpers for the loosely-typed numbers and JSON documents that the
field and site monitor apps post ("5800kg", " 1,234.5 kg ", meta as a string).
"""
from __future__ import annotations

import json
import math
import re
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def clean_number(value: Any) -> float | None:
    """
    "5800kg" -> 5800.0, " 1,234.5 kg " -> 1234.5, None -> None.

    Everything except digits, "." and "-" is dropped. Anything that still does
    not parse to a finite number gives None. Never raises.

    "kg" or "" is None, not 0: a missing weight must not read as a real zero.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            cleaned = _NON_NUMERIC.sub("", str(value).strip().replace(",", ""))
            if not cleaned:
                return None
            number = float(cleaned)
    except (ValueError, OverflowError):
        return None

    return number if math.isfinite(number) else None


def parse_json_object(value: Any) -> dict:
    """
    Accepts a mapping or a JSON string encoding one. None / "" -> {}.
    Raises ValueError for anything else.
    """
    if value is None:
        return {}
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid JSON document") from exc
    if not isinstance(value, dict):
        raise ValueError("Expected a JSON object")
    return value
