# haul_core/common/naming.py
from __future__ import annotations


def to_camel(name: str) -> str:
    """snake_case -> camelCase (API field names)."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)
