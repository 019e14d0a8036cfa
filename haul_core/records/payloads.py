# haul_core/records/payloads.py
from __future__ import annotations

from typing import Any

from django.conf import settings

from haul_core.common.naming import to_camel
from haul_core.records.models import PAYLOAD_FIELDS, TrackingRecord


def scan_url(short_id: str) -> str:
    """Direct API URL a scanner opens: works the same online and offline."""
    base = getattr(settings, "HAUL_PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
    return f"{base}/api/info/{short_id}"


def public_payload(record: TrackingRecord) -> dict[str, Any]:
    """
    What gets encoded into the record's QR image. Carries shortId and the scan
    URL but never the internal primary key or contact details.
    """
    payload: dict[str, Any] = {"shortId": record.short_id, "url": scan_url(record.short_id)}
    for name in PAYLOAD_FIELDS:
        payload[to_camel(name)] = getattr(record, name)
    payload["createdAt"] = record.created_at
    return payload
