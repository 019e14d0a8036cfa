# haul_core/records/versioning.py
"""
Change detection and history versioning for tracking records.

History rows are snapshots of the state *before* an update. The INSERT row
(version 1) already captures the freshly created state, so the first update
after creation is not snapshotted; every later changing update is, with
version = previous max + 1.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Any

from haul_core.records.models import (
    BUSINESS_FIELDS,
    NUMERIC_FIELDS,
    STRUCTURED_FIELDS,
    TrackingRecord,
)
from haul_core.records.selectors import RecordSelector


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class RecordPatch:
    """
    A partial update. Every attribute is either UNSET (absent from the request)
    or the already-coerced new value.
    """
    project_name: str = UNSET
    client: str = UNSET
    event: str = UNSET
    prime_contractor: str = UNSET
    sub_contractor: str = UNSET
    owner_name: str = UNSET
    driver_name: str = UNSET
    phone: str = UNSET
    email: str = UNSET
    driver_license_state: str = UNSET
    driver_license_number: str = UNSET
    vehicle_type: str = UNSET
    truck_number: str = UNSET
    custom_vehicle_type: str = UNSET
    make: str = UNSET
    model: str = UNSET
    vin_registration_info: str = UNSET
    license_plate_state: str = UNSET
    license_plate_tag_number: str = UNSET

    date: date | None = UNSET
    driver_license_expiry: date | None = UNSET
    license_plate_expiry: date | None = UNSET

    sideboards: bool | None = UNSET
    open_back: bool | None = UNSET
    hand_loader: bool | None = UNSET

    base_measurement: float | None = UNSET
    additions: float | None = UNSET
    deductions: float | None = UNSET
    vehicle_weight: float | None = UNSET
    goods_weight: float | None = UNSET

    color: list = UNSET
    meta: dict = UNSET

    expiry_at: datetime | None = UNSET

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "RecordPatch":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def present(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


def _same_value(name: str, current: Any, incoming: Any) -> bool:
    if name in NUMERIC_FIELDS:
        if current is None or incoming is None:
            return current is None and incoming is None
        return float(current) == float(incoming)
    # dict/list equality is deep; aware datetimes compare as instants
    return current == incoming


def diff_record(record: TrackingRecord, patch: RecordPatch) -> dict[str, tuple[Any, Any]]:
    """{field: (current, incoming)} for each supplied field that differs."""
    changes: dict[str, tuple[Any, Any]] = {}
    for name, incoming in patch.present().items():
        current = getattr(record, name)
        if not _same_value(name, current, incoming):
            changes[name] = (current, incoming)
    return changes


def should_snapshot(*, history_count: int, created_at: datetime, updated_at: datetime) -> bool:
    # the first update after creation never produces a snapshot
    has_been_updated = created_at is not None and updated_at is not None and updated_at != created_at
    return history_count >= 1 and has_been_updated


@dataclass(frozen=True)
class HistoryPlan:
    snapshot: bool
    next_version: int


def plan_history(record: TrackingRecord) -> HistoryPlan:
    total, latest = RecordSelector.history_stats(record_id=record.id)
    return HistoryPlan(
        snapshot=should_snapshot(
            history_count=total,
            created_at=record.created_at,
            updated_at=record.updated_at,
        ),
        next_version=latest + 1,
    )


def snapshot_values(record: TrackingRecord) -> dict[str, Any]:
    """Column values copied into a HistoryEntry."""
    values = {name: getattr(record, name) for name in BUSINESS_FIELDS}
    for name in STRUCTURED_FIELDS:
        # detach mutable documents from the live instance
        values[name] = copy.deepcopy(values[name])
    values["qr_image_path"] = record.qr_image_path
    values["scan_count"] = record.scan_count
    values["expiry_at"] = record.expiry_at
    return values
