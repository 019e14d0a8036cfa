# haul_core/records/services.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from django.db import DatabaseError, connection
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from haul_core.artifacts import Artifact, QRArtifactStore
from haul_core.common.cache import LISTING_KEY, MISS, RecordCache, record_key, versioned_key
from haul_core.common.db import storage_atomic
from haul_core.common.errors import RecordExpired, StorageError
from haul_core.records.api.serializers import RecordSummarySerializer, TrackingRecordSerializer
from haul_core.records.models import (
    PAYLOAD_FIELDS,
    SYSTEM_ACTOR,
    HistoryEntry,
    OperationType,
    TrackingRecord,
)
from haul_core.records.payloads import public_payload
from haul_core.records.selectors import RecordSelector
from haul_core.records.versioning import RecordPatch, diff_record, plan_history, snapshot_values

logger = logging.getLogger(__name__)

RECORD_ARTIFACT_PREFIX = "qrcode"


def new_short_id() -> str:
    return f"qr_{uuid.uuid4().hex}"


def record_view(record: TrackingRecord) -> dict[str, Any]:
    """The full camelCase record view that is served and mirrored in the cache."""
    return dict(TrackingRecordSerializer(record).data)


def increment_scan(*, short_id: str) -> int:
    """
    Single-statement read-modify-write; returns the authoritative new count.
    Concurrent scans never lose an increment.
    """
    table = connection.ops.quote_name(TrackingRecord._meta.db_table)
    try:
        with connection.cursor() as cursor:
            cursor.execute(
                f"UPDATE {table} SET scan_count = scan_count + 1 WHERE short_id = %s RETURNING scan_count",
                [short_id],
            )
            row = cursor.fetchone()
    except DatabaseError as exc:
        logger.exception("scan counter update failed for %s", short_id)
        raise StorageError("scan counter update failed") from exc

    if row is None:
        raise RecordSelector.NotFound()
    return int(row[0])


@dataclass(frozen=True)
class CreateOutcome:
    record: TrackingRecord
    payload: dict[str, Any]
    artifact: Artifact


@dataclass(frozen=True)
class UpdateOutcome:
    record: TrackingRecord
    changed_fields: tuple[str, ...] = ()
    history_version: int | None = None

    @property
    def unchanged(self) -> bool:
        return not self.changed_fields


class RecordService:
    """
    Write-model operations for tracking records.
    - Create (row + INSERT history v1 + QR artifact, one transaction)
    - Update (row lock, change detection, conditional UPDATE snapshot)
    - Cached listing

    Cache writes and artifact bytes only happen after the transaction commits.
    """

    def __init__(self, *, cache: RecordCache, artifacts: QRArtifactStore):
        self.cache = cache
        self.artifacts = artifacts

    @classmethod
    def from_settings(cls) -> "RecordService":
        return cls(cache=RecordCache.from_settings(), artifacts=QRArtifactStore.from_settings())

    # ----------------------------
    # Create
    # ----------------------------
    def create_record(self, *, fields: dict[str, Any], actor: str | None = None) -> CreateOutcome:
        now = timezone.now()

        with storage_atomic("create record"):
            record = TrackingRecord.objects.create(
                short_id=new_short_id(),
                created_at=now,
                updated_at=now,
                **fields,
            )

            payload = public_payload(record)
            # EncodingError here rolls the insert back
            artifact = self.artifacts.render(RECORD_ARTIFACT_PREFIX, record.short_id, payload)

            record.qr_image_path = str(artifact.path)
            record.save(update_fields=["qr_image_path"])

            HistoryEntry.objects.create(
                record=record,
                version=1,
                operation_type=OperationType.INSERT,
                updated_by=actor or SYSTEM_ACTOR,
                updated_at=now,
                **snapshot_values(record),
            )

        self.artifacts.write(artifact)
        self.cache.set(record_key(record.short_id), record_view(record), ttl=self.cache.record_ttl)
        self.cache.invalidate(LISTING_KEY)

        logger.info("created record %s (truck %s)", record.short_id, record.truck_number)
        return CreateOutcome(record=record, payload=payload, artifact=artifact)

    # ----------------------------
    # Update
    # ----------------------------
    def update_record(self, *, short_id: str, patch: RecordPatch, actor: str | None = None) -> UpdateOutcome:
        artifact = None

        with storage_atomic("update record"):
            record = RecordSelector.get_record_for_update(short_id=short_id)

            changes = diff_record(record, patch)
            if not changes:
                logger.info("no changes for record %s", short_id)
                return UpdateOutcome(record=record)

            now = timezone.now()
            plan = plan_history(record)
            history_version = None
            if plan.snapshot:
                # pre-update state
                HistoryEntry.objects.create(
                    record=record,
                    version=plan.next_version,
                    operation_type=OperationType.UPDATE,
                    updated_by=actor or SYSTEM_ACTOR,
                    updated_at=now,
                    **snapshot_values(record),
                )
                history_version = plan.next_version

            for name, (_old, new) in changes.items():
                setattr(record, name, new)
            record.updated_at = now
            update_fields = [*changes, "updated_at"]

            if any(name in PAYLOAD_FIELDS for name in changes):
                artifact = self.artifacts.render(RECORD_ARTIFACT_PREFIX, record.short_id, public_payload(record))
                if record.qr_image_path != str(artifact.path):
                    record.qr_image_path = str(artifact.path)
                    update_fields.append("qr_image_path")

            record.save(update_fields=update_fields)

        if artifact is not None:
            self.artifacts.write(artifact)
        self.cache.set(record_key(record.short_id), record_view(record), ttl=self.cache.record_ttl)
        self.cache.invalidate(LISTING_KEY)

        logger.info(
            "updated record %s fields=%s history_version=%s",
            short_id,
            sorted(changes),
            history_version,
        )
        return UpdateOutcome(record=record, changed_fields=tuple(changes), history_version=history_version)

    # ----------------------------
    # Reads
    # ----------------------------
    def list_records(self) -> list[dict[str, Any]]:
        # read the generation before the query: a write committing in between
        # bumps it, so these rows land under a key nobody reads any more
        generation = self.cache.generation(LISTING_KEY)
        if generation is not None:
            cached = self.cache.get(versioned_key(LISTING_KEY, generation))
            if cached is not MISS:
                return cached

        rows = [dict(row) for row in RecordSummarySerializer(RecordSelector.list_records(), many=True).data]
        if generation is not None:
            self.cache.set(versioned_key(LISTING_KEY, generation), rows, ttl=self.cache.listing_ttl)
        return rows


def _view_is_expired(view: dict[str, Any], now) -> bool:
    raw = view.get("expiryAt")
    if not raw:
        return False
    expiry = parse_datetime(raw) if isinstance(raw, str) else raw
    return expiry is not None and expiry < now


class ScanService:
    """
    Read path behind a QR scan:
      cache lookup -> (store fallback) -> expiry gate -> counter increment -> cache refresh
    Expired records are neither counted nor re-cached. The refreshed view is
    rebuilt from the stored row, never from the (possibly stale) cached one.
    """

    def __init__(self, *, cache: RecordCache):
        self.cache = cache

    @classmethod
    def from_settings(cls) -> "ScanService":
        return cls(cache=RecordCache.from_settings())

    def scan(self, *, short_id: str) -> dict[str, Any]:
        key = record_key(short_id)

        view = self.cache.get(key)
        if view is MISS:
            view = record_view(RecordSelector.get_record(short_id=short_id))

        if _view_is_expired(view, timezone.now()):
            logger.info("scan rejected: record %s expired", short_id)
            raise RecordExpired(short_id)

        increment_scan(short_id=short_id)
        view = record_view(RecordSelector.get_record(short_id=short_id))
        self.cache.set(key, view, ttl=self.cache.record_ttl)
        return view
