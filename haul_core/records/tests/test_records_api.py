# haul_core/records/tests/test_records_api.py
import base64
from datetime import timedelta

import pytest
from django.utils import timezone

from haul_core.conftest import certification_payload
from haul_core.records.models import HistoryEntry, OperationType, TrackingRecord

pytestmark = pytest.mark.django_db

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _create(api_client, **overrides):
    resp = api_client.post("/api/generate", certification_payload(**overrides), format="json")
    assert resp.status_code == 200, resp.data
    return resp.data


def test_generate_creates_record_history_and_artifact(api_client, artifacts_dir):
    body = _create(api_client)
    short_id = body["shortId"]

    assert body["message"] == "QR generated successfully"
    assert short_id.startswith("qr_")
    assert base64.b64decode(body["base64"]).startswith(PNG_MAGIC)

    record = body["record"]
    assert record["scanCount"] == 0
    assert record["vehicleWeight"] == 5800.0
    assert record["driverName"] == "Alex Driver"
    assert record["createdAt"] == record["updatedAt"]

    path = artifacts_dir / f"qrcode_{short_id}.png"
    assert record["qrImagePath"] == str(path)
    assert path.read_bytes() == base64.b64decode(body["base64"])

    history = list(HistoryEntry.objects.filter(record__short_id=short_id))
    assert len(history) == 1
    assert history[0].version == 1
    assert history[0].operation_type == OperationType.INSERT
    assert history[0].updated_by == "system"


def test_qr_payload_carries_scan_url_but_no_internal_id(api_client):
    body = _create(api_client)
    payload = body["qrData"]

    assert payload["shortId"] == body["shortId"]
    assert payload["url"] == f"http://testserver/api/info/{body['shortId']}"
    assert "id" not in payload
    assert payload["truckNumber"] == "T-42"


def test_generate_composes_driver_name(api_client):
    body = _create(api_client, driverName=None, driverFirstName="Sam", driverLastName="Hauler")
    assert body["record"]["driverName"] == "Sam Hauler"


def test_generate_records_actor(api_client):
    body = _create(api_client, updatedBy="certifier@example.com")
    entry = HistoryEntry.objects.get(record__short_id=body["shortId"])
    assert entry.updated_by == "certifier@example.com"


def test_generate_requires_identifying_fields(api_client):
    resp = api_client.post("/api/generate", certification_payload(truckNumber=""), format="json")

    assert resp.status_code == 400
    err = resp.data["error"]
    assert err["code"] == "validation_error"
    assert err["message"] == "driverName, truckNumber, and driverLicenseNumber are required"
    assert err["details"]["missing"] == ["truckNumber"]
    assert TrackingRecord.objects.count() == 0


def test_generate_rejects_malformed_meta(api_client):
    resp = api_client.post("/api/generate", certification_payload(meta="{not json"), format="json")
    assert resp.status_code == 400
    assert "meta" in resp.data["error"]["details"]


def test_generate_accepts_meta_as_json_string(api_client):
    body = _create(api_client, meta='{"inspector": "K. Lee"}')
    assert body["record"]["meta"] == {"inspector": "K. Lee"}


def test_unparseable_number_is_stored_as_null(api_client):
    body = _create(api_client, goodsWeight="n/a")
    assert body["record"]["goodsWeight"] is None


def test_encoding_failure_rolls_back_create(api_client, monkeypatch):
    from haul_core.artifacts import qr
    from haul_core.common.errors import EncodingError

    def boom(payload):
        raise EncodingError("QR image could not be rendered")

    monkeypatch.setattr(qr, "encode_image", boom)

    resp = api_client.post("/api/generate", certification_payload(), format="json")
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "encoding_error"
    assert TrackingRecord.objects.count() == 0
    assert HistoryEntry.objects.count() == 0


def test_storage_failure_rolls_back_create(api_client, monkeypatch):
    from django.db import DatabaseError

    from haul_core.records import services

    def boom(record):
        raise DatabaseError("history insert failed")

    monkeypatch.setattr(services, "snapshot_values", boom)

    resp = api_client.post("/api/generate", certification_payload(), format="json")
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "storage_error"
    assert TrackingRecord.objects.count() == 0


# ----------------------------
# Scan
# ----------------------------

def test_scan_increments_count(api_client):
    short_id = _create(api_client)["shortId"]

    counts = [api_client.get(f"/api/info/{short_id}").data["scanCount"] for _ in range(3)]

    assert counts == [1, 2, 3]
    assert TrackingRecord.objects.get(short_id=short_id).scan_count == 3


def test_scan_returns_full_record(api_client):
    short_id = _create(api_client)["shortId"]
    resp = api_client.get(f"/api/info/{short_id}")

    assert resp.status_code == 200
    assert resp.data["shortId"] == short_id
    assert resp.data["truckNumber"] == "T-42"
    assert resp.data["url"].endswith(f"/api/info/{short_id}")


def test_scan_counts_on_cold_cache(api_client):
    from django.core.cache import cache

    short_id = _create(api_client)["shortId"]
    api_client.get(f"/api/info/{short_id}")
    cache.clear()

    resp = api_client.get(f"/api/info/{short_id}")
    assert resp.data["scanCount"] == 2


def test_scan_unknown_record_is_404(api_client):
    resp = api_client.get("/api/info/qr_missing")

    assert resp.status_code == 404
    assert resp.data["error"]["code"] == "not_found"
    assert resp.data["error"]["message"] == "QR record not found"


def test_scan_expired_record_is_410_and_not_counted(api_client):
    past = (timezone.now() - timedelta(days=1)).isoformat()
    short_id = _create(api_client, expiryAt=past)["shortId"]

    resp = api_client.get(f"/api/info/{short_id}")

    assert resp.status_code == 410
    assert resp.data["error"]["code"] == "expired"
    assert TrackingRecord.objects.get(short_id=short_id).scan_count == 0


def test_scan_future_expiry_is_served(api_client):
    future = (timezone.now() + timedelta(days=30)).isoformat()
    short_id = _create(api_client, expiryAt=future)["shortId"]

    resp = api_client.get(f"/api/info/{short_id}")
    assert resp.status_code == 200
    assert resp.data["scanCount"] == 1


# ----------------------------
# Update + history
# ----------------------------

def test_update_without_changes_is_a_noop(api_client):
    body = _create(api_client)
    short_id = body["shortId"]

    resp = api_client.put(
        f"/api/info/{short_id}",
        {"driverName": "Alex Driver", "vehicleWeight": "5800", "meta": {"inspector": "J. Smith"}},
        format="json",
    )

    assert resp.status_code == 200
    assert resp.data["message"] == "No changes detected. Record unchanged."
    assert resp.data["record"]["updatedAt"] == body["record"]["updatedAt"]
    assert HistoryEntry.objects.filter(record__short_id=short_id).count() == 1


def test_first_update_skips_snapshot_second_adds_version_2(api_client):
    short_id = _create(api_client)["shortId"]

    first = api_client.put(f"/api/info/{short_id}", {"meta": {"inspector": "K. Lee"}}, format="json")
    assert first.status_code == 200
    assert first.data["message"] == "QR record updated successfully"
    assert first.data["changedFields"] == ["meta"]
    assert first.data["historyVersion"] is None
    assert HistoryEntry.objects.filter(record__short_id=short_id).count() == 1

    second = api_client.put(
        f"/api/info/{short_id}",
        {"meta": {"inspector": "M. Ortiz"}, "updatedBy": "supervisor"},
        format="json",
    )
    assert second.data["historyVersion"] == 2

    snapshot = HistoryEntry.objects.get(record__short_id=short_id, version=2)
    assert snapshot.operation_type == OperationType.UPDATE
    assert snapshot.updated_by == "supervisor"
    # pre-update state
    assert snapshot.meta == {"inspector": "K. Lee"}


def test_history_versions_are_gapless(api_client):
    short_id = _create(api_client)["shortId"]

    for weight in ("13000", "14000", "15000", "16000"):
        resp = api_client.put(f"/api/info/{short_id}", {"goodsWeight": weight}, format="json")
        assert resp.status_code == 200

    resp = api_client.get(f"/api/info/{short_id}/history")
    assert resp.status_code == 200
    assert [entry["version"] for entry in resp.data] == [1, 2, 3, 4]
    assert [entry["goodsWeight"] for entry in resp.data] == [12000.0, 13000.0, 14000.0, 15000.0]


def test_update_refreshes_cached_record(api_client):
    short_id = _create(api_client)["shortId"]
    api_client.get(f"/api/info/{short_id}")  # warm the cache

    resp = api_client.put(f"/api/info/{short_id}", {"driverName": "Sam Hauler"}, format="json")
    assert resp.data["changedFields"] == ["driverName"]

    scanned = api_client.get(f"/api/info/{short_id}").data
    assert scanned["driverName"] == "Sam Hauler"
    assert scanned["scanCount"] == 2


def test_update_rerenders_artifact_when_payload_changes(api_client, artifacts_dir):
    short_id = _create(api_client)["shortId"]
    path = artifacts_dir / f"qrcode_{short_id}.png"
    before = path.read_bytes()

    api_client.put(f"/api/info/{short_id}", {"truckNumber": "T-99"}, format="json")

    assert path.read_bytes() != before


def test_update_unknown_record_is_404(api_client):
    resp = api_client.put("/api/info/qr_missing", {"driverName": "x"}, format="json")
    assert resp.status_code == 404
    assert resp.data["error"]["message"] == "QR record not found"


def test_history_unknown_record_is_404(api_client):
    resp = api_client.get("/api/info/qr_missing/history")
    assert resp.status_code == 404


# ----------------------------
# Listing
# ----------------------------

def test_listing_is_newest_first_and_invalidated_on_writes(api_client):
    first = _create(api_client, truckNumber="T-1")["shortId"]
    second = _create(api_client, truckNumber="T-2")["shortId"]

    resp = api_client.get("/records")
    assert resp.status_code == 200
    assert [row["shortId"] for row in resp.data] == [second, first]

    third = _create(api_client, truckNumber="T-3")["shortId"]
    assert [row["shortId"] for row in api_client.get("/records").data] == [third, second, first]

    api_client.put(f"/api/info/{first}", {"ownerName": "New Owner"}, format="json")
    rows = {row["shortId"]: row for row in api_client.get("/records").data}
    assert rows[first]["ownerName"] == "New Owner"


def test_listing_served_from_cache(api_client):
    from django.core.cache import cache

    from haul_core.common.cache import LISTING_KEY, RecordCache, versioned_key

    _create(api_client)
    api_client.get("/records")

    generation = RecordCache.from_settings().generation(LISTING_KEY)
    cache.set(versioned_key(LISTING_KEY, generation), [{"shortId": "qr_cached"}])
    assert api_client.get("/records").data == [{"shortId": "qr_cached"}]


def test_listing_read_racing_an_update_is_not_kept(api_client, monkeypatch):
    from haul_core.records.selectors import RecordSelector
    from haul_core.records.services import RecordService
    from haul_core.records.versioning import RecordPatch

    short_id = _create(api_client)["shortId"]
    original = RecordSelector.list_records

    def list_then_update():
        rows = list(original())
        # an update commits after the listing query, before its cache write
        RecordService.from_settings().update_record(
            short_id=short_id,
            patch=RecordPatch(owner_name="New Owner"),
        )
        return rows

    monkeypatch.setattr(RecordSelector, "list_records", staticmethod(list_then_update))
    api_client.get("/records")
    monkeypatch.setattr(RecordSelector, "list_records", staticmethod(original))

    rows = api_client.get("/records").data
    assert rows[0]["ownerName"] == "New Owner"


def test_scan_refreshes_from_store_not_stale_cache(api_client):
    from django.core.cache import cache

    from haul_core.common.cache import record_key

    short_id = _create(api_client)["shortId"]
    api_client.get(f"/api/info/{short_id}")  # warm the cache

    # committed in the store, cache not yet refreshed
    TrackingRecord.objects.filter(short_id=short_id).update(driver_name="Sam Hauler")

    resp = api_client.get(f"/api/info/{short_id}")
    assert resp.data["driverName"] == "Sam Hauler"
    assert resp.data["scanCount"] == 2
    assert cache.get(record_key(short_id))["driverName"] == "Sam Hauler"


def test_text_longer_than_its_column_is_rejected(api_client):
    resp = api_client.post("/api/generate", certification_payload(phone="5" * 65), format="json")

    assert resp.status_code == 400
    assert "phone" in resp.data["error"]["details"]
    assert TrackingRecord.objects.count() == 0


def test_single_word_text_fields_are_accepted(api_client):
    body = _create(api_client, client="Parish", event="IDA", phone="555", email="a@b.c", make="Mack", model="LR")
    record = body["record"]
    assert (record["client"], record["event"], record["make"], record["model"]) == ("Parish", "IDA", "Mack", "LR")


def test_storage_failure_rolls_back_update(api_client, monkeypatch):
    from django.db import DatabaseError

    from haul_core.records import services

    short_id = _create(api_client)["shortId"]
    api_client.put(f"/api/info/{short_id}", {"goodsWeight": "13000"}, format="json")

    def boom(record):
        raise DatabaseError("history insert failed")

    # the second update is snapshot-eligible
    monkeypatch.setattr(services, "snapshot_values", boom)

    resp = api_client.put(f"/api/info/{short_id}", {"goodsWeight": "14000"}, format="json")
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "storage_error"

    record = TrackingRecord.objects.get(short_id=short_id)
    assert record.goods_weight == 13000.0
    assert HistoryEntry.objects.filter(record=record).count() == 1


def test_unreachable_cache_does_not_fail_requests(api_client, monkeypatch):
    from haul_core.common.cache import RecordCache
    from haul_core.conftest import BrokenCacheBackend

    monkeypatch.setattr(
        RecordCache,
        "from_settings",
        classmethod(lambda cls: cls(BrokenCacheBackend(), record_ttl=60, listing_ttl=60)),
    )

    short_id = _create(api_client)["shortId"]

    resp = api_client.put(f"/api/info/{short_id}", {"driverName": "Sam Hauler"}, format="json")
    assert resp.status_code == 200

    resp = api_client.get(f"/api/info/{short_id}")
    assert resp.status_code == 200
    assert resp.data["driverName"] == "Sam Hauler"
    assert resp.data["scanCount"] == 1

    resp = api_client.get("/records")
    assert resp.status_code == 200
    assert [row["shortId"] for row in resp.data] == [short_id]


def test_noop_update_leaves_cache_untouched(api_client, monkeypatch):
    from haul_core.common.cache import RecordCache

    short_id = _create(api_client)["shortId"]

    calls = []
    monkeypatch.setattr(RecordCache, "set", lambda self, key, value, ttl=None: calls.append(("set", key)))
    monkeypatch.setattr(RecordCache, "invalidate", lambda self, key: calls.append(("invalidate", key)))

    resp = api_client.put(f"/api/info/{short_id}", {"truckNumber": "T-42"}, format="json")

    assert resp.data["message"] == "No changes detected. Record unchanged."
    assert calls == []
