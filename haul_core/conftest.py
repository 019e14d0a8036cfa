# haul_core/conftest.py
import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


class BrokenCacheBackend:
    """Stands in for an unreachable Redis: every call fails."""

    def _down(self, *args, **kwargs):
        raise ConnectionError("redis down")

    get = set = add = incr = delete = _down


def certification_payload(**overrides):
    """
    A complete truck certification as the certification app posts it
    (camelCase, loosely typed numbers).
    """
    data = {
        "projectName": "Hurricane Ida Cleanup",
        "client": "Parish of Jefferson",
        "event": "IDA-2021",
        "date": "2024-03-01",
        "primeContractor": "Gulf Debris LLC",
        "subContractor": "Bayou Haulers",
        "ownerName": "Dana Owner",
        "driverName": "Alex Driver",
        "phone": "555-0100",
        "email": "alex@example.com",
        "driverLicenseState": "LA",
        "driverLicenseNumber": "D1234567",
        "driverLicenseExpiry": "2027-06-30",
        "vehicleType": "Dump Truck",
        "truckNumber": "T-42",
        "sideboards": True,
        "openBack": False,
        "handLoader": False,
        "color": ["red", "white"],
        "make": "Mack",
        "model": "Granite",
        "vinRegistrationInfo": "1M2AX07C0DM012345",
        "licensePlateState": "LA",
        "licensePlateTagNumber": "ABC123",
        "licensePlateExpiry": "2026-12-31",
        "baseMeasurement": "24.5",
        "additions": "2",
        "deductions": "0.5",
        "vehicleWeight": "5,800 kg",
        "goodsWeight": "12000",
        "meta": {"inspector": "J. Smith"},
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def _artifacts_dir(settings, tmp_path):
    settings.HAUL_ARTIFACTS_DIR = tmp_path / "qr_codes"
    return settings.HAUL_ARTIFACTS_DIR


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def artifacts_dir(_artifacts_dir):
    return _artifacts_dir


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def created_record(db, api_client):
    """POST /api/generate and return the response body."""
    resp = api_client.post("/api/generate", certification_payload(), format="json")
    assert resp.status_code == 200, resp.data
    return resp.data
