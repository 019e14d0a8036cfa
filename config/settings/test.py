# config/settings/test.py
import tempfile
from pathlib import Path

from .base import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "haul-tests",
    }
}

HAUL_PUBLIC_BASE_URL = "http://testserver"
HAUL_ARTIFACTS_DIR = Path(tempfile.gettempdir()) / "haul-qr-tests"

# let pytest's caplog see application logs
LOGGING["loggers"]["haul_core"].update({"handlers": [], "propagate": True})  # noqa: F405
