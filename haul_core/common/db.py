# haul_core/common/db.py
from __future__ import annotations

import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction

from haul_core.common.errors import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def storage_atomic(operation: str):
    """
    transaction.atomic() for multi-statement mutations.

    Any DatabaseError raised inside the block rolls the whole transaction back
    and surfaces as StorageError. Domain exceptions (NotFound, EncodingError, ...)
    also roll back but propagate unchanged.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception("%s failed; transaction rolled back", operation)
        raise StorageError(f"{operation} failed") from exc
