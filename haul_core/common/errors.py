# haul_core/common/errors.py
from __future__ import annotations


class StorageError(Exception):
    """
    A read/write against the relational store failed.
    Raised after the enclosing transaction has been rolled back.
    """


class EncodingError(Exception):
    """
    QR artifact rendering failed. Raised inside the owning transaction so the
    row that would reference the artifact is rolled back with it.
    """


class RecordExpired(Exception):
    def __init__(self, short_id: str):
        super().__init__(f"Record {short_id} has expired")
        self.short_id = short_id
