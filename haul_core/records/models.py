# haul_core/records/models.py
from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone

SYSTEM_ACTOR = "system"

# Field groups drive boundary coercion, change detection and history snapshots.
TEXT_FIELDS = (
    "project_name",
    "client",
    "event",
    "prime_contractor",
    "sub_contractor",
    "owner_name",
    "driver_name",
    "phone",
    "email",
    "driver_license_state",
    "driver_license_number",
    "vehicle_type",
    "truck_number",
    "custom_vehicle_type",
    "make",
    "model",
    "vin_registration_info",
    "license_plate_state",
    "license_plate_tag_number",
)
DATE_FIELDS = ("date", "driver_license_expiry", "license_plate_expiry")
FLAG_FIELDS = ("sideboards", "open_back", "hand_loader")
NUMERIC_FIELDS = ("base_measurement", "additions", "deductions", "vehicle_weight", "goods_weight")
STRUCTURED_FIELDS = ("color", "meta")

BUSINESS_FIELDS = TEXT_FIELDS + DATE_FIELDS + FLAG_FIELDS + NUMERIC_FIELDS + STRUCTURED_FIELDS

# Fields a PUT may change.
PATCHABLE_FIELDS = BUSINESS_FIELDS + ("expiry_at",)

# Fields encoded into the record's QR payload; changing one re-renders the image.
PAYLOAD_FIELDS = (
    "project_name",
    "client",
    "event",
    "prime_contractor",
    "sub_contractor",
    "owner_name",
    "driver_name",
    "vehicle_type",
    "truck_number",
    "sideboards",
    "open_back",
    "hand_loader",
    "color",
    "make",
    "model",
    "base_measurement",
    "additions",
    "deductions",
    "vehicle_weight",
    "goods_weight",
    "expiry_at",
    "meta",
)


class OperationType(models.TextChoices):
    INSERT = "INSERT", "Insert"
    UPDATE = "UPDATE", "Update"


class CertificationFields(models.Model):
    """
    Business fields of a truck certification. Shared by the live record and
    its history snapshots.
    """
    project_name = models.CharField(max_length=255, blank=True, default="")
    client = models.CharField(max_length=255, blank=True, default="")
    event = models.CharField(max_length=255, blank=True, default="")
    date = models.DateField(null=True, blank=True)
    prime_contractor = models.CharField(max_length=255, blank=True, default="")
    sub_contractor = models.CharField(max_length=255, blank=True, default="")

    owner_name = models.CharField(max_length=255, blank=True, default="")
    driver_name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=64, blank=True, default="")
    email = models.CharField(max_length=255, blank=True, default="")
    driver_license_state = models.CharField(max_length=64, blank=True, default="")
    driver_license_number = models.CharField(max_length=128, blank=True, default="")
    driver_license_expiry = models.DateField(null=True, blank=True)

    vehicle_type = models.CharField(max_length=128, blank=True, default="")
    truck_number = models.CharField(max_length=128, blank=True, default="")
    custom_vehicle_type = models.CharField(max_length=128, blank=True, default="")
    sideboards = models.BooleanField(null=True, blank=True)
    open_back = models.BooleanField(null=True, blank=True)
    hand_loader = models.BooleanField(null=True, blank=True)
    color = models.JSONField(default=list, blank=True)
    make = models.CharField(max_length=128, blank=True, default="")
    model = models.CharField(max_length=128, blank=True, default="")
    vin_registration_info = models.CharField(max_length=255, blank=True, default="")
    license_plate_state = models.CharField(max_length=64, blank=True, default="")
    license_plate_tag_number = models.CharField(max_length=64, blank=True, default="")
    license_plate_expiry = models.DateField(null=True, blank=True)

    # measurements (cubic yards / weights as reported by the monitors)
    base_measurement = models.FloatField(null=True, blank=True)
    additions = models.FloatField(null=True, blank=True)
    deductions = models.FloatField(null=True, blank=True)
    vehicle_weight = models.FloatField(null=True, blank=True)
    goods_weight = models.FloatField(null=True, blank=True)

    meta = models.JSONField(default=dict, blank=True)

    class Meta:
        abstract = True


class TrackingRecord(CertificationFields):
    """
    One certified truck. Looked up by short_id, which is what the QR code carries.

    created_at/updated_at are written explicitly (not auto_now): they are equal
    until the first real update, and history versioning depends on that.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    short_id = models.CharField(max_length=64, unique=True, editable=False)

    scan_count = models.PositiveIntegerField(default=0)
    expiry_at = models.DateTimeField(null=True, blank=True)
    qr_image_path = models.CharField(max_length=512, blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now, db_index=True, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "records_tracking_record"
        indexes = [
            models.Index(fields=["truck_number"]),
        ]

    def __str__(self) -> str:
        return f"{self.short_id} ({self.truck_number})"


class HistoryEntry(CertificationFields):
    """
    Immutable snapshot of a TrackingRecord. Append-only; version is gapless
    per record starting at 1 (the INSERT snapshot).
    """
    record = models.ForeignKey(TrackingRecord, on_delete=models.PROTECT, related_name="history")
    version = models.PositiveIntegerField()
    operation_type = models.CharField(max_length=16, choices=OperationType.choices)

    qr_image_path = models.CharField(max_length=512, blank=True, default="")
    scan_count = models.PositiveIntegerField(default=0)
    expiry_at = models.DateTimeField(null=True, blank=True)

    updated_by = models.CharField(max_length=255, default=SYSTEM_ACTOR)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "records_tracking_record_history"
        ordering = ["record", "version"]
        constraints = [
            models.UniqueConstraint(fields=["record", "version"], name="uq_history_version_per_record"),
        ]

    def __str__(self) -> str:
        return f"{self.record_id} v{self.version} {self.operation_type}"
