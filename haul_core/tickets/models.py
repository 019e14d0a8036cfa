# haul_core/tickets/models.py
from django.db import models

from haul_core.common.models import UUIDModel
from haul_core.records.models import TrackingRecord


class LoadTicket(UUIDModel):
    """
    Captured by a field monitor when a certified truck is loaded.

    truck_certificate is not enforced at the database level: tickets can be
    written for a certification this backend has not seen (yet).
    """
    short_id = models.CharField(max_length=64, unique=True, editable=False)
    truck_certificate = models.ForeignKey(
        TrackingRecord,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="load_tickets",
    )

    field_monitor_name = models.CharField(max_length=255)
    sub_activity = models.CharField(max_length=255, blank=True, default="")
    debris_type = models.CharField(max_length=128, blank=True, default="")
    load_date = models.DateField(null=True, blank=True)
    load_time = models.TimeField(null=True, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    address = models.CharField(max_length=512, blank=True, default="")
    field_monitor_notes = models.TextField(blank=True, default="")
    truck_capacity = models.FloatField(null=True, blank=True)

    load_qr_image_path = models.CharField(max_length=512, blank=True, default="")

    class Meta:
        db_table = "tickets_load_ticket"
        indexes = [
            models.Index(fields=["truck_certificate", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.short_id} ({self.field_monitor_name})"


class DisposalTicket(UUIDModel):
    """Captured by a site monitor when a load is tipped. No QR of its own."""
    load_ticket = models.ForeignKey(LoadTicket, on_delete=models.PROTECT, related_name="disposal_tickets")

    disposal_site = models.CharField(max_length=255)
    offload_date = models.DateField(null=True, blank=True)
    offload_time = models.TimeField(null=True, blank=True)
    debris_type = models.CharField(max_length=128, blank=True, default="")
    load_call = models.IntegerField(default=0)
    confirm_quantity = models.FloatField(null=True, blank=True)
    tipping_ticket_number = models.CharField(max_length=128, blank=True, default="")
    tipping_fee = models.FloatField(null=True, blank=True)
    site_monitor_notes = models.TextField(blank=True, default="")
    site_monitor_name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "tickets_disposal_ticket"

    def __str__(self) -> str:
        return f"{self.load_ticket_id} @ {self.disposal_site}"
