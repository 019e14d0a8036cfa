# haul_core/records/admin.py
from django.contrib import admin

from haul_core.records.models import HistoryEntry, TrackingRecord


@admin.register(TrackingRecord)
class TrackingRecordAdmin(admin.ModelAdmin):
    list_display = (
        "short_id",
        "truck_number",
        "driver_name",
        "project_name",
        "scan_count",
        "expiry_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("short_id", "truck_number", "driver_name", "driver_license_number")
    readonly_fields = ("short_id", "scan_count", "qr_image_path", "created_at", "updated_at")
    ordering = ("-created_at",)


@admin.register(HistoryEntry)
class HistoryEntryAdmin(admin.ModelAdmin):
    """History is append-only: view it, never edit it."""
    list_display = ("record", "version", "operation_type", "updated_by", "updated_at")
    list_filter = ("operation_type",)
    search_fields = ("record__short_id",)
    ordering = ("record", "version")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
