# haul_core/tickets/admin.py
from django.contrib import admin

from haul_core.tickets.models import DisposalTicket, LoadTicket


@admin.register(LoadTicket)
class LoadTicketAdmin(admin.ModelAdmin):
    list_display = ("short_id", "truck_certificate_id", "field_monitor_name", "debris_type", "load_date", "created_at")
    list_filter = ("debris_type",)
    search_fields = ("short_id", "field_monitor_name", "address")
    readonly_fields = ("short_id", "load_qr_image_path", "created_at", "updated_at")
    ordering = ("-created_at",)


@admin.register(DisposalTicket)
class DisposalTicketAdmin(admin.ModelAdmin):
    list_display = ("id", "load_ticket", "disposal_site", "confirm_quantity", "tipping_fee", "created_at")
    list_filter = ("disposal_site",)
    search_fields = ("load_ticket__short_id", "disposal_site", "tipping_ticket_number")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)
