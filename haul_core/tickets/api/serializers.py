# haul_core/tickets/api/serializers.py
from __future__ import annotations

from uuid import UUID

from rest_framework import serializers

from haul_core.common.api.fields import CleanNumberField, JSONObjectField
from haul_core.common.api.serializers import CamelCaseRepresentationMixin
from haul_core.records.api.serializers import TrackingRecordSerializer
from haul_core.tickets.models import DisposalTicket, LoadTicket


class LoadTicketCreateSerializer(serializers.Serializer):
    """Field monitor form (camelCase, as posted by the monitor app)."""
    truckCertificationDetails = JSONObjectField(source="truck_certification_details")
    fieldMonitorName = serializers.CharField(source="field_monitor_name", max_length=255)
    subActivity = serializers.CharField(source="sub_activity", required=False, allow_blank=True, max_length=255)
    debrisType = serializers.CharField(source="debris_type", required=False, allow_blank=True, max_length=128)
    loadDate = serializers.DateField(source="load_date", required=False, allow_null=True)
    loadTime = serializers.TimeField(source="load_time", required=False, allow_null=True)
    latitude = CleanNumberField(required=False)
    longitude = CleanNumberField(required=False)
    address = serializers.CharField(required=False, allow_blank=True, max_length=512)
    fieldMonitorNotes = serializers.CharField(source="field_monitor_notes", required=False, allow_blank=True)
    truckCapacity = CleanNumberField(source="truck_capacity", required=False)

    def validate_truckCertificationDetails(self, value):
        raw_id = value.get("id")
        if not raw_id:
            raise serializers.ValidationError("truckCertificationDetails.id is required")
        try:
            value["id"] = str(UUID(str(raw_id)))
        except ValueError:
            raise serializers.ValidationError("truckCertificationDetails.id must be a UUID")
        return value


class DisposalTicketCreateSerializer(serializers.Serializer):
    """Site monitor form (snake_case, as posted by the site monitor app)."""
    load_ticket_id = serializers.CharField(max_length=64)
    disposal_site = serializers.CharField(max_length=255)
    offload_date = serializers.DateField(required=False, allow_null=True)
    offload_time = serializers.TimeField(required=False, allow_null=True)
    debris_type = serializers.CharField(required=False, allow_blank=True, max_length=128)
    load_call = serializers.IntegerField(required=False, allow_null=True)
    confirm_quantity = CleanNumberField(required=False)
    tipping_ticket_number = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=128)
    tipping_fee = CleanNumberField(required=False)
    site_monitor_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    site_monitor_name = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        attrs["load_call"] = attrs.get("load_call") or 0
        attrs["tipping_ticket_number"] = attrs.get("tipping_ticket_number") or ""
        attrs["site_monitor_notes"] = attrs.get("site_monitor_notes") or ""
        return attrs


class LoadTicketSerializer(CamelCaseRepresentationMixin, serializers.ModelSerializer):
    truck_certificate_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = LoadTicket
        fields = [
            "id",
            "short_id",
            "truck_certificate_id",
            "field_monitor_name",
            "sub_activity",
            "debris_type",
            "load_date",
            "load_time",
            "latitude",
            "longitude",
            "address",
            "field_monitor_notes",
            "truck_capacity",
            "load_qr_image_path",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class LoadTicketDetailSerializer(LoadTicketSerializer):
    """Load ticket joined with the truck certification it references (null if dangling)."""
    truck_certificate = TrackingRecordSerializer(read_only=True, allow_null=True)

    class Meta(LoadTicketSerializer.Meta):
        fields = LoadTicketSerializer.Meta.fields + ["truck_certificate"]
        read_only_fields = fields


class DisposalTicketSerializer(CamelCaseRepresentationMixin, serializers.ModelSerializer):
    load_ticket_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = DisposalTicket
        fields = [
            "id",
            "load_ticket_id",
            "disposal_site",
            "offload_date",
            "offload_time",
            "debris_type",
            "load_call",
            "confirm_quantity",
            "tipping_ticket_number",
            "tipping_fee",
            "site_monitor_notes",
            "site_monitor_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
