# haul_core/records/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from haul_core.common.api.fields import CleanNumberField, JSONObjectField
from haul_core.common.api.serializers import CamelCaseRepresentationMixin
from haul_core.common.naming import to_camel
from haul_core.records.models import HistoryEntry, TEXT_FIELDS, TrackingRecord
from haul_core.records.payloads import scan_url


def _text(column: str, **kwargs):
    """Optional text input sized to its TrackingRecord column."""
    kwargs.setdefault("required", False)
    kwargs.setdefault("max_length", TrackingRecord._meta.get_field(column).max_length)
    # DRF rejects a source equal to the field name (single-word columns)
    if to_camel(column) != column:
        kwargs["source"] = column
    return serializers.CharField(allow_blank=True, allow_null=True, **kwargs)


class CertificationInputSerializer(serializers.Serializer):
    """
    camelCase request fields shared by create (POST /api/generate) and
    update (PUT /api/info/<id>). validated_data is keyed by model field name.
    """
    projectName = _text("project_name")
    client = _text("client")
    event = _text("event")
    date = serializers.DateField(required=False, allow_null=True)
    primeContractor = _text("prime_contractor")
    subContractor = _text("sub_contractor")

    ownerName = _text("owner_name")
    driverName = _text("driver_name")
    phone = _text("phone")
    email = _text("email")
    driverLicenseState = _text("driver_license_state")
    driverLicenseNumber = _text("driver_license_number")
    driverLicenseExpiry = serializers.DateField(source="driver_license_expiry", required=False, allow_null=True)

    vehicleType = _text("vehicle_type")
    truckNumber = _text("truck_number")
    customVehicleType = _text("custom_vehicle_type")
    sideboards = serializers.BooleanField(required=False, allow_null=True)
    openBack = serializers.BooleanField(source="open_back", required=False, allow_null=True)
    handLoader = serializers.BooleanField(source="hand_loader", required=False, allow_null=True)
    color = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    make = _text("make")
    model = _text("model")
    vinRegistrationInfo = _text("vin_registration_info")
    licensePlateState = _text("license_plate_state")
    licensePlateTagNumber = _text("license_plate_tag_number")
    licensePlateExpiry = serializers.DateField(source="license_plate_expiry", required=False, allow_null=True)

    baseMeasurement = CleanNumberField(source="base_measurement", required=False)
    additions = CleanNumberField(required=False)
    deductions = CleanNumberField(required=False)
    vehicleWeight = CleanNumberField(source="vehicle_weight", required=False)
    goodsWeight = CleanNumberField(source="goods_weight", required=False)

    expiryAt = serializers.DateTimeField(source="expiry_at", required=False, allow_null=True)
    meta = JSONObjectField(required=False)
    updatedBy = serializers.CharField(source="updated_by", required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        # explicit nulls on text columns are stored as ""
        for name in TEXT_FIELDS:
            if name in attrs and attrs[name] is None:
                attrs[name] = ""
        return attrs


class RecordCreateSerializer(CertificationInputSerializer):
    driverFirstName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=127)
    driverLastName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=127)

    def validate(self, attrs):
        attrs = super().validate(attrs)

        first = (attrs.pop("driverFirstName", None) or "").strip()
        last = (attrs.pop("driverLastName", None) or "").strip()
        composed = " ".join(part for part in (first, last) if part)
        if composed:
            attrs["driver_name"] = composed

        missing = [
            api_name
            for api_name, field in (
                ("driverName", "driver_name"),
                ("truckNumber", "truck_number"),
                ("driverLicenseNumber", "driver_license_number"),
            )
            if not (attrs.get(field) or "").strip()
        ]
        if missing:
            raise serializers.ValidationError(
                {"detail": "driverName, truckNumber, and driverLicenseNumber are required", "missing": missing}
            )
        return attrs


class RecordUpdateSerializer(CertificationInputSerializer):
    """Partial update: only keys present in the body end up in validated_data."""


class TrackingRecordSerializer(CamelCaseRepresentationMixin, serializers.ModelSerializer):
    """Full record view (scan response, cache mirror). camelCase keys."""

    url = serializers.SerializerMethodField()

    class Meta:
        model = TrackingRecord
        fields = "__all__"
        read_only_fields = ["id", "short_id", "scan_count", "created_at", "updated_at", "qr_image_path"]

    def get_url(self, obj) -> str:
        return scan_url(obj.short_id)


class RecordSummarySerializer(CamelCaseRepresentationMixin, serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = TrackingRecord
        fields = [
            "short_id",
            "owner_name",
            "driver_name",
            "truck_number",
            "vehicle_weight",
            "goods_weight",
            "qr_image_path",
            "scan_count",
            "created_at",
            "updated_at",
            "expiry_at",
            "meta",
            "url",
        ]
        read_only_fields = fields

    def get_url(self, obj) -> str:
        return scan_url(obj.short_id)


class HistoryEntrySerializer(CamelCaseRepresentationMixin, serializers.ModelSerializer):
    class Meta:
        model = HistoryEntry
        exclude = ["id", "record"]
