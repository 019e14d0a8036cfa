# haul_core/records/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from haul_core.common.api.exceptions import GoneError
from haul_core.common.errors import RecordExpired
from haul_core.common.naming import to_camel
from haul_core.records.api.serializers import (
    HistoryEntrySerializer,
    RecordCreateSerializer,
    RecordSummarySerializer,
    RecordUpdateSerializer,
    TrackingRecordSerializer,
)
from haul_core.records.selectors import RecordSelector
from haul_core.records.services import RecordService, ScanService, record_view
from haul_core.records.versioning import RecordPatch

NOT_FOUND_MSG = "QR record not found"


def _require_short_id(short_id: str | None) -> str:
    value = (short_id or "").strip()
    if not value:
        raise DRFValidationError({"detail": "id is required"})
    return value


class GenerateRecordView(APIView):
    """
    POST /api/generate
    Certifies a truck: stores the record, seeds history v1 and renders its QR.
    """

    @extend_schema(tags=["Records"], request=RecordCreateSerializer, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        ser = RecordCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        fields = dict(ser.validated_data)
        actor = (fields.pop("updated_by", "") or "").strip() or None

        outcome = RecordService.from_settings().create_record(fields=fields, actor=actor)

        return Response(
            {
                "message": "QR generated successfully",
                "qrData": outcome.payload,
                "base64": outcome.artifact.base64,
                "shortId": outcome.record.short_id,
                "record": record_view(outcome.record),
            },
            status=status.HTTP_200_OK,
        )


class RecordInfoView(APIView):
    """
    /api/info/<short_id>
    - GET: scan (counts the scan, 410 once expired)
    - PUT: partial update with history snapshot
    """

    @extend_schema(tags=["Records"], responses={200: TrackingRecordSerializer})
    def get(self, request, short_id: str):
        short_id = _require_short_id(short_id)
        try:
            view = ScanService.from_settings().scan(short_id=short_id)
        except RecordSelector.NotFound:
            raise NotFound(NOT_FOUND_MSG)
        except RecordExpired:
            raise GoneError()
        return Response(view, status=status.HTTP_200_OK)

    @extend_schema(tags=["Records"], request=RecordUpdateSerializer, responses={200: OpenApiTypes.OBJECT})
    def put(self, request, short_id: str):
        short_id = _require_short_id(short_id)

        ser = RecordUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        actor = (data.pop("updated_by", "") or "").strip() or None

        try:
            outcome = RecordService.from_settings().update_record(
                short_id=short_id,
                patch=RecordPatch.from_data(data),
                actor=actor,
            )
        except RecordSelector.NotFound:
            raise NotFound(NOT_FOUND_MSG)

        if outcome.unchanged:
            return Response(
                {"message": "No changes detected. Record unchanged.", "record": record_view(outcome.record)},
                status=status.HTTP_200_OK,
            )

        return Response(
            {
                "message": "QR record updated successfully",
                "changedFields": [to_camel(name) for name in outcome.changed_fields],
                "historyVersion": outcome.history_version,
                "record": record_view(outcome.record),
            },
            status=status.HTTP_200_OK,
        )


class RecordHistoryView(APIView):
    """GET /api/info/<short_id>/history (snapshots in version order)"""

    @extend_schema(tags=["Records"], responses={200: HistoryEntrySerializer(many=True)})
    def get(self, request, short_id: str):
        try:
            entries = RecordSelector.history_for(short_id=_require_short_id(short_id))
        except RecordSelector.NotFound:
            raise NotFound(NOT_FOUND_MSG)
        return Response(HistoryEntrySerializer(entries, many=True).data, status=status.HTTP_200_OK)


class RecordListView(APIView):
    """GET /records: newest first, served from the listing cache when warm."""

    @extend_schema(tags=["Records"], responses={200: RecordSummarySerializer(many=True)})
    def get(self, request):
        return Response(RecordService.from_settings().list_records(), status=status.HTTP_200_OK)
