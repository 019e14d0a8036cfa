# haul_core/records/selectors.py
from __future__ import annotations

from django.db.models import Count, Max, QuerySet

from haul_core.records.models import HistoryEntry, TrackingRecord


class RecordSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_record(*, short_id: str) -> TrackingRecord:
        try:
            return TrackingRecord.objects.get(short_id=short_id)
        except TrackingRecord.DoesNotExist:
            raise RecordSelector.NotFound()

    @staticmethod
    def get_record_for_update(*, short_id: str) -> TrackingRecord:
        """
        Row-locks the record until the surrounding transaction ends; concurrent
        updaters of the same short_id queue here and see the committed state.
        """
        try:
            return TrackingRecord.objects.select_for_update().get(short_id=short_id)
        except TrackingRecord.DoesNotExist:
            raise RecordSelector.NotFound()

    @staticmethod
    def list_records() -> QuerySet[TrackingRecord]:
        return TrackingRecord.objects.order_by("-created_at")

    @staticmethod
    def history_for(*, short_id: str) -> QuerySet[HistoryEntry]:
        record = RecordSelector.get_record(short_id=short_id)
        return HistoryEntry.objects.filter(record=record).order_by("version")

    @staticmethod
    def history_stats(*, record_id) -> tuple[int, int]:
        """(number of history rows, highest version or 0)"""
        agg = HistoryEntry.objects.filter(record_id=record_id).aggregate(
            total=Count("id"),
            latest=Max("version"),
        )
        return int(agg["total"] or 0), int(agg["latest"] or 0)
