# haul_core/api/urls.py
from __future__ import annotations

from django.urls import path

from haul_core.records.api.views import (
    GenerateRecordView,
    RecordHistoryView,
    RecordInfoView,
    RecordListView,
)
from haul_core.tickets.api.views import DisposalTicketView, LoadTicketView

urlpatterns = [
    # Truck certification records
    path("api/generate", GenerateRecordView.as_view(), name="record-generate"),
    path("api/info/<str:short_id>", RecordInfoView.as_view(), name="record-info"),
    path("api/info/<str:short_id>/history", RecordHistoryView.as_view(), name="record-history"),
    path("records", RecordListView.as_view(), name="record-list"),

    # Field monitor / site monitor tickets
    path("api/generateloadticket", LoadTicketView.as_view(), name="load-ticket-generate"),
    path("api/generatedisposalticket", DisposalTicketView.as_view(), name="disposal-ticket-generate"),
]
