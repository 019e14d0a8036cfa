# haul_core/tickets/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from haul_core.tickets.api.serializers import (
    DisposalTicketCreateSerializer,
    DisposalTicketSerializer,
    LoadTicketCreateSerializer,
    LoadTicketDetailSerializer,
    LoadTicketSerializer,
)
from haul_core.tickets.selectors import LoadTicketSelector
from haul_core.tickets.services import TicketService


class LoadTicketView(APIView):
    """POST /api/generateloadticket (field monitor)"""

    @extend_schema(tags=["Tickets"], request=LoadTicketCreateSerializer, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        ser = LoadTicketCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        outcome = TicketService.from_settings().create_load_ticket(**ser.validated_data)

        return Response(
            {
                "message": "Load ticket QR generated successfully",
                "qrData": outcome.payload,
                "base64": outcome.artifact.base64,
                "shortId": outcome.ticket.short_id,
                "ticketRecord": LoadTicketSerializer(outcome.ticket).data,
            },
            status=status.HTTP_200_OK,
        )


class DisposalTicketView(APIView):
    """POST /api/generatedisposalticket (site monitor)"""

    @extend_schema(tags=["Tickets"], request=DisposalTicketCreateSerializer, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        ser = DisposalTicketCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        load_ticket_ref = data.pop("load_ticket_id")

        try:
            outcome = TicketService.from_settings().create_disposal_ticket(load_ticket_ref=load_ticket_ref, **data)
        except LoadTicketSelector.NotFound:
            raise NotFound("Load ticket not found")

        return Response(
            {
                "message": "Disposal ticket generated successfully",
                "disposalRecord": DisposalTicketSerializer(outcome.disposal).data,
                "loadTicketDetails": LoadTicketDetailSerializer(outcome.load_ticket).data,
            },
            status=status.HTTP_200_OK,
        )
