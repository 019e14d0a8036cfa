# haul_core/tickets/selectors.py
from __future__ import annotations

from uuid import UUID

from haul_core.tickets.models import LoadTicket


class LoadTicketSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_load_ticket(*, ref: str) -> LoadTicket:
        """
        Resolve a load ticket by its UUID or by the shortId printed in its QR,
        joined with the truck certification it references.
        """
        qs = LoadTicket.objects.select_related("truck_certificate")
        try:
            ticket_id = UUID(str(ref))
        except ValueError:
            lookup = {"short_id": str(ref)}
        else:
            lookup = {"id": ticket_id}

        try:
            return qs.get(**lookup)
        except LoadTicket.DoesNotExist:
            raise LoadTicketSelector.NotFound()
