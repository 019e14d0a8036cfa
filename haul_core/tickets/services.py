# haul_core/tickets/services.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from haul_core.artifacts import Artifact, QRArtifactStore
from haul_core.common.db import storage_atomic
from haul_core.common.naming import to_camel
from haul_core.tickets.models import DisposalTicket, LoadTicket
from haul_core.tickets.selectors import LoadTicketSelector

logger = logging.getLogger(__name__)

LOAD_TICKET_ARTIFACT_PREFIX = "loadticket"

# Load ticket columns echoed into its QR payload.
LOAD_PAYLOAD_FIELDS = (
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
)


def new_load_ticket_short_id() -> str:
    return f"loadticket_{uuid.uuid4().hex}"


def load_ticket_payload(ticket: LoadTicket, truck_certification_details: dict[str, Any]) -> dict[str, Any]:
    """
    QR payload for a load ticket. The certification details are echoed as the
    field monitor captured them, minus the internal record id.
    """
    details = {k: v for k, v in truck_certification_details.items() if k != "id"}
    payload: dict[str, Any] = {"shortId": ticket.short_id, "truckCertificationDetails": details}
    for name in LOAD_PAYLOAD_FIELDS:
        payload[to_camel(name)] = getattr(ticket, name)
    return payload


@dataclass(frozen=True)
class LoadTicketOutcome:
    ticket: LoadTicket
    payload: dict[str, Any]
    artifact: Artifact


@dataclass(frozen=True)
class DisposalOutcome:
    disposal: DisposalTicket
    load_ticket: LoadTicket


class TicketService:
    """
    Field monitor (load) and site monitor (disposal) ticket creation.
    """

    def __init__(self, *, artifacts: QRArtifactStore):
        self.artifacts = artifacts

    @classmethod
    def from_settings(cls) -> "TicketService":
        return cls(artifacts=QRArtifactStore.from_settings())

    def create_load_ticket(
        self,
        *,
        truck_certification_details: dict[str, Any],
        field_monitor_name: str,
        **fields: Any,
    ) -> LoadTicketOutcome:
        # TODO: reject certification ids with no matching TrackingRecord once the
        # monitor apps stop issuing tickets for offline-created certifications.
        with storage_atomic("create load ticket"):
            ticket = LoadTicket.objects.create(
                short_id=new_load_ticket_short_id(),
                truck_certificate_id=truck_certification_details["id"],
                field_monitor_name=field_monitor_name,
                **fields,
            )

            payload = load_ticket_payload(ticket, truck_certification_details)
            artifact = self.artifacts.render(LOAD_TICKET_ARTIFACT_PREFIX, ticket.short_id, payload)

            ticket.load_qr_image_path = str(artifact.path)
            ticket.save(update_fields=["load_qr_image_path", "updated_at"])

        self.artifacts.write(artifact)
        logger.info("created load ticket %s for certificate %s", ticket.short_id, ticket.truck_certificate_id)
        return LoadTicketOutcome(ticket=ticket, payload=payload, artifact=artifact)

    def create_disposal_ticket(self, *, load_ticket_ref: str, **fields: Any) -> DisposalOutcome:
        with storage_atomic("create disposal ticket"):
            load_ticket = LoadTicketSelector.get_load_ticket(ref=load_ticket_ref)
            disposal = DisposalTicket.objects.create(load_ticket=load_ticket, **fields)

        logger.info("created disposal ticket %s for load ticket %s", disposal.id, load_ticket.short_id)
        return DisposalOutcome(disposal=disposal, load_ticket=load_ticket)
