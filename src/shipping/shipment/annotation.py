"""Audit notes — staff comments kept on the shipment's history."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.shipment.lifecycle import ActorRole
from shipping.shipment.services import actor_from_command
from shipping.shipment.shipment import Shipment


@shipping.command(part_of="Shipment")
class AnnotateShipment:
    shipment_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    text = Text(required=True)


@shipping.command_handler(part_of=Shipment)
class AnnotationHandler:
    @handle(AnnotateShipment)
    def annotate(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        shipment.annotate(command.text, actor_from_command(command))
        repo.add(shipment)
