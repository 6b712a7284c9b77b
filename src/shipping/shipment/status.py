"""Shipment status — commands and handler for moving a shipment along its lifecycle.

Every status command may carry ``expected_status``: the status the caller
saw when it decided to act. The handler compares it with the stored status
before applying the change and rejects the command with ``ConcurrentUpdate``
when they differ, so a driver and an operator acting on the same shipment
cannot silently overwrite each other.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.shipment.lifecycle import ActorRole, Handoff, ShipmentStatus
from shipping.shipment.services import actor_from_command
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


def _expected(command) -> ShipmentStatus | None:
    return ShipmentStatus(command.expected_status) if command.expected_status else None


@shipping.command(part_of="Shipment")
class AdvanceShipmentStatus:
    shipment_id = Identifier(required=True)
    target_status = String(required=True, choices=ShipmentStatus)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    handoff = String(choices=Handoff)
    expected_status = String(choices=ShipmentStatus)
    note = Text()


@shipping.command(part_of="Shipment")
class CancelShipment:
    shipment_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    expected_status = String(choices=ShipmentStatus)
    reason = Text()


@shipping.command(part_of="Shipment")
class RecordFailedAttempt:
    shipment_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    handoff = String(choices=Handoff)
    expected_status = String(choices=ShipmentStatus)
    reason = Text()


@shipping.command_handler(part_of=Shipment)
class ShipmentStatusHandler:
    @handle(AdvanceShipmentStatus)
    def advance_status(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        actor = actor_from_command(command)
        previous = shipment.status

        shipment.transition(
            ShipmentStatus(command.target_status),
            actor,
            note=command.note,
            expected_status=_expected(command),
        )
        repo.add(shipment)

        logger.info(
            "Shipment status changed",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            previous_status=previous,
            new_status=shipment.status,
            actor_role=actor.role.value,
        )
        return shipment.status

    @handle(CancelShipment)
    def cancel_shipment(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        shipment.cancel(actor_from_command(command), reason=command.reason, expected_status=_expected(command))
        repo.add(shipment)
        logger.info("Shipment cancelled", shipment_id=str(shipment.id), actor_role=command.actor_role)
        return shipment.status

    @handle(RecordFailedAttempt)
    def record_failed_attempt(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        shipment.record_failed_attempt(
            actor_from_command(command),
            reason=command.reason,
            expected_status=_expected(command),
        )
        repo.add(shipment)
        logger.warning(
            "Shipment attempt failed",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            reason=command.reason,
        )
        return shipment.status
