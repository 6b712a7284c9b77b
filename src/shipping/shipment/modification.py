"""Booking modification — commands and handler for changes before pickup.

Both changes are only accepted while the shipment is still Booking
Confirmed. An address change always re-resolves the collection route; a
composition change always prices the shipment again.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.pricing.tariff import PaymentOption
from shipping.shipment.services import (
    composition_from_command,
    price_composition,
    resolve_collection,
    sender_from_json,
)
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@shipping.command(part_of="Shipment")
class UpdateCollectionAddress:
    shipment_id = Identifier(required=True)
    sender = Text(required=True)  # JSON dict of Sender fields


@shipping.command(part_of="Shipment")
class ChangeComposition:
    shipment_id = Identifier(required=True)
    units = Text()
    custom_items = Text()
    add_ons = Text()
    additional_delivery_addresses = Integer(default=0, min_value=0)
    payment_option = String(choices=PaymentOption, default=PaymentOption.STANDARD.value)


@shipping.command_handler(part_of=Shipment)
class ModificationHandler:
    @handle(UpdateCollectionAddress)
    def update_collection_address(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        sender = sender_from_json(command.sender)
        resolution = resolve_collection(sender)
        shipment.update_collection_address(sender, resolution)
        repo.add(shipment)

        logger.info(
            "Collection address updated",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            route=resolution.route_name,
            collection_outcome=resolution.outcome.value,
        )
        if resolution.is_restricted:
            logger.warning(
                "Collection address moved into a restricted area; collection needs manual arrangement",
                shipment_id=str(shipment.id),
                postal_code=resolution.normalized_input,
            )

    @handle(ChangeComposition)
    def change_composition(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        composition = composition_from_command(command)
        quote = price_composition(composition, command.payment_option, shipment.booking_flow)
        shipment.change_composition(composition, PaymentOption(command.payment_option), quote)
        repo.add(shipment)

        logger.info(
            "Shipment composition changed",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            payment_option=command.payment_option,
            total_amount=shipment.total_amount,
        )
