"""Shipment booking — command and handler.

Resolves the collection route from the sender's address and prices the
composition on the tariff of the booking flow before the shipment is created.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.pricing.tariff import BookingFlow, PaymentOption
from shipping.shipment.services import (
    composition_from_command,
    price_composition,
    recipient_from_json,
    resolve_collection,
    sender_from_json,
)
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@shipping.command(part_of="Shipment")
class BookShipment:
    customer_id = Identifier(required=True)
    booking_flow = String(choices=BookingFlow, default=BookingFlow.STANDARD.value)
    sender = Text(required=True)  # JSON dict of Sender fields
    recipient = Text(required=True)  # JSON dict of Recipient fields
    units = Text()  # JSON list of {"item_type", "quantity"}
    custom_items = Text()  # JSON list of {"description", "category", "quantity"}
    add_ons = Text()  # JSON list of add-on codes
    additional_delivery_addresses = Integer(default=0, min_value=0)
    payment_option = String(choices=PaymentOption, default=PaymentOption.STANDARD.value)


@shipping.command_handler(part_of=Shipment)
class BookingHandler:
    @handle(BookShipment)
    def book_shipment(self, command):
        sender = sender_from_json(command.sender)
        recipient = recipient_from_json(command.recipient)
        composition = composition_from_command(command)

        quote = price_composition(composition, command.payment_option, command.booking_flow)
        resolution = resolve_collection(sender)

        shipment = Shipment.book(
            customer_id=command.customer_id,
            sender=sender,
            recipient=recipient,
            composition=composition,
            payment_option=PaymentOption(command.payment_option),
            booking_flow=BookingFlow(command.booking_flow),
            quote=quote,
            resolution=resolution,
        )
        current_domain.repository_for(Shipment).add(shipment)

        logger.info(
            "Shipment booked",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            route=resolution.route_name,
            collection_outcome=resolution.outcome.value,
            total_amount=shipment.total_amount,
        )
        if resolution.is_restricted:
            logger.warning(
                "Shipment booked in a restricted area; collection needs manual arrangement",
                shipment_id=str(shipment.id),
                postal_code=resolution.normalized_input,
            )
        return str(shipment.id)
