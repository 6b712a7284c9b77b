"""Custom item quotation — operators price the items the tariff cannot."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.shipment.shipment import Shipment


@shipping.command(part_of="Shipment")
class QuoteCustomItem:
    shipment_id = Identifier(required=True)
    item_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    quoted_by = String(required=True, max_length=100)


@shipping.command_handler(part_of=Shipment)
class QuotationHandler:
    @handle(QuoteCustomItem)
    def quote_custom_item(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        shipment.quote_custom_item(str(command.item_id), command.amount, command.quoted_by)
        repo.add(shipment)
        return shipment.total_amount
