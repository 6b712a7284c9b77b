"""Shipment domain events — immutable facts about a shipment's booking and journey.

Events are past tense, versioned, and carry what the tracking and manifest
projections and the notification handler need without reloading the
aggregate.
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String, Text

from shipping.domain import shipping


@shipping.event(part_of="Shipment")
class ShipmentBooked:
    """A customer booked a shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    booking_flow = String(required=True)
    sender_name = String()
    sender_postal_code = String()
    sender_city = String()
    sender_country = String()
    recipient_name = String()
    recipient_city = String()
    drum_count = Integer(required=True)
    custom_item_count = Integer(required=True)
    payment_option = String(required=True)
    total_amount = Float()
    currency = String(required=True)
    pending_quotation = Boolean(default=False)
    collection_outcome = String(required=True)
    route_name = String()
    collection_date = Date()
    status = String(required=True)
    booked_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class CollectionRouteAssigned:
    """The collection assignment was recomputed after an address or schedule change."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    sender_postal_code = String()
    sender_city = String()
    collection_outcome = String(required=True)
    route_name = String()
    collection_date = Date()
    resolved_from = String()
    table_version = String()
    assigned_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class ShipmentRepriced:
    """The composition or payment option changed and the shipment was priced again."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    drum_count = Integer(required=True)
    payment_option = String(required=True)
    tariff_version = String(required=True)
    previous_total = Float()
    total_amount = Float()
    pending_quotation = Boolean(default=False)
    repriced_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class CustomItemQuoted:
    """An operator quoted a price for a custom item."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    description = String()
    quoted_amount = Float(required=True)
    total_amount = Float()
    pending_quotation = Boolean(default=False)
    quoted_by = String(required=True)
    quoted_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class ShipmentStatusChanged:
    """A shipment moved along its lifecycle."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor_id = String(required=True)
    actor_role = String(required=True)
    note = Text()
    route_name = String()
    drum_count = Integer()
    changed_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class DeliveryEvidenceAttached:
    """Proof of delivery was stored for a shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    evidence_url = String(required=True)
    attached_by = String(required=True)
    attached_at = DateTime(required=True)


@shipping.event(part_of="Shipment")
class ShipmentAnnotated:
    """Staff added an audit note to a shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    author_id = String(required=True)
    author_role = String(required=True)
    text = Text(required=True)
    annotated_at = DateTime(required=True)
