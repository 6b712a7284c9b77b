"""Collection manifest — one row per shipment a driver still has to collect.

Drivers and logistics staff read this view instead of polling shipments;
rows appear on booking and disappear once the shipment leaves the
collection stage.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Date, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.shipment.events import (
    CollectionRouteAssigned,
    ShipmentBooked,
    ShipmentRepriced,
    ShipmentStatusChanged,
)
from shipping.shipment.lifecycle import AWAITING_COLLECTION_STATUSES, ShipmentStatus
from shipping.shipment.shipment import Shipment

_AWAITING_VALUES = {status.value for status in AWAITING_COLLECTION_STATUSES}


@shipping.projection
class CollectionManifestView:
    shipment_id = Identifier(identifier=True, required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    sender_name = String()
    postal_code = String()
    city = String()
    collection_outcome = String(required=True)
    route_name = String()
    collection_date = Date()
    drum_count = Integer(default=0)
    status = String(required=True)
    updated_at = DateTime()


@shipping.projector(projector_for=CollectionManifestView, aggregates=[Shipment])
class CollectionManifestProjector:
    @on(ShipmentBooked)
    def on_shipment_booked(self, event):
        current_domain.repository_for(CollectionManifestView).add(
            CollectionManifestView(
                shipment_id=event.shipment_id,
                tracking_number=event.tracking_number,
                customer_id=event.customer_id,
                sender_name=event.sender_name,
                postal_code=event.sender_postal_code,
                city=event.sender_city,
                collection_outcome=event.collection_outcome,
                route_name=event.route_name,
                collection_date=event.collection_date,
                drum_count=event.drum_count,
                status=ShipmentStatus.BOOKING_CONFIRMED.value,
                updated_at=event.booked_at,
            )
        )

    @on(CollectionRouteAssigned)
    def on_collection_route_assigned(self, event):
        repo = current_domain.repository_for(CollectionManifestView)
        try:
            row = repo.get(event.shipment_id)
        except ObjectNotFoundError:
            return
        row.postal_code = event.sender_postal_code
        row.city = event.sender_city
        row.collection_outcome = event.collection_outcome
        row.route_name = event.route_name
        row.collection_date = event.collection_date
        row.updated_at = event.assigned_at
        repo.add(row)

    @on(ShipmentRepriced)
    def on_shipment_repriced(self, event):
        repo = current_domain.repository_for(CollectionManifestView)
        try:
            row = repo.get(event.shipment_id)
        except ObjectNotFoundError:
            return
        row.drum_count = event.drum_count
        row.updated_at = event.repriced_at
        repo.add(row)

    @on(ShipmentStatusChanged)
    def on_status_changed(self, event):
        repo = current_domain.repository_for(CollectionManifestView)
        try:
            row = repo.get(event.shipment_id)
        except ObjectNotFoundError:
            return

        if event.new_status in _AWAITING_VALUES:
            row.status = event.new_status
            row.updated_at = event.changed_at
            repo.add(row)
        else:
            repo._dao.delete(row)
