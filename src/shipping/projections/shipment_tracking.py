"""Shipment tracking — customer-facing tracking page view."""

import json

from protean.core.projector import on
from protean.fields import Date, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.shipment.events import (
    CollectionRouteAssigned,
    DeliveryEvidenceAttached,
    ShipmentBooked,
    ShipmentStatusChanged,
)
from shipping.shipment.lifecycle import ShipmentStatus
from shipping.shipment.shipment import Shipment


@shipping.projection
class ShipmentTrackingView:
    shipment_id = Identifier(identifier=True, required=True)
    tracking_number = String(required=True)
    customer_id = Identifier(required=True)
    current_status = String(required=True)
    route_name = String()
    collection_date = Date()
    recipient_city = String()
    evidence_url = String()
    timeline_json = Text()  # JSON list of status changes
    booked_at = DateTime()
    delivered_at = DateTime()
    updated_at = DateTime()


def _append(view, status: str, description: str | None, occurred_at) -> None:
    timeline = json.loads(view.timeline_json) if view.timeline_json else []
    timeline.append(
        {
            "status": status,
            "description": description,
            "occurred_at": occurred_at.isoformat() if occurred_at else None,
        }
    )
    view.timeline_json = json.dumps(timeline)


@shipping.projector(projector_for=ShipmentTrackingView, aggregates=[Shipment])
class ShipmentTrackingProjector:
    @on(ShipmentBooked)
    def on_shipment_booked(self, event):
        view = ShipmentTrackingView(
            shipment_id=event.shipment_id,
            tracking_number=event.tracking_number,
            customer_id=event.customer_id,
            current_status=event.status,
            route_name=event.route_name,
            collection_date=event.collection_date,
            recipient_city=event.recipient_city,
            timeline_json=json.dumps([]),
            booked_at=event.booked_at,
            updated_at=event.booked_at,
        )
        _append(view, event.status, "Booking received", event.booked_at)
        current_domain.repository_for(ShipmentTrackingView).add(view)

    @on(ShipmentStatusChanged)
    def on_status_changed(self, event):
        repo = current_domain.repository_for(ShipmentTrackingView)
        view = repo.get(event.shipment_id)
        view.current_status = event.new_status
        view.updated_at = event.changed_at
        if event.new_status == ShipmentStatus.DELIVERED.value:
            view.delivered_at = event.changed_at
        _append(view, event.new_status, event.note, event.changed_at)
        repo.add(view)

    @on(CollectionRouteAssigned)
    def on_collection_route_assigned(self, event):
        repo = current_domain.repository_for(ShipmentTrackingView)
        view = repo.get(event.shipment_id)
        view.route_name = event.route_name
        view.collection_date = event.collection_date
        view.updated_at = event.assigned_at
        repo.add(view)

    @on(DeliveryEvidenceAttached)
    def on_delivery_evidence_attached(self, event):
        repo = current_domain.repository_for(ShipmentTrackingView)
        view = repo.get(event.shipment_id)
        view.evidence_url = event.evidence_url
        view.updated_at = event.attached_at
        repo.add(view)
