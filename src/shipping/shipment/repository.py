"""Repository for the Shipment aggregate."""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError

from shipping.domain import shipping
from shipping.errors import ShipmentNotFound
from shipping.shipment.lifecycle import AWAITING_COLLECTION_STATUSES, ShipmentStatus
from shipping.shipment.shipment import Shipment

_EPOCH = datetime.min.replace(tzinfo=UTC)


@shipping.repository(part_of=Shipment)
class ShipmentRepository:
    def get_shipment(self, shipment_id: str) -> Shipment:
        """Load a shipment, raising ``ShipmentNotFound`` for unknown ids."""
        try:
            return self.get(shipment_id)
        except ObjectNotFoundError as exc:
            raise ShipmentNotFound(f"Shipment {shipment_id} does not exist") from exc

    def find_by_tracking_number(self, tracking_number: str) -> Shipment | None:
        return self._dao.query.filter(tracking_number=tracking_number.strip().upper()).all().first

    def find_by_customer(self, customer_id: str) -> list[Shipment]:
        return self._dao.query.filter(customer_id=customer_id).all().items

    def find_by_status(self, status: ShipmentStatus) -> list[Shipment]:
        return self._dao.query.filter(status=ShipmentStatus(status).value).all().items

    def awaiting_collection(self) -> list[Shipment]:
        """Shipments a driver still has to collect, oldest booking first."""
        shipments = []
        for status in AWAITING_COLLECTION_STATUSES:
            shipments.extend(self.find_by_status(status))
        return sorted(shipments, key=lambda s: s.created_at or _EPOCH)
