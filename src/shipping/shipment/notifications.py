"""Customer notifications — tells the shipment owner about booking, quotes and progress.

Runs after the change that raised the event has been committed. Delivery is
fire-and-forget: a failing notifier is logged and never undoes the change.
"""

from collections.abc import Mapping

import structlog
from protean.utils.mixins import handle

from shipping.configuration import get_notifier
from shipping.domain import shipping
from shipping.shipment.events import CustomItemQuoted, ShipmentBooked, ShipmentStatusChanged
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


def _emit(title: str, message: str, type: str, related_id: str, user_id: str) -> None:
    try:
        result = get_notifier().emit(
            title=title,
            message=message,
            type=type,
            related_id=related_id,
            user_id=user_id,
        )
        if not isinstance(result, Mapping):
            result = {"status": "failed", "error": f"Notifier returned {result!r}"}
    except Exception:
        logger.exception("Notifier raised while emitting", type=type, related_id=related_id)
        return

    if result.get("status") == "failed":
        logger.warning(
            "Notification was not delivered",
            type=type,
            related_id=related_id,
            error=result.get("error"),
        )


@shipping.event_handler(part_of=Shipment)
class ShipmentNotificationHandler:
    @handle(ShipmentBooked)
    def on_shipment_booked(self, event: ShipmentBooked) -> None:
        _emit(
            title="Booking Confirmed",
            message=f"Your shipment {event.tracking_number} has been booked.",
            type="booking",
            related_id=str(event.shipment_id),
            user_id=str(event.customer_id),
        )

    @handle(ShipmentStatusChanged)
    def on_status_changed(self, event: ShipmentStatusChanged) -> None:
        _emit(
            title="Shipment Status Updated",
            message=f"Your shipment {event.tracking_number} is now {event.new_status}.",
            type="shipment_update",
            related_id=str(event.shipment_id),
            user_id=str(event.customer_id),
        )

    @handle(CustomItemQuoted)
    def on_custom_item_quoted(self, event: CustomItemQuoted) -> None:
        _emit(
            title="Quote Ready",
            message=(
                f"We have priced {event.description or 'your item'} on shipment {event.tracking_number} "
                f"at {event.quoted_amount:.2f}."
            ),
            type="quote",
            related_id=str(event.shipment_id),
            user_id=str(event.customer_id),
        )
