"""Shipments react to collection schedule changes.

Whenever operators change the collection schedule, every shipment still
awaiting collection is resolved again against the new schedule so its
stored assignment stays current.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from shipping.domain import shipping
from shipping.routing.events import (
    RouteAreaAdded,
    RouteAreaRemoved,
    RoutePriorityChanged,
    RouteRegistered,
    RouteRescheduled,
    RouteRetired,
)
from shipping.shipment.services import current_resolver, resolve_collection
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


def _refresh_awaiting_collection(reason: str, route_name: str) -> int:
    repo = current_domain.repository_for(Shipment)
    resolver = current_resolver()

    refreshed = 0
    for shipment in repo.awaiting_collection():
        if shipment.refresh_collection(resolve_collection(shipment.sender, resolver)):
            repo.add(shipment)
            refreshed += 1

    logger.info(
        "Collection assignments refreshed",
        reason=reason,
        route=route_name,
        refreshed=refreshed,
        table_version=resolver.table.version,
    )
    return refreshed


@shipping.event_handler(part_of=Shipment, stream_category="shipping::collection_route")
class RouteScheduleEventHandler:
    """Keeps awaiting shipments in step with the collection schedule."""

    @handle(RouteRegistered)
    def on_route_registered(self, event: RouteRegistered) -> None:
        _refresh_awaiting_collection("registered", event.name)

    @handle(RouteRescheduled)
    def on_route_rescheduled(self, event: RouteRescheduled) -> None:
        _refresh_awaiting_collection("rescheduled", event.name)

    @handle(RouteAreaAdded)
    def on_route_area_added(self, event: RouteAreaAdded) -> None:
        _refresh_awaiting_collection("area_added", event.name)

    @handle(RouteAreaRemoved)
    def on_route_area_removed(self, event: RouteAreaRemoved) -> None:
        _refresh_awaiting_collection("area_removed", event.name)

    @handle(RoutePriorityChanged)
    def on_route_priority_changed(self, event: RoutePriorityChanged) -> None:
        _refresh_awaiting_collection("priority_changed", event.name)

    @handle(RouteRetired)
    def on_route_retired(self, event: RouteRetired) -> None:
        _refresh_awaiting_collection("retired", event.name)
