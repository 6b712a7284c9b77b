"""SchedulingAggregator — collection-day views grouped by route.

Groups shipments by the route that will collect them, with drum and
customer roll-ups per group. A stored assignment is only trusted while it is
fresh; otherwise the shipment is resolved again on the fly with the same
resolver the booking flow uses. A stored assignment is stale when:

- the sender's postal code (or city) differs from the one it was resolved from,
- it was resolved against a different route table version, or
- its route is no longer in the table.

Shipments that cannot be placed on a route are grouped under ``UNASSIGNED``.
"""

import re
from dataclasses import dataclass, field
from datetime import date

from shipping.routing.resolver import Resolution, RouteResolver, normalize_postal_code
from shipping.shipment.lifecycle import AWAITING_COLLECTION_STATUSES, ShipmentStatus

UNASSIGNED = "Unassigned"


@dataclass
class RouteGroup:
    route_name: str
    collection_date: date | None = None
    shipments: list = field(default_factory=list)
    customer_ids: set = field(default_factory=set)
    drum_count: int = 0

    @property
    def unique_customer_count(self) -> int:
        return len(self.customer_ids)

    @property
    def shipment_count(self) -> int:
        return len(self.shipments)

    def add(self, shipment) -> None:
        self.shipments.append(shipment)
        self.customer_ids.add(str(shipment.customer_id))
        self.drum_count += shipment.drum_count


@dataclass(frozen=True)
class Placement:
    """Where a shipment lands, and whether that needed a fresh resolution."""

    route_name: str
    collection_date: date | None
    re_resolved: bool


def _lookup_key(shipment, city_keyed: bool) -> str:
    sender = shipment.sender
    if city_keyed:
        return re.sub(r"\s+", " ", (sender.city or "").strip()).upper()
    return normalize_postal_code(sender.postal_code)


class SchedulingAggregator:
    def __init__(self, resolver: RouteResolver):
        self.resolver = resolver

    @property
    def table(self):
        return self.resolver.table

    def is_stale(self, shipment) -> bool:
        assignment = shipment.collection
        if assignment is None:
            return True

        city_keyed = self.table.is_city_keyed(shipment.sender.country)
        if assignment.resolved_from != _lookup_key(shipment, city_keyed):
            return True
        if assignment.table_version != self.table.version:
            return True
        if assignment.route_name and self.table.route_named(assignment.route_name) is None:
            return True
        return False

    def place(self, shipment) -> Placement:
        if not self.is_stale(shipment):
            assignment = shipment.collection
            return Placement(
                route_name=assignment.route_name or UNASSIGNED,
                collection_date=assignment.collection_date if assignment.route_name else None,
                re_resolved=False,
            )

        sender = shipment.sender
        resolution: Resolution = self.resolver.resolve(sender.postal_code, sender.country, city=sender.city)
        if resolution.is_resolved:
            return Placement(resolution.route_name, resolution.collection_date, re_resolved=True)
        return Placement(UNASSIGNED, None, re_resolved=True)

    def group_by_route(self, shipments) -> dict[str, RouteGroup]:
        """Group shipments by collecting route, in route table order."""
        groups: dict[str, RouteGroup] = {}
        for shipment in shipments:
            placement = self.place(shipment)
            group = groups.get(placement.route_name)
            if group is None:
                group = RouteGroup(route_name=placement.route_name, collection_date=placement.collection_date)
                groups[placement.route_name] = group
            group.add(shipment)

        order = {entry.name: index for index, entry in enumerate(self.table.routes)}
        return dict(sorted(groups.items(), key=lambda item: order.get(item[0], len(order))))

    def pending_collections(self, shipments) -> dict[str, RouteGroup]:
        """Groups restricted to shipments a driver still has to collect."""
        return self.group_by_route(
            s for s in shipments if ShipmentStatus(s.status) in AWAITING_COLLECTION_STATUSES
        )

    def collection_day(self, shipments, day: date) -> dict[str, RouteGroup]:
        """Routes collecting on ``day`` with the shipments they will pick up."""
        groups = self.pending_collections(shipments)
        return {name: group for name, group in groups.items() if group.collection_date == day}
