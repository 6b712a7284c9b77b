"""Collection-day schedule over the shipments currently awaiting collection."""

from datetime import date

import structlog
from protean.utils.globals import current_domain

from shipping.routing.resolver import RouteResolver
from shipping.scheduling.aggregator import RouteGroup, SchedulingAggregator
from shipping.shipment.services import current_resolver
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


def build_collection_schedule(day: date | None = None, resolver: RouteResolver | None = None) -> dict[str, RouteGroup]:
    """Group shipments awaiting collection by route, optionally for one collection day."""
    aggregator = SchedulingAggregator(resolver or current_resolver())
    shipments = current_domain.repository_for(Shipment).awaiting_collection()

    if day is None:
        groups = aggregator.pending_collections(shipments)
    else:
        groups = aggregator.collection_day(shipments, day)

    logger.debug(
        "Collection schedule built",
        day=day.isoformat() if day else None,
        routes=len(groups),
        shipments=sum(g.shipment_count for g in groups.values()),
        table_version=aggregator.table.version,
    )
    return groups
