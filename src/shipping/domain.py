"""Shipping bounded context — drum shipments from the UK and Ireland to Zimbabwe.

Covers the booking flow (collection route resolution and tiered pricing),
the shipment lifecycle driven by admins, logistics staff and drivers, and
the collection-day views built on top of route assignments. Uses CQRS:
shipments are stored as current state and projections are fed by events.
"""

from protean.domain import Domain

from shipping.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
shipping = Domain(name="shipping")
