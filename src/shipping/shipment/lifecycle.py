"""Shipment lifecycle — statuses, legal edges and who may walk them.

State Machine:
    BOOKING_CONFIRMED → READY_FOR_PICKUP → PROCESSING_ORIGIN_WAREHOUSE → IN_TRANSIT
        → CUSTOMS_CLEARANCE → PROCESSING_DESTINATION_WAREHOUSE → OUT_FOR_DELIVERY → DELIVERED
    any non-terminal → {CANCELLED, FAILED_ATTEMPT}

Authority:
    admin       any legal edge
    logistics   warehouse hand-offs and cancellation
    driver      collection hand-off, delivery hand-offs, or both when no
                hand-off point is given
    customer    cancellation while the booking is still confirmed

``check_transition`` applies the rules in a fixed order so callers always get
the same error for the same request: stale expected status, illegal edge,
authority, then delivery evidence.
"""

from dataclasses import dataclass
from enum import Enum

from shipping.errors import ConcurrentUpdate, Forbidden, InvalidTransition, MissingEvidence


class ShipmentStatus(Enum):
    BOOKING_CONFIRMED = "Booking Confirmed"
    READY_FOR_PICKUP = "Ready for Pickup"
    PROCESSING_ORIGIN_WAREHOUSE = "Processing in UK Warehouse"
    IN_TRANSIT = "In Transit"
    CUSTOMS_CLEARANCE = "Customs Clearance"
    PROCESSING_DESTINATION_WAREHOUSE = "Processing in ZW Warehouse"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    FAILED_ATTEMPT = "Failed Attempt"


class ActorRole(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    LOGISTICS = "logistics"
    DRIVER = "driver"


class Handoff(Enum):
    COLLECTION = "collection"
    DELIVERY = "delivery"


MAIN_CHAIN = (
    ShipmentStatus.BOOKING_CONFIRMED,
    ShipmentStatus.READY_FOR_PICKUP,
    ShipmentStatus.PROCESSING_ORIGIN_WAREHOUSE,
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.CUSTOMS_CLEARANCE,
    ShipmentStatus.PROCESSING_DESTINATION_WAREHOUSE,
    ShipmentStatus.OUT_FOR_DELIVERY,
    ShipmentStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset(
    {
        ShipmentStatus.DELIVERED,
        ShipmentStatus.CANCELLED,
        ShipmentStatus.FAILED_ATTEMPT,
    }
)

# Shipments still waiting for a driver to pick them up
AWAITING_COLLECTION_STATUSES = frozenset(
    {
        ShipmentStatus.BOOKING_CONFIRMED,
        ShipmentStatus.READY_FOR_PICKUP,
    }
)


def _build_transitions() -> dict:
    transitions = {}
    for current, following in zip(MAIN_CHAIN, MAIN_CHAIN[1:], strict=False):
        transitions[current] = {following, ShipmentStatus.CANCELLED, ShipmentStatus.FAILED_ATTEMPT}
    for terminal in TERMINAL_STATUSES:
        transitions[terminal] = set()
    return transitions


VALID_TRANSITIONS = _build_transitions()

COLLECTION_EDGES = frozenset(
    {
        (ShipmentStatus.READY_FOR_PICKUP, ShipmentStatus.PROCESSING_ORIGIN_WAREHOUSE),
        (ShipmentStatus.READY_FOR_PICKUP, ShipmentStatus.FAILED_ATTEMPT),
    }
)

DELIVERY_EDGES = frozenset(
    {
        (ShipmentStatus.CUSTOMS_CLEARANCE, ShipmentStatus.PROCESSING_DESTINATION_WAREHOUSE),
        (ShipmentStatus.PROCESSING_DESTINATION_WAREHOUSE, ShipmentStatus.OUT_FOR_DELIVERY),
        (ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.DELIVERED),
        (ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.FAILED_ATTEMPT),
    }
)

LOGISTICS_EDGES = frozenset(
    {
        (ShipmentStatus.BOOKING_CONFIRMED, ShipmentStatus.READY_FOR_PICKUP),
        (ShipmentStatus.PROCESSING_ORIGIN_WAREHOUSE, ShipmentStatus.IN_TRANSIT),
        (ShipmentStatus.IN_TRANSIT, ShipmentStatus.CUSTOMS_CLEARANCE),
    }
)


@dataclass(frozen=True)
class Actor:
    """Who is asking for a transition, and from which point of the journey."""

    role: ActorRole
    id: str
    handoff: Handoff | None = None

    @classmethod
    def of(cls, role: str, actor_id: str, handoff: str | None = None) -> "Actor":
        return cls(
            role=ActorRole(role),
            id=actor_id,
            handoff=Handoff(handoff) if handoff else None,
        )


@dataclass(frozen=True)
class LifecyclePolicy:
    require_delivery_evidence: bool = True


def is_terminal(status: ShipmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def may_perform(actor: Actor, current: ShipmentStatus, target: ShipmentStatus, can_cancel: bool = True) -> bool:
    edge = (current, target)
    if actor.role == ActorRole.ADMIN:
        return True
    if actor.role == ActorRole.CUSTOMER:
        return edge == (ShipmentStatus.BOOKING_CONFIRMED, ShipmentStatus.CANCELLED) and can_cancel
    if actor.role == ActorRole.LOGISTICS:
        return edge in LOGISTICS_EDGES or target == ShipmentStatus.CANCELLED
    if actor.handoff == Handoff.COLLECTION:
        return edge in COLLECTION_EDGES
    if actor.handoff == Handoff.DELIVERY:
        return edge in DELIVERY_EDGES
    return edge in COLLECTION_EDGES or edge in DELIVERY_EDGES


def check_transition(
    current: ShipmentStatus,
    target: ShipmentStatus,
    actor: Actor,
    *,
    can_cancel: bool = True,
    has_evidence: bool = False,
    expected_status: ShipmentStatus | None = None,
    policy: LifecyclePolicy | None = None,
) -> None:
    """Raise the first rule the requested transition breaks, if any."""
    policy = policy or LifecyclePolicy()

    if expected_status is not None and expected_status != current:
        raise ConcurrentUpdate(
            f"Shipment is {current.value}, not {expected_status.value}; reload it before changing its status"
        )
    if is_terminal(current):
        raise InvalidTransition(f"Shipment is already {current.value}; no further status changes are allowed")
    if target not in VALID_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move from {current.value} to {target.value}")
    if not may_perform(actor, current, target, can_cancel=can_cancel):
        raise Forbidden(f"{actor.role.value} cannot move a shipment from {current.value} to {target.value}")
    if target == ShipmentStatus.DELIVERED and policy.require_delivery_evidence and not has_evidence:
        raise MissingEvidence("Attach proof of delivery before marking the shipment Delivered")
