"""FastAPI endpoints for the Shipping domain.

Thin adapters that translate HTTP requests into domain commands, and read
models and pure services into responses.
"""

import json
from datetime import date

from fastapi import APIRouter
from protean.utils.globals import current_domain

from shipping.api.schemas import (
    AdvanceStatusRequest,
    AnnotateShipmentRequest,
    AttachEvidenceRequest,
    BookShipmentRequest,
    CancelShipmentRequest,
    ChangeCompositionRequest,
    ChangeRoutePriorityRequest,
    CollectionResponse,
    CompositionSchema,
    EvidenceResponse,
    FailedAttemptRequest,
    ImportBookingRequest,
    LineItemResponse,
    ManifestResponse,
    ManifestRowResponse,
    PriceQuoteRequest,
    QuoteCustomItemRequest,
    QuoteResponse,
    RegisterRouteRequest,
    RescheduleRouteRequest,
    ResolutionResponse,
    RouteAreaRequest,
    RouteGroupResponse,
    RouteIdResponse,
    RouteListResponse,
    RouteResponse,
    ScheduleResponse,
    ShipmentIdResponse,
    ShipmentResponse,
    ShipmentStatusResponse,
    StatusChangeResponse,
    StatusResponse,
    TotalResponse,
    TrackingResponse,
    UpdateCollectionAddressRequest,
)
from shipping.errors import ShipmentNotFound
from shipping.pricing.composition import Composition, CustomLine, UnitLine
from shipping.projections.collection_manifest import CollectionManifestView
from shipping.projections.route_schedule import RouteScheduleView
from shipping.projections.shipment_tracking import ShipmentTrackingView
from shipping.routing.management import (
    AddRouteArea,
    ChangeRoutePriority,
    RegisterRoute,
    RemoveRouteArea,
    RescheduleRoute,
    RetireRoute,
)
from shipping.scheduling.schedule import build_collection_schedule
from shipping.shipment.annotation import AnnotateShipment
from shipping.shipment.booking import BookShipment
from shipping.shipment.delivery import AttachDeliveryEvidence, ConfirmDelivery
from shipping.shipment.metadata import normalize_booking_metadata
from shipping.shipment.modification import ChangeComposition, UpdateCollectionAddress
from shipping.shipment.quotation import QuoteCustomItem
from shipping.shipment.services import current_resolver, price_composition
from shipping.shipment.shipment import Shipment
from shipping.shipment.status import AdvanceShipmentStatus, CancelShipment, RecordFailedAttempt

shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])
route_router = APIRouter(prefix="/collection-routes", tags=["collection-routes"])
quote_router = APIRouter(prefix="/quotes", tags=["quotes"])
schedule_router = APIRouter(tags=["schedule"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _composition_fields(body: CompositionSchema) -> dict:
    return {
        "units": json.dumps([u.model_dump() for u in body.units]),
        "custom_items": json.dumps([c.model_dump() for c in body.custom_items]),
        "add_ons": json.dumps(body.add_ons),
        "additional_delivery_addresses": body.additional_delivery_addresses,
        "payment_option": body.payment_option,
    }


def _shipment_response(shipment: Shipment) -> ShipmentResponse:
    collection = shipment.collection
    return ShipmentResponse(
        shipment_id=str(shipment.id),
        tracking_number=shipment.tracking_number,
        customer_id=str(shipment.customer_id),
        status=shipment.status,
        booking_flow=shipment.booking_flow,
        payment_option=shipment.payment_option,
        total_amount=shipment.total_amount,
        currency=shipment.currency,
        amount_overridden=bool(shipment.amount_overridden),
        pending_quotation=bool(shipment.pending_quotation),
        can_modify=bool(shipment.can_modify),
        can_cancel=bool(shipment.can_cancel),
        sender=shipment.sender.to_dict(),
        recipient=shipment.recipient.to_dict(),
        line_items=[
            LineItemResponse(
                item_id=str(item.id),
                kind=item.kind,
                item_type=item.item_type,
                quantity=item.quantity,
                description=item.description,
                category=item.category,
                quoted_amount=item.quoted_amount,
            )
            for item in shipment.line_items or []
        ],
        add_ons=shipment.add_on_codes,
        collection=(
            CollectionResponse(
                outcome=collection.outcome,
                route_name=collection.route_name,
                collection_date=_iso(collection.collection_date),
                areas=json.loads(collection.areas) if collection.areas else [],
                reason=collection.reason,
            )
            if collection
            else None
        ),
        delivery_evidence_url=shipment.delivery_evidence_url,
        status_history=[
            StatusChangeResponse(
                from_status=change.from_status,
                to_status=change.to_status,
                actor_id=change.actor_id,
                actor_role=change.actor_role,
                note=change.note,
                changed_at=change.changed_at.isoformat(),
            )
            for change in sorted(shipment.status_history or [], key=lambda c: c.changed_at)
        ],
    )


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------
@shipment_router.post("", status_code=201, response_model=ShipmentIdResponse)
async def book_shipment(body: BookShipmentRequest) -> ShipmentIdResponse:
    command = BookShipment(
        customer_id=body.customer_id,
        booking_flow=body.booking_flow,
        sender=json.dumps(body.sender.model_dump()),
        recipient=json.dumps(body.recipient.model_dump()),
        **_composition_fields(body),
    )
    result = current_domain.process(command, asynchronous=False)
    return ShipmentIdResponse(shipment_id=result)


@shipment_router.post("/import", status_code=201, response_model=ShipmentIdResponse)
async def import_booking(body: ImportBookingRequest) -> ShipmentIdResponse:
    """Book a shipment from metadata captured by the legacy booking forms."""
    command = BookShipment(customer_id=body.customer_id, **normalize_booking_metadata(body.metadata))
    result = current_domain.process(command, asynchronous=False)
    return ShipmentIdResponse(shipment_id=result)


@shipment_router.get("/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(shipment_id: str) -> ShipmentResponse:
    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    return _shipment_response(shipment)


@shipment_router.put("/{shipment_id}/collection-address", response_model=StatusResponse)
async def update_collection_address(shipment_id: str, body: UpdateCollectionAddressRequest) -> StatusResponse:
    command = UpdateCollectionAddress(
        shipment_id=shipment_id,
        sender=json.dumps(body.sender.model_dump()),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@shipment_router.put("/{shipment_id}/composition", response_model=StatusResponse)
async def change_composition(shipment_id: str, body: ChangeCompositionRequest) -> StatusResponse:
    command = ChangeComposition(shipment_id=shipment_id, **_composition_fields(body))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@shipment_router.put("/{shipment_id}/status", response_model=ShipmentStatusResponse)
async def advance_status(shipment_id: str, body: AdvanceStatusRequest) -> ShipmentStatusResponse:
    command = AdvanceShipmentStatus(
        shipment_id=shipment_id,
        target_status=body.target_status,
        actor_id=body.actor_id,
        actor_role=body.actor_role,
        handoff=body.handoff,
        expected_status=body.expected_status,
        note=body.note,
    )
    result = current_domain.process(command, asynchronous=False)
    return ShipmentStatusResponse(shipment_id=shipment_id, status=result)


@shipment_router.put("/{shipment_id}/cancel", response_model=ShipmentStatusResponse)
async def cancel_shipment(shipment_id: str, body: CancelShipmentRequest) -> ShipmentStatusResponse:
    command = CancelShipment(
        shipment_id=shipment_id,
        actor_id=body.actor_id,
        actor_role=body.actor_role,
        expected_status=body.expected_status,
        reason=body.reason,
    )
    result = current_domain.process(command, asynchronous=False)
    return ShipmentStatusResponse(shipment_id=shipment_id, status=result)


@shipment_router.put("/{shipment_id}/failed-attempt", response_model=ShipmentStatusResponse)
async def record_failed_attempt(shipment_id: str, body: FailedAttemptRequest) -> ShipmentStatusResponse:
    command = RecordFailedAttempt(
        shipment_id=shipment_id,
        actor_id=body.actor_id,
        actor_role=body.actor_role,
        handoff=body.handoff,
        expected_status=body.expected_status,
        reason=body.reason,
    )
    result = current_domain.process(command, asynchronous=False)
    return ShipmentStatusResponse(shipment_id=shipment_id, status=result)


@shipment_router.post("/{shipment_id}/evidence", status_code=201, response_model=EvidenceResponse)
async def attach_evidence(shipment_id: str, body: AttachEvidenceRequest) -> EvidenceResponse:
    """Store proof of delivery; with ``confirm_delivery`` also mark the shipment Delivered."""
    fields = {
        "shipment_id": shipment_id,
        "actor_id": body.actor_id,
        "actor_role": body.actor_role,
        "handoff": body.handoff,
        "evidence_url": body.evidence_url,
        "content": body.content,
        "filename": body.filename or "delivery.jpg",
        "content_type": body.content_type or "image/jpeg",
    }
    if body.confirm_delivery:
        command = ConfirmDelivery(expected_status=body.expected_status, note=body.note, **fields)
    else:
        command = AttachDeliveryEvidence(**fields)
    current_domain.process(command, asynchronous=False)

    shipment = current_domain.repository_for(Shipment).get_shipment(shipment_id)
    return EvidenceResponse(
        shipment_id=shipment_id,
        evidence_url=shipment.delivery_evidence_url,
        status=shipment.status,
    )


@shipment_router.put("/{shipment_id}/items/{item_id}/quote", response_model=TotalResponse)
async def quote_custom_item(shipment_id: str, item_id: str, body: QuoteCustomItemRequest) -> TotalResponse:
    command = QuoteCustomItem(
        shipment_id=shipment_id,
        item_id=item_id,
        amount=body.amount,
        quoted_by=body.quoted_by,
    )
    result = current_domain.process(command, asynchronous=False)
    return TotalResponse(shipment_id=shipment_id, total_amount=result)


@shipment_router.post("/{shipment_id}/notes", status_code=201, response_model=StatusResponse)
async def annotate_shipment(shipment_id: str, body: AnnotateShipmentRequest) -> StatusResponse:
    command = AnnotateShipment(
        shipment_id=shipment_id,
        actor_id=body.actor_id,
        actor_role=body.actor_role,
        text=body.text,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Price preview
# ---------------------------------------------------------------------------
@quote_router.post("", response_model=QuoteResponse)
async def preview_quote(body: PriceQuoteRequest) -> QuoteResponse:
    """Price a composition without booking it."""
    composition = Composition(
        units=tuple(UnitLine(item_type=u.item_type, quantity=u.quantity) for u in body.units),
        custom_items=tuple(
            CustomLine(description=c.description, category=c.category or "", quantity=c.quantity)
            for c in body.custom_items
        ),
        add_ons=frozenset(body.add_ons),
        delivery_address_count=1 + body.additional_delivery_addresses,
    )
    quote = price_composition(composition, body.payment_option, body.booking_flow)
    return QuoteResponse(quote=quote.to_dict())


# ---------------------------------------------------------------------------
# Collection routes
# ---------------------------------------------------------------------------
@route_router.get("", response_model=RouteListResponse)
async def list_routes() -> RouteListResponse:
    views = current_domain.repository_for(RouteScheduleView)._dao.query.all().items
    views = sorted(views, key=lambda v: (v.priority if v.priority is not None else 0, v.name))
    return RouteListResponse(
        routes=[
            RouteResponse(
                route_id=str(v.route_id),
                name=v.name,
                country=v.country,
                areas=json.loads(v.areas) if v.areas else [],
                pickup_date=_iso(v.pickup_date),
                priority=v.priority,
                active=bool(v.active),
            )
            for v in views
        ]
    )


@route_router.get("/resolve", response_model=ResolutionResponse)
async def resolve_route(
    postal_code: str | None = None,
    country: str | None = None,
    city: str | None = None,
) -> ResolutionResponse:
    """Which route would collect from this address right now."""
    resolution = current_resolver().resolve(postal_code, country, city=city)
    return ResolutionResponse(
        outcome=resolution.outcome.value,
        normalized_input=resolution.normalized_input,
        table_version=resolution.table_version,
        route_name=resolution.route_name,
        areas=list(resolution.areas),
        collection_date=_iso(resolution.collection_date),
        restricted_prefix=resolution.restricted_prefix,
        reason=resolution.reason,
    )


@route_router.post("", status_code=201, response_model=RouteIdResponse)
async def register_route(body: RegisterRouteRequest) -> RouteIdResponse:
    # Unset optional fields are left out so the command's defaults apply
    kwargs = {"name": body.name, "country": body.country, "areas": json.dumps(body.areas)}
    if body.pickup_date is not None:
        kwargs["pickup_date"] = body.pickup_date
    if body.priority is not None:
        kwargs["priority"] = body.priority
    result = current_domain.process(RegisterRoute(**kwargs), asynchronous=False)
    return RouteIdResponse(route_id=result)


@route_router.put("/{route_id}/schedule", response_model=StatusResponse)
async def reschedule_route(route_id: str, body: RescheduleRouteRequest) -> StatusResponse:
    command = RescheduleRoute(route_id=route_id, pickup_date=body.pickup_date)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@route_router.post("/{route_id}/areas", status_code=201, response_model=StatusResponse)
async def add_route_area(route_id: str, body: RouteAreaRequest) -> StatusResponse:
    command = AddRouteArea(route_id=route_id, area=body.area)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@route_router.delete("/{route_id}/areas/{area}", response_model=StatusResponse)
async def remove_route_area(route_id: str, area: str) -> StatusResponse:
    command = RemoveRouteArea(route_id=route_id, area=area)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@route_router.put("/{route_id}/priority", response_model=StatusResponse)
async def change_route_priority(route_id: str, body: ChangeRoutePriorityRequest) -> StatusResponse:
    command = ChangeRoutePriority(route_id=route_id, priority=body.priority)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@route_router.put("/{route_id}/retire", response_model=StatusResponse)
async def retire_route(route_id: str) -> StatusResponse:
    command = RetireRoute(route_id=route_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------
@schedule_router.get("/schedule", response_model=ScheduleResponse)
async def collection_schedule(day: date | None = None) -> ScheduleResponse:
    """Shipments awaiting collection grouped by route, optionally for one day."""
    groups = build_collection_schedule(day)
    return ScheduleResponse(
        day=_iso(day),
        groups=[
            RouteGroupResponse(
                route_name=group.route_name,
                collection_date=_iso(group.collection_date),
                shipment_count=group.shipment_count,
                unique_customer_count=group.unique_customer_count,
                drum_count=group.drum_count,
                tracking_numbers=[s.tracking_number for s in group.shipments],
            )
            for group in groups.values()
        ],
    )


@schedule_router.get("/tracking/{tracking_number}", response_model=TrackingResponse)
async def track_shipment(tracking_number: str) -> TrackingResponse:
    repo = current_domain.repository_for(ShipmentTrackingView)
    view = repo._dao.query.filter(tracking_number=tracking_number.strip().upper()).all().first
    if view is None:
        raise ShipmentNotFound(f"No shipment with tracking number {tracking_number}")
    return TrackingResponse(
        shipment_id=str(view.shipment_id),
        tracking_number=view.tracking_number,
        current_status=view.current_status,
        route_name=view.route_name,
        collection_date=_iso(view.collection_date),
        evidence_url=view.evidence_url,
        timeline=json.loads(view.timeline_json) if view.timeline_json else [],
    )


@schedule_router.get("/manifest", response_model=ManifestResponse)
async def collection_manifest(route_name: str | None = None) -> ManifestResponse:
    """Shipments still to be collected, by collection date and route."""
    repo = current_domain.repository_for(CollectionManifestView)
    if route_name:
        rows = repo._dao.query.filter(route_name=route_name.strip().upper()).all().items
    else:
        rows = repo._dao.query.all().items
    rows = sorted(rows, key=lambda r: (r.collection_date or date.max, r.route_name or "", r.tracking_number))
    return ManifestResponse(
        rows=[
            ManifestRowResponse(
                shipment_id=str(r.shipment_id),
                tracking_number=r.tracking_number,
                sender_name=r.sender_name,
                postal_code=r.postal_code,
                city=r.city,
                collection_outcome=r.collection_outcome,
                route_name=r.route_name,
                collection_date=_iso(r.collection_date),
                drum_count=r.drum_count or 0,
                status=r.status,
            )
            for r in rows
        ]
    )
