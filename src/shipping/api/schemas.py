"""Pydantic request/response schemas for the Shipping API."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

# --- Shared parts ---


class SenderSchema(BaseModel):
    name: str = Field(..., max_length=200)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=300)
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=12)
    country: str = Field(..., max_length=50)


class RecipientSchema(BaseModel):
    name: str = Field(..., max_length=200)
    phone: str | None = Field(None, max_length=30)
    additional_phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=300)
    city: str | None = Field(None, max_length=100)
    country: str = Field("Zimbabwe", max_length=50)


class UnitSchema(BaseModel):
    item_type: str = Field("drum", max_length=50)
    quantity: int = Field(..., ge=1)


class CustomItemSchema(BaseModel):
    description: str = Field(..., max_length=500)
    category: str | None = Field(None, max_length=100)
    quantity: int = Field(1, ge=1)


class CompositionSchema(BaseModel):
    units: list[UnitSchema] = []
    custom_items: list[CustomItemSchema] = []
    add_ons: list[str] = []
    additional_delivery_addresses: int = Field(0, ge=0)
    payment_option: str = "standard"


# --- Shipment Request Schemas ---


class BookShipmentRequest(CompositionSchema):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "booking_flow": "standard",
                    "sender": {
                        "name": "Tendai Moyo",
                        "email": "tendai@example.com",
                        "phone": "07700900123",
                        "address": "12 High Street",
                        "city": "Birmingham",
                        "postal_code": "B1 1AA",
                        "country": "England",
                    },
                    "recipient": {
                        "name": "Rudo Moyo",
                        "phone": "+263771234567",
                        "address": "5 Samora Machel Ave",
                        "city": "Harare",
                    },
                    "units": [{"item_type": "drum", "quantity": 3}],
                    "add_ons": ["metal_seal"],
                    "payment_option": "standard",
                }
            ]
        }
    }

    customer_id: str
    booking_flow: str = "standard"
    sender: SenderSchema
    recipient: RecipientSchema


class ImportBookingRequest(BaseModel):
    customer_id: str
    metadata: dict


class UpdateCollectionAddressRequest(BaseModel):
    sender: SenderSchema


class ChangeCompositionRequest(CompositionSchema):
    pass


class ActorRequest(BaseModel):
    actor_id: str = Field(..., max_length=100)
    actor_role: str
    handoff: str | None = None
    expected_status: str | None = None


class AdvanceStatusRequest(ActorRequest):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "target_status": "Processing in UK Warehouse",
                    "actor_id": "driver-007",
                    "actor_role": "driver",
                    "handoff": "collection",
                    "expected_status": "Ready for Pickup",
                }
            ]
        }
    }

    target_status: str
    note: str | None = None


class CancelShipmentRequest(ActorRequest):
    reason: str | None = None


class FailedAttemptRequest(ActorRequest):
    reason: str | None = None


class AttachEvidenceRequest(BaseModel):
    actor_id: str = Field(..., max_length=100)
    actor_role: str
    handoff: str | None = None
    evidence_url: str | None = Field(None, max_length=500)
    content: str | None = None  # base64 encoded photo
    filename: str | None = Field(None, max_length=200)
    content_type: str | None = Field(None, max_length=100)
    confirm_delivery: bool = False
    expected_status: str | None = None
    note: str | None = None


class QuoteCustomItemRequest(BaseModel):
    amount: float = Field(..., ge=0)
    quoted_by: str = Field(..., max_length=100)


class AnnotateShipmentRequest(BaseModel):
    actor_id: str = Field(..., max_length=100)
    actor_role: str
    text: str


class PriceQuoteRequest(CompositionSchema):
    booking_flow: str = "standard"


# --- Route Request Schemas ---


class RegisterRouteRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Birmingham Route",
                    "country": "England",
                    "areas": ["B", "CV", "WV"],
                    "pickup_date": "2024-07-12",
                    "priority": 20,
                }
            ]
        }
    }

    name: str = Field(..., max_length=100)
    country: str = Field(..., max_length=50)
    areas: list[str]
    pickup_date: date | None = None
    priority: int | None = Field(None, ge=0)


class RescheduleRouteRequest(BaseModel):
    pickup_date: date


class RouteAreaRequest(BaseModel):
    area: str = Field(..., max_length=50)


class ChangeRoutePriorityRequest(BaseModel):
    priority: int = Field(..., ge=0)


# --- Response Schemas ---


class ShipmentIdResponse(BaseModel):
    shipment_id: str


class RouteIdResponse(BaseModel):
    route_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class ShipmentStatusResponse(BaseModel):
    shipment_id: str
    status: str


class EvidenceResponse(BaseModel):
    shipment_id: str
    evidence_url: str
    status: str


class TotalResponse(BaseModel):
    shipment_id: str
    total_amount: float | None = None


class CollectionResponse(BaseModel):
    outcome: str
    route_name: str | None = None
    collection_date: str | None = None
    areas: list[str] = []
    reason: str | None = None


class LineItemResponse(BaseModel):
    item_id: str
    kind: str
    item_type: str | None = None
    quantity: int
    description: str | None = None
    category: str | None = None
    quoted_amount: float | None = None


class StatusChangeResponse(BaseModel):
    from_status: str
    to_status: str
    actor_id: str
    actor_role: str
    note: str | None = None
    changed_at: str


class ShipmentResponse(BaseModel):
    shipment_id: str
    tracking_number: str
    customer_id: str
    status: str
    booking_flow: str
    payment_option: str
    total_amount: float | None = None
    currency: str
    amount_overridden: bool
    pending_quotation: bool
    can_modify: bool
    can_cancel: bool
    sender: dict
    recipient: dict
    line_items: list[LineItemResponse]
    add_ons: list[str]
    collection: CollectionResponse | None = None
    delivery_evidence_url: str | None = None
    status_history: list[StatusChangeResponse]


class QuoteResponse(BaseModel):
    quote: dict


class ResolutionResponse(BaseModel):
    outcome: str
    normalized_input: str
    table_version: str
    route_name: str | None = None
    areas: list[str] = []
    collection_date: str | None = None
    restricted_prefix: str | None = None
    reason: str | None = None


class RouteResponse(BaseModel):
    route_id: str
    name: str
    country: str
    areas: list[str]
    pickup_date: str | None = None
    priority: int | None = None
    active: bool


class RouteListResponse(BaseModel):
    routes: list[RouteResponse]


class TrackingResponse(BaseModel):
    shipment_id: str
    tracking_number: str
    current_status: str
    route_name: str | None = None
    collection_date: str | None = None
    evidence_url: str | None = None
    timeline: list[dict]


class ManifestRowResponse(BaseModel):
    shipment_id: str
    tracking_number: str
    sender_name: str | None = None
    postal_code: str | None = None
    city: str | None = None
    collection_outcome: str
    route_name: str | None = None
    collection_date: str | None = None
    drum_count: int
    status: str


class ManifestResponse(BaseModel):
    rows: list[ManifestRowResponse]


class RouteGroupResponse(BaseModel):
    route_name: str
    collection_date: str | None = None
    shipment_count: int
    unique_customer_count: int
    drum_count: int
    tracking_numbers: list[str]


class ScheduleResponse(BaseModel):
    day: str | None = None
    groups: list[RouteGroupResponse]
