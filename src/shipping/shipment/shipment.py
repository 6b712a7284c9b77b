"""Shipment aggregate (CQRS) — one booked consignment from collection to delivery.

The aggregate owns three derived pieces of state and keeps each consistent
with its inputs:

- ``collection``: the route assignment, recomputed from the sender's postal
  code (or city) every time the address changes.
- ``pricing`` / ``total_amount``: the engine's quote for the composition and
  payment option, plus operator quotes for custom items.
- ``status``: moved only through ``transition``, which applies the lifecycle
  rules in ``shipping.shipment.lifecycle``.

Once the shipment leaves Booking Confirmed it can no longer be modified or
cancelled by the customer; once terminal only audit notes may be added.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from shipping.configuration import get_lifecycle_policy
from shipping.domain import shipping
from shipping.pricing.composition import DRUM, Composition, CustomLine, UnitLine
from shipping.pricing.tariff import BookingFlow, PaymentOption
from shipping.routing.resolver import ResolutionOutcome
from shipping.shipment.events import (
    CollectionRouteAssigned,
    CustomItemQuoted,
    DeliveryEvidenceAttached,
    ShipmentAnnotated,
    ShipmentBooked,
    ShipmentRepriced,
    ShipmentStatusChanged,
)
from shipping.shipment.lifecycle import (
    AWAITING_COLLECTION_STATUSES,
    Actor,
    LifecyclePolicy,
    ShipmentStatus,
    check_transition,
    is_terminal,
)

TRACKING_PREFIX = "ZIMSHIP"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class LineItemKind(Enum):
    UNIT = "Unit"
    CUSTOM = "Custom"


def generate_tracking_number() -> str:
    return f"{TRACKING_PREFIX}-{uuid4().hex[:8].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@shipping.value_object(part_of="Shipment")
class Sender:
    """Who hands the goods over at collection, and where."""

    name = String(required=True, max_length=200)
    email = String(max_length=254)
    phone = String(max_length=30)
    address = String(max_length=300)
    city = String(max_length=100)
    postal_code = String(max_length=12)
    country = String(required=True, max_length=50)


@shipping.value_object(part_of="Shipment")
class Recipient:
    name = String(required=True, max_length=200)
    phone = String(max_length=30)
    additional_phone = String(max_length=30)
    address = String(max_length=300)
    city = String(max_length=100)
    country = String(max_length=50, default="Zimbabwe")


@shipping.value_object(part_of="Shipment")
class CollectionAssignment:
    """Route assignment derived from the sender's postal code or city."""

    outcome = String(required=True, choices=ResolutionOutcome)
    route_name = String(max_length=100)
    collection_date = Date()
    areas = Text()  # JSON list of the route's areas
    resolved_from = String(max_length=100)
    resolved_country = String(max_length=50)
    table_version = String(max_length=20)
    reason = String(max_length=200)


@shipping.value_object(part_of="Shipment")
class PriceBreakdown:
    tariff_version = String(max_length=50)
    base_amount = Float()
    surcharges_total = Float()
    subtotal = Float()
    discount_or_premium = Float()
    final_amount = Float()
    deferred_items = Integer(default=0)
    detail = Text()  # JSON rendering of the full quote


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@shipping.entity(part_of="Shipment")
class LineItem:
    kind = String(required=True, choices=LineItemKind)
    item_type = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    description = String(max_length=500)
    category = String(max_length=100)
    quoted_amount = Float()


@shipping.entity(part_of="Shipment")
class StatusChange:
    """One accepted status transition."""

    from_status = String(required=True, max_length=50)
    to_status = String(required=True, max_length=50)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    note = Text()
    changed_at = DateTime(required=True)


@shipping.entity(part_of="Shipment")
class AuditNote:
    author_id = String(required=True, max_length=100)
    author_role = String(required=True, max_length=20)
    text = Text(required=True)
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@shipping.aggregate
class Shipment:
    tracking_number = String(required=True, max_length=20, unique=True)
    customer_id = Identifier(required=True)
    sender = ValueObject(Sender, required=True)
    recipient = ValueObject(Recipient, required=True)
    booking_flow = String(choices=BookingFlow, default=BookingFlow.STANDARD.value)
    line_items = HasMany(LineItem)
    add_ons = Text()  # JSON list of add-on codes
    delivery_address_count = Integer(default=1, min_value=1)
    payment_option = String(choices=PaymentOption, default=PaymentOption.STANDARD.value)
    pricing = ValueObject(PriceBreakdown)
    total_amount = Float()
    currency = String(max_length=3, default="GBP")
    amount_overridden = Boolean(default=False)
    pending_quotation = Boolean(default=False)
    collection = ValueObject(CollectionAssignment)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.BOOKING_CONFIRMED.value)
    delivery_evidence_url = String(max_length=500)
    can_modify = Boolean(default=True)
    can_cancel = Boolean(default=True)
    status_history = HasMany(StatusChange)
    annotations = HasMany(AuditNote)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def mutability_follows_status(self):
        if self.status != ShipmentStatus.BOOKING_CONFIRMED.value and (self.can_modify or self.can_cancel):
            raise ValidationError({"can_modify": ["Only confirmed bookings can be modified or cancelled"]})

    # -------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------
    @property
    def add_on_codes(self) -> list[str]:
        return json.loads(self.add_ons) if self.add_ons else []

    @property
    def drum_count(self) -> int:
        return sum(
            item.quantity
            for item in (self.line_items or [])
            if item.kind == LineItemKind.UNIT.value and item.item_type == DRUM
        )

    @property
    def custom_items(self) -> list:
        return [item for item in (self.line_items or []) if item.kind == LineItemKind.CUSTOM.value]

    @property
    def composition(self) -> Composition:
        units = []
        customs = []
        for item in self.line_items or []:
            if item.kind == LineItemKind.UNIT.value:
                units.append(UnitLine(item_type=item.item_type, quantity=item.quantity))
            else:
                customs.append(
                    CustomLine(description=item.description or "", category=item.category or "", quantity=item.quantity)
                )
        return Composition(
            units=tuple(units),
            custom_items=tuple(customs),
            add_ons=frozenset(self.add_on_codes),
            delivery_address_count=self.delivery_address_count or 1,
        )

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def book(
        cls,
        customer_id: str,
        sender: Sender,
        recipient: Recipient,
        composition: Composition,
        payment_option: PaymentOption,
        booking_flow: BookingFlow,
        quote,
        resolution,
    ):
        """Create a confirmed booking from a priced composition and a route resolution."""
        now = datetime.now(UTC)
        shipment = cls(
            tracking_number=generate_tracking_number(),
            customer_id=customer_id,
            sender=sender,
            recipient=recipient,
            booking_flow=BookingFlow(booking_flow).value,
            add_ons=json.dumps(sorted(composition.add_ons)),
            delivery_address_count=composition.delivery_address_count,
            payment_option=PaymentOption(payment_option).value,
            currency=quote.currency,
            status=ShipmentStatus.BOOKING_CONFIRMED.value,
            can_modify=True,
            can_cancel=True,
            created_at=now,
            updated_at=now,
        )
        shipment._replace_line_items(composition)
        shipment._apply_quote(quote)
        shipment._apply_resolution(resolution, sender)

        shipment.raise_(
            ShipmentBooked(
                shipment_id=str(shipment.id),
                tracking_number=shipment.tracking_number,
                customer_id=customer_id,
                booking_flow=shipment.booking_flow,
                sender_name=sender.name,
                sender_postal_code=sender.postal_code,
                sender_city=sender.city,
                sender_country=sender.country,
                recipient_name=recipient.name,
                recipient_city=recipient.city,
                drum_count=shipment.drum_count,
                custom_item_count=len(shipment.custom_items),
                payment_option=shipment.payment_option,
                total_amount=shipment.total_amount,
                currency=shipment.currency,
                pending_quotation=shipment.pending_quotation,
                collection_outcome=shipment.collection.outcome,
                route_name=shipment.collection.route_name,
                collection_date=shipment.collection.collection_date,
                status=shipment.status,
                booked_at=now,
            )
        )
        return shipment

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------
    def _assert_modifiable(self) -> None:
        if not self.can_modify:
            raise ValidationError(
                {"can_modify": [f"Shipment {self.tracking_number} is {self.status} and can no longer be modified"]}
            )

    def _assert_not_terminal(self) -> None:
        if is_terminal(ShipmentStatus(self.status)):
            raise ValidationError({"status": [f"Shipment {self.tracking_number} is closed ({self.status})"]})

    def _replace_line_items(self, composition: Composition) -> None:
        for item in list(self.line_items or []):
            self.remove_line_items(item)
        for line in composition.units:
            self.add_line_items(LineItem(kind=LineItemKind.UNIT.value, item_type=line.item_type, quantity=line.quantity))
        for line in composition.custom_items:
            self.add_line_items(
                LineItem(
                    kind=LineItemKind.CUSTOM.value,
                    quantity=line.quantity,
                    description=line.description,
                    category=line.category,
                )
            )

    def _apply_quote(self, quote) -> None:
        quoted = [item.quoted_amount for item in self.custom_items if item.quoted_amount is not None]
        engine_amount = float(quote.final_amount) if quote.final_amount is not None else 0.0

        self.pricing = PriceBreakdown(
            tariff_version=quote.tariff_version,
            base_amount=float(quote.base_amount),
            surcharges_total=float(sum(c.amount for c in quote.surcharges)),
            subtotal=float(quote.subtotal),
            discount_or_premium=float(quote.discount_or_premium),
            final_amount=float(quote.final_amount) if quote.final_amount is not None else None,
            deferred_items=quote.deferred_items,
            detail=json.dumps(quote.to_dict()),
        )
        self.amount_overridden = bool(quoted)
        self.pending_quotation = len(quoted) < len(self.custom_items)
        self.total_amount = round(engine_amount + sum(quoted), 2)

    def _apply_resolution(self, resolution, sender: Sender) -> None:
        self.collection = CollectionAssignment(
            outcome=resolution.outcome.value,
            route_name=resolution.route_name,
            collection_date=resolution.collection_date,
            areas=json.dumps(list(resolution.areas)),
            resolved_from=resolution.normalized_input,
            resolved_country=sender.country,
            table_version=resolution.table_version,
            reason=resolution.reason,
        )

    def _raise_collection_assigned(self, now: datetime) -> None:
        self.raise_(
            CollectionRouteAssigned(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                customer_id=str(self.customer_id),
                sender_postal_code=self.sender.postal_code,
                sender_city=self.sender.city,
                collection_outcome=self.collection.outcome,
                route_name=self.collection.route_name,
                collection_date=self.collection.collection_date,
                resolved_from=self.collection.resolved_from,
                table_version=self.collection.table_version,
                assigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Booking changes
    # -------------------------------------------------------------------
    def update_collection_address(self, sender: Sender, resolution) -> None:
        """Replace the collection address and the route assignment derived from it."""
        self._assert_modifiable()
        now = datetime.now(UTC)
        self.sender = sender
        self._apply_resolution(resolution, sender)
        self.updated_at = now
        self._raise_collection_assigned(now)

    def refresh_collection(self, resolution) -> bool:
        """Re-derive the assignment after a schedule change.

        Returns whether anything changed. Shipments that have left the
        collection stage keep the assignment they were collected under.
        """
        if ShipmentStatus(self.status) not in AWAITING_COLLECTION_STATUSES:
            return False

        current = self.collection
        if (
            current is not None
            and current.outcome == resolution.outcome.value
            and current.route_name == resolution.route_name
            and current.collection_date == resolution.collection_date
            and current.table_version == resolution.table_version
        ):
            return False

        now = datetime.now(UTC)
        self._apply_resolution(resolution, self.sender)
        self.updated_at = now
        self._raise_collection_assigned(now)
        return True

    def change_composition(self, composition: Composition, payment_option: PaymentOption, quote) -> None:
        """Replace what is being shipped and how it is paid for, and price it again."""
        self._assert_modifiable()
        now = datetime.now(UTC)
        previous_total = self.total_amount

        self._replace_line_items(composition)
        self.add_ons = json.dumps(sorted(composition.add_ons))
        self.delivery_address_count = composition.delivery_address_count
        self.payment_option = PaymentOption(payment_option).value
        self._apply_quote(quote)
        self.updated_at = now

        self.raise_(
            ShipmentRepriced(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                drum_count=self.drum_count,
                payment_option=self.payment_option,
                tariff_version=quote.tariff_version,
                previous_total=previous_total,
                total_amount=self.total_amount,
                pending_quotation=self.pending_quotation,
                repriced_at=now,
            )
        )

    def quote_custom_item(self, item_id: str, amount: float, quoted_by: str) -> None:
        """Record an operator's price for a custom item and fold it into the total."""
        self._assert_not_terminal()
        if amount is None or amount < 0:
            raise ValidationError({"quoted_amount": ["Quoted amount must be zero or more"]})

        item = next((i for i in self.custom_items if str(i.id) == item_id), None)
        if item is None:
            raise ValidationError({"item_id": ["Custom item not found in this shipment"]})

        now = datetime.now(UTC)
        item.quoted_amount = round(float(amount), 2)
        quoted = [i.quoted_amount for i in self.custom_items if i.quoted_amount is not None]
        engine_amount = self.pricing.final_amount if self.pricing and self.pricing.final_amount is not None else 0.0
        self.amount_overridden = True
        self.pending_quotation = len(quoted) < len(self.custom_items)
        self.total_amount = round(engine_amount + sum(quoted), 2)
        self.updated_at = now

        self.raise_(
            CustomItemQuoted(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                customer_id=str(self.customer_id),
                item_id=item_id,
                description=item.description,
                quoted_amount=item.quoted_amount,
                total_amount=self.total_amount,
                pending_quotation=self.pending_quotation,
                quoted_by=quoted_by,
                quoted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition(
        self,
        target: ShipmentStatus,
        actor: Actor,
        note: str | None = None,
        expected_status: ShipmentStatus | None = None,
        policy: LifecyclePolicy | None = None,
    ) -> None:
        """Move the shipment to ``target`` on behalf of ``actor``."""
        target = ShipmentStatus(target)
        current = ShipmentStatus(self.status)
        check_transition(
            current,
            target,
            actor,
            can_cancel=bool(self.can_cancel),
            has_evidence=bool(self.delivery_evidence_url),
            expected_status=ShipmentStatus(expected_status) if expected_status else None,
            policy=policy or get_lifecycle_policy(),
        )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            self.updated_at = now
            if current == ShipmentStatus.BOOKING_CONFIRMED:
                self.can_modify = False
                self.can_cancel = False
            self.add_status_history(
                StatusChange(
                    from_status=current.value,
                    to_status=target.value,
                    actor_id=actor.id,
                    actor_role=actor.role.value,
                    note=note,
                    changed_at=now,
                )
            )

        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                customer_id=str(self.customer_id),
                previous_status=current.value,
                new_status=target.value,
                actor_id=actor.id,
                actor_role=actor.role.value,
                note=note,
                route_name=self.collection.route_name if self.collection else None,
                drum_count=self.drum_count,
                changed_at=now,
            )
        )

    def cancel(self, actor: Actor, reason: str | None = None, expected_status: ShipmentStatus | None = None) -> None:
        self.transition(ShipmentStatus.CANCELLED, actor, note=reason, expected_status=expected_status)

    def record_failed_attempt(
        self, actor: Actor, reason: str | None = None, expected_status: ShipmentStatus | None = None
    ) -> None:
        self.transition(ShipmentStatus.FAILED_ATTEMPT, actor, note=reason, expected_status=expected_status)

    def attach_delivery_evidence(self, evidence_url: str, actor: Actor) -> None:
        """Store the proof-of-delivery reference ahead of the Delivered transition."""
        self._assert_not_terminal()
        if not evidence_url:
            raise ValidationError({"delivery_evidence_url": ["Evidence URL is required"]})

        now = datetime.now(UTC)
        self.delivery_evidence_url = evidence_url
        self.updated_at = now
        self.raise_(
            DeliveryEvidenceAttached(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                evidence_url=evidence_url,
                attached_by=actor.id,
                attached_at=now,
            )
        )

    def annotate(self, text: str, actor: Actor) -> None:
        """Append an audit note. Allowed in every status, terminal ones included."""
        if not text or not text.strip():
            raise ValidationError({"text": ["Note text is required"]})

        now = datetime.now(UTC)
        self.add_annotations(
            AuditNote(author_id=actor.id, author_role=actor.role.value, text=text.strip(), created_at=now)
        )
        self.raise_(
            ShipmentAnnotated(
                shipment_id=str(self.id),
                tracking_number=self.tracking_number,
                author_id=actor.id,
                author_role=actor.role.value,
                text=text.strip(),
                annotated_at=now,
            )
        )
