"""Glue between shipment commands and the pure routing and pricing services."""

import json

from protean.exceptions import ValidationError

from shipping.configuration import get_tariff
from shipping.pricing.composition import Composition, CustomLine, UnitLine
from shipping.pricing.engine import PricingEngine, Quote
from shipping.pricing.tariff import BookingFlow, PaymentOption
from shipping.routing.resolver import Resolution, RouteResolver
from shipping.routing.table import load_route_table
from shipping.shipment.lifecycle import Actor
from shipping.shipment.shipment import Recipient, Sender


def current_resolver() -> RouteResolver:
    """Resolver over the collection schedule as it stands right now."""
    return RouteResolver(load_route_table())


def resolve_collection(sender: Sender, resolver: RouteResolver | None = None) -> Resolution:
    resolver = resolver or current_resolver()
    return resolver.resolve(sender.postal_code, sender.country, city=sender.city)


def price_composition(composition: Composition, payment_option, booking_flow) -> Quote:
    engine = PricingEngine(get_tariff(BookingFlow(booking_flow)))
    return engine.price(composition, PaymentOption(payment_option))


def _load_json(raw: str | None, field_name: str, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError({field_name: ["Malformed JSON payload"]}) from exc


def _unit_line(raw) -> UnitLine:
    return UnitLine(item_type=str(raw["item_type"]), quantity=int(raw["quantity"]))


def _custom_line(raw) -> CustomLine:
    return CustomLine(
        description=str(raw["description"]),
        category=raw.get("category") or "",
        quantity=int(raw.get("quantity") or 1),
    )


def _lines(raw, field_name: str, parse, shape: str) -> tuple:
    if not isinstance(raw, list):
        raise ValidationError({field_name: [f"Expected a list of {shape}"]})
    lines = []
    for index, entry in enumerate(raw):
        try:
            lines.append(parse(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValidationError({field_name: [f"Entry {index} is not a valid {shape}"]}) from exc
    return tuple(lines)


def composition_from_command(command) -> Composition:
    """Build a composition from the JSON fields shared by booking commands."""
    units = _load_json(command.units, "units", [])
    customs = _load_json(command.custom_items, "custom_items", [])
    add_ons = _load_json(command.add_ons, "add_ons", [])
    if not isinstance(add_ons, list) or not all(isinstance(code, str) for code in add_ons):
        raise ValidationError({"add_ons": ["Expected a list of add-on codes"]})
    return Composition(
        units=_lines(units, "units", _unit_line, "{item_type, quantity} line"),
        custom_items=_lines(customs, "custom_items", _custom_line, "{description, category, quantity} line"),
        add_ons=frozenset(add_ons),
        delivery_address_count=1 + (command.additional_delivery_addresses or 0),
    )


def sender_from_json(raw: str) -> Sender:
    return Sender(**_load_json(raw, "sender", {}))


def recipient_from_json(raw: str) -> Recipient:
    return Recipient(**_load_json(raw, "recipient", {}))


def actor_from_command(command) -> Actor:
    try:
        return Actor.of(command.actor_role, command.actor_id, getattr(command, "handoff", None))
    except ValueError as exc:
        raise ValidationError({"actor_role": [str(exc)]}) from exc
