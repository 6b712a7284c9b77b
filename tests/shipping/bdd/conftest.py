"""Shared BDD fixtures and step definitions for the Shipping domain."""

import pytest
from pytest_bdd import given, parsers, then
from shipping.pricing.composition import Composition
from shipping.pricing.defaults import STANDARD_TARIFF
from shipping.pricing.engine import PricingEngine
from shipping.pricing.tariff import BookingFlow, PaymentOption
from shipping.routing.resolver import RouteResolver
from shipping.shipment.lifecycle import MAIN_CHAIN, Actor, ShipmentStatus
from shipping.shipment.shipment import Recipient, Sender, Shipment

ADMIN = Actor.of("admin", "admin-1")


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def walk_to(shipment, target: ShipmentStatus) -> None:
    """Move a shipment along the main chain as an admin until it reaches ``target``."""
    if target == ShipmentStatus.CANCELLED:
        shipment.cancel(ADMIN)
        return
    for status in MAIN_CHAIN[MAIN_CHAIN.index(ShipmentStatus(shipment.status)) + 1 :]:
        shipment.transition(status, ADMIN)
        if status == target:
            return


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the default collection schedule", target_fixture="resolver")
def _(default_table):
    return RouteResolver(default_table)


@given(parsers.cfparse('a shipment booked from "{postal_code}"'), target_fixture="shipment")
def _(resolver, postal_code):
    sender = Sender(name="Tendai Moyo", postal_code=postal_code, country="England")
    composition = Composition.drums(2)
    shipment = Shipment.book(
        customer_id="cust-001",
        sender=sender,
        recipient=Recipient(name="Rudo Moyo", city="Harare"),
        composition=composition,
        payment_option=PaymentOption.STANDARD,
        booking_flow=BookingFlow.STANDARD,
        quote=PricingEngine(STANDARD_TARIFF).price(composition, PaymentOption.STANDARD),
        resolution=resolver.resolve(postal_code, sender.country),
    )
    shipment._events.clear()
    return shipment


@given(parsers.cfparse('the shipment is "{status}"'))
def _(shipment, status):
    walk_to(shipment, ShipmentStatus(status))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shipment status is "{status}"'))
def _(shipment, status):
    assert shipment.status == status

