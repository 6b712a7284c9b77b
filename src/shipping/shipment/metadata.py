"""Legacy booking metadata — normalizes the payloads of the old web forms.

Two shapes were captured before bookings were modelled explicitly:

- the flat form: sender and recipient fields at the top level
  (``firstName``, ``pickupPostcode``, ``recipientName`` ...) with
  ``shipmentType``, ``drumQuantity``, ``wantMetalSeal``, ``doorToDoor``,
  ``additionalDeliveryAddresses`` and ``paymentOption``;
- the guest form: ``bookingType: "guest"`` with nested ``sender``,
  ``recipient`` and ``shipment`` (``drums``, ``boxes``, ``otherItems``).

Both map onto the keyword arguments of ``BookShipment``. Boxes and other
items have no tariff and become custom items awaiting an operator quote.
"""

import json
from enum import Enum

from protean.exceptions import ValidationError

from shipping.pricing.composition import DOOR_TO_DOOR, DRUM, METAL_SEAL
from shipping.pricing.tariff import BookingFlow, PaymentOption


class MetadataShape(Enum):
    FLAT = "flat"
    GUEST = "guest"


_PAYMENT_OPTIONS = {
    "standard": PaymentOption.STANDARD,
    "payLater": PaymentOption.PAY_LATER,
    "cashOnCollection": PaymentOption.CASH_ON_COLLECTION,
    "payOnArrival": PaymentOption.PAY_ON_ARRIVAL,
}


def detect_shape(metadata: dict) -> MetadataShape:
    if metadata.get("bookingType") == "guest" or isinstance(metadata.get("shipment"), dict):
        return MetadataShape.GUEST
    if "shipmentType" in metadata or "pickupPostcode" in metadata or "pickupCountry" in metadata:
        return MetadataShape.FLAT
    raise ValidationError({"metadata": ["Unrecognised booking metadata shape"]})


def _count(value, field_name: str) -> int:
    if value in (None, ""):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError({field_name: [f"{value!r} is not a whole number"]}) from exc
    if count < 0:
        raise ValidationError({field_name: ["Must be zero or more"]})
    return count


def _full_name(first, last, fallback=None) -> str:
    name = " ".join(part.strip() for part in (first, last) if part and part.strip())
    return name or (fallback or "").strip()


def _payment_option(raw) -> PaymentOption:
    if not raw:
        return PaymentOption.STANDARD
    try:
        return _PAYMENT_OPTIONS[raw]
    except KeyError:
        try:
            return PaymentOption(raw)
        except ValueError as exc:
            raise ValidationError({"paymentOption": [f"Unknown payment option {raw}"]}) from exc


def _payload(sender, recipient, units, custom_items, add_ons, extra_addresses, payment_option, flow) -> dict:
    return {
        "booking_flow": flow.value,
        "sender": json.dumps(sender),
        "recipient": json.dumps(recipient),
        "units": json.dumps(units),
        "custom_items": json.dumps(custom_items),
        "add_ons": json.dumps(sorted(add_ons)),
        "additional_delivery_addresses": extra_addresses,
        "payment_option": payment_option.value,
    }


def _from_flat(metadata: dict) -> dict:
    sender = {
        "name": _full_name(metadata.get("firstName"), metadata.get("lastName"), metadata.get("name")),
        "email": metadata.get("email"),
        "phone": metadata.get("phone"),
        "address": metadata.get("pickupAddress"),
        "city": metadata.get("pickupCity"),
        "postal_code": metadata.get("pickupPostcode"),
        "country": metadata.get("pickupCountry"),
    }
    recipient = {
        "name": metadata.get("recipientName"),
        "phone": metadata.get("recipientPhone"),
        "additional_phone": metadata.get("additionalRecipientPhone") or metadata.get("additionalPhone"),
        "address": metadata.get("deliveryAddress"),
        "city": metadata.get("deliveryCity"),
    }

    units, custom_items, add_ons = [], [], set()
    if metadata.get("shipmentType", "drum") == "drum":
        drums = _count(metadata.get("drumQuantity") or 1, "drumQuantity")
        if drums:
            units.append({"item_type": DRUM, "quantity": drums})
            if metadata.get("wantMetalSeal") or metadata.get("needMetalSeals"):
                add_ons.add(METAL_SEAL)
    else:
        description = (
            metadata.get("otherItemDescription")
            or metadata.get("specificItem")
            or metadata.get("itemDescription")
            or "Other item"
        )
        custom_items.append(
            {"description": description, "category": metadata.get("itemCategory") or "", "quantity": 1}
        )

    extra_addresses = len(metadata.get("additionalDeliveryAddresses") or [])
    if metadata.get("doorToDoor"):
        add_ons.add(DOOR_TO_DOOR)

    return _payload(
        sender,
        recipient,
        units,
        custom_items,
        add_ons,
        extra_addresses,
        _payment_option(metadata.get("paymentOption")),
        BookingFlow.STANDARD,
    )


def _from_guest(metadata: dict) -> dict:
    raw_sender = metadata.get("sender") or {}
    raw_recipient = metadata.get("recipient") or {}
    goods = metadata.get("shipment") or {}

    sender = {
        "name": _full_name(raw_sender.get("firstName"), raw_sender.get("lastName"), raw_sender.get("name")),
        "email": raw_sender.get("email"),
        "phone": raw_sender.get("phone"),
        "address": raw_sender.get("address"),
        "city": raw_sender.get("city"),
        "postal_code": raw_sender.get("postalCode"),
        "country": raw_sender.get("country"),
    }
    recipient = {
        "name": raw_recipient.get("name"),
        "phone": raw_recipient.get("phone"),
        "additional_phone": raw_recipient.get("additionalPhone"),
        "address": raw_recipient.get("address"),
        "city": raw_recipient.get("city"),
    }

    units, custom_items = [], []
    drums = _count(goods.get("drums"), "drums")
    if drums:
        units.append({"item_type": DRUM, "quantity": drums})
    boxes = _count(goods.get("boxes"), "boxes")
    if boxes:
        custom_items.append({"description": "Boxes", "category": "boxes", "quantity": boxes})
    if goods.get("otherItems"):
        custom_items.append({"description": goods["otherItems"], "category": "other", "quantity": 1})

    return _payload(
        sender,
        recipient,
        units,
        custom_items,
        set(),
        0,
        _payment_option(metadata.get("paymentOption")),
        BookingFlow.SIMPLIFIED,
    )


def normalize_booking_metadata(metadata: dict) -> dict:
    """Map a legacy metadata blob onto ``BookShipment`` keyword arguments."""
    if not isinstance(metadata, dict):
        raise ValidationError({"metadata": ["Booking metadata must be an object"]})

    shape = detect_shape(metadata)
    if shape == MetadataShape.GUEST:
        return _from_guest(metadata)
    return _from_flat(metadata)
