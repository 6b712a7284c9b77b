import json

import pytest
from protean.exceptions import ValidationError
from shipping.pricing.composition import DOOR_TO_DOOR, DRUM, METAL_SEAL
from shipping.pricing.tariff import BookingFlow, PaymentOption
from shipping.shipment.metadata import MetadataShape, detect_shape, normalize_booking_metadata

FLAT_FORM = {
    "firstName": "Tendai",
    "lastName": "Moyo",
    "email": "tendai@example.com",
    "phone": "07700900123",
    "pickupAddress": "12 High Street",
    "pickupCity": "Birmingham",
    "pickupPostcode": "B1 1AA",
    "pickupCountry": "England",
    "recipientName": "Rudo Moyo",
    "recipientPhone": "+263771234567",
    "deliveryAddress": "5 Samora Machel Ave",
    "deliveryCity": "Harare",
    "shipmentType": "drum",
    "drumQuantity": "3",
    "wantMetalSeal": True,
    "doorToDoor": True,
    "additionalDeliveryAddresses": ["Bulawayo", "Mutare"],
    "paymentOption": "payLater",
}

GUEST_FORM = {
    "bookingType": "guest",
    "sender": {
        "firstName": "Chipo",
        "lastName": "Dube",
        "postalCode": "D01",
        "city": "Dublin",
        "country": "Ireland",
    },
    "recipient": {"name": "Farai Dube", "phone": "+263772000000", "city": "Gweru"},
    "shipment": {"drums": 2, "boxes": 3, "otherItems": "Bicycle"},
}


class TestShapeDetection:
    def test_flat(self):
        assert detect_shape(FLAT_FORM) == MetadataShape.FLAT

    def test_guest_by_booking_type(self):
        assert detect_shape({"bookingType": "guest"}) == MetadataShape.GUEST

    def test_guest_by_nested_shipment(self):
        assert detect_shape({"shipment": {"drums": 1}}) == MetadataShape.GUEST

    def test_unknown_shape(self):
        with pytest.raises(ValidationError) as exc:
            normalize_booking_metadata({"hello": "world"})
        assert "metadata" in exc.value.messages

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            normalize_booking_metadata(["drum"])


class TestFlatForm:
    def test_sender_and_recipient(self):
        payload = normalize_booking_metadata(FLAT_FORM)
        sender = json.loads(payload["sender"])
        recipient = json.loads(payload["recipient"])
        assert sender["name"] == "Tendai Moyo"
        assert sender["postal_code"] == "B1 1AA"
        assert recipient["city"] == "Harare"

    def test_drums_and_add_ons(self):
        payload = normalize_booking_metadata(FLAT_FORM)
        assert json.loads(payload["units"]) == [{"item_type": DRUM, "quantity": 3}]
        assert json.loads(payload["add_ons"]) == sorted([DOOR_TO_DOOR, METAL_SEAL])
        assert payload["additional_delivery_addresses"] == 2
        assert payload["booking_flow"] == BookingFlow.STANDARD.value

    def test_camel_case_payment_option(self):
        payload = normalize_booking_metadata(FLAT_FORM)
        assert payload["payment_option"] == PaymentOption.PAY_LATER.value

    def test_missing_payment_option_defaults_to_standard(self):
        payload = normalize_booking_metadata({**FLAT_FORM, "paymentOption": None})
        assert payload["payment_option"] == PaymentOption.STANDARD.value

    def test_unknown_payment_option(self):
        with pytest.raises(ValidationError) as exc:
            normalize_booking_metadata({**FLAT_FORM, "paymentOption": "barter"})
        assert "paymentOption" in exc.value.messages

    def test_other_item_becomes_custom_item(self):
        form = {**FLAT_FORM, "shipmentType": "other", "otherItemDescription": "Fridge", "itemCategory": "appliances"}
        payload = normalize_booking_metadata(form)
        assert json.loads(payload["units"]) == []
        assert json.loads(payload["custom_items"]) == [
            {"description": "Fridge", "category": "appliances", "quantity": 1}
        ]

    def test_bad_drum_quantity(self):
        with pytest.raises(ValidationError) as exc:
            normalize_booking_metadata({**FLAT_FORM, "drumQuantity": "many"})
        assert "drumQuantity" in exc.value.messages


class TestGuestForm:
    def test_uses_simplified_flow(self):
        payload = normalize_booking_metadata(GUEST_FORM)
        assert payload["booking_flow"] == BookingFlow.SIMPLIFIED.value
        assert payload["payment_option"] == PaymentOption.STANDARD.value

    def test_sender_from_nested_fields(self):
        sender = json.loads(normalize_booking_metadata(GUEST_FORM)["sender"])
        assert sender["name"] == "Chipo Dube"
        assert sender["city"] == "Dublin"
        assert sender["country"] == "Ireland"

    def test_boxes_and_other_items_await_quotes(self):
        payload = normalize_booking_metadata(GUEST_FORM)
        assert json.loads(payload["units"]) == [{"item_type": DRUM, "quantity": 2}]
        assert json.loads(payload["custom_items"]) == [
            {"description": "Boxes", "category": "boxes", "quantity": 3},
            {"description": "Bicycle", "category": "other", "quantity": 1},
        ]

    def test_negative_count_rejected(self):
        form = {**GUEST_FORM, "shipment": {"drums": -1}}
        with pytest.raises(ValidationError) as exc:
            normalize_booking_metadata(form)
        assert "drums" in exc.value.messages
