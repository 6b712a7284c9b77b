from shipping.utils.logging import mask_contact_details


def test_masks_phone_and_email():
    event = mask_contact_details(
        None,
        "info",
        {"event": "Shipment booked", "phone": "07700900123", "email": "tendai@example.com"},
    )
    assert event["phone"] == "********123"
    assert event["email"] == "***************com"
    assert event["event"] == "Shipment booked"


def test_leaves_other_fields_alone():
    event = mask_contact_details(None, "info", {"event": "x", "postal_code": "B1 1AA", "route": "BIRMINGHAM ROUTE"})
    assert event == {"event": "x", "postal_code": "B1 1AA", "route": "BIRMINGHAM ROUTE"}


def test_short_and_empty_values():
    event = mask_contact_details(None, "info", {"phone": "12", "email": None})
    assert event["phone"] == "12"
    assert event["email"] is None
