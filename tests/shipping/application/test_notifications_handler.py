"""Application tests for customer notifications.

Covers:
- Booking, status changes and custom item quotes notify the shipment owner
- A notifier reporting failure does not undo the change
- A notifier raising, or returning nothing, does not undo the change
- Adapters are selected from the environment or installed directly
"""

import json
from unittest.mock import patch

import pytest
from protean import current_domain
from shipping.shipment.booking import BookShipment
from shipping.shipment.quotation import QuoteCustomItem
from shipping.shipment.shipment import Shipment
from shipping.shipment.status import AdvanceShipmentStatus

pytestmark = pytest.mark.usefixtures("registered_routes")


def _book(**overrides):
    defaults = {
        "customer_id": "cust-042",
        "sender": json.dumps({"name": "Tendai Moyo", "postal_code": "B1 1AA", "country": "England"}),
        "recipient": json.dumps({"name": "Rudo Moyo", "city": "Harare"}),
        "units": json.dumps([{"item_type": "drum", "quantity": 1}]),
    }
    defaults.update(overrides)
    return current_domain.process(BookShipment(**defaults), asynchronous=False)


def _load(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


class TestNotificationsSent:
    def test_booking_confirmation(self, notifier):
        shipment_id = _book()
        sent = notifier.sent_notifications
        assert len(sent) == 1
        assert sent[0]["type"] == "booking"
        assert sent[0]["user_id"] == "cust-042"
        assert sent[0]["related_id"] == shipment_id
        assert _load(shipment_id).tracking_number in sent[0]["message"]

    def test_status_update(self, notifier):
        shipment_id = _book()
        current_domain.process(
            AdvanceShipmentStatus(
                shipment_id=shipment_id,
                target_status="Ready for Pickup",
                actor_id="admin-1",
                actor_role="admin",
            ),
            asynchronous=False,
        )
        update = notifier.sent_notifications[-1]
        assert update["type"] == "shipment_update"
        assert "Ready for Pickup" in update["message"]

    def test_quote_ready(self, notifier):
        shipment_id = _book(custom_items=json.dumps([{"description": "Sofa"}]))
        item_id = str(_load(shipment_id).custom_items[0].id)
        current_domain.process(
            QuoteCustomItem(shipment_id=shipment_id, item_id=item_id, amount=95, quoted_by="admin-1"),
            asynchronous=False,
        )
        quote = notifier.sent_notifications[-1]
        assert quote["type"] == "quote"
        assert "95.00" in quote["message"]


class TestFireAndForget:
    def test_failed_delivery_keeps_booking(self, notifier):
        notifier.configure(should_succeed=False)
        shipment_id = _book()
        assert _load(shipment_id).status == "Booking Confirmed"
        assert notifier.sent_notifications == []

    def test_raising_notifier_keeps_booking(self):
        with patch("shipping.shipment.notifications.get_notifier") as get_notifier:
            get_notifier.return_value.emit.side_effect = ConnectionError("SMTP down")
            shipment_id = _book()

        get_notifier.return_value.emit.assert_called_once()
        assert _load(shipment_id).status == "Booking Confirmed"

    def test_notifier_returning_nothing_keeps_booking(self):
        with patch("shipping.shipment.notifications.get_notifier") as get_notifier:
            get_notifier.return_value.emit.return_value = None
            shipment_id = _book()

        get_notifier.return_value.emit.assert_called_once()
        assert _load(shipment_id).status == "Booking Confirmed"

    def test_notifier_returning_nothing_keeps_status_change(self):
        shipment_id = _book()
        with patch("shipping.shipment.notifications.get_notifier") as get_notifier:
            get_notifier.return_value.emit.return_value = None
            current_domain.process(
                AdvanceShipmentStatus(
                    shipment_id=shipment_id,
                    target_status="Ready for Pickup",
                    actor_id="admin-1",
                    actor_role="admin",
                ),
                asynchronous=False,
            )

        assert _load(shipment_id).status == "Ready for Pickup"


class TestAdapterSelection:
    def test_fake_notifier_by_default(self, notifier):
        from shipping.notifier.fake_adapter import FakeNotifier

        assert isinstance(notifier, FakeNotifier)

    def test_unknown_notifier_adapter(self, monkeypatch):
        from protean.exceptions import ConfigurationError
        from shipping.configuration import get_notifier, reset_configuration

        reset_configuration()
        monkeypatch.setenv("NOTIFIER_ADAPTER", "carrier-pigeon")
        with pytest.raises(ConfigurationError):
            get_notifier()

    def test_unknown_evidence_adapter(self, monkeypatch):
        from protean.exceptions import ConfigurationError
        from shipping.configuration import get_evidence_store, reset_configuration

        reset_configuration()
        monkeypatch.setenv("EVIDENCE_ADAPTER", "floppy")
        with pytest.raises(ConfigurationError):
            get_evidence_store()

    def test_installed_notifier_receives_messages(self):
        from shipping.configuration import install_notifier
        from shipping.notifier.fake_adapter import FakeNotifier

        installed = FakeNotifier()
        install_notifier(installed)
        _book()
        assert [n["type"] for n in installed.sent_notifications] == ["booking"]
