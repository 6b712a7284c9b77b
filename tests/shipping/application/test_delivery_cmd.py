"""Application tests for proof of delivery."""

import base64
import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from shipping.errors import Forbidden, MissingEvidence
from shipping.shipment.booking import BookShipment
from shipping.shipment.delivery import AttachDeliveryEvidence, ConfirmDelivery
from shipping.shipment.shipment import Shipment
from shipping.shipment.status import AdvanceShipmentStatus

pytestmark = pytest.mark.usefixtures("registered_routes")

PHOTO = base64.b64encode(b"\xff\xd8\xff\xe0 fake jpeg").decode()

ON_THE_WAY = [
    "Ready for Pickup",
    "Processing in UK Warehouse",
    "In Transit",
    "Customs Clearance",
    "Processing in ZW Warehouse",
    "Out for Delivery",
]


def _out_for_delivery():
    shipment_id = current_domain.process(
        BookShipment(
            customer_id="cust-001",
            sender=json.dumps({"name": "Tendai Moyo", "postal_code": "NG1 5FS", "country": "England"}),
            recipient=json.dumps({"name": "Rudo Moyo", "city": "Harare"}),
            units=json.dumps([{"item_type": "drum", "quantity": 1}]),
        ),
        asynchronous=False,
    )
    for status in ON_THE_WAY:
        current_domain.process(
            AdvanceShipmentStatus(
                shipment_id=shipment_id,
                target_status=status,
                actor_id="admin-1",
                actor_role="admin",
            ),
            asynchronous=False,
        )
    return shipment_id


def _driver(**fields):
    return {"actor_id": "drv-9", "actor_role": "driver", "handoff": "delivery", **fields}


def _load(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


class TestAttachDeliveryEvidence:
    def test_attach_url(self):
        shipment_id = _out_for_delivery()
        url = current_domain.process(
            AttachDeliveryEvidence(shipment_id=shipment_id, evidence_url="https://cdn.example.com/pod.jpg", **_driver()),
            asynchronous=False,
        )
        assert url == "https://cdn.example.com/pod.jpg"
        shipment = _load(shipment_id)
        assert shipment.delivery_evidence_url == url
        assert shipment.status == "Out for Delivery"

    def test_upload_photo(self, evidence_store):
        shipment_id = _out_for_delivery()
        url = current_domain.process(
            AttachDeliveryEvidence(shipment_id=shipment_id, content=PHOTO, filename="door.jpg", **_driver()),
            asynchronous=False,
        )
        assert url in evidence_store.uploads
        assert evidence_store.uploads[url]["filename"].endswith("-door.jpg")
        assert _load(shipment_id).delivery_evidence_url == url

    def test_upload_failure_is_missing_evidence(self, evidence_store):
        evidence_store.configure(should_succeed=False)
        shipment_id = _out_for_delivery()
        with pytest.raises(MissingEvidence):
            current_domain.process(
                AttachDeliveryEvidence(shipment_id=shipment_id, content=PHOTO, **_driver()),
                asynchronous=False,
            )
        assert _load(shipment_id).delivery_evidence_url is None

    def test_content_must_be_base64(self):
        shipment_id = _out_for_delivery()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                AttachDeliveryEvidence(shipment_id=shipment_id, content="not base64!", **_driver()),
                asynchronous=False,
            )
        assert "content" in exc.value.messages

    def test_nothing_to_attach(self):
        shipment_id = _out_for_delivery()
        with pytest.raises(ValidationError):
            current_domain.process(AttachDeliveryEvidence(shipment_id=shipment_id, **_driver()), asynchronous=False)

    def test_customer_cannot_attach(self):
        shipment_id = _out_for_delivery()
        with pytest.raises(Forbidden):
            current_domain.process(
                AttachDeliveryEvidence(
                    shipment_id=shipment_id,
                    actor_id="cust-001",
                    actor_role="customer",
                    evidence_url="https://cdn.example.com/pod.jpg",
                ),
                asynchronous=False,
            )


class TestConfirmDelivery:
    def test_upload_and_deliver(self, evidence_store):
        shipment_id = _out_for_delivery()
        status = current_domain.process(
            ConfirmDelivery(shipment_id=shipment_id, content=PHOTO, note="Left with neighbour", **_driver()),
            asynchronous=False,
        )
        assert status == "Delivered"
        shipment = _load(shipment_id)
        assert shipment.delivery_evidence_url in evidence_store.uploads
        assert shipment.status_history[-1].note == "Left with neighbour"

    def test_previously_attached_evidence_suffices(self):
        shipment_id = _out_for_delivery()
        current_domain.process(
            AttachDeliveryEvidence(shipment_id=shipment_id, evidence_url="https://cdn.example.com/pod.jpg", **_driver()),
            asynchronous=False,
        )
        status = current_domain.process(ConfirmDelivery(shipment_id=shipment_id, **_driver()), asynchronous=False)
        assert status == "Delivered"

    def test_without_evidence(self):
        shipment_id = _out_for_delivery()
        with pytest.raises(MissingEvidence):
            current_domain.process(ConfirmDelivery(shipment_id=shipment_id, **_driver()), asynchronous=False)
        assert _load(shipment_id).status == "Out for Delivery"

    def test_evidence_optional_when_policy_allows(self):
        from shipping.configuration import install_lifecycle_policy
        from shipping.shipment.lifecycle import LifecyclePolicy

        install_lifecycle_policy(LifecyclePolicy(require_delivery_evidence=False))
        shipment_id = _out_for_delivery()
        status = current_domain.process(ConfirmDelivery(shipment_id=shipment_id, **_driver()), asynchronous=False)
        assert status == "Delivered"

    def test_failed_upload_leaves_shipment_out_for_delivery(self, evidence_store):
        evidence_store.configure(should_succeed=False)
        shipment_id = _out_for_delivery()
        with pytest.raises(MissingEvidence):
            current_domain.process(ConfirmDelivery(shipment_id=shipment_id, content=PHOTO, **_driver()), asynchronous=False)
        assert _load(shipment_id).status == "Out for Delivery"
