"""Integration tests for the shipment endpoints, including the error mapping."""

import base64

import pytest

pytestmark = pytest.mark.usefixtures("registered_routes")

ON_THE_WAY = [
    "Ready for Pickup",
    "Processing in UK Warehouse",
    "In Transit",
    "Customs Clearance",
    "Processing in ZW Warehouse",
    "Out for Delivery",
]


def _book(client, payload):
    response = client.post("/shipments", json=payload)
    assert response.status_code == 201
    return response.json()["shipment_id"]


def _advance(client, shipment_id, target, **actor):
    body = {"target_status": target, "actor_id": "admin-1", "actor_role": "admin", **actor}
    return client.put(f"/shipments/{shipment_id}/status", json=body)


class TestBooking:
    def test_book_and_read_back(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        body = client.get(f"/shipments/{shipment_id}").json()
        assert body["status"] == "Booking Confirmed"
        assert body["total_amount"] == 705.0
        assert body["collection"]["route_name"] == "BIRMINGHAM ROUTE"
        assert body["collection"]["collection_date"] == "2030-03-06"
        assert body["tracking_number"].startswith("ZIMSHIP-")
        assert body["add_ons"] == ["metal_seal"]
        assert body["can_modify"] is True

    def test_empty_composition_is_400(self, client, booking_payload):
        response = client.post("/shipments", json={**booking_payload, "units": [], "add_ons": []})
        assert response.status_code == 400

    def test_schema_violation_is_422(self, client, booking_payload):
        response = client.post("/shipments", json={**booking_payload, "units": [{"quantity": 0}]})
        assert response.status_code == 422

    def test_unknown_shipment_is_404(self, client):
        response = client.get("/shipments/does-not-exist")
        assert response.status_code == 404
        assert response.json()["code"] == "ShipmentNotFound"

    def test_import_legacy_metadata(self, client):
        response = client.post(
            "/shipments/import",
            json={
                "customer_id": "cust-legacy",
                "metadata": {
                    "firstName": "Tendai",
                    "lastName": "Moyo",
                    "pickupPostcode": "LS1 4AP",
                    "pickupCountry": "England",
                    "recipientName": "Rudo Moyo",
                    "deliveryCity": "Harare",
                    "shipmentType": "drum",
                    "drumQuantity": 2,
                    "paymentOption": "cashOnCollection",
                },
            },
        )
        assert response.status_code == 201
        body = client.get(f"/shipments/{response.json()['shipment_id']}").json()
        assert body["collection"]["route_name"] == "LEEDS ROUTE"
        assert body["payment_option"] == "cash_on_collection"
        assert body["total_amount"] == 420.0

    def test_import_unknown_shape_is_400(self, client):
        response = client.post("/shipments/import", json={"customer_id": "c", "metadata": {"foo": 1}})
        assert response.status_code == 400


class TestModification:
    def test_change_address(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        sender = {**booking_payload["sender"], "postal_code": "SW1A 1AA", "city": "London"}
        response = client.put(f"/shipments/{shipment_id}/collection-address", json={"sender": sender})
        assert response.status_code == 200
        body = client.get(f"/shipments/{shipment_id}").json()
        assert body["collection"]["route_name"] == "LONDON ROUTE"

    def test_change_composition(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = client.put(
            f"/shipments/{shipment_id}/composition",
            json={"units": [{"item_type": "drum", "quantity": 1}], "payment_option": "pay_on_arrival"},
        )
        assert response.status_code == 200
        assert client.get(f"/shipments/{shipment_id}").json()["total_amount"] == 288.0

    def test_change_after_pickup_is_400(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        _advance(client, shipment_id, "Ready for Pickup")
        response = client.put(
            f"/shipments/{shipment_id}/composition",
            json={"units": [{"item_type": "drum", "quantity": 1}]},
        )
        assert response.status_code == 400


class TestLifecycle:
    def test_advance(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = _advance(client, shipment_id, "Ready for Pickup", note="Driver booked")
        assert response.status_code == 200
        assert response.json() == {"shipment_id": shipment_id, "status": "Ready for Pickup"}
        history = client.get(f"/shipments/{shipment_id}").json()["status_history"]
        assert history[0]["note"] == "Driver booked"

    def test_invalid_transition_is_409(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = _advance(client, shipment_id, "Delivered")
        assert response.status_code == 409
        assert response.json()["code"] == "InvalidTransition"

    def test_stale_expected_status_is_409(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        _advance(client, shipment_id, "Ready for Pickup")
        response = _advance(client, shipment_id, "Processing in UK Warehouse", expected_status="Booking Confirmed")
        assert response.status_code == 409
        assert response.json()["code"] == "ConcurrentUpdate"

    def test_unauthorized_actor_is_403(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = _advance(client, shipment_id, "Ready for Pickup", actor_id="cust-001", actor_role="customer")
        assert response.status_code == 403
        assert response.json()["code"] == "Forbidden"

    def test_unknown_role_is_400(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = _advance(client, shipment_id, "Ready for Pickup", actor_role="courier")
        assert response.status_code == 400

    def test_customer_cancel(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = client.put(
            f"/shipments/{shipment_id}/cancel",
            json={"actor_id": "cust-001", "actor_role": "customer", "reason": "No longer needed"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"

    def test_failed_attempt(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        _advance(client, shipment_id, "Ready for Pickup")
        response = client.put(
            f"/shipments/{shipment_id}/failed-attempt",
            json={"actor_id": "drv-1", "actor_role": "driver", "handoff": "collection", "reason": "Gate locked"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Failed Attempt"


class TestDeliveryEvidence:
    def _out_for_delivery(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        for status in ON_THE_WAY:
            _advance(client, shipment_id, status)
        return shipment_id

    def test_deliver_without_evidence_is_422(self, client, booking_payload):
        shipment_id = self._out_for_delivery(client, booking_payload)
        response = _advance(client, shipment_id, "Delivered", actor_id="drv-1", actor_role="driver", handoff="delivery")
        assert response.status_code == 422
        assert "delivery_evidence_url" in response.json()["error"]

    def test_upload_and_confirm(self, client, booking_payload):
        shipment_id = self._out_for_delivery(client, booking_payload)
        response = client.post(
            f"/shipments/{shipment_id}/evidence",
            json={
                "actor_id": "drv-1",
                "actor_role": "driver",
                "handoff": "delivery",
                "content": base64.b64encode(b"photo").decode(),
                "confirm_delivery": True,
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "Delivered"
        assert body["evidence_url"].startswith("https://evidence.fake-store.example.com/")

    def test_attach_url_only(self, client, booking_payload):
        shipment_id = self._out_for_delivery(client, booking_payload)
        response = client.post(
            f"/shipments/{shipment_id}/evidence",
            json={"actor_id": "admin-1", "actor_role": "admin", "evidence_url": "https://cdn.example.com/pod.jpg"},
        )
        assert response.status_code == 201
        assert response.json()["status"] == "Out for Delivery"

    def test_customer_upload_is_403(self, client, booking_payload):
        shipment_id = self._out_for_delivery(client, booking_payload)
        response = client.post(
            f"/shipments/{shipment_id}/evidence",
            json={"actor_id": "cust-001", "actor_role": "customer", "evidence_url": "https://cdn.example.com/x.jpg"},
        )
        assert response.status_code == 403


class TestQuotesAndNotes:
    def test_quote_custom_item(self, client, booking_payload):
        payload = {**booking_payload, "custom_items": [{"description": "Bicycle", "category": "sport"}]}
        shipment_id = _book(client, payload)
        shipment = client.get(f"/shipments/{shipment_id}").json()
        assert shipment["pending_quotation"] is True
        item_id = next(i["item_id"] for i in shipment["line_items"] if i["kind"] == "Custom")

        response = client.put(
            f"/shipments/{shipment_id}/items/{item_id}/quote",
            json={"amount": 60, "quoted_by": "admin-1"},
        )
        assert response.status_code == 200
        assert response.json()["total_amount"] == 765.0

    def test_annotate(self, client, booking_payload):
        shipment_id = _book(client, booking_payload)
        response = client.post(
            f"/shipments/{shipment_id}/notes",
            json={"actor_id": "ops-1", "actor_role": "logistics", "text": "Customer called"},
        )
        assert response.status_code == 201

    def test_price_preview(self, client):
        response = client.post(
            "/quotes",
            json={"units": [{"item_type": "drum", "quantity": 12}], "payment_option": "cash_on_collection"},
        )
        assert response.status_code == 200
        quote = response.json()["quote"]
        assert quote["final_amount"] == "2160.00"
        assert quote["tariff_version"] == "standard-2024.1"

    def test_price_preview_rejects_pay_later_on_simplified(self, client):
        response = client.post(
            "/quotes",
            json={
                "units": [{"item_type": "drum", "quantity": 1}],
                "payment_option": "pay_later",
                "booking_flow": "simplified",
            },
        )
        assert response.status_code == 400
