import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    from shipping.api import (
        quote_router,
        register_error_handlers,
        route_router,
        schedule_router,
        shipment_router,
    )

    app = FastAPI()
    app.include_router(shipment_router)
    app.include_router(quote_router)
    app.include_router(route_router)
    app.include_router(schedule_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def booking_payload():
    return {
        "customer_id": "cust-001",
        "sender": {
            "name": "Tendai Moyo",
            "phone": "07700900123",
            "address": "12 High Street",
            "city": "Birmingham",
            "postal_code": "B1 1AA",
            "country": "England",
        },
        "recipient": {"name": "Rudo Moyo", "phone": "+263771234567", "city": "Harare"},
        "units": [{"item_type": "drum", "quantity": 3}],
        "add_ons": ["metal_seal"],
    }
