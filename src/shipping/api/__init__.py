"""Shipping domain API package."""

from shipping.api.errors import register_error_handlers
from shipping.api.routes import quote_router, route_router, schedule_router, shipment_router

__all__ = ["shipment_router", "route_router", "quote_router", "schedule_router", "register_error_handlers"]
