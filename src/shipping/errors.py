"""Shipping error taxonomy.

Rejected lifecycle actions are ``ValidationError`` subclasses, so command
handlers surface them exactly like any other broken domain rule. Each one
carries its own field key and gets its own HTTP status at the API edge.

Soft outcomes of route resolution (unresolved, restricted) are result values,
not exceptions. Malformed tariffs and route tables raise Protean's
``ConfigurationError`` at construction time.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class LifecycleError(ValidationError):
    """Base class for shipment lifecycle rejections."""

    field = "status"

    def __init__(self, message: str):
        self.reason = message
        super().__init__({self.field: [message]})


class InvalidTransition(LifecycleError):
    """The requested edge is not in the shipment state graph."""


class Forbidden(LifecycleError):
    """The acting role has no authority over the requested edge."""

    field = "actor"


class MissingEvidence(LifecycleError):
    """Delivery was requested before proof of delivery was attached."""

    field = "delivery_evidence_url"


class ConcurrentUpdate(LifecycleError):
    """The shipment moved on since the caller last read it."""

    field = "expected_status"


class ShipmentNotFound(ObjectNotFoundError):
    """No shipment exists with the given identifier or tracking number."""


class RouteNotFound(ObjectNotFoundError):
    """No collection route exists with the given identifier."""
