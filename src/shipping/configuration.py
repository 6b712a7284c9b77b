"""Process-wide business configuration for the shipping domain.

Tariffs, the routing policy and the lifecycle policy are plain objects
injected into the pricing engine, route resolver and shipment aggregate.
The customer notifier and the proof-of-delivery evidence store are the
outbound adapters handlers talk to. This module holds the instances command
handlers use, seeded from the published defaults and overridable from the
environment or from tests.
"""

import os

from protean.exceptions import ConfigurationError

from shipping.evidence.port import EvidenceStorePort
from shipping.notifier.port import NotifierPort
from shipping.pricing.defaults import DEFAULT_TARIFFS
from shipping.pricing.tariff import BookingFlow, Tariff
from shipping.routing.defaults import CITY_KEYED_COUNTRIES, RESTRICTED_PREFIXES
from shipping.routing.table import RoutingPolicy
from shipping.shipment.lifecycle import LifecyclePolicy

_tariffs: dict[BookingFlow, Tariff] = {}
_routing_policy: RoutingPolicy | None = None
_lifecycle_policy: LifecyclePolicy | None = None
_notifier: NotifierPort | None = None
_evidence_store: EvidenceStorePort | None = None


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str] | None:
    value = os.environ.get(name)
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def get_tariff(flow: BookingFlow | str = BookingFlow.STANDARD) -> Tariff:
    """Return the tariff in force for a booking flow."""
    flow = BookingFlow(flow)
    return _tariffs.get(flow) or DEFAULT_TARIFFS[flow]


def install_tariff(tariff: Tariff) -> None:
    """Replace the tariff of one booking flow (hot reload, or test fixtures)."""
    _tariffs[tariff.flow] = tariff


def get_routing_policy() -> RoutingPolicy:
    """Restricted prefixes and city-keyed countries.

    ``RESTRICTED_POSTAL_PREFIXES`` and ``CITY_KEYED_COUNTRIES`` (comma
    separated) override the defaults.
    """
    global _routing_policy
    if _routing_policy is None:
        restricted = _env_list("RESTRICTED_POSTAL_PREFIXES")
        city_keyed = _env_list("CITY_KEYED_COUNTRIES")
        _routing_policy = RoutingPolicy(
            restricted_prefixes=frozenset(restricted if restricted is not None else RESTRICTED_PREFIXES),
            city_keyed_countries=frozenset(city_keyed if city_keyed is not None else CITY_KEYED_COUNTRIES),
        )
    return _routing_policy


def install_routing_policy(policy: RoutingPolicy) -> None:
    global _routing_policy
    _routing_policy = policy


def get_lifecycle_policy() -> LifecyclePolicy:
    """Lifecycle policy; ``REQUIRE_DELIVERY_EVIDENCE=false`` relaxes the proof check."""
    global _lifecycle_policy
    if _lifecycle_policy is None:
        _lifecycle_policy = LifecyclePolicy(
            require_delivery_evidence=_env_flag("REQUIRE_DELIVERY_EVIDENCE", True),
        )
    return _lifecycle_policy


def install_lifecycle_policy(policy: LifecyclePolicy) -> None:
    global _lifecycle_policy
    _lifecycle_policy = policy


def _adapter_name(variable: str) -> str:
    return os.environ.get(variable, "fake").strip().lower()


def get_notifier() -> NotifierPort:
    """Customer notifier picked by ``NOTIFIER_ADAPTER``; only ``fake`` ships in-tree."""
    global _notifier
    if _notifier is None:
        adapter = _adapter_name("NOTIFIER_ADAPTER")
        if adapter != "fake":
            raise ConfigurationError(f"Unknown notifier adapter: {adapter}")
        from shipping.notifier.fake_adapter import FakeNotifier

        _notifier = FakeNotifier()
    return _notifier


def install_notifier(notifier: NotifierPort) -> None:
    global _notifier
    _notifier = notifier


def get_evidence_store() -> EvidenceStorePort:
    """Proof-of-delivery store picked by ``EVIDENCE_ADAPTER``."""
    global _evidence_store
    if _evidence_store is None:
        adapter = _adapter_name("EVIDENCE_ADAPTER")
        if adapter != "fake":
            raise ConfigurationError(f"Unknown evidence store adapter: {adapter}")
        from shipping.evidence.fake_adapter import FakeEvidenceStore

        _evidence_store = FakeEvidenceStore()
    return _evidence_store


def install_evidence_store(store: EvidenceStorePort) -> None:
    global _evidence_store
    _evidence_store = store


def reset_configuration() -> None:
    """Drop installed overrides and adapters (useful for testing)."""
    global _routing_policy, _lifecycle_policy, _notifier, _evidence_store
    _tariffs.clear()
    _routing_policy = None
    _lifecycle_policy = None
    _notifier = None
    _evidence_store = None
