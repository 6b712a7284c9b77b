import json
from dataclasses import replace
from datetime import date

import pytest
from protean.integrations.pytest import DomainFixture

LONDON_PICKUP = date(2030, 3, 4)
DEFAULT_PICKUP = date(2030, 3, 6)


@pytest.fixture(scope="session")
def shipping_bed():
    from shipping.domain import shipping

    bed = DomainFixture(shipping)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shipping_bed):
    with shipping_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _reset_collaborators():
    """Fresh fakes and default business configuration for every test."""
    from shipping.configuration import reset_configuration

    reset_configuration()
    yield
    reset_configuration()


def _pickup_for(name: str) -> date:
    return LONDON_PICKUP if name == "LONDON ROUTE" else DEFAULT_PICKUP


@pytest.fixture()
def default_table():
    """The default schedule as an in-memory route table, with pickup dates."""
    from shipping.routing.defaults import CITY_KEYED_COUNTRIES, DEFAULT_ROUTES, RESTRICTED_PREFIXES
    from shipping.routing.table import RouteTable, RoutingPolicy

    routes = [replace(entry, collection_date=_pickup_for(entry.name)) for entry in DEFAULT_ROUTES]
    return RouteTable.build(routes, RoutingPolicy(RESTRICTED_PREFIXES, CITY_KEYED_COUNTRIES))


@pytest.fixture()
def registered_routes():
    """Register the default schedule through the domain; returns route ids by name."""
    from protean import current_domain
    from shipping.routing.defaults import DEFAULT_ROUTES
    from shipping.routing.management import RegisterRoute

    ids = {}
    for entry in DEFAULT_ROUTES:
        ids[entry.name] = current_domain.process(
            RegisterRoute(
                name=entry.name,
                country=entry.country,
                areas=json.dumps(list(entry.areas)),
                pickup_date=_pickup_for(entry.name),
                priority=entry.priority,
            ),
            asynchronous=False,
        )
    return ids


@pytest.fixture()
def notifier():
    from shipping.configuration import get_notifier

    return get_notifier()


@pytest.fixture()
def evidence_store():
    from shipping.configuration import get_evidence_store

    return get_evidence_store()
