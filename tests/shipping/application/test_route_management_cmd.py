"""Application tests for managing the collection schedule."""

import json
from datetime import date

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from shipping.errors import RouteNotFound
from shipping.routing.management import (
    AddRouteArea,
    ChangeRoutePriority,
    RegisterRoute,
    RemoveRouteArea,
    RescheduleRoute,
    RetireRoute,
)
from shipping.routing.route import CollectionRoute
from shipping.routing.table import load_route_table


def _register(name="Cardiff Route", country="Wales", areas=("CF", "NP"), pickup_date=date(2030, 3, 6), **extra):
    return current_domain.process(
        RegisterRoute(name=name, country=country, areas=json.dumps(list(areas)), pickup_date=pickup_date, **extra),
        asynchronous=False,
    )


def _load(route_id):
    return current_domain.repository_for(CollectionRoute).get(route_id)


class TestRegisterRoute:
    def test_register_persists(self):
        route = _load(_register())
        assert route.name == "CARDIFF ROUTE"
        assert route.area_list == ["CF", "NP"]
        assert route.priority == 100

    def test_duplicate_name_rejected(self):
        _register()
        with pytest.raises(ValidationError) as exc:
            _register(name="cardiff route")
        assert "name" in exc.value.messages

    def test_registered_route_joins_table(self):
        _register(priority=5)
        table = load_route_table()
        assert table.routes[0].name == "CARDIFF ROUTE"
        assert table.routes[0].collection_date == date(2030, 3, 6)


class TestRouteChanges:
    def test_reschedule(self):
        route_id = _register()
        current_domain.process(RescheduleRoute(route_id=route_id, pickup_date=date(2030, 3, 13)), asynchronous=False)
        assert _load(route_id).pickup_date == date(2030, 3, 13)

    def test_areas(self):
        route_id = _register()
        current_domain.process(AddRouteArea(route_id=route_id, area="sa"), asynchronous=False)
        current_domain.process(RemoveRouteArea(route_id=route_id, area="NP"), asynchronous=False)
        assert _load(route_id).area_list == ["CF", "SA"]

    def test_priority(self):
        route_id = _register()
        current_domain.process(ChangeRoutePriority(route_id=route_id, priority=1), asynchronous=False)
        assert _load(route_id).priority == 1

    def test_retired_route_leaves_table(self):
        route_id = _register()
        _register(name="Bristol Route", country="England", areas=("BS",))
        current_domain.process(RetireRoute(route_id=route_id), asynchronous=False)
        assert _load(route_id).active is False
        assert [r.name for r in load_route_table().routes] == ["BRISTOL ROUTE"]

    def test_unknown_route(self):
        with pytest.raises(RouteNotFound):
            current_domain.process(RescheduleRoute(route_id="missing", pickup_date=date(2030, 1, 1)), asynchronous=False)
