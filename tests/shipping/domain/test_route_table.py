"""Tests for RouteTable construction, ordering and versioning."""

from datetime import date

import pytest
from protean.exceptions import ConfigurationError
from shipping.routing.table import RouteEntry, RouteTable, RoutingPolicy


def _entry(name, areas, priority=100, country="England", collection_date=None):
    return RouteEntry(name=name, country=country, areas=areas, priority=priority, collection_date=collection_date)


class TestBuild:
    def test_routes_sorted_by_priority_then_name(self):
        table = RouteTable.build(
            [
                _entry("Zeta", ("Z",), priority=5),
                _entry("Beta", ("B",), priority=10),
                _entry("Alpha", ("A",), priority=10),
            ]
        )
        assert [r.name for r in table.routes] == ["ZETA", "ALPHA", "BETA"]

    def test_names_and_areas_are_normalized(self):
        table = RouteTable.build([_entry(" leeds  route ", (" ls ", "bd"))])
        route = table.routes[0]
        assert route.name == "LEEDS ROUTE"
        assert route.areas == ("LS", "BD")

    def test_duplicate_names_rejected(self):
        with pytest.raises(ConfigurationError):
            RouteTable.build([_entry("Leeds", ("LS",)), _entry("LEEDS", ("BD",))])

    def test_blank_name_rejected(self):
        with pytest.raises(ConfigurationError):
            RouteTable.build([_entry("  ", ("LS",))])

    def test_route_without_areas_rejected(self):
        with pytest.raises(ConfigurationError):
            RouteTable.build([_entry("Leeds", ())])

    def test_blank_area_rejected(self):
        with pytest.raises(ConfigurationError):
            RouteTable.build([_entry("Leeds", ("LS", " "))])

    def test_blank_restricted_prefix_rejected(self):
        with pytest.raises(ConfigurationError):
            RouteTable.build([_entry("Leeds", ("LS",))], RoutingPolicy(restricted_prefixes=frozenset({" "})))


class TestVersion:
    def test_same_input_same_version(self):
        routes = [_entry("Leeds", ("LS",)), _entry("York", ("YO",))]
        assert RouteTable.build(routes).version == RouteTable.build(list(reversed(routes))).version

    def test_date_change_changes_version(self):
        before = RouteTable.build([_entry("Leeds", ("LS",), collection_date=date(2030, 1, 1))])
        after = RouteTable.build([_entry("Leeds", ("LS",), collection_date=date(2030, 1, 8))])
        assert before.version != after.version

    def test_policy_change_changes_version(self):
        routes = [_entry("Leeds", ("LS",))]
        assert (
            RouteTable.build(routes).version
            != RouteTable.build(routes, RoutingPolicy(restricted_prefixes=frozenset({"EX"}))).version
        )


class TestLookups:
    def test_route_named(self, default_table):
        assert default_table.route_named("london route").name == "LONDON ROUTE"
        assert default_table.route_named("Atlantis") is None

    def test_city_keyed_countries_split_from_postal_routes(self, default_table):
        postal = {r.name for r in default_table.postal_routes()}
        city = {r.name for r in default_table.city_routes("Ireland")}
        assert "DUBLIN ROUTE" in city
        assert "DUBLIN ROUTE" not in postal
        assert "LONDON ROUTE" in postal

    def test_is_city_keyed(self, default_table):
        assert default_table.is_city_keyed("ireland")
        assert not default_table.is_city_keyed("England")
        assert not default_table.is_city_keyed(None)
