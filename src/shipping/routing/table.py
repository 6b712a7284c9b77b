"""RouteTable — versioned, explicitly ordered snapshot of the collection schedule.

The table is an immutable value handed to ``RouteResolver``. It can be built
from fixtures in tests or from the persisted ``CollectionRoute`` aggregates at
runtime (``load_route_table``). Routes are always held sorted by
``(priority, name)``; that order is the tie-break when several routes match.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import date

from protean.exceptions import ConfigurationError
from protean.utils.globals import current_domain

from shipping.routing.route import DEFAULT_PRIORITY, CollectionRoute, normalize_area


@dataclass(frozen=True)
class RouteEntry:
    """One route as seen by the resolver."""

    name: str
    country: str
    areas: tuple[str, ...]
    collection_date: date | None = None
    priority: int = DEFAULT_PRIORITY


@dataclass(frozen=True)
class RoutingPolicy:
    """Deny-list and lookup mode settings that travel with a route table."""

    restricted_prefixes: frozenset[str] = field(default_factory=frozenset)
    city_keyed_countries: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RouteTable:
    routes: tuple[RouteEntry, ...]
    restricted_prefixes: frozenset[str]
    city_keyed_countries: frozenset[str]
    version: str

    @classmethod
    def build(cls, routes, policy: RoutingPolicy | None = None) -> "RouteTable":
        """Validate, order and fingerprint a set of routes."""
        policy = policy or RoutingPolicy()

        seen = set()
        entries = []
        for route in routes:
            name = normalize_area(route.name)
            if not name:
                raise ConfigurationError("Route table contains a route without a name")
            if name in seen:
                raise ConfigurationError(f"Route table contains duplicate route {name}")
            seen.add(name)

            areas = tuple(normalize_area(a) for a in route.areas)
            if not areas or any(not a for a in areas):
                raise ConfigurationError(f"Route {name} must serve at least one non-blank area")

            entries.append(
                RouteEntry(
                    name=name,
                    country=route.country.strip().title(),
                    areas=areas,
                    collection_date=route.collection_date,
                    priority=route.priority,
                )
            )

        entries.sort(key=lambda entry: (entry.priority, entry.name))

        restricted = frozenset(normalize_area(p).replace(" ", "") for p in policy.restricted_prefixes)
        if any(not p for p in restricted):
            raise ConfigurationError("Restricted prefix list contains a blank prefix")
        city_keyed = frozenset(c.strip().title() for c in policy.city_keyed_countries)

        return cls(
            routes=tuple(entries),
            restricted_prefixes=restricted,
            city_keyed_countries=city_keyed,
            version=_fingerprint(entries, restricted, city_keyed),
        )

    def route_named(self, name: str) -> RouteEntry | None:
        wanted = normalize_area(name)
        for entry in self.routes:
            if entry.name == wanted:
                return entry
        return None

    def is_city_keyed(self, country: str | None) -> bool:
        return bool(country) and country.strip().title() in self.city_keyed_countries

    def postal_routes(self) -> tuple[RouteEntry, ...]:
        """Routes keyed by postal prefix, in matching order."""
        return tuple(r for r in self.routes if r.country not in self.city_keyed_countries)

    def city_routes(self, country: str) -> tuple[RouteEntry, ...]:
        wanted = country.strip().title()
        return tuple(r for r in self.routes if r.country == wanted)


def _fingerprint(entries, restricted, city_keyed) -> str:
    payload = {
        "routes": [
            [
                e.name,
                e.country,
                list(e.areas),
                e.collection_date.isoformat() if e.collection_date else None,
                e.priority,
            ]
            for e in entries
        ],
        "restricted": sorted(restricted),
        "city_keyed": sorted(city_keyed),
    }
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()
    return digest[:12]


def load_route_table(policy: RoutingPolicy | None = None) -> RouteTable:
    """Build a table from the active routes in the current domain's store."""
    from shipping.configuration import get_routing_policy

    repo = current_domain.repository_for(CollectionRoute)
    stored = repo.active_routes()
    routes = [
        RouteEntry(
            name=route.name,
            country=route.country,
            areas=tuple(route.area_list),
            collection_date=route.pickup_date,
            priority=route.priority if route.priority is not None else DEFAULT_PRIORITY,
        )
        for route in stored
    ]
    return RouteTable.build(routes, policy or get_routing_policy())
