"""Repository for the CollectionRoute aggregate."""

from protean.exceptions import ObjectNotFoundError

from shipping.domain import shipping
from shipping.errors import RouteNotFound
from shipping.routing.route import CollectionRoute, normalize_area


@shipping.repository(part_of=CollectionRoute)
class CollectionRouteRepository:
    def get_route(self, route_id: str) -> CollectionRoute:
        try:
            return self.get(route_id)
        except ObjectNotFoundError as exc:
            raise RouteNotFound(f"Collection route {route_id} does not exist") from exc

    def find_by_name(self, name: str) -> CollectionRoute | None:
        return self._dao.query.filter(name=normalize_area(name)).all().first

    def active_routes(self) -> list[CollectionRoute]:
        return self._dao.query.filter(active=True).all().items
