"""Collection route management — commands and handler for the operations console."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.routing.route import DEFAULT_PRIORITY, CollectionRoute

logger = structlog.get_logger(__name__)


@shipping.command(part_of="CollectionRoute")
class RegisterRoute:
    name = String(required=True, max_length=100)
    country = String(required=True, max_length=50)
    areas = Text(required=True)  # JSON list of postal prefixes or city names
    pickup_date = Date()
    priority = Integer(default=DEFAULT_PRIORITY, min_value=0)


@shipping.command(part_of="CollectionRoute")
class RescheduleRoute:
    route_id = Identifier(required=True)
    pickup_date = Date(required=True)


@shipping.command(part_of="CollectionRoute")
class AddRouteArea:
    route_id = Identifier(required=True)
    area = String(required=True, max_length=50)


@shipping.command(part_of="CollectionRoute")
class RemoveRouteArea:
    route_id = Identifier(required=True)
    area = String(required=True, max_length=50)


@shipping.command(part_of="CollectionRoute")
class ChangeRoutePriority:
    route_id = Identifier(required=True)
    priority = Integer(required=True, min_value=0)


@shipping.command(part_of="CollectionRoute")
class RetireRoute:
    route_id = Identifier(required=True)


@shipping.command_handler(part_of=CollectionRoute)
class RouteManagementHandler:
    @handle(RegisterRoute)
    def register_route(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        existing = repo.find_by_name(command.name)
        if existing is not None:
            raise ValidationError({"name": [f"A route named {existing.name} already exists"]})

        route = CollectionRoute.register(
            name=command.name,
            country=command.country,
            areas=json.loads(command.areas),
            pickup_date=command.pickup_date,
            priority=command.priority if command.priority is not None else DEFAULT_PRIORITY,
        )
        repo.add(route)
        logger.info("Collection route registered", route_id=str(route.id), name=route.name, country=route.country)
        return str(route.id)

    @handle(RescheduleRoute)
    def reschedule_route(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        route = repo.get_route(command.route_id)
        route.reschedule(command.pickup_date)
        repo.add(route)
        logger.info("Collection route rescheduled", route_id=str(route.id), pickup_date=str(command.pickup_date))

    @handle(AddRouteArea)
    def add_area(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        route = repo.get_route(command.route_id)
        route.add_area(command.area)
        repo.add(route)

    @handle(RemoveRouteArea)
    def remove_area(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        route = repo.get_route(command.route_id)
        route.remove_area(command.area)
        repo.add(route)

    @handle(ChangeRoutePriority)
    def change_priority(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        route = repo.get_route(command.route_id)
        route.change_priority(command.priority)
        repo.add(route)

    @handle(RetireRoute)
    def retire_route(self, command):
        repo = current_domain.repository_for(CollectionRoute)
        route = repo.get_route(command.route_id)
        route.retire()
        repo.add(route)
        logger.info("Collection route retired", route_id=str(route.id), name=route.name)
