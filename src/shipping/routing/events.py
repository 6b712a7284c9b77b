"""Collection route events — facts about the route schedule managed by operations."""

from protean.fields import Date, DateTime, Identifier, Integer, String, Text

from shipping.domain import shipping


@shipping.event(part_of="CollectionRoute")
class RouteRegistered:
    """A new collection route was added to the schedule."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    country = String(required=True)
    areas = Text(required=True)  # JSON list of area strings, in order
    pickup_date = Date()
    priority = Integer(required=True)
    registered_at = DateTime(required=True)


@shipping.event(part_of="CollectionRoute")
class RouteRescheduled:
    """The pickup date of a collection route moved."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    previous_date = Date()
    pickup_date = Date(required=True)
    rescheduled_at = DateTime(required=True)


@shipping.event(part_of="CollectionRoute")
class RouteAreaAdded:
    """A postal prefix or city was added to a route."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    area = String(required=True)
    added_at = DateTime(required=True)


@shipping.event(part_of="CollectionRoute")
class RouteAreaRemoved:
    """A postal prefix or city was taken off a route."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    area = String(required=True)
    removed_at = DateTime(required=True)


@shipping.event(part_of="CollectionRoute")
class RoutePriorityChanged:
    """The position of a route in the matching order changed."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    previous_priority = Integer(required=True)
    priority = Integer(required=True)
    changed_at = DateTime(required=True)


@shipping.event(part_of="CollectionRoute")
class RouteRetired:
    """A route was withdrawn from the schedule."""

    __version__ = 1

    route_id = Identifier(required=True)
    name = String(required=True)
    retired_at = DateTime(required=True)
