"""Route schedule — operations view of every collection route and its next date."""

import json

from protean.core.projector import on
from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.routing.events import (
    RouteAreaAdded,
    RouteAreaRemoved,
    RoutePriorityChanged,
    RouteRegistered,
    RouteRescheduled,
    RouteRetired,
)
from shipping.routing.route import CollectionRoute


@shipping.projection
class RouteScheduleView:
    route_id = Identifier(identifier=True, required=True)
    name = String(required=True)
    country = String(required=True)
    areas = Text()  # JSON list
    area_count = Integer(default=0)
    pickup_date = Date()
    priority = Integer()
    active = Boolean(default=True)
    updated_at = DateTime()


def _set_areas(view, areas: list[str]) -> None:
    view.areas = json.dumps(areas)
    view.area_count = len(areas)


@shipping.projector(projector_for=RouteScheduleView, aggregates=[CollectionRoute])
class RouteScheduleProjector:
    @on(RouteRegistered)
    def on_route_registered(self, event):
        areas = json.loads(event.areas)
        view = RouteScheduleView(
            route_id=event.route_id,
            name=event.name,
            country=event.country,
            pickup_date=event.pickup_date,
            priority=event.priority,
            active=True,
            updated_at=event.registered_at,
        )
        _set_areas(view, areas)
        current_domain.repository_for(RouteScheduleView).add(view)

    @on(RouteRescheduled)
    def on_route_rescheduled(self, event):
        repo = current_domain.repository_for(RouteScheduleView)
        view = repo.get(event.route_id)
        view.pickup_date = event.pickup_date
        view.updated_at = event.rescheduled_at
        repo.add(view)

    @on(RouteAreaAdded)
    def on_route_area_added(self, event):
        repo = current_domain.repository_for(RouteScheduleView)
        view = repo.get(event.route_id)
        areas = json.loads(view.areas) if view.areas else []
        areas.append(event.area)
        _set_areas(view, areas)
        view.updated_at = event.added_at
        repo.add(view)

    @on(RouteAreaRemoved)
    def on_route_area_removed(self, event):
        repo = current_domain.repository_for(RouteScheduleView)
        view = repo.get(event.route_id)
        areas = [a for a in (json.loads(view.areas) if view.areas else []) if a != event.area]
        _set_areas(view, areas)
        view.updated_at = event.removed_at
        repo.add(view)

    @on(RoutePriorityChanged)
    def on_route_priority_changed(self, event):
        repo = current_domain.repository_for(RouteScheduleView)
        view = repo.get(event.route_id)
        view.priority = event.priority
        view.updated_at = event.changed_at
        repo.add(view)

    @on(RouteRetired)
    def on_route_retired(self, event):
        repo = current_domain.repository_for(RouteScheduleView)
        view = repo.get(event.route_id)
        view.active = False
        view.updated_at = event.retired_at
        repo.add(view)
