"""CollectionRoute aggregate — one named collection circuit on the schedule.

A route serves an ordered list of areas. For postal-code countries the areas
are postal prefixes (``CF``, ``NP``, ``SA``); for city-keyed countries they
are city names (``DUBLIN``, ``CORK``). Routes are matched in ascending
``priority`` and then by name, so the matching order is always explicit.
"""

import json
import re
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Integer, String, Text

from shipping.domain import shipping
from shipping.routing.events import (
    RouteAreaAdded,
    RouteAreaRemoved,
    RoutePriorityChanged,
    RouteRegistered,
    RouteRescheduled,
    RouteRetired,
)

DEFAULT_PRIORITY = 100


def normalize_area(area: str) -> str:
    """Upper-case an area and collapse inner whitespace."""
    return re.sub(r"\s+", " ", (area or "").strip()).upper()


@shipping.aggregate
class CollectionRoute:
    name = String(required=True, max_length=100, unique=True)
    country = String(required=True, max_length=50)
    areas = Text()  # JSON list of normalized areas, in declared order
    pickup_date = Date()
    priority = Integer(default=DEFAULT_PRIORITY, min_value=0)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def area_list(self) -> list[str]:
        return json.loads(self.areas) if self.areas else []

    @classmethod
    def register(
        cls,
        name: str,
        country: str,
        areas: list[str],
        pickup_date=None,
        priority: int = DEFAULT_PRIORITY,
    ):
        """Add a route to the collection schedule."""
        normalized = []
        for area in areas:
            value = normalize_area(area)
            if not value:
                raise ValidationError({"areas": ["Areas cannot be blank"]})
            if value not in normalized:
                normalized.append(value)
        if not normalized:
            raise ValidationError({"areas": ["A route must serve at least one area"]})

        now = datetime.now(UTC)
        route = cls(
            name=normalize_area(name),
            country=country.strip().title(),
            areas=json.dumps(normalized),
            pickup_date=pickup_date,
            priority=priority,
            active=True,
            created_at=now,
            updated_at=now,
        )
        route.raise_(
            RouteRegistered(
                route_id=str(route.id),
                name=route.name,
                country=route.country,
                areas=route.areas,
                pickup_date=pickup_date,
                priority=priority,
                registered_at=now,
            )
        )
        return route

    def _assert_active(self) -> None:
        if not self.active:
            raise ValidationError({"route": [f"Route {self.name} has been retired"]})

    def reschedule(self, pickup_date) -> None:
        """Move the next pickup date of the route."""
        self._assert_active()
        previous = self.pickup_date
        now = datetime.now(UTC)
        self.pickup_date = pickup_date
        self.updated_at = now
        self.raise_(
            RouteRescheduled(
                route_id=str(self.id),
                name=self.name,
                previous_date=previous,
                pickup_date=pickup_date,
                rescheduled_at=now,
            )
        )

    def add_area(self, area: str) -> None:
        self._assert_active()
        value = normalize_area(area)
        if not value:
            raise ValidationError({"area": ["Area cannot be blank"]})
        current = self.area_list
        if value in current:
            raise ValidationError({"area": [f"{value} is already served by {self.name}"]})

        now = datetime.now(UTC)
        current.append(value)
        self.areas = json.dumps(current)
        self.updated_at = now
        self.raise_(RouteAreaAdded(route_id=str(self.id), name=self.name, area=value, added_at=now))

    def remove_area(self, area: str) -> None:
        self._assert_active()
        value = normalize_area(area)
        current = self.area_list
        if value not in current:
            raise ValidationError({"area": [f"{value} is not served by {self.name}"]})
        if len(current) == 1:
            raise ValidationError({"area": ["A route must serve at least one area"]})

        now = datetime.now(UTC)
        current.remove(value)
        self.areas = json.dumps(current)
        self.updated_at = now
        self.raise_(RouteAreaRemoved(route_id=str(self.id), name=self.name, area=value, removed_at=now))

    def change_priority(self, priority: int) -> None:
        self._assert_active()
        if priority < 0:
            raise ValidationError({"priority": ["Priority cannot be negative"]})

        previous = self.priority
        now = datetime.now(UTC)
        self.priority = priority
        self.updated_at = now
        self.raise_(
            RoutePriorityChanged(
                route_id=str(self.id),
                name=self.name,
                previous_priority=previous,
                priority=priority,
                changed_at=now,
            )
        )

    def retire(self) -> None:
        """Withdraw the route; it stops matching postal codes."""
        self._assert_active()
        now = datetime.now(UTC)
        self.active = False
        self.updated_at = now
        self.raise_(RouteRetired(route_id=str(self.id), name=self.name, retired_at=now))
