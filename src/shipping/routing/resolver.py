"""RouteResolver — postal code (or city) to collection route.

Resolution is pure: it reads an injected ``RouteTable`` and returns a
``Resolution`` value. "Not enough input" and "unserviceable" are outcomes,
never exceptions.

Postal matching, in order:

1. Normalize: drop everything but letters and digits, upper-case.
   Fewer than 2 characters is ``UNRESOLVED``.
2. Restricted deny-list. Alphabetic prefixes compare against the code's
   leading letters, prefixes with digits against the outward code. A hit is
   ``RESTRICTED`` even when a route would also match.
3. Route match. A route matches when one of its areas and the code's leading
   1-2 letters contain one another as a prefix (either direction), or when
   an area with digits prefixes the outward code.
4. Tie-break. Candidates are ranked by match strength (outward code, then
   exact letters, then containment) and then by table order.
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

from shipping.routing.table import RouteEntry, RouteTable

MIN_POSTAL_LENGTH = 2
INWARD_CODE_LENGTH = 3

_OUTWARD_MATCH = 0
_EXACT_MATCH = 1
_CONTAINMENT_MATCH = 2


class ResolutionOutcome(Enum):
    RESOLVED = "Resolved"
    RESTRICTED = "Restricted"
    UNRESOLVED = "Unresolved"


class UnresolvedReason(Enum):
    INSUFFICIENT_INPUT = "insufficient_input"
    NO_MATCHING_ROUTE = "no_matching_route"


@dataclass(frozen=True)
class Resolution:
    outcome: ResolutionOutcome
    normalized_input: str
    table_version: str
    route_name: str | None = None
    areas: tuple[str, ...] = ()
    collection_date: date | None = None
    restricted_prefix: str | None = None
    reason: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.outcome == ResolutionOutcome.RESOLVED

    @property
    def is_restricted(self) -> bool:
        return self.outcome == ResolutionOutcome.RESTRICTED


def normalize_postal_code(postal_code: str | None) -> str:
    return re.sub(r"[^A-Za-z0-9]", "", postal_code or "").upper()


def outward_code(normalized: str) -> str:
    """Outward part of a normalized UK-style code (``SW1A1AA`` -> ``SW1A``).

    Partial input without an inward code is returned as is.
    """
    if len(normalized) > INWARD_CODE_LENGTH + 1 and normalized[-INWARD_CODE_LENGTH].isdigit():
        return normalized[:-INWARD_CODE_LENGTH]
    return normalized


def area_letters(normalized: str) -> str:
    """Leading one or two letters of a normalized code."""
    match = re.match(r"[A-Z]{1,2}", normalized)
    return match.group(0) if match else ""


class RouteResolver:
    def __init__(self, table: RouteTable):
        self.table = table

    def resolve(self, postal_code: str | None, country: str | None = None, city: str | None = None) -> Resolution:
        if self.table.is_city_keyed(country):
            return self.resolve_city(city, country)
        return self.resolve_postal(postal_code)

    def resolve_postal(self, postal_code: str | None) -> Resolution:
        normalized = normalize_postal_code(postal_code)
        if len(normalized) < MIN_POSTAL_LENGTH:
            return self._unresolved(normalized, UnresolvedReason.INSUFFICIENT_INPUT)

        letters = area_letters(normalized)
        outward = outward_code(normalized)

        restricted = self._restricted_prefix(letters, outward)
        if restricted:
            return Resolution(
                outcome=ResolutionOutcome.RESTRICTED,
                normalized_input=normalized,
                table_version=self.table.version,
                restricted_prefix=restricted,
                reason=f"Postal area {restricted} requires manual collection arrangements",
            )

        if not letters:
            return self._unresolved(normalized, UnresolvedReason.NO_MATCHING_ROUTE)

        best = None
        for position, route in enumerate(self.table.postal_routes()):
            strength = _match_strength(route, letters, outward)
            if strength is None:
                continue
            rank = (strength, position)
            if best is None or rank < best[0]:
                best = (rank, route)

        if best is None:
            return self._unresolved(normalized, UnresolvedReason.NO_MATCHING_ROUTE)
        return self._resolved(normalized, best[1])

    def resolve_city(self, city: str | None, country: str) -> Resolution:
        wanted = re.sub(r"\s+", " ", (city or "").strip()).upper()
        if not wanted:
            return self._unresolved(wanted, UnresolvedReason.INSUFFICIENT_INPUT)

        for route in self.table.city_routes(country):
            if wanted in route.areas:
                return self._resolved(wanted, route)
        return self._unresolved(wanted, UnresolvedReason.NO_MATCHING_ROUTE)

    def _restricted_prefix(self, letters: str, outward: str) -> str | None:
        for prefix in sorted(self.table.restricted_prefixes):
            if prefix.isalpha():
                if prefix == letters:
                    return prefix
            elif prefix == outward:
                return prefix
        return None

    def _resolved(self, normalized: str, route: RouteEntry) -> Resolution:
        return Resolution(
            outcome=ResolutionOutcome.RESOLVED,
            normalized_input=normalized,
            table_version=self.table.version,
            route_name=route.name,
            areas=route.areas,
            collection_date=route.collection_date,
        )

    def _unresolved(self, normalized: str, reason: UnresolvedReason) -> Resolution:
        return Resolution(
            outcome=ResolutionOutcome.UNRESOLVED,
            normalized_input=normalized,
            table_version=self.table.version,
            reason=reason.value,
        )


def _match_strength(route: RouteEntry, letters: str, outward: str) -> int | None:
    strongest = None
    for area in route.areas:
        compact = area.replace(" ", "")
        if any(ch.isdigit() for ch in compact):
            strength = _OUTWARD_MATCH if outward.startswith(compact) else None
            if strength is None and compact.startswith(letters) and letters == area_letters(compact):
                strength = _CONTAINMENT_MATCH
        elif compact == letters:
            strength = _EXACT_MATCH
        elif compact.startswith(letters) or letters.startswith(compact):
            strength = _CONTAINMENT_MATCH
        else:
            strength = None

        if strength is not None and (strongest is None or strength < strongest):
            strongest = strength
    return strongest
