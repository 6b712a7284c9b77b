"""Default collection schedule used to seed a fresh deployment.

These are starting values for ``manage.py seed-routes`` and the
``get_routing_policy`` fallback; the live schedule is whatever operators
have registered since.
"""

from shipping.routing.table import RouteEntry

UK_ROUTES = (
    RouteEntry(name="LONDON ROUTE", country="England", areas=("E", "EC", "N", "NW", "SE", "SW", "W", "WC"), priority=10),
    RouteEntry(name="BIRMINGHAM ROUTE", country="England", areas=("B", "CV", "WV", "WS", "DY"), priority=20),
    RouteEntry(name="MANCHESTER ROUTE", country="England", areas=("M", "OL", "BL", "SK", "WN", "WA", "L", "CH", "PR"), priority=30),
    RouteEntry(name="LEEDS ROUTE", country="England", areas=("LS", "BD", "HX", "HD", "WF", "S", "DN", "YO"), priority=40),
    RouteEntry(name="NOTTINGHAM ROUTE", country="England", areas=("NG", "DE", "LE", "NN"), priority=50),
    RouteEntry(name="BRISTOL ROUTE", country="England", areas=("BS", "BA", "GL", "SN"), priority=60),
    RouteEntry(name="CARDIFF ROUTE", country="Wales", areas=("CF", "NP", "SA"), priority=70),
    RouteEntry(name="SOUTHAMPTON ROUTE", country="England", areas=("SO", "PO", "BH", "SP"), priority=80),
    RouteEntry(name="READING ROUTE", country="England", areas=("RG", "SL", "OX", "HP", "MK"), priority=90),
    RouteEntry(name="KENT ROUTE", country="England", areas=("ME", "CT", "TN", "DA", "BR"), priority=100),
    RouteEntry(name="GLASGOW ROUTE", country="Scotland", areas=("G", "PA", "ML", "KA", "EH"), priority=110),
)

IRELAND_ROUTES = (
    RouteEntry(name="DUBLIN ROUTE", country="Ireland", areas=("DUBLIN", "DROGHEDA", "NAVAN", "NAAS"), priority=200),
    RouteEntry(name="CORK ROUTE", country="Ireland", areas=("CORK", "LIMERICK", "WATERFORD"), priority=210),
    RouteEntry(name="GALWAY ROUTE", country="Ireland", areas=("GALWAY", "SLIGO", "ATHLONE"), priority=220),
)

DEFAULT_ROUTES = UK_ROUTES + IRELAND_ROUTES

# Regions the collection fleet does not reach: far South West, Highlands and
# Islands, Northern Ireland and the Crown Dependencies.
RESTRICTED_PREFIXES = frozenset({"EX", "TR", "PL", "TQ", "IV", "KW", "HS", "ZE", "BT", "IM", "JE", "GY"})

CITY_KEYED_COUNTRIES = frozenset({"Ireland"})
