"""Build Waze deep links for a driver's route list."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from localsza.errors import NoRouteStopsError
from localsza.schemas.routes import RouteStop
from localsza.services.route_list import RouteListStore

logger = logging.getLogger(__name__)

WAZE_WEB_BASE = "https://www.waze.com/ul"
WAZE_APP_BASE = "waze://"
WAZE_SOURCE = "locals-za-app"
WAZE_ZOOM = 10

Geocoder = Callable[[str], RouteStop | None]


@dataclass(frozen=True)
class WazeLinks:
    """Native-app link to try first and the web link to fall back to."""

    web_url: str
    app_url: str


def _format_point(stop: RouteStop) -> str:
    return f"{stop.lat},{stop.lng}"


def build_waze_links(stops: Sequence[RouteStop]) -> WazeLinks:
    """Return navigation links targeting the first stop.

    Waze only navigates to one destination; any further stops ride along in a
    ``stops`` parameter for clients that understand it.
    """

    if not stops:
        raise NoRouteStopsError()

    query = f"ll={_format_point(stops[0])}&navigate=yes"
    if len(stops) > 1:
        additional = ",".join(_format_point(stop) for stop in stops[1:])
        query += f"&stops={additional}&z={WAZE_ZOOM}&from={WAZE_SOURCE}"

    links = WazeLinks(web_url=f"{WAZE_WEB_BASE}?{query}", app_url=f"{WAZE_APP_BASE}?{query}")
    logger.debug(f"Built Waze links for {len(stops)} stop(s): {links.app_url}")
    return links


def route_links(route_list: RouteListStore) -> WazeLinks:
    """Return links for every geocoded address on ``route_list``."""

    return build_waze_links(route_list.stops())


def geocode_addresses(addresses: Iterable[str], geocoder: Geocoder) -> list[RouteStop]:
    """Geocode ``addresses`` with ``geocoder``, dropping the ones that fail.

    The geocoder is expected to raise ``LookupError`` (or return ``None``) for
    addresses it cannot place, and ``OSError`` for transport failures.
    """

    stops: list[RouteStop] = []
    for address in addresses:
        try:
            stop = geocoder(address)
        except (LookupError, OSError) as exc:
            logger.warning(f"Geocoding failed for {address!r}: {exc}")
            continue
        if stop is not None:
            stops.append(stop)
    return stops


__all__ = [
    "Geocoder",
    "WazeLinks",
    "build_waze_links",
    "geocode_addresses",
    "route_links",
]
