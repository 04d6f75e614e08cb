"""Geometry Provider Adapter — boundary polygons and geocoding.

Wraps the external map/geocoding service behind four async operations:

  - ``load_boundaries()``: fetch the state boundary GeoJSON once, reconcile
    names to postal codes, memoize on success.
  - ``hit_test(lat, lng)``: point-in-polygon over the loaded features.
  - ``resolve_point(lat, lng, level)``: reverse geocode a click to a code.
  - ``geocode(query)``: forward geocode a text query to a coordinate.

The provider is plain HTTP, so every call is a coroutine at this boundary
and nothing above it deals with callbacks. The shared HTTP client is
created by ``ensure_provider_initialized`` exactly once per process.
"""

import asyncio
import logging
import time

import httpx
from shapely.errors import ShapelyError
from shapely.geometry import Point, shape

from geoshade.config import settings
from geoshade.core.regions import STATE_CODES, county_code_for, county_label, state_code_for
from geoshade.core.types import GeometryFeature, LatLng, Level
from geoshade.overlay.notices import COVERAGE_GAP, NoticeBoard

logger = logging.getLogger(__name__)

_US_STATE_ABBRS = frozenset(STATE_CODES.values())


class ProviderNotConfigured(RuntimeError):
    """Raised when the map provider is used without an API key."""


# ---------------------------------------------------------------------------
# Process-wide provider initialization
# ---------------------------------------------------------------------------

_provider: asyncio.Future | None = None


def ensure_provider_initialized(
    api_key: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> asyncio.Future:
    """Initialize the provider once and return a handle every caller awaits.

    Must be called from inside a running event loop. Repeat calls return the
    same future regardless of arguments.
    """
    global _provider
    if not api_key:
        raise ProviderNotConfigured("Google Maps API key is not configured")
    if _provider is None:
        future = asyncio.get_running_loop().create_future()
        future.set_result(httpx.AsyncClient(timeout=settings.http_timeout, transport=transport))
        _provider = future
        logger.info("Map provider initialized")
    return _provider


async def close_provider() -> None:
    """Close the shared client and drop the initialization flag."""
    global _provider
    if _provider is not None and _provider.done() and not _provider.cancelled():
        await _provider.result().aclose()
    _provider = None


def reset_provider() -> None:
    """Drop the initialization flag without closing (tests, new event loop)."""
    global _provider
    _provider = None


# ---------------------------------------------------------------------------
# Geocoder result parsing
# ---------------------------------------------------------------------------

def _component(result: dict, component_type: str) -> dict | None:
    """Find the first address component of a given type in a geocoder result."""
    for comp in result.get("address_components", []):
        if component_type in comp.get("types", []):
            return comp
    return None


def extract_code(result: dict, level: Level) -> str | None:
    """Pull a state or county code out of one reverse-geocode result.

    State level uses the administrative_area_level_1 short name directly.
    County level synthesizes '<Name> County, <ST>' from levels 2 and 1 and
    looks it up in the demo county table.
    """
    country = _component(result, "country")
    if country is None or country.get("short_name") != "US":
        return None

    state = _component(result, "administrative_area_level_1")
    if state is None:
        return None
    state_abbr = state.get("short_name", "")
    if state_abbr not in _US_STATE_ABBRS:
        return None

    if level == Level.STATE:
        return state_abbr

    county = _component(result, "administrative_area_level_2")
    if county is None:
        return None
    return county_code_for(county_label(county.get("long_name", ""), state_abbr))


def parse_boundaries(data: dict) -> list[GeometryFeature]:
    """Convert a GeoJSON FeatureCollection into reconciled features.

    Features whose name has no postal code keep ``code=None``.
    Features with unparseable geometry are skipped. Raises ValueError when
    the payload is not a FeatureCollection-shaped object.
    """
    if not isinstance(data, dict):
        raise ValueError(f"boundary payload is {type(data).__name__}, not an object")
    raw_features = data.get("features", [])
    if not isinstance(raw_features, list):
        raise ValueError("boundary payload 'features' is not a list")

    features: list[GeometryFeature] = []
    for raw in raw_features:
        if not isinstance(raw, dict):
            raise ValueError(f"boundary feature is {type(raw).__name__}, not an object")
        props = raw.get("properties") or {}
        name = props.get("name") or props.get("NAME") or ""
        try:
            geom = shape(raw["geometry"])
        except (KeyError, TypeError, ValueError, ShapelyError) as e:
            logger.warning("Skipping boundary feature %r: %s", name, e)
            continue
        features.append(GeometryFeature(name=name, geometry=geom, properties=props))

    unmatched = 0
    for feature in features:
        feature.code = state_code_for(feature.name)
        if feature.code is None:
            unmatched += 1
    if unmatched:
        logger.info("%d boundary features have no state code", unmatched)
    return features


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class GeometryProvider:
    def __init__(
        self,
        api_key: str,
        notices: NoticeBoard,
        boundaries_url: str | None = None,
        geocode_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._notices = notices
        self._boundaries_url = boundaries_url or settings.boundaries_url
        self._geocode_url = geocode_url or settings.geocode_url
        self._transport = transport
        self._features: list[GeometryFeature] | None = None
        self._loading: asyncio.Task | None = None

    @property
    def boundaries(self) -> list[GeometryFeature]:
        return self._features or []

    @property
    def boundaries_loaded(self) -> bool:
        return self._features is not None

    async def _client(self) -> httpx.AsyncClient:
        return await ensure_provider_initialized(self._api_key, self._transport)

    async def ready(self) -> None:
        """Wait for provider initialization. Raises ProviderNotConfigured without a key."""
        await self._client()

    # -- boundaries ---------------------------------------------------------

    async def load_boundaries(self) -> list[GeometryFeature] | None:
        """Load boundary polygons once. Returns None if the fetch failed.

        Concurrent callers share one in-flight request. A failure leaves the
        cache empty so the next call retries.
        """
        if self._features is not None:
            return self._features

        if self._loading is None:
            self._loading = asyncio.create_task(self._fetch_boundaries())
            self._loading.add_done_callback(self._loading_done)
        # A cancelled caller must not cancel the fetch the others are waiting on
        return await asyncio.shield(self._loading)

    def _loading_done(self, task: asyncio.Task) -> None:
        if self._loading is task:
            self._loading = None

    async def _fetch_boundaries(self) -> list[GeometryFeature] | None:
        start = time.monotonic()
        try:
            client = await self._client()
            resp = await client.get(self._boundaries_url)
            resp.raise_for_status()
            features = parse_boundaries(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Boundary fetch failed: %s", e)
            self._notices.hint("Could not load state boundaries — try again")
            return None

        self._features = features
        logger.info(
            "Loaded %d boundary features", len(features),
            extra={"duration_ms": round((time.monotonic() - start) * 1000)},
        )
        return features

    def hit_test(self, lat: float, lng: float) -> GeometryFeature | None:
        """Return the loaded feature containing the point, if any."""
        point = Point(lng, lat)
        for feature in self.boundaries:
            if feature.geometry.covers(point):
                return feature
        return None

    # -- geocoding ----------------------------------------------------------

    async def _geocode_request(self, params: dict) -> list[dict] | None:
        """Issue one geocoder request.

        Returns [] for ZERO_RESULTS and None when the request itself failed.
        """
        try:
            client = await self._client()
            resp = await client.get(self._geocode_url, params={**params, "key": self._api_key})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoder request failed: %s", e)
            return None

        if not isinstance(data, dict):
            logger.warning("Geocoder returned a non-object payload")
            return None
        status = data.get("status", "")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            logger.warning("Geocoder returned status %s", status)
            return None
        results = data.get("results") or []
        if not isinstance(results, list):
            logger.warning("Geocoder returned non-list results")
            return None
        return [r for r in results if isinstance(r, dict)]

    async def resolve_point(self, lat: float, lng: float, level: Level) -> str | None:
        """Reverse geocode a click to a code. No retries.

        On failure or an unresolvable result a hint is posted and None is
        returned; the caller must not mutate the selection.
        """
        results = await self._geocode_request({"latlng": f"{lat},{lng}"})
        if results is None:
            self._notices.hint("Location lookup failed")
            return None

        for result in results:
            code = extract_code(result, level)
            if code:
                logger.info("Resolved %.4f,%.4f → %s", lat, lng, code,
                            extra={"code": code, "geo_level": level.value})
                return code

        self._notices.hint(COVERAGE_GAP.format(level=level.value))
        return None

    async def geocode(self, query: str) -> LatLng | None:
        """Forward geocode a text query to a coordinate."""
        results = await self._geocode_request({"address": query})
        if not results:
            return None
        location = results[0].get("geometry", {}).get("location", {})
        if location.get("lat") is None or location.get("lng") is None:
            return None
        return LatLng(lat=location["lat"], lng=location["lng"])
