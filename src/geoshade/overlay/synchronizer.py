"""Overlay Synchronizer — keeps the map surface consistent with the selection.

Two mutually exclusive rendering modes, one per level:

  STATE mode:  boundary polygons (loaded lazily, once) restyled from scratch
               on every selection change.
  COUNTY mode: boundary layer hidden; one marker per selected code, placed by
               forward geocoding "FIPS <code> county USA". Only the first
               ``marker_cap`` codes are drawn and at most that many lookups
               are in flight.

All map clicks go through ``handle_click``: a polygon hit consumes the click,
otherwise it falls through to reverse geocoding. Every awaited lookup is
tagged with the store generation and level it was issued under and dropped
if either changed before it completed. Redraws always read the freshest
store snapshot, never the one that was current when the redraw was queued.
"""

import asyncio
import logging

from geoshade.config import settings
from geoshade.core.types import Level, Marker, SelectionSnapshot
from geoshade.geometry.provider import GeometryProvider, ProviderNotConfigured
from geoshade.overlay.notices import COVERAGE_GAP, NoticeBoard
from geoshade.overlay.styles import style_for_feature
from geoshade.overlay.surface import MapSurface
from geoshade.selection.store import SelectionStore

logger = logging.getLogger(__name__)

MISSING_KEY_NOTICE = "Add GOOGLE_MAPS_API_KEY (or ?gmaps_key=...) to enable map rendering."


def marker_query(code: str) -> str:
    return f"FIPS {code} county USA"


class OverlaySynchronizer:
    def __init__(
        self,
        store: SelectionStore,
        provider: GeometryProvider,
        surface: MapSurface,
        notices: NoticeBoard,
        marker_cap: int | None = None,
    ) -> None:
        self._store = store
        self._provider = provider
        self._surface = surface
        self._notices = notices
        self._marker_cap = settings.marker_cap if marker_cap is None else marker_cap
        self._lookup_slots = asyncio.Semaphore(self._marker_cap)
        self._mode: Level | None = None
        self._enabled = False
        # Codes with a marker lookup in flight, valid for one store generation
        self._pending: set[str] = set()
        self._pending_generation = store.generation

    @property
    def mode(self) -> Level | None:
        return self._mode

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def marker_cap(self) -> int:
        return self._marker_cap

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Initialize the provider and enter the store's current level.

        Without an API key the map stays disabled and shows an overlay
        notice; checklist toggles still mutate the store.
        """
        try:
            await self._provider.ready()
        except ProviderNotConfigured as e:
            logger.warning("Map disabled: %s", e)
            self._surface.overlay_notice = MISSING_KEY_NOTICE
            self._enabled = False
            return

        self._surface.overlay_notice = ""
        self._enabled = True
        await self._enter(self._store.level)

    async def _enter(self, level: Level) -> None:
        self._mode = level
        logger.info("Entering %s mode", level.value, extra={"geo_level": level.value})
        await self.sync()

    def stop(self) -> None:
        """Disable the map. In-flight lookups complete but are discarded."""
        self._teardown()
        self._enabled = False

    def _teardown(self) -> None:
        """Remove every overlay of the current mode. Synchronous: no await."""
        self._surface.clear_markers()
        self._surface.hide_boundaries()
        self._pending.clear()
        self._mode = None

    # -- mutations ----------------------------------------------------------

    async def set_level(self, level: Level) -> None:
        """Switch level: tear down, clear the store, enter the new mode."""
        level = Level(level)
        self._teardown()
        self._store.set_level(level)
        if self._enabled:
            await self._enter(level)

    async def toggle(self, code: str) -> bool:
        """Checklist toggle. Returns True if the code is now selected."""
        selected = self._store.toggle(code)
        await self.sync()
        return selected

    async def clear(self) -> None:
        self._store.clear()
        await self.sync()

    async def handle_click(self, lat: float, lng: float) -> str | None:
        """Single dispatch point for map clicks.

        Returns the toggled code, or None when the click resolved to nothing
        (a hint has been posted) or the map is disabled.
        """
        if not self._enabled or self._mode is None:
            return None

        if self._mode == Level.STATE and self._surface.boundary_visible:
            feature = self._provider.hit_test(lat, lng)
            if feature is not None:
                if feature.code is None:
                    self._notices.hint(COVERAGE_GAP.format(level=Level.STATE.value))
                    return None
                await self.toggle(feature.code)
                return feature.code

        issued = self._store.get()
        code = await self._provider.resolve_point(lat, lng, issued.level)
        if code is None:
            return None
        if self._is_stale(issued):
            logger.info("Discarding click resolved after level/selection reset",
                        extra={"code": code, "generation": issued.generation})
            return None
        await self.toggle(code)
        return code

    def _is_stale(self, issued: SelectionSnapshot) -> bool:
        current = self._store.get()
        return (
            not self._enabled
            or current.generation != issued.generation
            or current.level != issued.level
            or self._mode != issued.level
        )

    # -- rendering ----------------------------------------------------------

    async def sync(self) -> None:
        """Re-derive the overlay for the current mode from the store."""
        if not self._enabled or self._mode is None:
            return
        if self._mode == Level.STATE:
            await self._sync_polygons()
        else:
            await self._sync_markers()

    async def _sync_polygons(self) -> None:
        features = await self._provider.load_boundaries()
        if features is None or not self._enabled or self._mode != Level.STATE:
            return
        snap = self._store.get()
        selection = frozenset(snap.items)
        self._surface.show_boundaries(features)
        self._surface.set_styles({
            f.name: style_for_feature(snap.level, selection, f) for f in features
        })

    async def _sync_markers(self) -> None:
        snap = self._store.get()
        if snap.generation != self._pending_generation:
            self._pending.clear()
            self._pending_generation = snap.generation

        drawable = snap.items[: self._marker_cap]
        for code in self._surface.markers:
            if code not in drawable:
                self._surface.remove_marker(code)

        wanted = [
            code for code in drawable
            if code not in self._surface.markers and code not in self._pending
        ]
        if not wanted:
            return
        if len(snap.items) > self._marker_cap:
            logger.info("Drawing %d of %d selected counties", self._marker_cap, len(snap.items))

        self._pending.update(wanted)
        await asyncio.gather(*(self._place_marker(code, snap) for code in wanted))

    async def _place_marker(self, code: str, issued: SelectionSnapshot) -> None:
        try:
            async with self._lookup_slots:
                position = await self._provider.geocode(marker_query(code))
        finally:
            if self._pending_generation == issued.generation:
                self._pending.discard(code)

        if self._is_stale(issued):
            logger.debug("Dropping stale marker lookup for %s", code,
                         extra={"code": code, "generation": issued.generation})
            return
        # Toggled off (or pushed past the cap) while the lookup was in flight
        if code not in self._store.get().items[: self._marker_cap]:
            return
        if position is None:
            self._notices.hint(f"Could not place a marker for {code}")
            return
        self._surface.add_marker(Marker(code=code, position=position, title=code))
