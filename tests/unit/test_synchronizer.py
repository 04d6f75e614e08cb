"""Tests for the Overlay Synchronizer state machine."""

import asyncio

from geoshade.core.types import LatLng, Level
from geoshade.geometry.provider import GeometryProvider
from geoshade.overlay.notices import NoticeBoard
from geoshade.overlay.styles import SELECTED_STYLE, UNMATCHED_STYLE, UNSELECTED_STYLE
from geoshade.overlay.surface import MapSurface
from geoshade.overlay.synchronizer import MISSING_KEY_NOTICE, OverlaySynchronizer, marker_query
from geoshade.selection.store import SelectionStore
from tests.unit.fakes import (
    IN_CALIFORNIA,
    IN_NEW_YORK,
    IN_PUERTO_RICO,
    OAKLAND,
    SAN_FRANCISCO,
    SF_COUNTY_LOCATION,
    until,
)


class TestStateMode:
    async def test_start_loads_boundaries_and_styles_everything(self, engine, geocoder):
        await engine.overlay.start()

        assert engine.overlay.mode == Level.STATE
        assert engine.surface.boundary_visible
        assert engine.surface.styles == {
            "California": UNSELECTED_STYLE,
            "Texas": UNSELECTED_STYLE,
            "Puerto Rico": UNMATCHED_STYLE,
        }
        assert geocoder.boundary_requests == 1

    async def test_checklist_toggle_restyles(self, engine):
        await engine.overlay.start()
        await engine.overlay.toggle("CA")
        await engine.overlay.toggle("TX")

        styles = engine.surface.styles
        assert styles["California"] == SELECTED_STYLE
        assert styles["Texas"] == SELECTED_STYLE

        await engine.overlay.toggle("CA")
        assert engine.surface.styles["California"] == UNSELECTED_STYLE

    async def test_selected_code_without_polygon_stays_selected(self, engine):
        await engine.overlay.start()
        await engine.overlay.toggle("NY")
        assert engine.store.get().items == ("NY",)
        assert SELECTED_STYLE not in engine.surface.styles.values()

    async def test_clear_restyles(self, engine):
        await engine.overlay.start()
        await engine.overlay.toggle("CA")
        await engine.overlay.clear()
        assert engine.surface.styles["California"] == UNSELECTED_STYLE
        assert engine.store.level == Level.STATE

    async def test_boundary_failure_is_retried_on_next_sync(self, engine, geocoder):
        geocoder.boundaries_status = 500
        await engine.overlay.start()
        assert not engine.surface.boundary_visible
        assert engine.notices.active()

        geocoder.boundaries_status = 200
        await engine.overlay.toggle("CA")
        assert engine.surface.styles["California"] == SELECTED_STYLE
        assert geocoder.boundary_requests == 2


class TestClickDispatch:
    async def test_polygon_hit_toggles_without_geocoding(self, engine, geocoder):
        await engine.overlay.start()

        code = await engine.overlay.handle_click(*IN_CALIFORNIA)

        assert code == "CA"
        assert engine.store.get().items == ("CA",)
        assert geocoder.reverse_queries == []

    async def test_single_dispatch_no_double_toggle(self, engine):
        await engine.overlay.start()
        await engine.overlay.handle_click(*IN_CALIFORNIA)
        await engine.overlay.handle_click(*IN_CALIFORNIA)
        assert engine.store.get().items == ()

    async def test_unmatched_polygon_posts_hint(self, engine, geocoder):
        await engine.overlay.start()

        assert await engine.overlay.handle_click(*IN_PUERTO_RICO) is None

        assert engine.store.get().items == ()
        assert geocoder.reverse_queries == []
        [notice] = engine.notices.active()
        assert "demo coverage" in notice.message

    async def test_miss_falls_through_to_reverse_geocode(self, engine, geocoder):
        await engine.overlay.start()

        code = await engine.overlay.handle_click(*IN_NEW_YORK)

        assert code == "NY"
        assert engine.store.get().items == ("NY",)
        assert len(geocoder.reverse_queries) == 1

    async def test_county_click(self, engine):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)

        code = await engine.overlay.handle_click(*SAN_FRANCISCO)

        assert code == "06075"
        assert engine.store.get().items == ("06075",)
        assert "06075" in engine.surface.markers

    async def test_county_click_outside_coverage(self, engine):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)

        assert await engine.overlay.handle_click(*OAKLAND) is None
        assert engine.store.get().items == ()
        assert "demo coverage" in engine.notices.active()[0].message

    async def test_geocode_failure_no_mutation(self, engine, geocoder):
        await engine.overlay.start()
        geocoder.fail_geocode = True

        assert await engine.overlay.handle_click(*IN_NEW_YORK) is None
        assert engine.store.get().items == ()
        assert engine.notices.active()[0].message == "Location lookup failed"

    async def test_stale_click_is_discarded(self, engine, geocoder):
        await engine.overlay.start()
        geocoder.gate = asyncio.Event()

        click = asyncio.create_task(engine.overlay.handle_click(*IN_NEW_YORK))
        await until(lambda: geocoder.in_flight == 1)
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate.set()

        assert await click is None
        assert engine.store.get().items == ()
        assert engine.store.level == Level.COUNTY


class TestCountyMode:
    async def test_scenario_states_then_county(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.toggle("CA")
        await engine.overlay.toggle("TX")
        assert set(engine.store.get().items) == {"CA", "TX"}

        await engine.overlay.set_level(Level.COUNTY)
        assert engine.store.get().items == ()

        await engine.overlay.toggle("06075")

        markers = engine.surface.markers
        assert list(markers) == ["06075"]
        assert markers["06075"].title == "06075"
        assert markers["06075"].position == LatLng(**SF_COUNTY_LOCATION)
        assert geocoder.forward_queries == ["FIPS 06075 county USA"]

    async def test_marker_query(self):
        assert marker_query("06075") == "FIPS 06075 county USA"

    async def test_no_overlap_between_modes(self, engine):
        await engine.overlay.start()
        await engine.overlay.toggle("CA")

        await engine.overlay.set_level(Level.COUNTY)
        assert not engine.surface.boundary_visible
        assert engine.surface.styles == {}
        await engine.overlay.toggle("06075")
        assert engine.surface.markers

        await engine.overlay.set_level(Level.STATE)
        assert engine.surface.markers == {}
        assert engine.surface.boundary_visible

    async def test_reentering_state_mode_uses_cached_boundaries(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        await engine.overlay.set_level(Level.STATE)
        await engine.overlay.set_level(Level.COUNTY)
        await engine.overlay.set_level(Level.STATE)
        assert geocoder.boundary_requests == 1

    async def test_county_mode_does_not_fetch_boundaries(self, geocoder):
        notices = NoticeBoard(ttl_seconds=60)
        store = SelectionStore(Level.COUNTY)
        provider = GeometryProvider("test-key", notices, transport=geocoder.transport)
        overlay = OverlaySynchronizer(store, provider, MapSurface(), notices)
        await overlay.start()
        assert geocoder.boundary_requests == 0

    async def test_marker_cap(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        codes = [f"{i:05d}" for i in range(1, 21)]
        for code in codes:
            engine.store.toggle(code)

        await engine.overlay.sync()

        assert len(engine.store.get().items) == 20
        assert set(engine.surface.markers) == set(codes[:12])
        assert len(geocoder.forward_queries) == 12
        assert geocoder.max_in_flight <= 12

    async def test_deselecting_frees_a_marker_slot(self, engine):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        codes = [f"{i:05d}" for i in range(1, 15)]
        for code in codes:
            engine.store.toggle(code)
        await engine.overlay.sync()
        assert codes[12] not in engine.surface.markers

        await engine.overlay.toggle(codes[0])

        assert codes[0] not in engine.surface.markers
        assert codes[12] in engine.surface.markers
        assert len(engine.surface.markers) == 12

    async def test_lookups_bounded_under_concurrent_toggles(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate = asyncio.Event()

        tasks = [asyncio.create_task(engine.overlay.toggle(f"{i:05d}")) for i in range(1, 21)]
        await until(lambda: geocoder.in_flight == 12)
        geocoder.gate.set()
        await asyncio.gather(*tasks)

        assert geocoder.max_in_flight <= 12
        assert len(engine.surface.markers) == 12

    async def test_stale_marker_after_level_switch_is_dropped(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate = asyncio.Event()

        toggle = asyncio.create_task(engine.overlay.toggle("06075"))
        await until(lambda: geocoder.in_flight == 1)
        await engine.overlay.set_level(Level.STATE)
        geocoder.gate.set()
        await toggle

        assert engine.surface.markers == {}
        assert engine.overlay.mode == Level.STATE

    async def test_marker_toggled_off_while_pending_is_not_drawn(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate = asyncio.Event()

        toggle_on = asyncio.create_task(engine.overlay.toggle("06075"))
        await until(lambda: geocoder.in_flight == 1)
        await engine.overlay.toggle("06075")
        geocoder.gate.set()
        await toggle_on

        assert engine.store.get().items == ()
        assert engine.surface.markers == {}

    async def test_pending_lookup_is_not_duplicated(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate = asyncio.Event()

        first = asyncio.create_task(engine.overlay.toggle("06075"))
        await until(lambda: geocoder.in_flight == 1)
        second = asyncio.create_task(engine.overlay.toggle("06037"))
        await until(lambda: geocoder.in_flight == 2)
        geocoder.gate.set()
        await asyncio.gather(first, second)

        assert sorted(geocoder.forward_queries) == [
            "FIPS 06037 county USA",
            "FIPS 06075 county USA",
        ]
        assert set(engine.surface.markers) == {"06075", "06037"}

    async def test_marker_geocode_failure_posts_hint(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.fail_geocode = True

        await engine.overlay.toggle("06075")

        assert engine.store.get().items == ("06075",)
        assert engine.surface.markers == {}
        assert engine.notices.active()[0].message == "Could not place a marker for 06075"


class TestMissingKey:
    async def test_map_disabled_but_checklist_works(self, geocoder):
        notices = NoticeBoard(ttl_seconds=60)
        store = SelectionStore()
        surface = MapSurface()
        provider = GeometryProvider("", notices, transport=geocoder.transport)
        overlay = OverlaySynchronizer(store, provider, surface, notices)

        await overlay.start()

        assert overlay.enabled is False
        assert surface.overlay_notice == MISSING_KEY_NOTICE
        assert await overlay.toggle("CA") is True
        assert store.get().items == ("CA",)
        assert await overlay.handle_click(*IN_CALIFORNIA) is None
        assert geocoder.boundary_requests == 0

        await overlay.set_level(Level.COUNTY)
        assert store.get().items == ()
        assert store.level == Level.COUNTY

    async def test_stop_discards_in_flight_results(self, engine, geocoder):
        await engine.overlay.start()
        await engine.overlay.set_level(Level.COUNTY)
        geocoder.gate = asyncio.Event()

        toggle = asyncio.create_task(engine.overlay.toggle("06075"))
        await until(lambda: geocoder.in_flight == 1)
        engine.overlay.stop()
        geocoder.gate.set()
        await toggle

        assert engine.surface.markers == {}
        assert engine.overlay.enabled is False
