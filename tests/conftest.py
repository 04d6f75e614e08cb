"""Shared test fixtures — provider reset, fake geocoder and engine wiring."""

from types import SimpleNamespace

import pytest

from geoshade.api.backend import clear_store
from geoshade.geometry.provider import GeometryProvider, reset_provider
from geoshade.overlay.notices import NoticeBoard
from geoshade.overlay.surface import MapSurface
from geoshade.overlay.synchronizer import OverlaySynchronizer
from geoshade.selection.store import SelectionStore
from tests.unit.fakes import FakeGeocoder


@pytest.fixture(autouse=True)
def _reset_provider():
    """Each test gets a fresh event loop, so drop the process-wide provider handle."""
    reset_provider()
    yield
    reset_provider()


@pytest.fixture(autouse=True)
def _clear_backend():
    clear_store()
    yield
    clear_store()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def engine(geocoder):
    notices = NoticeBoard(ttl_seconds=60)
    store = SelectionStore()
    provider = GeometryProvider("test-key", notices, transport=geocoder.transport)
    surface = MapSurface()
    overlay = OverlaySynchronizer(store, provider, surface, notices)
    return SimpleNamespace(
        notices=notices, store=store, provider=provider, surface=surface, overlay=overlay,
    )
