"""One user session: resolver → store → provider → synchronizer → persistence.

Wires the components together and rebuilds the config-dependent ones
(provider, persistence client) when the user edits the configuration.
"""

import logging

import httpx

from geoshade.config import ConfigResolver
from geoshade.core.types import Configuration, Level
from geoshade.geometry.provider import GeometryProvider, close_provider
from geoshade.overlay.notices import NoticeBoard
from geoshade.overlay.surface import MapSurface
from geoshade.overlay.synchronizer import OverlaySynchronizer
from geoshade.selection.store import SelectionStore
from geoshade.storage.client import PersistenceClient

logger = logging.getLogger(__name__)


class GeoSession:
    def __init__(
        self,
        resolver: ConfigResolver,
        level: Level = Level.STATE,
        geocode_transport: httpx.AsyncBaseTransport | None = None,
        backend_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.resolver = resolver
        self.store = SelectionStore(level)
        self.notices = NoticeBoard()
        self.surface = MapSurface()
        self._geocode_transport = geocode_transport
        self._backend_transport = backend_transport
        self.name = "My Selection"

        config = resolver.get()
        self.provider = self._build_provider(config)
        self.overlay = self._build_overlay()
        self.persistence = self._build_persistence(config)

    def _build_provider(self, config: Configuration) -> GeometryProvider:
        return GeometryProvider(config.api_key, self.notices, transport=self._geocode_transport)

    def _build_overlay(self) -> OverlaySynchronizer:
        return OverlaySynchronizer(self.store, self.provider, self.surface, self.notices)

    def _build_persistence(self, config: Configuration) -> PersistenceClient:
        return PersistenceClient(config.backend_url, self.notices, transport=self._backend_transport)

    async def start(self) -> None:
        await self.overlay.start()
        await self.persistence.list_initial()

    async def close(self) -> None:
        await close_provider()

    async def update_config(self, api_key: str | None = None, backend_url: str | None = None) -> Configuration:
        """Write a config edit through and rebuild whatever depends on the changed value."""
        before = self.resolver.get()
        after = self.resolver.set(api_key=api_key, backend_url=backend_url)

        if after.api_key != before.api_key:
            logger.info("API key changed — reinitializing map provider")
            self.overlay.stop()
            await close_provider()
            self.provider = self._build_provider(after)
            self.overlay = self._build_overlay()
            await self.overlay.start()

        if after.backend_url != before.backend_url:
            logger.info("Backend URL changed — reloading saved selections")
            self.persistence = self._build_persistence(after)
            await self.persistence.list_initial()
        return after

    async def save(self, name: str | None = None) -> bool:
        if name is not None:
            self.name = name
        snap = self.store.get()
        return await self.persistence.save(self.name, snap.level, snap.items)
