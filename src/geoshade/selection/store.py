"""Selection Store — the single source of truth for chosen codes.

Holds the active level and an insertion-ordered, duplicate-free list of
codes. No code validation happens here; the geometry adapter decides what
is resolvable.

``generation`` increases whenever the selection is invalidated wholesale
(level change or clear). Async consumers capture it before awaiting a
lookup and drop the result if it changed in the meantime.
"""

import logging

from geoshade.core.types import Level, SelectionSnapshot

logger = logging.getLogger(__name__)


class SelectionStore:
    def __init__(self, level: Level = Level.STATE) -> None:
        self._level = Level(level)
        self._items: list[str] = []
        self._generation = 0

    @property
    def level(self) -> Level:
        return self._level

    @property
    def generation(self) -> int:
        return self._generation

    def toggle(self, code: str) -> bool:
        """Flip membership of ``code``. Returns True if it is now selected."""
        if code in self._items:
            self._items.remove(code)
            selected = False
        else:
            self._items.append(code)
            selected = True
        logger.debug("Toggled %s → %s", code, "on" if selected else "off",
                     extra={"code": code, "geo_level": self._level.value})
        return selected

    def set_level(self, level: Level) -> None:
        """Switch granularity. Always clears — codes don't carry across levels."""
        self._level = Level(level)
        self._items = []
        self._generation += 1
        logger.info("Level set to %s", self._level.value,
                    extra={"geo_level": self._level.value, "generation": self._generation})

    def clear(self) -> None:
        """Empty the selection without changing level."""
        self._items = []
        self._generation += 1

    def is_selected(self, code: str) -> bool:
        return code in self._items

    def get(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            level=self._level,
            items=tuple(self._items),
            generation=self._generation,
        )
