"""Domain types for the geoshade selection engine.

All shared dataclasses and type definitions live here to prevent
circular imports and establish a single source of truth for the
domain model. Every other module imports from here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Level(str, Enum):
    """Active granularity. Exactly one is active at a time."""

    STATE = "state"
    COUNTY = "county"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegionRecord:
    """A checklist entry: display name plus code (postal abbr or county FIPS)."""

    name: str
    code: str


@dataclass
class LatLng:
    lat: float
    lng: float


# ---------------------------------------------------------------------------
# Selection state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SelectionSnapshot:
    """Immutable view of the Selection Store at one instant."""

    level: Level
    items: tuple[str, ...]
    generation: int = 0


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass
class GeometryFeature:
    """A boundary polygon from the loaded dataset.

    ``code`` stays None until reconciliation finds the name in the static
    table. Features without a code are drawn but never selectable.
    """

    name: str
    geometry: Any  # shapely geometry
    code: str | None = None
    properties: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Overlay elements (fully derived from selection + level + geometry)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PolygonStyle:
    fill_color: str
    fill_opacity: float
    stroke_color: str
    stroke_weight: float
    clickable: bool = True


@dataclass(frozen=True)
class Marker:
    """A county point marker. Presence implies the code is selected."""

    code: str
    position: LatLng
    title: str
    fill_color: str = "#f59e0b"
    stroke_color: str = "#111827"
    scale: int = 8


# ---------------------------------------------------------------------------
# Configuration + persistence
# ---------------------------------------------------------------------------

@dataclass
class Configuration:
    """Resolved runtime configuration.

    ``sources`` records which link of the precedence chain supplied each
    value: "build", "persisted", "url", "default", or "user".
    """

    api_key: str = ""
    backend_url: str = ""
    sources: dict[str, str] = field(default_factory=dict)

    @property
    def map_enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def save_enabled(self) -> bool:
        return bool(self.backend_url)


@dataclass
class SavedSelection:
    """A backend-owned saved selection, as returned by the list endpoint."""

    id: str
    name: str
    level: str
    items: list[str] = field(default_factory=list)
