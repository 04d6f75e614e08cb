"""Core domain types shared across all geoshade modules."""

from geoshade.core.types import (
    Configuration,
    GeometryFeature,
    LatLng,
    Level,
    Marker,
    PolygonStyle,
    RegionRecord,
    SavedSelection,
    SelectionSnapshot,
)

__all__ = [
    "Configuration",
    "GeometryFeature",
    "LatLng",
    "Level",
    "Marker",
    "PolygonStyle",
    "RegionRecord",
    "SavedSelection",
    "SelectionSnapshot",
]
