"""The map surface — the overlay layer the synchronizer draws on.

A headless model of what the map shows: the boundary layer (polygon
styles keyed by feature name), county markers, the viewport, and an
optional overlay notice when the map cannot render. Only the
OverlaySynchronizer mutates it; ``to_geojson`` serializes it for clients.
"""

from dataclasses import asdict

from shapely.geometry import mapping

from geoshade.config import settings
from geoshade.core.types import GeometryFeature, LatLng, Marker, PolygonStyle


class MapSurface:
    def __init__(self, center: LatLng | None = None, zoom: int | None = None) -> None:
        self.center = center or LatLng(settings.map_center_lat, settings.map_center_lng)
        self.zoom = settings.map_zoom if zoom is None else zoom
        self.boundary_visible = False
        self.overlay_notice = ""
        self._features: list[GeometryFeature] = []
        self._styles: dict[str, PolygonStyle] = {}
        self._markers: dict[str, Marker] = {}

    # -- boundary layer -----------------------------------------------------

    def show_boundaries(self, features: list[GeometryFeature]) -> None:
        self._features = features
        self.boundary_visible = True

    def hide_boundaries(self) -> None:
        self.boundary_visible = False
        self._styles = {}

    def set_styles(self, styles: dict[str, PolygonStyle]) -> None:
        """Replace every polygon style at once."""
        self._styles = dict(styles)

    @property
    def styles(self) -> dict[str, PolygonStyle]:
        return dict(self._styles)

    # -- markers ------------------------------------------------------------

    def add_marker(self, marker: Marker) -> None:
        self._markers[marker.code] = marker

    def remove_marker(self, code: str) -> None:
        self._markers.pop(code, None)

    def clear_markers(self) -> None:
        self._markers = {}

    @property
    def markers(self) -> dict[str, Marker]:
        return dict(self._markers)

    # -- serialization ------------------------------------------------------

    def to_geojson(self) -> dict:
        """Visible overlay as a GeoJSON FeatureCollection."""
        features = []
        if self.boundary_visible:
            for feature in self._features:
                style = self._styles.get(feature.name)
                if style is None:
                    continue
                features.append({
                    "type": "Feature",
                    "geometry": mapping(feature.geometry),
                    "properties": {
                        "kind": "polygon",
                        "name": feature.name,
                        "code": feature.code,
                        **asdict(style),
                    },
                })
        for marker in self._markers.values():
            features.append({
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [marker.position.lng, marker.position.lat],
                },
                "properties": {
                    "kind": "marker",
                    "code": marker.code,
                    "title": marker.title,
                    "fill_color": marker.fill_color,
                    "stroke_color": marker.stroke_color,
                    "scale": marker.scale,
                },
            })
        return {"type": "FeatureCollection", "features": features}
