"""Overlay style derivation.

Pure functions of (level, selection, feature) — no caching, no hidden state.
Every sync recomputes all styles from scratch.
"""

from geoshade.core.types import GeometryFeature, Level, PolygonStyle

SELECTED_STYLE = PolygonStyle(
    fill_color="#3b82f6",
    fill_opacity=0.6,
    stroke_color="#1e3a8a",
    stroke_weight=2.0,
)
UNSELECTED_STYLE = PolygonStyle(
    fill_color="#e5e7eb",
    fill_opacity=0.15,
    stroke_color="#6b7280",
    stroke_weight=1.0,
)
# Drawn but not clickable: the name never matched a code
UNMATCHED_STYLE = PolygonStyle(
    fill_color=UNSELECTED_STYLE.fill_color,
    fill_opacity=UNSELECTED_STYLE.fill_opacity,
    stroke_color=UNSELECTED_STYLE.stroke_color,
    stroke_weight=UNSELECTED_STYLE.stroke_weight,
    clickable=False,
)


def style_for_feature(
    level: Level,
    selection: frozenset[str] | set[str] | tuple[str, ...],
    feature: GeometryFeature,
) -> PolygonStyle:
    """Style one boundary polygon.

    Only state-level codes can be selected on polygons; at county level the
    boundary layer is hidden, so everything derives as unselected.
    """
    if feature.code is None:
        return UNMATCHED_STYLE
    if level == Level.STATE and feature.code in selection:
        return SELECTED_STYLE
    return UNSELECTED_STYLE
