"""Tests for overlay style derivation."""

from shapely.geometry import box

from geoshade.core.types import GeometryFeature, Level
from geoshade.overlay.styles import (
    SELECTED_STYLE,
    UNMATCHED_STYLE,
    UNSELECTED_STYLE,
    style_for_feature,
)


def _feature(code: str | None = "CA") -> GeometryFeature:
    return GeometryFeature(name="California", geometry=box(-124, 32, -114, 42), code=code)


class TestStyleForFeature:
    def test_selected(self):
        assert style_for_feature(Level.STATE, {"CA"}, _feature()) == SELECTED_STYLE

    def test_unselected(self):
        assert style_for_feature(Level.STATE, {"TX"}, _feature()) == UNSELECTED_STYLE

    def test_selected_is_visually_distinct(self):
        assert SELECTED_STYLE.fill_opacity > UNSELECTED_STYLE.fill_opacity
        assert SELECTED_STYLE.fill_color != UNSELECTED_STYLE.fill_color
        assert SELECTED_STYLE.stroke_color != UNSELECTED_STYLE.stroke_color

    def test_feature_without_code_is_drawn_unselected_and_not_clickable(self):
        style = style_for_feature(Level.STATE, {"CA"}, _feature(code=None))
        assert style == UNMATCHED_STYLE
        assert style.clickable is False
        assert style.fill_opacity == UNSELECTED_STYLE.fill_opacity

    def test_county_level_never_selects_polygons(self):
        assert style_for_feature(Level.COUNTY, {"CA"}, _feature()) == UNSELECTED_STYLE

    def test_pure_repeated_calls(self):
        feature = _feature()
        first = style_for_feature(Level.STATE, frozenset({"CA"}), feature)
        style_for_feature(Level.STATE, frozenset(), feature)
        style_for_feature(Level.COUNTY, frozenset({"CA"}), feature)
        second = style_for_feature(Level.STATE, frozenset({"CA"}), feature)
        assert first == second

    def test_accepts_tuple_selection(self):
        assert style_for_feature(Level.STATE, ("TX", "CA"), _feature()) == SELECTED_STYLE
