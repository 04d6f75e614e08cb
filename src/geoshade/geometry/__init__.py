"""Geometry Provider Adapter — boundaries and geocoding."""
