"""Geoshade — US state/county selection engine with map overlay sync."""
