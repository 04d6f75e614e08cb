"""HTTP surface for the engine session and the reference backend."""
