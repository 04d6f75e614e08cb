"""Selection Store."""
