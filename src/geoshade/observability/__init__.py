"""Observability — structured logging and request correlation."""

from geoshade.observability.logging import get_correlation_id, setup_logging

__all__ = ["get_correlation_id", "setup_logging"]
