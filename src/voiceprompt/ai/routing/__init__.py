"""Intent routing engine: turn loop, protocol adapter, and context capture."""

from .errors import RoutingError

__all__ = ["RoutingError"]
