"""Concrete host environments."""

from .local import LocalHost

__all__ = ["LocalHost"]
