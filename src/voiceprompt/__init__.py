"""Voice-driven intent routing for developer tools."""

__version__ = "0.3.0"
