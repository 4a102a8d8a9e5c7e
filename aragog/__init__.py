"""Aragog: board game shop crawler that publishes offers to a backend collector."""

__version__ = "0.1.0"
