"""Poyang Lake seasonal water-extent toolkit."""

__version__ = "0.1.0"
