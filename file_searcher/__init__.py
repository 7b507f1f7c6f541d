"""Concurrent web-path discovery scanner driven by hostname-derived words."""

__version__ = "1.0.0"
