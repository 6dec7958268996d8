"""Crawler and detail resolver for the Noon Minutes fruit & vegetable catalogue."""

__version__ = "0.1.0"
