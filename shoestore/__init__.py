"""Shoe Store API: catalog, cart, checkout and order management over MongoDB."""

__version__ = "1.0.0"
