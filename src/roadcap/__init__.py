"""Capacity model for road networks derived from turning-movement counts."""

__version__ = "0.1.0"
