"""Roofing material & cost estimation engine."""

__version__ = "1.0.0"
