"""Macro regime classification from FRED series."""

__version__ = "0.1.0"
