"""Parameterized script execution bridge and SQL result normalization."""

__version__ = "0.1.0"
