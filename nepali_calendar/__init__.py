"""Bikram Sambat calendar engine and date picker for Frappe apps."""

__version__ = "0.1.0"
