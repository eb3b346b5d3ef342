"""Lookup of U.S. government job-classification codes."""

__version__ = "0.1.0"
