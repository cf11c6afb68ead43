"""Propreports - property portfolio reports API."""

__version__ = "1.0.0"
