"""
Database init - Exports for record sources
"""

from .base import Base, TimestampMixin

__all__ = ["Base", "TimestampMixin"]
