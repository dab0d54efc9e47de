"""
Repository layer for workforce analytics source tables.
"""

from .analytics_repository import AnalyticsRepository

__all__ = ["AnalyticsRepository"]
