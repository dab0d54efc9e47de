"""
Service layer for workforce analytics reports.
"""

from .report_service import WorkforceAnalyticsService, workforce_analytics_service

__all__ = ["WorkforceAnalyticsService", "workforce_analytics_service"]
