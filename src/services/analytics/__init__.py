"""
Analytics services module.
Provides page view recording and dashboard aggregation services.
"""

# Base services
from .service_base import BaseService

# Recording
from .view_tracker import PageViewContext, ViewTracker

# Reporting
from .analytics_service import AnalyticsService

__all__ = [
    'BaseService',
    'PageViewContext',
    'ViewTracker',
    'AnalyticsService',
]
