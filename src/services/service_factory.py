from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Type, TypeVar

from src.database import get_db, get_session_factory
from src.services.analytics import AnalyticsService, ViewTracker
from src.services.geoip_service import get_geoip_service

# Generic type for service classes
T = TypeVar('T')

def get_service(service_class: Type[T]) -> Callable[[AsyncSession], T]:
    """
    Factory function to create a service dependency
    
    Args:
        service_class: The service class to instantiate
        
    Returns:
        A dependency function that creates and returns a service instance
    """
    def _get_service(db: AsyncSession = Depends(get_db)) -> T:
        return service_class(db)
    
    return _get_service


def get_view_tracker(request: Request) -> ViewTracker:
    """
    Build a view tracker bound to the application session factory and GeoIP reader.
    Tracking must not reuse the request-scoped session.
    """
    return ViewTracker(get_session_factory(request), get_geoip_service(request))

# Service dependencies
get_analytics_service = get_service(AnalyticsService)
