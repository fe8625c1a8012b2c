"""
Base service class for analytics services.
Provides common logging and database access.
"""

import logging
from typing import Optional
from abc import ABC, abstractmethod
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Base class for all analytics services.
    """

    def __init__(self, db_session: Optional[AsyncSession] = None):
        """
        Initialize the base service.

        Args:
            db_session: Optional database session
        """
        self.db_session = db_session
        self.logger = logger

    @abstractmethod
    def get_service_name(self) -> str:
        """
        Get the service name for logging.

        Returns:
            str: The service name
        """
        pass

    def _log_service_error(self, error: Exception, context: str = ""):
        """
        Log a service error.

        Args:
            error: The exception that occurred
            context: Context information about the error
        """
        self.logger.error(f"[{self.get_service_name()}] {context}: {type(error).__name__}: {str(error)}")
