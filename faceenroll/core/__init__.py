"""
Core package - foundation for the application.

Modules:
- config.py - Application settings via Pydantic Settings
- exceptions.py - Custom exception hierarchy
- logging.py - Centralized logging configuration
"""

from faceenroll.core.config import Settings, get_settings
from faceenroll.core.exceptions import (
    AppException,
    ServiceError,
    CaptureEmpty,
    QualityRejected,
    CompensationFailure,
    SessionAlreadyRunning,
    ConfigurationError,
)

__all__ = [
    'Settings',
    'get_settings',
    'AppException',
    'ServiceError',
    'CaptureEmpty',
    'QualityRejected',
    'CompensationFailure',
    'SessionAlreadyRunning',
    'ConfigurationError',
]
