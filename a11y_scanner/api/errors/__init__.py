"""
API error types and handlers.
"""

from .exceptions import (
    APIException,
    ValidationException,
    MethodNotAllowedException,
    RateLimitException,
    ScanException,
    to_api_exception,
)
from .handlers import register_exception_handlers

__all__ = [
    'APIException',
    'ValidationException',
    'MethodNotAllowedException',
    'RateLimitException',
    'ScanException',
    'to_api_exception',
    'register_exception_handlers',
]
