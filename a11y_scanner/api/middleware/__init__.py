"""
API middleware.
"""

from .metrics import MetricsMiddleware
from .request_context import RequestContextMiddleware

__all__ = ['MetricsMiddleware', 'RequestContextMiddleware']
