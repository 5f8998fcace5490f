"""
Scan services.
"""

from .browser_session import BrowserSession, BrowserSessionManager, NavigationOutcome
from .enrichment import ExplanationService, EnrichmentResult
from .errors import (
    ScanError,
    ScanErrorKind,
    MissingUrlError,
    InvalidUrlError,
    RateLimitedError,
    BrowserLaunchError,
    NavigationFailed,
    RuleEngineLoadError,
    RuleEngineExecutionError,
    ScanInternalError,
)
from .llm_client import GeminiTextClient
from .rate_limiter import RateLimiter, RateLimitDecision
from .rule_engine import RuleEngineRunner
from .scan_service import ScanService
from .url_validation import normalize_url

__all__ = [
    'BrowserSession',
    'BrowserSessionManager',
    'NavigationOutcome',
    'ExplanationService',
    'EnrichmentResult',
    'ScanError',
    'ScanErrorKind',
    'MissingUrlError',
    'InvalidUrlError',
    'RateLimitedError',
    'BrowserLaunchError',
    'NavigationFailed',
    'RuleEngineLoadError',
    'RuleEngineExecutionError',
    'ScanInternalError',
    'GeminiTextClient',
    'RateLimiter',
    'RateLimitDecision',
    'RuleEngineRunner',
    'ScanService',
    'normalize_url',
]
