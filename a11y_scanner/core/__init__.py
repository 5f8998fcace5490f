"""
Core module initialization.
"""

from .config import (
    Config,
    get_config,
    init_config,
    reload_config,
    APIConfig,
    RateLimitConfig,
    ScanConfig,
    EnrichmentConfig,
    MonitoringConfig,
)

__all__ = [
    'Config',
    'get_config',
    'init_config',
    'reload_config',
    'APIConfig',
    'RateLimitConfig',
    'ScanConfig',
    'EnrichmentConfig',
    'MonitoringConfig',
]
