"""
Data models.
"""

from .scan import (
    Impact,
    NavigationState,
    NavigationFailureReason,
    ScanState,
    CheckNode,
    CheckRecord,
    Violation,
    AuditResult,
    ScanStats,
    Performance,
    ScanReport,
)

__all__ = [
    'Impact',
    'NavigationState',
    'NavigationFailureReason',
    'ScanState',
    'CheckNode',
    'CheckRecord',
    'Violation',
    'AuditResult',
    'ScanStats',
    'Performance',
    'ScanReport',
]
