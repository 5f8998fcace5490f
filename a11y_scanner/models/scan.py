"""
Scan-related data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Impact(str, Enum):
    """Violation severity as reported by the rule engine."""
    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"


class NavigationState(str, Enum):
    """Navigation state of a browser session."""
    NOT_STARTED = "not_started"
    LOADED = "loaded"
    PARTIALLY_LOADED = "partially_loaded"
    FAILED = "failed"


class NavigationFailureReason(str, Enum):
    """Classified cause of a failed navigation."""
    TIMEOUT = "timeout"
    NAME_NOT_RESOLVED = "name_not_resolved"
    CONNECTION_REFUSED = "connection_refused"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ScanState(str, Enum):
    """Orchestrator state for one scan request."""
    RECEIVED = "received"
    ADMITTED = "admitted"
    URL_VALIDATED = "url_validated"
    SESSION_OPEN = "session_open"
    NAVIGATED = "navigated"
    AUDIT_RUN = "audit_run"
    ENRICHED = "enriched"
    COMPLETED = "completed"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckNode(BaseModel):
    """A DOM node flagged by a rule check."""
    model_config = ConfigDict(extra='allow', frozen=True)

    html: str = Field(default="", description="Outer HTML snippet of the node")
    target: List[Any] = Field(default_factory=list, description="CSS selectors locating the node")


class CheckRecord(BaseModel):
    """
    One rule result (violation, pass or incomplete) from the rule engine.

    Unknown fields reported by the engine (tags, per-node details) are kept
    verbatim.
    """
    model_config = ConfigDict(extra='allow', frozen=True, populate_by_name=True)

    id: str = Field(..., description="Rule identifier")
    impact: Optional[Impact] = Field(None, description="Rule severity")
    description: str = Field(default="")
    help: str = Field(default="")
    help_url: str = Field(default="", alias="helpUrl")
    nodes: List[CheckNode] = Field(default_factory=list)

    @field_validator('impact', mode='before')
    @classmethod
    def validate_impact(cls, v):
        """Passes and incompletes may report no impact or an unknown one."""
        if v in (None, ""):
            return None
        try:
            return Impact(str(v).lower())
        except ValueError:
            return None

    @field_validator('nodes', mode='before')
    @classmethod
    def validate_nodes(cls, v):
        """Ensure nodes is a list."""
        if v is None:
            return []
        return v


class Violation(CheckRecord):
    """A rule failure, optionally enriched with an AI explanation."""

    ai_explanation: Optional[str] = Field(None, alias="aiExplanation")


class AuditResult(BaseModel):
    """Raw rule engine payload for one page, before enrichment."""
    model_config = ConfigDict(frozen=True)

    violations: List[Violation] = Field(default_factory=list)
    passes: List[CheckRecord] = Field(default_factory=list)
    incomplete: List[CheckRecord] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator('violations', 'passes', 'incomplete', mode='before')
    @classmethod
    def validate_lists(cls, v):
        """The engine may omit result groups."""
        if v is None:
            return []
        return v

    @classmethod
    def from_engine_payload(cls, payload: Dict[str, Any]) -> "AuditResult":
        """Build from the dict returned by ``axe.run``."""
        return cls(
            violations=payload.get("violations"),
            passes=payload.get("passes"),
            incomplete=payload.get("incomplete"),
        )


class ScanStats(BaseModel):
    """Violation counts by impact."""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0

    @classmethod
    def from_violations(cls, violations: List[CheckRecord]) -> "ScanStats":
        """Count violations by impact class."""
        counts = {impact.value: 0 for impact in Impact}
        for violation in violations:
            if violation.impact is not None:
                counts[violation.impact.value] += 1
        return cls(total=len(violations), **counts)


class Performance(BaseModel):
    """Wall-clock duration of a scan."""
    model_config = ConfigDict(frozen=True)

    duration: int = Field(..., ge=0)
    unit: str = "ms"


class ScanReport(BaseModel):
    """Final, enriched result of a successful scan."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    request_id: str = Field(..., alias="requestId")
    url: str
    violations: List[Violation] = Field(default_factory=list)
    passes: List[CheckRecord] = Field(default_factory=list)
    incomplete: List[CheckRecord] = Field(default_factory=list)
    summary: str
    improvement_plan: str = Field(..., alias="improvementPlan")
    stats: ScanStats
    timestamp: datetime
    performance: Performance
    navigation_state: NavigationState = Field(
        NavigationState.LOADED, alias="navigationState"
    )

    def to_response(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the HTTP API exposes."""
        return self.model_dump(mode="json", by_alias=True)
