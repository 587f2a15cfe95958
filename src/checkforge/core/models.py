"""
Diagnostic Data Models

These data structures are shared by the runner, the aggregator, the report
builder and every check implementation:
- Immutable (frozen dataclasses), safe to hand across worker threads
- JSON serialization built-in for the HTTP adapter and the CLI
- Severity is a totally ordered enum so aggregation is deterministic
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .context import RunContext


# === Severity ===

class Severity(Enum):
    """Ordered classification of a result's badness."""
    OK = "OK"                # Subsystem healthy
    WARNING = "WARNING"      # Degraded, review recommended
    ERROR = "ERROR"          # Broken, or the check itself could not run
    CRITICAL = "CRITICAL"    # Broken in a way that needs immediate action

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if isinstance(other, Severity):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, Severity):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, Severity):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, Severity):
            return self.rank >= other.rank
        return NotImplemented

    @classmethod
    def worst(cls, severities: Iterable['Severity']) -> 'Severity':
        """Return the highest severity, OK when there is none."""
        return max(severities, default=cls.OK)

    @classmethod
    def parse(cls, value: Any) -> 'Severity':
        """Accept a Severity or its (case-insensitive) name."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown severity: {value!r}") from None


_SEVERITY_RANK = {
    Severity.OK: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.CRITICAL: 3,
}


# === Core Result Types ===

@dataclass(frozen=True)
class CheckResult:
    """
    Result of a single diagnostic check.

    Every check produces exactly one CheckResult. A result is either a report
    from the probed subsystem (any severity, no error) or an execution
    failure of the check itself (severity ERROR, error set), never both.

    Checks usually leave check_id, category, title and duration_ms blank;
    the runner fills them in.

    Attributes:
        check_id: Id of the check that produced this result
        severity: OK, WARNING, ERROR or CRITICAL
        summary: Short description of the outcome
        detail: Check-specific structured data, opaque to the engine
        duration_ms: How long the check took
        error: Why the check could not complete (execution failures only)
        category: Category of the producing check
        title: Human label of the producing check
        fix_hint: Actionable fix suggestion
    """
    check_id: str
    severity: Severity
    summary: str
    detail: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    error: Optional[str] = None
    category: str = ""
    title: str = ""
    fix_hint: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.severity, Severity):
            raise TypeError(f"severity must be a Severity, got {type(self.severity).__name__}")
        if self.error is not None and self.severity is not Severity.ERROR:
            raise ValueError("A result carrying an execution error must have severity ERROR")
        object.__setattr__(self, 'detail', dict(self.detail or {}))

    # === Constructors used by check implementations ===

    @classmethod
    def ok(cls, summary: str, detail: Dict[str, Any] = None, check_id: str = "") -> 'CheckResult':
        """Subsystem is healthy."""
        return cls(check_id=check_id, severity=Severity.OK, summary=summary, detail=detail or {})

    @classmethod
    def warn(cls, summary: str, detail: Dict[str, Any] = None,
             fix_hint: str = None, check_id: str = "") -> 'CheckResult':
        """Subsystem is degraded."""
        return cls(check_id=check_id, severity=Severity.WARNING, summary=summary,
                   detail=detail or {}, fix_hint=fix_hint)

    @classmethod
    def fail(cls, summary: str, detail: Dict[str, Any] = None,
             fix_hint: str = None, check_id: str = "") -> 'CheckResult':
        """Subsystem reported an error (the check itself ran fine)."""
        return cls(check_id=check_id, severity=Severity.ERROR, summary=summary,
                   detail=detail or {}, fix_hint=fix_hint)

    @classmethod
    def critical(cls, summary: str, detail: Dict[str, Any] = None,
                 fix_hint: str = None, check_id: str = "") -> 'CheckResult':
        """Subsystem is in a state that needs immediate action."""
        return cls(check_id=check_id, severity=Severity.CRITICAL, summary=summary,
                   detail=detail or {}, fix_hint=fix_hint)

    @classmethod
    def execution_failure(cls, check_id: str, error: str, summary: str = None) -> 'CheckResult':
        """The check could not complete (exception, timeout)."""
        return cls(
            check_id=check_id,
            severity=Severity.ERROR,
            summary=summary or "Check execution failed",
            error=error,
        )

    @property
    def is_execution_failure(self) -> bool:
        """True if the check itself failed rather than the subsystem."""
        return self.error is not None

    def is_ok(self) -> bool:
        return self.severity is Severity.OK

    def to_dict(self) -> dict:
        """Serialize for API/JSON output."""
        return {
            "check_id": self.check_id,
            "title": self.title,
            "category": self.category,
            "severity": self.severity.value,
            "summary": self.summary,
            "detail": dict(self.detail),
            "duration_ms": round(self.duration_ms, 3),
            "error": self.error,
            "fix_hint": self.fix_hint,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CheckResult':
        """Deserialize from dict."""
        return cls(
            check_id=data['check_id'],
            severity=Severity.parse(data['severity']),
            summary=data.get('summary', ''),
            detail=data.get('detail') or {},
            duration_ms=data.get('duration_ms') or 0.0,
            error=data.get('error'),
            category=data.get('category', ''),
            title=data.get('title', ''),
            fix_hint=data.get('fix_hint'),
        )


CheckFunc = Callable[[RunContext], CheckResult]


@dataclass(frozen=True)
class Check:
    """
    A single independent diagnostic probe.

    Attributes:
        id: Unique identifier (e.g., "system.disk_space")
        title: Human-readable label
        category: Grouping key (e.g., "system", "network", "security")
        func: Callable receiving a RunContext and returning a CheckResult
        timeout: Per-check timeout in seconds; capped by the runner's limit
        description: Longer explanation of what is probed
    """
    id: str
    title: str
    category: str
    func: CheckFunc = field(repr=False, compare=False)
    timeout: Optional[float] = None
    description: str = ""

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Check id must be a non-empty string")
        if not callable(self.func):
            raise TypeError(f"Check {self.id}: func must be callable")
        if self.timeout is not None and not (math.isfinite(self.timeout) and self.timeout > 0):
            raise ValueError(f"Check {self.id}: timeout must be a positive number")

    def execute(self, ctx: RunContext) -> CheckResult:
        """Run the probe. May raise; the runner isolates failures."""
        return self.func(ctx)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "timeout": self.timeout,
            "description": self.description,
        }


# === Aggregates ===

@dataclass(frozen=True)
class AggregateCounters:
    """Snapshot of the aggregator's counters."""
    total: int = 0
    passed: int = 0
    warned: int = 0
    failed: int = 0
    critical_issues: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "warned": self.warned,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class CategorySummary:
    """Per-category rollup of check results."""
    category: str
    total: int
    passed: int
    warned: int
    failed: int
    status: Severity

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "warned": self.warned,
            "failed": self.failed,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class DiagnosticReport:
    """
    Complete diagnostic report for one run.

    Built once by ReportBuilder and immutable afterwards; to_dict() is the
    response payload handed to callers.
    """
    overall_status: Severity
    counters: AggregateCounters
    elapsed_ms: float
    results: Mapping[str, CheckResult]
    skipped: Tuple[str, ...]
    generated_at: datetime
    categories: Mapping[str, CategorySummary] = field(default_factory=dict)
    recommendations: Tuple[str, ...] = ()

    @property
    def critical_issues(self) -> Tuple[str, ...]:
        return self.counters.critical_issues

    @property
    def is_healthy(self) -> bool:
        """True if every completed check passed."""
        return self.overall_status is Severity.OK

    @property
    def has_failures(self) -> bool:
        """True if any check ended in ERROR or CRITICAL."""
        return self.counters.failed > 0

    def to_dict(self) -> dict:
        """Serialize for API/JSON output."""
        return {
            "overall_status": self.overall_status.value,
            "counters": self.counters.to_dict(),
            "critical_issues": list(self.counters.critical_issues),
            "elapsed_ms": round(self.elapsed_ms, 3),
            "results": {k: v.to_dict() for k, v in self.results.items()},
            "skipped": list(self.skipped),
            "generated_at": self.generated_at.isoformat(),
            "categories": {k: v.to_dict() for k, v in self.categories.items()},
            "recommendations": list(self.recommendations),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str, ensure_ascii=False)


# === Callback Types ===

CheckCallback = Callable[[CheckResult], None]
