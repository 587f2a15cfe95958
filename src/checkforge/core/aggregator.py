"""
Severity aggregation.

The aggregator is the only shared mutable state of a run. Worker threads
feed it through record(); everything else reads immutable snapshots.
"""

import threading
from typing import List

from .models import AggregateCounters, CheckResult, Severity


class SeverityAggregator:
    """Thread-safe running counters and critical-issue list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0
        self._passed = 0
        self._warned = 0
        self._failed = 0
        self._critical_issues: List[str] = []
        self._worst = Severity.OK

    def record(self, result: CheckResult):
        """Fold one result into the counters."""
        severity = result.severity
        with self._lock:
            self._total += 1
            if severity is Severity.OK:
                self._passed += 1
            elif severity is Severity.WARNING:
                self._warned += 1
            else:
                self._failed += 1

            if severity is Severity.CRITICAL:
                self._critical_issues.append(result.summary)

            if severity > self._worst:
                self._worst = severity

    def snapshot(self) -> AggregateCounters:
        """Immutable copy of the current counters."""
        with self._lock:
            return AggregateCounters(
                total=self._total,
                passed=self._passed,
                warned=self._warned,
                failed=self._failed,
                critical_issues=tuple(self._critical_issues),
            )

    def overall_status(self) -> Severity:
        """Worst recorded severity; OK when nothing was recorded."""
        with self._lock:
            return self._worst

    @property
    def total(self) -> int:
        with self._lock:
            return self._total
