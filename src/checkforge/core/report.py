"""
Report assembly.

ReportBuilder turns terminal run state into a DiagnosticReport. It does no
I/O and, given the same inputs (including generated_at), always produces
the same report, so tests can hand it CheckResults directly.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .aggregator import SeverityAggregator
from .models import (
    AggregateCounters, CategorySummary, CheckResult, DiagnosticReport, Severity,
)

MAX_RECOMMENDATIONS = 10
UNCATEGORIZED = "uncategorized"

Results = Union[Mapping[str, CheckResult], Iterable[CheckResult]]


class ReportBuilder:
    """Builds immutable DiagnosticReports."""

    def __init__(self, max_recommendations: int = MAX_RECOMMENDATIONS):
        self.max_recommendations = max_recommendations

    def build(
        self,
        results: Results,
        counters: AggregateCounters,
        elapsed_ms: float,
        skipped: Iterable[str] = (),
        overall_status: Optional[Severity] = None,
        generated_at: Optional[datetime] = None,
    ) -> DiagnosticReport:
        """
        Assemble a report.

        Args:
            results: CheckResults in presentation order (or a mapping by id)
            counters: Aggregator snapshot matching `results`
            elapsed_ms: Wall time of the whole run
            skipped: Ids of checks that did not complete before the deadline
            overall_status: Precomputed overall status; derived from
                `results` when omitted
            generated_at: Report timestamp (defaults to now, UTC)
        """
        ordered = _ordered_results(results)
        if overall_status is None:
            overall_status = Severity.worst(r.severity for r in ordered.values())

        return DiagnosticReport(
            overall_status=overall_status,
            counters=counters,
            elapsed_ms=float(elapsed_ms),
            results=MappingProxyType(ordered),
            skipped=tuple(skipped),
            generated_at=generated_at or datetime.now(timezone.utc),
            categories=MappingProxyType(self._summarize_categories(ordered.values())),
            recommendations=tuple(self._recommendations(ordered.values())),
        )

    def build_from_results(
        self,
        results: Results,
        elapsed_ms: float = 0.0,
        skipped: Iterable[str] = (),
        generated_at: Optional[datetime] = None,
    ) -> DiagnosticReport:
        """Build a report computing counters from `results` alone."""
        ordered = _ordered_results(results)
        aggregator = SeverityAggregator()
        for result in ordered.values():
            aggregator.record(result)
        return self.build(
            ordered,
            aggregator.snapshot(),
            elapsed_ms,
            skipped=skipped,
            overall_status=aggregator.overall_status(),
            generated_at=generated_at,
        )

    @staticmethod
    def _summarize_categories(results: Iterable[CheckResult]) -> Dict[str, CategorySummary]:
        grouped: "OrderedDict[str, List[CheckResult]]" = OrderedDict()
        for result in results:
            grouped.setdefault(result.category or UNCATEGORIZED, []).append(result)

        summaries = OrderedDict()
        for category, items in grouped.items():
            severities = [r.severity for r in items]
            summaries[category] = CategorySummary(
                category=category,
                total=len(items),
                passed=sum(1 for s in severities if s is Severity.OK),
                warned=sum(1 for s in severities if s is Severity.WARNING),
                failed=sum(1 for s in severities if s >= Severity.ERROR),
                status=Severity.worst(severities),
            )
        return summaries

    def _recommendations(self, results: Iterable[CheckResult]) -> List[str]:
        recommendations = []
        for result in results:
            if result.severity is Severity.OK or not result.fix_hint:
                continue
            recommendations.append(f"[{result.category or UNCATEGORIZED}] {result.fix_hint}")
        return recommendations[:self.max_recommendations]


def _ordered_results(results: Results) -> "OrderedDict[str, CheckResult]":
    if isinstance(results, Mapping):
        results = results.values()
    ordered = OrderedDict()
    for result in results:
        ordered[result.check_id] = result
    return ordered
