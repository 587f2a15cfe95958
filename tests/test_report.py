"""
Tests for ReportBuilder.

Hand-built CheckResults only; no checks are executed here.

Run: python3 -m pytest tests/test_report.py -v
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from checkforge.core.models import AggregateCounters, CheckResult, Severity
from checkforge.core.report import ReportBuilder

GENERATED_AT = datetime(2026, 10, 18, 9, 30)


def result(check_id, severity, category="system", summary=None, fix_hint=None):
    return CheckResult(
        check_id=check_id,
        severity=severity,
        summary=summary or f"{check_id} {severity.value}",
        category=category,
        fix_hint=fix_hint,
    )


class TestBuild:
    """Tests for build()."""

    def test_scenario_ok_warning_critical(self):
        """OK + WARNING + CRITICAL -> CRITICAL with one critical issue."""
        results = [
            result("a", Severity.OK),
            result("b", Severity.WARNING),
            result("c", Severity.CRITICAL, summary="Disk full"),
        ]
        report = ReportBuilder().build_from_results(results, elapsed_ms=10)

        assert report.overall_status is Severity.CRITICAL
        counters = report.counters
        assert (counters.total, counters.passed, counters.warned, counters.failed) == (3, 1, 1, 1)
        assert report.critical_issues == ("Disk full",)

    def test_empty(self):
        """No results -> OK with zero counters."""
        report = ReportBuilder().build([], AggregateCounters(), 0)
        assert report.overall_status is Severity.OK
        assert report.counters.to_dict() == {"total": 0, "passed": 0, "warned": 0, "failed": 0}
        assert dict(report.results) == {}
        assert report.skipped == ()

    def test_overall_status_derived_when_not_given(self):
        results = [result("a", Severity.WARNING), result("b", Severity.ERROR)]
        report = ReportBuilder().build(results, AggregateCounters(total=2), 5)
        assert report.overall_status is Severity.ERROR

    def test_explicit_overall_status_wins(self):
        report = ReportBuilder().build(
            [result("a", Severity.OK)], AggregateCounters(total=1, passed=1), 5,
            overall_status=Severity.OK,
        )
        assert report.overall_status is Severity.OK

    def test_preserves_input_order(self):
        results = [result(i, Severity.OK) for i in ("z", "a", "m")]
        report = ReportBuilder().build_from_results(results)
        assert list(report.results) == ["z", "a", "m"]

    def test_accepts_mapping(self):
        results = {"x": result("x", Severity.OK), "y": result("y", Severity.WARNING)}
        report = ReportBuilder().build_from_results(results)
        assert list(report.results) == ["x", "y"]

    def test_skipped_kept(self):
        report = ReportBuilder().build_from_results([result("a", Severity.OK)], skipped=["slow"])
        assert report.skipped == ("slow",)
        assert "slow" not in report.results

    def test_results_read_only(self):
        report = ReportBuilder().build_from_results([result("a", Severity.OK)])
        with pytest.raises(TypeError):
            report.results["b"] = result("b", Severity.OK)

    def test_deterministic(self):
        """Same inputs, same report."""
        results = [result("a", Severity.OK), result("b", Severity.CRITICAL, fix_hint="fix")]
        builder = ReportBuilder()
        first = builder.build_from_results(results, 7, ["c"], generated_at=GENERATED_AT)
        second = builder.build_from_results(results, 7, ["c"], generated_at=GENERATED_AT)
        assert first.to_dict() == second.to_dict()

    def test_counter_consistency(self):
        results = [
            result("a", Severity.OK), result("b", Severity.ERROR),
            result("c", Severity.WARNING), result("d", Severity.CRITICAL),
            CheckResult.execution_failure("e", "timeout"),
        ]
        report = ReportBuilder().build_from_results(results)
        c = report.counters
        assert c.total == c.passed + c.warned + c.failed == len(report.results)

    def test_default_timestamp_is_utc(self):
        report = ReportBuilder().build([], AggregateCounters(), 0)
        assert report.generated_at.utcoffset() == timedelta(0)
        assert report.to_dict()["generated_at"].endswith("+00:00")


class TestCategories:
    """Tests for per-category summaries."""

    def test_category_rollup(self):
        results = [
            result("disk", Severity.WARNING, "system"),
            result("load", Severity.OK, "system"),
            result("dns", Severity.ERROR, "network"),
            result("misc", Severity.OK, ""),
        ]
        report = ReportBuilder().build_from_results(results)

        assert list(report.categories) == ["system", "network", "uncategorized"]
        system = report.categories["system"]
        assert (system.total, system.passed, system.warned, system.failed) == (2, 1, 1, 0)
        assert system.status is Severity.WARNING
        assert report.categories["network"].status is Severity.ERROR
        assert report.to_dict()["categories"]["network"]["failed"] == 1


class TestRecommendations:
    """Tests for recommendation collection."""

    def test_hints_from_non_ok_results(self):
        results = [
            result("disk", Severity.CRITICAL, "system", fix_hint="Free up space on /"),
            result("load", Severity.OK, "system", fix_hint="never shown"),
            result("dns", Severity.WARNING, "network"),
        ]
        report = ReportBuilder().build_from_results(results)
        assert report.recommendations == ("[system] Free up space on /",)

    def test_capped(self):
        results = [result(f"c{i}", Severity.ERROR, fix_hint=f"fix {i}") for i in range(15)]
        report = ReportBuilder(max_recommendations=3).build_from_results(results)
        assert report.recommendations == ("[system] fix 0", "[system] fix 1", "[system] fix 2")
