"""
Tests for SeverityAggregator.

Run: python3 -m pytest tests/test_aggregator.py -v
"""

import sys
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from checkforge.core.aggregator import SeverityAggregator
from checkforge.core.models import AggregateCounters, CheckResult, Severity


def result(severity, summary="summary", check_id="c"):
    return CheckResult(check_id=check_id, severity=severity, summary=summary)


class TestRecord:
    """Tests for record() classification."""

    def test_empty(self):
        aggregator = SeverityAggregator()
        assert aggregator.snapshot() == AggregateCounters()
        assert aggregator.overall_status() is Severity.OK

    def test_classification(self):
        aggregator = SeverityAggregator()
        for severity in (Severity.OK, Severity.OK, Severity.WARNING, Severity.ERROR, Severity.CRITICAL):
            aggregator.record(result(severity))

        counters = aggregator.snapshot()
        assert counters.total == 5
        assert counters.passed == 2
        assert counters.warned == 1
        assert counters.failed == 2

    def test_critical_issues(self):
        """Only CRITICAL summaries become critical issues, in record order."""
        aggregator = SeverityAggregator()
        aggregator.record(result(Severity.CRITICAL, "Disk full"))
        aggregator.record(result(Severity.ERROR, "DB slow"))
        aggregator.record(result(Severity.CRITICAL, "Cert expired"))
        assert aggregator.snapshot().critical_issues == ("Disk full", "Cert expired")

    def test_execution_failure_counts_as_failed(self):
        aggregator = SeverityAggregator()
        aggregator.record(CheckResult.execution_failure("x", "timeout"))
        assert aggregator.snapshot().failed == 1
        assert aggregator.overall_status() is Severity.ERROR


class TestOverallStatus:
    """Tests for the overall status derivation."""

    def test_max_severity(self):
        aggregator = SeverityAggregator()
        aggregator.record(result(Severity.WARNING))
        assert aggregator.overall_status() is Severity.WARNING
        aggregator.record(result(Severity.CRITICAL))
        aggregator.record(result(Severity.OK))
        assert aggregator.overall_status() is Severity.CRITICAL

    def test_matches_worst_of_recorded(self):
        severities = [Severity.OK, Severity.ERROR, Severity.WARNING, Severity.OK]
        aggregator = SeverityAggregator()
        for severity in severities:
            aggregator.record(result(severity))
        assert aggregator.overall_status() is Severity.worst(severities)


class TestSnapshot:
    """Tests for snapshot isolation."""

    def test_snapshot_is_a_copy(self):
        aggregator = SeverityAggregator()
        aggregator.record(result(Severity.CRITICAL, "first"))
        before = aggregator.snapshot()
        aggregator.record(result(Severity.CRITICAL, "second"))
        assert before.total == 1
        assert before.critical_issues == ("first",)


class TestConcurrency:
    """Tests for concurrent record() calls."""

    def test_no_lost_updates(self):
        """Concurrent writers never lose a count or a critical issue."""
        aggregator = SeverityAggregator()
        per_thread = 500
        severities = [Severity.OK, Severity.WARNING, Severity.ERROR, Severity.CRITICAL]

        def worker(severity):
            for i in range(per_thread):
                aggregator.record(result(severity, f"{severity.value}-{i}"))

        threads = [threading.Thread(target=worker, args=(s,)) for s in severities for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        counters = aggregator.snapshot()
        assert counters.total == per_thread * 8
        assert counters.passed == per_thread * 2
        assert counters.warned == per_thread * 2
        assert counters.failed == per_thread * 4
        assert len(counters.critical_issues) == per_thread * 2
        assert counters.total == counters.passed + counters.warned + counters.failed
