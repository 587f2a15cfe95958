"""
End-to-end tests for run_all() and DiagnosticEngine.

Run: python3 -m pytest tests/test_engine.py -v
"""

import sys
import time
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from checkforge.core.engine import DiagnosticEngine, resolve_deadline, run_all
from checkforge.core.models import Check, CheckResult, Severity
from checkforge.core.registry import CheckRegistry
from checkforge.core.runner import MAX_DEADLINE
from checkforge.errors import OrchestratorError
from checkforge.utils.config import RunnerConfig

CONFIG = RunnerConfig(max_concurrency=4, check_timeout=0.5, deadline=5, grace_period=0.1)


def make_check(check_id, func, category="test"):
    return Check(id=check_id, title=check_id, category=category, func=func)


def constant(result):
    return lambda ctx: result


class TestScenarios:
    """Representative runs."""

    def test_mixed_severities(self):
        """OK + WARNING + CRITICAL -> CRITICAL, one critical issue."""
        registry = CheckRegistry([
            make_check("a", constant(CheckResult.ok("Fine"))),
            make_check("b", constant(CheckResult.warn("Getting full"))),
            make_check("c", constant(CheckResult.critical("Disk full"))),
        ])
        report = run_all(registry, config=CONFIG)

        assert report.overall_status is Severity.CRITICAL
        c = report.counters
        assert (c.total, c.passed, c.warned, c.failed) == (3, 1, 1, 1)
        assert report.critical_issues == ("Disk full",)
        assert report.skipped == ()

    def test_raising_check(self):
        """A raising check is an ERROR result; siblings are unaffected."""
        def broken(ctx):
            raise ConnectionError("refused")

        registry = CheckRegistry([
            make_check("a", constant(CheckResult.ok("Fine"))),
            make_check("b", broken),
        ])
        report = run_all(registry, config=CONFIG)

        assert report.overall_status is Severity.ERROR
        assert report.results["a"].severity is Severity.OK
        assert report.results["b"].error == "ConnectionError: refused"
        assert report.counters.failed == 1

    def test_deadline_skips_slow_check(self):
        """A check still running at the deadline is skipped and not counted."""
        config = RunnerConfig(check_timeout=5, deadline=5, grace_period=0.1)

        def slow(ctx):
            time.sleep(3)
            return CheckResult.ok("too late")

        registry = CheckRegistry([
            make_check("fast", constant(CheckResult.ok("Fine"))),
            make_check("slow", slow),
        ])
        start = time.monotonic()
        report = run_all(registry, deadline=0.3, config=config)

        assert report.skipped == ("slow",)
        assert "slow" not in report.results
        assert report.counters.total == 1
        assert report.overall_status is Severity.OK
        assert time.monotonic() - start < 2

    def test_empty_registry(self):
        report = run_all(CheckRegistry(), config=CONFIG)
        assert report.overall_status is Severity.OK
        assert report.counters.total == 0
        assert dict(report.results) == {}
        assert report.skipped == ()


class TestReportInvariants:
    """Properties that hold for every report."""

    def _registry(self):
        def broken(ctx):
            raise RuntimeError("boom")

        return CheckRegistry([
            make_check("ok", constant(CheckResult.ok("Fine")), "system"),
            make_check("warn", constant(CheckResult.warn("Meh", fix_hint="Look at it")), "system"),
            make_check("crit", constant(CheckResult.critical("Down")), "network"),
            make_check("broken", broken, "network"),
        ])

    def test_counter_consistency(self):
        report = run_all(self._registry(), config=CONFIG)
        c = report.counters
        assert c.total == c.passed + c.warned + c.failed
        assert c.total == len(report.results)

    def test_every_check_accounted_for(self):
        registry = self._registry()
        report = run_all(registry, config=CONFIG)
        ids = set(report.results) | set(report.skipped)
        assert ids == {c.id for c in registry.list_checks()}
        assert not set(report.results) & set(report.skipped)

    def test_overall_is_worst_result(self):
        report = run_all(self._registry(), config=CONFIG)
        assert report.overall_status is Severity.worst(r.severity for r in report.results.values())

    def test_repeatable(self):
        """Running the same registry twice gives the same outcome."""
        registry = self._registry()
        first = run_all(registry, config=CONFIG)
        second = run_all(registry, config=CONFIG)
        assert first.overall_status is second.overall_status
        assert first.counters == second.counters
        assert {k: v.severity for k, v in first.results.items()} == \
            {k: v.severity for k, v in second.results.items()}

    def test_categories_and_recommendations(self):
        report = run_all(self._registry(), config=CONFIG)
        assert list(report.categories) == ["system", "network"]
        assert report.categories["network"].status is Severity.CRITICAL
        assert report.recommendations == ("[system] Look at it",)

    def test_generated_at_is_utc(self):
        report = run_all(self._registry(), config=CONFIG)
        assert report.generated_at.tzinfo is not None
        assert report.to_dict()["generated_at"].endswith("+00:00")


class TestDeadlineArgument:
    """Deadline accepted as seconds or datetime."""

    def test_default_from_config(self):
        assert resolve_deadline(None, CONFIG) == 5.0

    def test_seconds(self):
        assert resolve_deadline(2, CONFIG) == 2.0

    def test_future_datetime(self):
        budget = resolve_deadline(datetime.now() + timedelta(seconds=30), CONFIG)
        assert 25 < budget <= 30

    def test_past_datetime_skips_everything(self):
        registry = CheckRegistry([make_check("a", constant(CheckResult.ok("Fine")))])
        report = run_all(registry, deadline=datetime.now() - timedelta(seconds=1), config=CONFIG)
        assert report.skipped == ("a",)
        assert report.counters.total == 0

    def test_infinite_deadline_clamped(self):
        assert resolve_deadline(float("inf"), CONFIG) == MAX_DEADLINE
        assert resolve_deadline(10 ** 400, CONFIG) == MAX_DEADLINE

    def test_infinite_deadline_runs(self):
        """An unbounded deadline still returns a complete report."""
        registry = CheckRegistry([make_check("a", constant(CheckResult.ok("Fine")))])
        report = run_all(registry, deadline=float("inf"), config=CONFIG)
        assert report.results["a"].severity is Severity.OK
        assert report.skipped == ()

    def test_far_future_datetime_runs(self):
        registry = CheckRegistry([make_check("a", constant(CheckResult.ok("Fine")))])
        assert resolve_deadline(datetime.max, CONFIG) == MAX_DEADLINE
        report = run_all(registry, deadline=datetime.max, config=CONFIG)
        assert report.results["a"].severity is Severity.OK

    @pytest.mark.parametrize("deadline", [-1, "10", True, [5], float("nan"), -10 ** 400])
    def test_invalid(self, deadline):
        with pytest.raises(OrchestratorError):
            run_all(CheckRegistry(), deadline=deadline, config=CONFIG)

    def test_not_a_registry(self):
        with pytest.raises(OrchestratorError):
            run_all([make_check("a", constant(CheckResult.ok("x")))])


class TestDiagnosticEngine:
    """Tests for the reusable engine wrapper."""

    def test_run_with_callback(self):
        seen = []
        engine = DiagnosticEngine(
            CheckRegistry([
                make_check("disk", constant(CheckResult.ok("Fine")), "system"),
                make_check("dns", constant(CheckResult.warn("Slow")), "network"),
            ]),
            CONFIG,
        )
        engine.register_callback(seen.append)

        report = engine.run()
        assert report.overall_status is Severity.WARNING
        assert len(seen) == 2

    def test_run_category(self):
        engine = DiagnosticEngine(
            CheckRegistry([
                make_check("disk", constant(CheckResult.ok("Fine")), "system"),
                make_check("dns", constant(CheckResult.warn("Slow")), "network"),
            ]),
            CONFIG,
        )
        report = engine.run(category="system")
        assert list(report.results) == ["disk"]
        assert report.overall_status is Severity.OK
