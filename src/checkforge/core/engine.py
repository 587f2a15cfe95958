"""
Diagnostic entry point.

run_all() is the single call a caller needs: it wires one SeverityAggregator
and one CheckRunner to a registry and returns the DiagnosticReport.

Usage:
    registry = CheckRegistry([disk_space_check('/'), dns_check('example.com')])
    report = run_all(registry, deadline=30)
    print(report.overall_status, report.critical_issues)

DiagnosticEngine keeps a registry, a config and callbacks together for
callers (CLI, HTTP) that run the same checks repeatedly.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from ..errors import OrchestratorError
from ..utils.config import RunnerConfig
from .aggregator import SeverityAggregator
from .models import CheckCallback, DiagnosticReport
from .registry import CheckRegistry
from .report import ReportBuilder
from .runner import MAX_DEADLINE, CheckRunner

logger = logging.getLogger(__name__)

Deadline = Union[int, float, datetime]


def resolve_deadline(deadline: Optional[Deadline], config: RunnerConfig) -> float:
    """
    Turn a deadline into a run budget in seconds.

    Accepts seconds from now, an absolute datetime (naive datetimes are local
    time), or None for the configured default. Budgets beyond MAX_DEADLINE,
    infinity included, are clamped to it.
    """
    if deadline is None:
        return config.deadline
    if isinstance(deadline, datetime):
        now = datetime.now(deadline.tzinfo) if deadline.tzinfo else datetime.now()
        return min(MAX_DEADLINE, max(0.0, (deadline - now).total_seconds()))
    if isinstance(deadline, bool) or not isinstance(deadline, (int, float)):
        raise OrchestratorError(f"Invalid deadline: {deadline!r}")
    try:
        budget = float(deadline)
    except OverflowError:
        budget = math.inf if deadline > 0 else -math.inf
    if math.isnan(budget):
        raise OrchestratorError("Deadline cannot be NaN")
    if budget < 0:
        raise OrchestratorError(f"Deadline cannot be negative (got {deadline})")
    return min(budget, MAX_DEADLINE)


def run_all(
    registry: CheckRegistry,
    deadline: Optional[Deadline] = None,
    config: Optional[RunnerConfig] = None,
    callbacks: Optional[Iterable[CheckCallback]] = None,
    category: Optional[str] = None,
    max_concurrency: Optional[int] = None,
) -> DiagnosticReport:
    """
    Run every check in `registry` and return the aggregated report.

    Check-level failures never raise; they appear as ERROR results. Only
    orchestrator problems (bad registry, bad deadline) raise
    OrchestratorError.
    """
    if not isinstance(registry, CheckRegistry):
        raise OrchestratorError(f"Expected CheckRegistry, got {type(registry).__name__}")
    config = config or RunnerConfig()
    budget = resolve_deadline(deadline, config)

    aggregator = SeverityAggregator()
    runner = CheckRunner(config, callbacks=callbacks)
    generated_at = datetime.now(timezone.utc)
    outcome = runner.run(
        registry,
        aggregator,
        deadline=budget,
        max_concurrency=max_concurrency,
        category=category,
    )

    report = ReportBuilder().build(
        outcome.results,
        aggregator.snapshot(),
        outcome.elapsed_ms,
        skipped=outcome.skipped,
        overall_status=aggregator.overall_status(),
        generated_at=generated_at,
    )
    logger.info(
        f"Diagnostics {report.overall_status.value}: "
        f"{report.counters.passed} passed, {report.counters.warned} warned, "
        f"{report.counters.failed} failed, {len(report.skipped)} skipped"
    )
    return report


class DiagnosticEngine:
    """
    Registry + config + callbacks bundled for repeated runs.

    The registry is read-only once handed over; each run() gets a fresh
    aggregator, so runs never share mutable state.
    """

    def __init__(self, registry: CheckRegistry, config: Optional[RunnerConfig] = None):
        self.registry = registry
        self.config = (config or RunnerConfig()).validate()
        self._callbacks: List[CheckCallback] = []

    def register_callback(self, callback: CheckCallback):
        """Register callback for individual check results."""
        self._callbacks.append(callback)

    def run(
        self,
        category: Optional[str] = None,
        deadline: Optional[Deadline] = None,
        max_concurrency: Optional[int] = None,
    ) -> DiagnosticReport:
        """Run all checks, or only those of `category`."""
        return run_all(
            self.registry,
            deadline=deadline,
            config=self.config,
            callbacks=self._callbacks,
            category=category,
            max_concurrency=max_concurrency,
        )
