"""
Diagnostic core for CheckForge

Runs an open-ended set of independent checks with fault isolation,
per-check timeouts and bounded concurrency, and folds their results into
one DiagnosticReport.

Usage:
    from checkforge.core import CheckRegistry, run_all

    registry = CheckRegistry(my_checks)
    report = run_all(registry, deadline=30)
"""

from .models import (
    Severity,
    Check,
    CheckResult,
    AggregateCounters,
    CategorySummary,
    DiagnosticReport,
)
from .context import RunContext
from .registry import CheckRegistry
from .aggregator import SeverityAggregator
from .report import ReportBuilder
from .runner import CheckRunner, RunOutcome, TIMEOUT_ERROR
from .engine import DiagnosticEngine, run_all

__all__ = [
    'Severity',
    'Check',
    'CheckResult',
    'AggregateCounters',
    'CategorySummary',
    'DiagnosticReport',
    'RunContext',
    'CheckRegistry',
    'SeverityAggregator',
    'ReportBuilder',
    'CheckRunner',
    'RunOutcome',
    'TIMEOUT_ERROR',
    'DiagnosticEngine',
    'run_all',
]
