"""CheckForge - concurrent health-check orchestration and severity aggregation"""

from .__version__ import __version__
from .errors import (
    CheckForgeError,
    DuplicateCheckId,
    OrchestratorError,
    ConfigError,
    CheckCancelled,
)
from .core import (
    Severity,
    Check,
    CheckResult,
    AggregateCounters,
    DiagnosticReport,
    RunContext,
    CheckRegistry,
    SeverityAggregator,
    ReportBuilder,
    CheckRunner,
    DiagnosticEngine,
    run_all,
)
from .utils.config import RunnerConfig, load_config

__all__ = [
    '__version__',
    'CheckForgeError',
    'DuplicateCheckId',
    'OrchestratorError',
    'ConfigError',
    'CheckCancelled',
    'Severity',
    'Check',
    'CheckResult',
    'AggregateCounters',
    'DiagnosticReport',
    'RunContext',
    'CheckRegistry',
    'SeverityAggregator',
    'ReportBuilder',
    'CheckRunner',
    'DiagnosticEngine',
    'run_all',
    'RunnerConfig',
    'load_config',
]
