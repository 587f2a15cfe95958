"""
Check runner.

Executes every check of a registry with:
- Fault isolation: anything a check raises becomes an ERROR result
- Per-check timeouts: a check that does not return in time becomes an
  ERROR result with error="timeout"
- Bounded concurrency: at most `max_concurrency` checks are supervised at once
- A run deadline: nothing starts after it, and checks that have not
  finished by then are reported as skipped

Each check body runs in its own daemon thread, watched by a supervisor from
a fixed-size pool. A supervisor gives up on its check at the timeout and
frees its pool slot even if the body is still blocked; the abandoned body
sees its context cancelled and is left to finish on its own.
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from concurrent.futures import wait
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from ..errors import OrchestratorError
from ..utils.config import RunnerConfig
from .aggregator import SeverityAggregator
from .context import RunContext
from .models import Check, CheckCallback, CheckResult
from .registry import CheckRegistry

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"

# Extra time the caller waits on top of deadline + grace for supervisors to return
_SUPERVISOR_SLACK = 0.5

# Longest run budget honoured; larger deadlines (including infinity) are clamped
MAX_DEADLINE = 7 * 24 * 3600.0


@dataclass
class RunOutcome:
    """Terminal state of one run, in registry order."""
    results: "OrderedDict[str, CheckResult]" = field(default_factory=OrderedDict)
    skipped: List[str] = field(default_factory=list)
    elapsed_ms: float = 0.0


class _RunState:
    """Collects finished results; guarantees one record() per check."""

    def __init__(self, aggregator: SeverityAggregator):
        self._aggregator = aggregator
        self._results: Dict[str, CheckResult] = {}
        self._closed = False
        self._lock = threading.Lock()

    def finish(self, result: CheckResult) -> bool:
        with self._lock:
            if self._closed or result.check_id in self._results:
                return False
            self._results[result.check_id] = result
            self._aggregator.record(result)
            return True

    def close(self) -> Dict[str, CheckResult]:
        with self._lock:
            self._closed = True
            return dict(self._results)


class CheckRunner:
    """Runs registered checks under isolation, timeouts and a deadline."""

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        callbacks: Optional[Iterable[CheckCallback]] = None,
    ):
        self.config = (config or RunnerConfig()).validate()
        self._callbacks: List[CheckCallback] = list(callbacks or [])
        self._callbacks_lock = threading.Lock()

    # === Callbacks ===

    def register_callback(self, callback: CheckCallback):
        """Register a callback invoked with every recorded result."""
        with self._callbacks_lock:
            self._callbacks.append(callback)

    def _notify(self, result: CheckResult):
        with self._callbacks_lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb(result)
            except Exception as e:
                logger.error(f"Result callback error for {result.check_id}: {e}")

    # === Execution ===

    def run(
        self,
        registry: CheckRegistry,
        aggregator: SeverityAggregator,
        deadline: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        category: Optional[str] = None,
    ) -> RunOutcome:
        """
        Run every check in `registry` (optionally one category).

        Args:
            registry: Checks to run
            aggregator: Receives exactly one record() per finished check
            deadline: Run budget in seconds (defaults to config.deadline)
            max_concurrency: Pool size (defaults to config.max_concurrency)
            category: Only run checks of this category

        Returns:
            RunOutcome with results and skipped ids in registry order
        """
        if not isinstance(registry, CheckRegistry):
            raise OrchestratorError(f"Expected CheckRegistry, got {type(registry).__name__}")
        if aggregator is None:
            raise OrchestratorError("An aggregator is required")

        budget = self.config.deadline if deadline is None else deadline
        if math.isnan(budget) or budget < 0:
            raise OrchestratorError(f"Deadline must be a non-negative number (got {budget})")
        budget = min(budget, MAX_DEADLINE)
        workers = self.config.max_concurrency if max_concurrency is None else max_concurrency
        if workers < 1:
            raise OrchestratorError(f"max_concurrency must be >= 1 (got {workers})")

        checks = list(registry.list_checks(category))
        start = time.monotonic()
        run_ctx = RunContext(start + budget)
        state = _RunState(aggregator)

        if not checks:
            logger.info("No checks registered; nothing to run")
            return RunOutcome(elapsed_ms=(time.monotonic() - start) * 1000)

        logger.info(
            f"Running {len(checks)} checks (concurrency={workers}, deadline={budget:.1f}s)"
        )

        executor = ThreadPoolExecutor(
            max_workers=min(workers, len(checks)),
            thread_name_prefix="checkforge",
        )
        try:
            futures = [
                executor.submit(self._supervise, check, run_ctx, state)
                for check in checks
            ]
            wait(
                futures,
                timeout=min(
                    run_ctx.remaining() + self.config.grace_period + _SUPERVISOR_SLACK,
                    threading.TIMEOUT_MAX,
                ),
            )
        finally:
            run_ctx.cancel()
            executor.shutdown(wait=False, cancel_futures=True)

        finished = state.close()
        elapsed_ms = (time.monotonic() - start) * 1000

        outcome = RunOutcome(elapsed_ms=elapsed_ms)
        for check in checks:
            if check.id in finished:
                outcome.results[check.id] = finished[check.id]
            else:
                outcome.skipped.append(check.id)

        if outcome.skipped:
            logger.warning(
                f"{len(outcome.skipped)} check(s) did not complete before the deadline: "
                f"{', '.join(outcome.skipped)}"
            )
        logger.info(f"Run finished in {elapsed_ms:.0f}ms ({len(outcome.results)} completed)")
        return outcome

    def _timeout_for(self, check: Check) -> float:
        if check.timeout is None:
            return self.config.check_timeout
        return min(check.timeout, self.config.check_timeout)

    def _supervise(self, check: Check, run_ctx: RunContext, state: _RunState):
        """Run one check in its own thread and record its outcome."""
        if run_ctx.done:
            logger.debug(f"Deadline reached; not starting {check.id}")
            return

        timeout = self._timeout_for(check)
        ctx = run_ctx.child(timeout)
        future: Future = Future()
        started = time.monotonic()

        thread = threading.Thread(
            target=_execute,
            args=(check, ctx, future),
            name=f"check-{check.id}",
            daemon=True,
        )
        thread.start()

        try:
            value = future.result(timeout=ctx.remaining())
            error = None
        except FutureTimeout:
            ctx.cancel()
            if run_ctx.expired or ctx.deadline >= run_ctx.deadline:
                self._abandon(check, thread)
                return
            logger.warning(f"Check {check.id} timed out after {timeout:.1f}s")
            result = CheckResult.execution_failure(
                check.id, TIMEOUT_ERROR, summary=f"Timed out after {timeout:.1f}s"
            )
            self._finish(check, result, started, state)
            return
        except BaseException as e:
            value, error = None, e

        if time.monotonic() > run_ctx.deadline:
            self._abandon(check, thread)
            return

        if error is not None:
            logger.warning(f"Check {check.id} failed: {type(error).__name__}: {error}")
            result = CheckResult.execution_failure(check.id, self._format_error(error))
        elif not isinstance(value, CheckResult):
            logger.warning(f"Check {check.id} returned {type(value).__name__}, not a CheckResult")
            result = CheckResult.execution_failure(
                check.id,
                f"TypeError: check returned {type(value).__name__}, expected CheckResult",
            )
        else:
            result = value

        self._finish(check, result, started, state)

    def _finish(self, check: Check, result: CheckResult, started: float, state: _RunState):
        result = replace(
            result,
            check_id=check.id,
            category=check.category,
            title=result.title or check.title,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        if state.finish(result):
            self._notify(result)

    def _abandon(self, check: Check, thread: threading.Thread):
        thread.join(self.config.grace_period)
        if thread.is_alive():
            logger.debug(f"Abandoning check {check.id}; still running after grace period")
        logger.warning(f"Check {check.id} did not complete before the run deadline")

    def _format_error(self, error: BaseException) -> str:
        message = str(error).strip()
        text = f"{type(error).__name__}: {message}" if message else type(error).__name__
        limit = self.config.max_error_length
        if len(text) > limit:
            text = text[:limit - 3] + "..."
        return text


def _execute(check: Check, ctx: RunContext, future: Future):
    """Thread body: run the check and hand its outcome to the supervisor."""
    try:
        result = check.execute(ctx)
    except BaseException as e:
        # SystemExit and friends from a probe must not vanish with the thread
        future.set_exception(e)
    else:
        future.set_result(result)
