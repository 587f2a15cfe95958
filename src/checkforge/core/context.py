"""
Run context handed to every check.

A RunContext carries the deadline (a time.monotonic() timestamp) and a
cancellation signal. The run owns a root context; every check gets its own
child whose deadline is never later than the root's and which is cancelled
whenever the root is.

Checks are expected to observe the context cooperatively, e.g.:

    def probe(ctx):
        for host in hosts:
            ctx.raise_if_cancelled()
            sock.settimeout(min(2.0, ctx.remaining()))
            ...
"""

import threading
import time
from typing import List, Optional

from ..errors import CheckCancelled


class RunContext:
    """Cancellable, deadline-bound handle for one run or one check."""

    def __init__(self, deadline: float, parent: Optional['RunContext'] = None):
        if parent is not None:
            deadline = min(deadline, parent.deadline)
        self._deadline = deadline
        self._cancelled = threading.Event()
        self._children: List['RunContext'] = []
        self._lock = threading.Lock()

        if parent is not None:
            parent._adopt(self)

    @classmethod
    def with_timeout(cls, seconds: float) -> 'RunContext':
        """Create a root context expiring `seconds` from now."""
        return cls(time.monotonic() + seconds)

    def child(self, timeout: Optional[float] = None) -> 'RunContext':
        """Create a context bounded by this one and, optionally, a timeout."""
        deadline = self._deadline
        if timeout is not None:
            deadline = min(deadline, time.monotonic() + timeout)
        return RunContext(deadline, parent=self)

    def _adopt(self, child: 'RunContext'):
        with self._lock:
            self._children.append(child)
            cancelled = self._cancelled.is_set()
        if cancelled:
            child.cancel()

    # === State ===

    @property
    def deadline(self) -> float:
        return self._deadline

    def remaining(self) -> float:
        """Seconds left before the deadline (never negative)."""
        return max(0.0, self._deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        """True once cancelled or past the deadline."""
        return self.cancelled or self.expired

    # === Control ===

    def cancel(self):
        """Signal cancellation to this context and all its children."""
        with self._lock:
            self._cancelled.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    def wait(self, seconds: Optional[float] = None) -> bool:
        """
        Sleep cooperatively.

        Returns early when the context is cancelled; never sleeps past the
        deadline. Returns True if the context is done on return.
        """
        limit = self.remaining()
        if seconds is not None:
            limit = min(limit, max(0.0, seconds))
        self._cancelled.wait(limit)
        return self.done

    def raise_if_cancelled(self):
        """Raise CheckCancelled if the context is cancelled or expired."""
        if self.done:
            raise CheckCancelled("Run context cancelled or past its deadline")

    def __repr__(self) -> str:
        return f"RunContext(remaining={self.remaining():.3f}s, cancelled={self.cancelled})"
