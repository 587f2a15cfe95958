"""
Helpers for writing checks.

Usage:
    @check("cache.ping", "Cache reachable", "cache", timeout=3)
    def cache_ping(ctx):
        if client.ping():
            return CheckResult.ok("PONG")
        return CheckResult.critical("Cache not responding", fix_hint="Restart redis")
"""

import time
from typing import Callable, Optional

from ..core.context import RunContext
from ..core.models import Check, CheckResult


def check(
    check_id: str,
    title: str,
    category: str,
    timeout: Optional[float] = None,
    description: Optional[str] = None,
) -> Callable[[Callable[[RunContext], CheckResult]], Check]:
    """Decorator turning a probe function into a Check."""
    def decorator(func: Callable[[RunContext], CheckResult]) -> Check:
        return Check(
            id=check_id,
            title=title,
            category=category,
            func=func,
            timeout=timeout,
            description=description if description is not None else (func.__doc__ or "").strip(),
        )
    return decorator


def format_bytes(num: float) -> str:
    """Human-readable byte size (1536 -> '1.5 KB')."""
    if abs(num) < 1024:
        return f"{int(num)} B"
    for unit in ('KB', 'MB', 'GB'):
        num /= 1024
        if abs(num) < 1024:
            return f"{num:.1f} {unit}"
    return f"{num / 1024:.1f} TB"


def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.monotonic() timestamp."""
    return round((time.monotonic() - start) * 1000, 2)
