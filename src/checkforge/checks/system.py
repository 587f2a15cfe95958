"""
System resource checks: disk space, load average, memory, Python runtime.

Each factory returns a Check; thresholds are parameters so the same probe
can be registered for several paths or tuned per deployment.
"""

import os
import shutil
import sys
from typing import Optional, Tuple

from ..core.context import RunContext
from ..core.models import Check, CheckResult
from .base import format_bytes

CATEGORY = "system"


def disk_space_check(
    path: str = '/',
    warn_percent: float = 80.0,
    critical_percent: float = 90.0,
    check_id: Optional[str] = None,
) -> Check:
    """Usage of the filesystem holding `path`: CRITICAL above 90%, WARNING above 80%."""

    def probe(ctx: RunContext) -> CheckResult:
        usage = shutil.disk_usage(path)
        percent = (usage.used / usage.total * 100) if usage.total else 0.0
        detail = {
            "path": path,
            "total": format_bytes(usage.total),
            "used": format_bytes(usage.used),
            "free": format_bytes(usage.free),
            "percent_used": round(percent, 2),
        }

        if percent > critical_percent:
            return CheckResult.critical(
                f"Disk space critically low on {path} ({percent:.0f}% used)",
                detail,
                fix_hint=f"Free up space on {path}",
            )
        if percent > warn_percent:
            return CheckResult.warn(
                f"Disk space running low on {path} ({percent:.0f}% used)",
                detail,
                fix_hint=f"Clean up {path} before it fills",
            )
        return CheckResult.ok(f"{format_bytes(usage.free)} free on {path}", detail)

    return Check(
        id=check_id or f"system.disk_space:{path}",
        title=f"Disk space ({path})",
        category=CATEGORY,
        func=probe,
        description=disk_space_check.__doc__,
    )


def system_load_check(
    warn_load: float = 1.0,
    critical_load: float = 1.5,
    check_id: str = "system.load",
) -> Check:
    """1-minute load average per CPU core: CRITICAL above 1.5, WARNING above 1.0."""

    def probe(ctx: RunContext) -> CheckResult:
        load1, load5, load15 = os.getloadavg()
        cores = os.cpu_count() or 1
        normalized = load1 / cores
        detail = {
            "load_average": {"1_min": round(load1, 2), "5_min": round(load5, 2), "15_min": round(load15, 2)},
            "cpu_cores": cores,
            "normalized_load": {
                "1_min": round(load1 / cores, 2),
                "5_min": round(load5 / cores, 2),
                "15_min": round(load15 / cores, 2),
            },
        }

        if normalized > critical_load:
            return CheckResult.critical(
                f"Very high system load ({normalized:.2f} per core)",
                detail,
                fix_hint="Identify runaway processes (top, ps aux --sort=-%cpu)",
            )
        if normalized > warn_load:
            return CheckResult.warn(f"High system load ({normalized:.2f} per core)", detail)
        return CheckResult.ok(f"Load {load1:.2f} on {cores} cores", detail)

    return Check(
        id=check_id,
        title="System load",
        category=CATEGORY,
        func=probe,
        description=system_load_check.__doc__,
    )


def memory_check(
    meminfo_path: str = '/proc/meminfo',
    warn_free_percent: float = 25.0,
    error_free_percent: float = 10.0,
    check_id: str = "system.memory",
) -> Check:
    """Available memory from /proc/meminfo: ERROR below 10% free, WARNING below 25%."""

    def probe(ctx: RunContext) -> CheckResult:
        mem_info = {}
        with open(meminfo_path) as f:
            for line in f:
                parts = line.split()
                if len(parts) >= 2:
                    mem_info[parts[0].rstrip(':')] = int(parts[1])

        total_mb = mem_info.get('MemTotal', 0) / 1024
        available_mb = mem_info.get('MemAvailable', mem_info.get('MemFree', 0)) / 1024
        if total_mb <= 0:
            raise ValueError(f"MemTotal missing from {meminfo_path}")

        percent_free = available_mb / total_mb * 100
        detail = {
            "total_mb": round(total_mb, 1),
            "available_mb": round(available_mb, 1),
            "percent_free": round(percent_free, 1),
        }
        summary = f"{available_mb:.0f}MB free ({percent_free:.0f}%)"

        if percent_free < error_free_percent:
            return CheckResult.fail(summary, detail, fix_hint="Free up memory or add swap")
        if percent_free < warn_free_percent:
            return CheckResult.warn(summary, detail)
        return CheckResult.ok(summary, detail)

    return Check(
        id=check_id,
        title="Memory",
        category=CATEGORY,
        func=probe,
        description=memory_check.__doc__,
    )


def python_version_check(
    minimum: Tuple[int, int] = (3, 9),
    recommended: Tuple[int, int] = (3, 11),
    check_id: str = "system.python_version",
) -> Check:
    """Interpreter version: ERROR below `minimum`, WARNING below `recommended`."""

    def probe(ctx: RunContext) -> CheckResult:
        version = sys.version_info
        version_str = f"{version.major}.{version.minor}.{version.micro}"
        detail = {"version": version_str, "implementation": sys.implementation.name}

        if version[:2] < tuple(minimum):
            return CheckResult.fail(
                f"{version_str} (requires {minimum[0]}.{minimum[1]}+)",
                detail,
                fix_hint=f"Upgrade Python to {recommended[0]}.{recommended[1]}+",
            )
        if version[:2] < tuple(recommended):
            return CheckResult.warn(
                f"{version_str} ({recommended[0]}.{recommended[1]}+ recommended)", detail
            )
        return CheckResult.ok(version_str, detail)

    return Check(
        id=check_id,
        title="Python version",
        category=CATEGORY,
        func=probe,
        description=python_version_check.__doc__,
    )
