"""Log file checks."""

import os
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Union

from ..core.context import RunContext
from ..core.models import Check, CheckResult
from .base import format_bytes

CATEGORY = "logs"
ERROR_MARKERS = ('error', 'fatal')


def tail_lines(path: Union[str, Path], count: int) -> List[str]:
    """Last `count` lines of a text file."""
    with open(path, 'r', errors='replace') as f:
        return list(deque(f, maxlen=count))


def count_error_lines(lines: List[str]) -> int:
    return sum(1 for line in lines if any(m in line.lower() for m in ERROR_MARKERS))


def error_log_check(
    log_files: Union[Mapping[str, str], List[str]],
    tail: int = 50,
    warn_threshold: int = 10,
    error_threshold: int = 50,
    check_id: str = "logs.errors",
) -> Check:
    """
    Recent error lines across log files.

    Scans the last `tail` lines of each file for "error"/"fatal". More than
    `error_threshold` hits is an ERROR, more than `warn_threshold` a WARNING.
    Missing files are reported in the detail but do not fail the check.
    """
    if not isinstance(log_files, Mapping):
        log_files = {Path(p).name: p for p in log_files}
    files: Dict[str, str] = dict(log_files)

    def probe(ctx: RunContext) -> CheckResult:
        logs = {}
        recent_errors = 0
        for name, path in files.items():
            ctx.raise_if_cancelled()
            if not os.path.isfile(path):
                logs[name] = {"file": path, "status": "not found"}
                continue

            stat = os.stat(path)
            errors = count_error_lines(tail_lines(path, tail))
            logs[name] = {
                "file": path,
                "size": format_bytes(stat.st_size),
                "last_modified": datetime.fromtimestamp(stat.st_mtime).isoformat(timespec='seconds'),
                "recent_errors": errors,
            }
            recent_errors += errors

        detail = {"logs": logs, "total_recent_errors": recent_errors}
        if recent_errors > error_threshold:
            return CheckResult.fail(
                f"{recent_errors} recent errors in logs",
                detail,
                fix_hint="Inspect the newest entries of the listed log files",
            )
        if recent_errors > warn_threshold:
            return CheckResult.warn(f"{recent_errors} recent errors in logs", detail)
        return CheckResult.ok(f"{recent_errors} recent errors in logs", detail)

    return Check(
        id=check_id,
        title="Error logs",
        category=CATEGORY,
        func=probe,
        description="Recent error lines across log files.",
    )
