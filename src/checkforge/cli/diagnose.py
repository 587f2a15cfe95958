#!/usr/bin/env python3
"""CheckForge Diagnostic Tool

Runs the built-in host checks and prints the aggregated report.

Usage:
    checkforge                         # Rich table
    checkforge --json                  # Report JSON on stdout
    checkforge --category system --deadline 10
    checkforge --host cdnjs.cloudflare.com=CDN --log /var/log/nginx/error.log

Exit codes:
    0  OK or WARNING
    1  ERROR
    2  CRITICAL
    3  Diagnostics could not run (bad config or arguments)
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..__version__ import __version__
from ..checks import default_registry
from ..core.engine import run_all
from ..core.models import DiagnosticReport, Severity
from ..errors import CheckForgeError
from ..utils.config import load_config
from ..utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

SEVERITY_STYLES = {
    Severity.OK: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
    Severity.CRITICAL: "bold magenta",
}

EXIT_CODES = {
    Severity.OK: 0,
    Severity.WARNING: 0,
    Severity.ERROR: 1,
    Severity.CRITICAL: 2,
}
EXIT_USAGE = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='checkforge',
        description='Run health checks and print an aggregated report.',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--category', help='Only run checks of this category')
    parser.add_argument('--deadline', type=float, help='Run budget in seconds')
    parser.add_argument('--concurrency', type=int, help='Checks allowed in flight at once')
    parser.add_argument('--check-timeout', type=float, help='Per-check timeout in seconds')
    parser.add_argument('--disk', action='append', default=[], metavar='PATH',
                        help='Filesystem to check (repeatable, default /)')
    parser.add_argument('--host', action='append', default=[], metavar='HOST[=LABEL]',
                        help='External service to probe on port 443 (repeatable)')
    parser.add_argument('--log', action='append', default=[], metavar='FILE',
                        help='Log file to scan for recent errors (repeatable)')
    parser.add_argument('--list', action='store_true', help='List checks and exit')
    parser.add_argument('--json', action='store_true', help='Print the report as JSON')
    parser.add_argument('--log-level', help='Logging level (default from config)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    return parser


def parse_hosts(values: List[str]) -> Dict[str, str]:
    """['a.com=CDN', 'b.com'] -> {'a.com': 'CDN', 'b.com': 'b.com'}"""
    hosts = {}
    for value in values:
        host, _, label = value.partition('=')
        host = host.strip()
        if host:
            hosts[host] = label.strip() or host
    return hosts


def render_report(report: DiagnosticReport, console: Console):
    """Print a report as a table plus summary panel."""
    table = Table(title="Diagnostics", show_lines=False)
    table.add_column("Check")
    table.add_column("Category", style="dim")
    table.add_column("Status")
    table.add_column("Summary")
    table.add_column("Time", justify="right", style="dim")

    for result in report.results.values():
        style = SEVERITY_STYLES[result.severity]
        summary = escape(result.summary)
        if result.error:
            summary = f"{summary} [dim]({escape(result.error)})[/dim]"
        table.add_row(
            escape(result.title or result.check_id),
            escape(result.category),
            f"[{style}]{result.severity.value}[/{style}]",
            summary,
            f"{result.duration_ms:.0f}ms",
        )
    for check_id in report.skipped:
        table.add_row(escape(check_id), "", "[dim]SKIPPED[/dim]", "Did not complete before the deadline", "")

    console.print(table)

    counters = report.counters
    style = SEVERITY_STYLES[report.overall_status]
    lines = [
        f"Overall: [{style}]{report.overall_status.value}[/{style}]",
        f"Total: {counters.total}  Passed: {counters.passed}  "
        f"Warnings: {counters.warned}  Failed: {counters.failed}  Skipped: {len(report.skipped)}",
        f"Elapsed: {report.elapsed_ms / 1000:.2f}s",
    ]
    if report.critical_issues:
        lines.append("")
        lines.append("[bold]Critical issues:[/bold]")
        lines.extend(f"  - {escape(issue)}" for issue in report.critical_issues)
    if report.recommendations:
        lines.append("")
        lines.append("[bold]Recommendations:[/bold]")
        lines.extend(f"  - {escape(rec)}" for rec in report.recommendations)

    console.print(Panel("\n".join(lines), title="Summary", border_style=style))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    err_console = Console(stderr=True)

    try:
        config = load_config(args.config)
        check_timeout = args.check_timeout
        if args.deadline is not None and check_timeout is None:
            # A short --deadline alone shrinks the per-check timeout with it
            check_timeout = min(config.check_timeout, args.deadline)
        config = config.with_overrides(
            deadline=args.deadline,
            max_concurrency=args.concurrency,
            check_timeout=check_timeout,
            log_level=args.log_level,
        )
    except CheckForgeError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        return EXIT_USAGE

    setup_logging(level=config.log_level, log_file=args.log_file)

    try:
        registry = default_registry(
            disk_paths=args.disk or None,
            hosts=parse_hosts(args.host),
            log_files=args.log or None,
        )
    except CheckForgeError as e:
        err_console.print(f"[red]Could not build checks:[/red] {e}")
        return EXIT_USAGE

    if args.list:
        for check in registry.list_checks(args.category):
            console.print(
                f"{escape(check.id):<32} [dim]{escape(check.category):<10}[/dim] {escape(check.title)}"
            )
        return 0

    if args.category and args.category not in registry.categories():
        err_console.print(
            f"[red]Unknown category:[/red] {args.category} "
            f"(available: {', '.join(registry.categories())})"
        )
        return EXIT_USAGE

    try:
        report = run_all(registry, config=config, category=args.category)
    except CheckForgeError as e:
        logger.error(f"Diagnostics failed: {e}")
        err_console.print(f"[red]Diagnostics failed:[/red] {e}")
        return EXIT_USAGE

    if args.json:
        # print() rather than console.print so rich markup never touches the JSON
        print(report.to_json())
    else:
        render_report(report, console)

    return EXIT_CODES[report.overall_status]


if __name__ == '__main__':
    sys.exit(main())
