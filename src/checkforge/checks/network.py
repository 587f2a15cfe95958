"""
Network checks: TCP reachability and DNS resolution.

Socket timeouts are clamped to the time left in the check's context so a
slow network never holds a check past its own timeout.
"""

import socket
import time
from typing import Dict, Optional

from ..core.context import RunContext
from ..core.models import Check, CheckResult
from .base import elapsed_ms

CATEGORY = "network"


def _socket_timeout(ctx: RunContext, limit: float) -> float:
    return max(0.05, min(limit, ctx.remaining()))


def _connect(host: str, port: int, timeout: float) -> int:
    """connect_ex() to host:port; 0 means reachable."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port))
    finally:
        sock.close()


def tcp_port_check(
    host: str,
    port: int,
    name: Optional[str] = None,
    optional: bool = False,
    timeout: float = 2.0,
    check_id: Optional[str] = None,
) -> Check:
    """Whether a TCP port accepts connections. Optional ports only warn."""
    label = name or f"{host}:{port}"

    def probe(ctx: RunContext) -> CheckResult:
        start = time.monotonic()
        try:
            code = _connect(host, port, _socket_timeout(ctx, timeout))
        except socket.gaierror as e:
            return CheckResult.fail(
                f"Cannot resolve {host}",
                {"host": host, "port": port, "error": str(e)},
                fix_hint=f"Check DNS for {host}",
            )
        except socket.timeout:
            code = None

        detail = {"host": host, "port": port, "latency_ms": elapsed_ms(start)}
        if code == 0:
            return CheckResult.ok(f"{label} listening", detail)

        detail["code"] = code
        if optional:
            return CheckResult.warn(f"{label} not reachable", detail)
        return CheckResult.fail(
            f"{label} not reachable",
            detail,
            fix_hint=f"Ensure {label} is running",
        )

    return Check(
        id=check_id or f"network.tcp:{host}:{port}",
        title=f"{label} (:{port})" if name else label,
        category=CATEGORY,
        func=probe,
        timeout=timeout + 1.0,
        description=tcp_port_check.__doc__,
    )


def dns_check(hostname: str, check_id: Optional[str] = None) -> Check:
    """Whether `hostname` resolves."""

    def probe(ctx: RunContext) -> CheckResult:
        start = time.monotonic()
        try:
            address = socket.gethostbyname(hostname)
        except socket.gaierror as e:
            return CheckResult.fail(
                f"DNS resolution failed for {hostname}",
                {"hostname": hostname, "error": str(e)},
                fix_hint="Check /etc/resolv.conf and upstream DNS servers",
            )
        return CheckResult.ok(
            f"{hostname} -> {address}",
            {"hostname": hostname, "address": address, "latency_ms": elapsed_ms(start)},
        )

    return Check(
        id=check_id or f"network.dns:{hostname}",
        title=f"DNS ({hostname})",
        category=CATEGORY,
        func=probe,
        description=dns_check.__doc__,
    )


def external_hosts_check(
    hosts: Dict[str, str],
    port: int = 443,
    timeout: float = 2.0,
    check_id: str = "network.external_hosts",
) -> Check:
    """
    Reachability of external services, e.g. {"cdnjs.cloudflare.com": "CDN"}.

    Any unreachable host makes the result a WARNING; the remaining hosts are
    still probed unless the context is cancelled.
    """

    def probe(ctx: RunContext) -> CheckResult:
        results = {}
        unreachable = []
        for host, label in hosts.items():
            ctx.raise_if_cancelled()
            start = time.monotonic()
            try:
                code = _connect(host, port, _socket_timeout(ctx, timeout))
            except (socket.gaierror, socket.timeout) as e:
                code, error = None, str(e) or type(e).__name__
            else:
                error = None if code == 0 else f"connect_ex returned {code}"

            if code == 0:
                results[label] = {"host": host, "reachable": True, "latency_ms": elapsed_ms(start)}
            else:
                results[label] = {"host": host, "reachable": False, "error": error}
                unreachable.append(label)

        detail = {"port": port, "hosts": results}
        if unreachable:
            return CheckResult.warn(
                f"Unreachable external services: {', '.join(unreachable)}",
                detail,
                fix_hint="Check outbound firewall rules and upstream status pages",
            )
        return CheckResult.ok(f"All {len(hosts)} external services reachable", detail)

    return Check(
        id=check_id,
        title="External services",
        category=CATEGORY,
        func=probe,
        description=external_hosts_check.__doc__.strip(),
    )
