"""
Reference checks.

These are ordinary plug-ins built on the public Check contract; the core
never imports them. default_registry() wires a sensible host-level set.
"""

from typing import Dict, List, Mapping, Optional, Union

from ..core.registry import CheckRegistry
from .base import check, format_bytes
from .logs import error_log_check
from .network import dns_check, external_hosts_check, tcp_port_check
from .system import disk_space_check, memory_check, python_version_check, system_load_check

__all__ = [
    'check',
    'format_bytes',
    'default_registry',
    'disk_space_check',
    'system_load_check',
    'memory_check',
    'python_version_check',
    'tcp_port_check',
    'dns_check',
    'external_hosts_check',
    'error_log_check',
]


def default_registry(
    disk_paths: Optional[List[str]] = None,
    hosts: Optional[Dict[str, str]] = None,
    log_files: Optional[Union[Mapping[str, str], List[str]]] = None,
) -> CheckRegistry:
    """
    Registry of the built-in host checks.

    Args:
        disk_paths: Filesystems to watch (default: "/")
        hosts: External services to probe on port 443, {host: label}
        log_files: Log files to scan for recent errors
    """
    registry = CheckRegistry()
    registry.register(python_version_check())
    registry.register(system_load_check())
    registry.register(memory_check())
    for path in disk_paths or ['/']:
        registry.register(disk_space_check(path))

    if hosts:
        registry.register(external_hosts_check(hosts))
    if log_files:
        registry.register(error_log_check(log_files))
    return registry
