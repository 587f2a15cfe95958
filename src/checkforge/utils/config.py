"""
Runner configuration.

Values are resolved in order of priority:
    1. Environment variables (CHECKFORGE_*)
    2. YAML config file (--config, or CHECKFORGE_CONFIG)
    3. Built-in defaults

Example config file:

    checkforge:
      max_concurrency: 8
      check_timeout: 5
      deadline: 30
      grace_period: 1
"""

import logging
import math
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHECKFORGE_"
CONFIG_ENV_VAR = "CHECKFORGE_CONFIG"
MAX_DEFAULT_CONCURRENCY = 16


def default_concurrency() -> int:
    """Worker pool size derived from available parallelism."""
    return max(1, min(MAX_DEFAULT_CONCURRENCY, (os.cpu_count() or 1) * 2))


@dataclass(frozen=True)
class RunnerConfig:
    """
    Settings for a diagnostic run.

    Attributes:
        max_concurrency: Number of checks allowed in flight at once
        check_timeout: Per-check timeout in seconds
        deadline: Wall-clock budget for a whole run in seconds
        grace_period: Seconds in-flight checks get to wind down after the deadline
        max_error_length: Truncation limit for execution-failure messages
        log_level: Logging level name used by the CLI
    """
    max_concurrency: int = field(default_factory=default_concurrency)
    check_timeout: float = 10.0
    deadline: float = 60.0
    grace_period: float = 1.0
    max_error_length: int = 500
    log_level: str = "INFO"

    def validate(self) -> 'RunnerConfig':
        """Return self, or raise ConfigError."""
        if self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be >= 1 (got {self.max_concurrency})")
        if not (math.isfinite(self.check_timeout) and self.check_timeout > 0):
            raise ConfigError(f"check_timeout must be a positive number (got {self.check_timeout})")
        if not (math.isfinite(self.deadline) and self.deadline > 0):
            raise ConfigError(f"deadline must be a positive number (got {self.deadline})")
        if self.check_timeout > self.deadline:
            raise ConfigError(
                f"check_timeout ({self.check_timeout}) cannot exceed deadline ({self.deadline})"
            )
        if not (math.isfinite(self.grace_period) and self.grace_period >= 0):
            raise ConfigError(f"grace_period must be a non-negative number (got {self.grace_period})")
        if self.max_error_length < 16:
            raise ConfigError(f"max_error_length too small (got {self.max_error_length})")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ConfigError(f"Unknown log level: {self.log_level}")
        return self

    def with_overrides(self, **changes) -> 'RunnerConfig':
        """Copy with non-None overrides applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_FIELD_TYPES = {f.name: f.type for f in fields(RunnerConfig)}
_CASTS = {
    'max_concurrency': int,
    'check_timeout': float,
    'deadline': float,
    'grace_period': float,
    'max_error_length': int,
    'log_level': str,
}


def _coerce(name: str, value: Any, source: str) -> Any:
    try:
        return _CASTS[name](value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {name} in {source}: {value!r}") from None


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read runner settings from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    if isinstance(data.get('checkforge'), dict):
        data = data['checkforge']

    values = {}
    for key, value in data.items():
        if key not in _FIELD_TYPES:
            logger.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        values[key] = _coerce(key, value, str(path))
    return values


def load_env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect CHECKFORGE_* overrides from an environment mapping."""
    values = {}
    for name in _FIELD_TYPES:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        values[name] = _coerce(name, raw, ENV_PREFIX + name.upper())
    return values


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> RunnerConfig:
    """
    Resolve the runner configuration.

    Args:
        path: Optional YAML config file. Falls back to $CHECKFORGE_CONFIG.
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated RunnerConfig
    """
    if env is None:
        env = os.environ

    values: Dict[str, Any] = {}
    path = path or env.get(CONFIG_ENV_VAR)
    if path:
        values.update(load_config_file(path))
        logger.debug(f"Loaded config from {path}")

    values.update(load_env_overrides(env))
    return RunnerConfig(**values).validate()
