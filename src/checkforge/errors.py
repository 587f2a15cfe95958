"""
Exceptions raised by the diagnostic core.

Problems inside a check never surface as exceptions: the runner turns them
into CheckResults. These classes cover the orchestrator-level failures that
do propagate to the caller.
"""


class CheckForgeError(Exception):
    """Base class for all CheckForge errors."""
    pass


class DuplicateCheckId(CheckForgeError):
    """Raised when a check id is registered twice."""

    def __init__(self, check_id: str):
        super().__init__(f"Check already registered: {check_id}")
        self.check_id = check_id


class OrchestratorError(CheckForgeError):
    """Raised when a run cannot be started at all."""
    pass


class ConfigError(CheckForgeError):
    """Raised for invalid runner configuration."""
    pass


class CheckCancelled(CheckForgeError):
    """Raised inside a check when its context has been cancelled."""
    pass
