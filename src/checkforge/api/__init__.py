"""
CheckForge REST API

Flask blueprint exposing diagnostic runs over HTTP.
"""

from typing import Optional

from flask import Flask

from ..utils.config import RunnerConfig
from .diagnostics import create_diagnostics_blueprint, RegistryFactory


def create_app(
    registry_factory: Optional[RegistryFactory] = None,
    config: Optional[RunnerConfig] = None,
) -> Flask:
    """Minimal Flask app serving the diagnostics blueprint under /api."""
    app = Flask(__name__)
    # Keep results in registry order
    app.json.sort_keys = False
    app.register_blueprint(
        create_diagnostics_blueprint(registry_factory, config),
        url_prefix='/api/diagnostics',
    )
    return app


__all__ = ['create_app', 'create_diagnostics_blueprint']
