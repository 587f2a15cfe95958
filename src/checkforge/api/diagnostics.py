"""
Diagnostics REST API

Flask blueprint exposing a registry over HTTP. Mount it in the host
application, which owns authentication:

    app.register_blueprint(create_diagnostics_blueprint(build_registry), url_prefix='/api')

Endpoints:
    GET  /diagnostics/run      - Run checks, return the report JSON
    GET  /diagnostics/checks   - List registered checks

Query parameters for /diagnostics/run:
    category  - Only run checks of this category
    deadline  - Run budget in seconds (capped by config.deadline)
"""

import logging
import math
from typing import Callable, Optional

from flask import Blueprint, jsonify, request

from ..core.engine import run_all
from ..core.registry import CheckRegistry
from ..errors import CheckForgeError
from ..utils.config import RunnerConfig

logger = logging.getLogger(__name__)

RegistryFactory = Callable[[], CheckRegistry]


def _no_store(response):
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate'
    return response


def create_diagnostics_blueprint(
    registry_factory: Optional[RegistryFactory] = None,
    config: Optional[RunnerConfig] = None,
    name: str = 'diagnostics',
) -> Blueprint:
    """
    Build the diagnostics blueprint.

    Args:
        registry_factory: Returns the registry to run (default: built-in checks).
            Called per request so checks can receive fresh collaborators.
        config: Runner configuration
        name: Blueprint name (must be unique per app)
    """
    if registry_factory is None:
        from ..checks import default_registry
        registry_factory = default_registry
    config = (config or RunnerConfig()).validate()

    bp = Blueprint(name, __name__, url_prefix='/diagnostics')
    bp.after_request(_no_store)

    @bp.route('/run')
    def run_diagnostics():
        """Run diagnostics and return the report."""
        category = request.args.get('category') or None
        deadline = config.deadline

        raw_deadline = request.args.get('deadline')
        if raw_deadline:
            try:
                deadline = float(raw_deadline)
            except ValueError:
                return jsonify({'error': f'Invalid deadline: {raw_deadline}'}), 400
            if math.isnan(deadline) or deadline <= 0:
                return jsonify({'error': 'Deadline must be a positive number'}), 400
            deadline = min(deadline, config.deadline)

        try:
            registry = registry_factory()
        except CheckForgeError as e:
            logger.error(f"Could not build check registry: {e}")
            return jsonify({'error': f'Diagnostics failed: {e}'}), 500

        if category and category not in registry.categories():
            return jsonify({'error': f'Unknown category: {category}'}), 400

        try:
            report = run_all(registry, deadline=deadline, config=config, category=category)
        except CheckForgeError as e:
            logger.error(f"Diagnostics failed: {e}")
            return jsonify({'error': f'Diagnostics failed: {e}'}), 500

        return jsonify(report.to_dict())

    @bp.route('/checks')
    def list_checks():
        """List registered checks."""
        try:
            registry = registry_factory()
        except CheckForgeError as e:
            logger.error(f"Could not build check registry: {e}")
            return jsonify({'error': str(e)}), 500

        category = request.args.get('category') or None
        checks = [c.to_dict() for c in registry.list_checks(category)]
        return jsonify({
            'count': len(checks),
            'categories': registry.categories(),
            'checks': checks,
        })

    return bp
