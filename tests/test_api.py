"""
Tests for the diagnostics Flask blueprint.

Run: python3 -m pytest tests/test_api.py -v
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

pytest.importorskip("flask")

from checkforge.api import create_app
from checkforge.core.models import Check, CheckResult
from checkforge.core.registry import CheckRegistry
from checkforge.errors import CheckForgeError
from checkforge.utils.config import RunnerConfig

CONFIG = RunnerConfig(max_concurrency=2, check_timeout=1, deadline=5, grace_period=0.1)


def build_registry():
    return CheckRegistry([
        Check(id="disk", title="Disk", category="system",
              func=lambda ctx: CheckResult.ok("Plenty of space")),
        Check(id="cdn", title="CDN", category="network",
              func=lambda ctx: CheckResult.critical("CDN down", fix_hint="Check status page")),
    ])


@pytest.fixture
def client():
    app = create_app(build_registry, CONFIG)
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


class TestRunEndpoint:
    """Tests for GET /api/diagnostics/run."""

    def test_report(self, client):
        response = client.get('/api/diagnostics/run')
        assert response.status_code == 200

        data = response.get_json()
        assert data['overall_status'] == 'CRITICAL'
        assert data['counters'] == {'total': 2, 'passed': 1, 'warned': 0, 'failed': 1}
        assert data['critical_issues'] == ['CDN down']
        assert list(data['results']) == ['disk', 'cdn']
        assert data['recommendations'] == ['[network] Check status page']

    def test_no_store(self, client):
        response = client.get('/api/diagnostics/run')
        assert 'no-store' in response.headers['Cache-Control']

    def test_category(self, client):
        data = client.get('/api/diagnostics/run?category=system').get_json()
        assert data['overall_status'] == 'OK'
        assert list(data['results']) == ['disk']

    def test_unknown_category(self, client):
        response = client.get('/api/diagnostics/run?category=bogus')
        assert response.status_code == 400
        assert 'Unknown category' in response.get_json()['error']

    @pytest.mark.parametrize("deadline", ["soon", "0", "-3", "nan", "NaN"])
    def test_bad_deadline(self, client, deadline):
        response = client.get(f'/api/diagnostics/run?deadline={deadline}')
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_deadline_capped_by_config(self):
        factory = MagicMock(return_value=build_registry())
        app = create_app(factory, CONFIG)
        with app.test_client() as client:
            response = client.get('/api/diagnostics/run?deadline=9999')
        assert response.status_code == 200
        factory.assert_called_once()

    def test_infinite_deadline_capped(self, client):
        response = client.get('/api/diagnostics/run?deadline=inf')
        assert response.status_code == 200
        assert response.get_json()['results']['disk']['severity'] == 'OK'

    def test_registry_failure(self):
        app = create_app(MagicMock(side_effect=CheckForgeError("no registry")), CONFIG)
        with app.test_client() as client:
            response = client.get('/api/diagnostics/run')
        assert response.status_code == 500
        assert response.get_json()['error'] == 'Diagnostics failed: no registry'


class TestChecksEndpoint:
    """Tests for GET /api/diagnostics/checks."""

    def test_list(self, client):
        response = client.get('/api/diagnostics/checks')
        assert response.status_code == 200

        data = response.get_json()
        assert data['count'] == 2
        assert data['categories'] == ['system', 'network']
        assert [c['id'] for c in data['checks']] == ['disk', 'cdn']

    def test_list_category(self, client):
        data = client.get('/api/diagnostics/checks?category=network').get_json()
        assert data['count'] == 1
        assert data['checks'][0]['title'] == 'CDN'
