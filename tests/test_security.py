from types import SimpleNamespace

import pytest

from tatami.core.config import DEFAULT_JWT_SECRET, Settings
from tatami.main import _run_startup_checks
from tests.conftest import client


class _DummySession:
    def execute(self, _query):
        return 1

    def close(self):
        return None


def _dummy_session_local():
    return _DummySession()


def test_health_live_and_ready_endpoints():
    live = client.get('/health/live')
    ready = client.get('/health/ready')
    assert live.status_code == 200
    assert ready.status_code == 200
    assert live.json()['status'] == 'alive'
    assert ready.json()['services']['database'] == 'ready'


def test_health():
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json()['status'] == 'healthy'
    assert r.headers['X-Request-ID']


def test_validation_error_envelope_shape(auth_headers):
    resp = client.post('/rest/account/preferences', json={'dailyDigest': 'not-a-bool'}, headers=auth_headers)
    assert resp.status_code == 422
    body = resp.json()
    assert body['code'] == 'validation_error'
    assert 'request_id' in body


def test_unknown_route_uses_error_envelope():
    resp = client.get('/rest/account/unknown')
    assert resp.status_code == 404
    assert resp.json()['code'] == 'not_found'


def test_startup_checks_fail_with_default_jwt_secret_in_production():
    settings = SimpleNamespace(is_production=True, is_default_jwt_secret=True)

    with pytest.raises(RuntimeError, match="Insecure JWT_SECRET"):
        _run_startup_checks(settings)


def test_startup_checks_pass_with_strong_secret(monkeypatch):
    monkeypatch.setattr("tatami.core.database.SessionLocal", _dummy_session_local)
    settings = SimpleNamespace(is_production=True, is_default_jwt_secret=False)

    _run_startup_checks(settings)


def test_settings_lists():
    settings = Settings(
        jwt_secret=DEFAULT_JWT_SECRET,
        ldap_domains="Corp.com , ,other.org",
        authorized_theme="a,, b ",
        allowed_origins="",
        environment="production",
    )
    assert settings.is_default_jwt_secret
    assert settings.ldap_domain_list == ["corp.com", "other.org"]
    assert settings.themes == ["a", "b"]
    assert settings.get_cors_origins() == []
