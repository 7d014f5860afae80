import base64

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.site_gate import BasicAuthGate
from app.services.auth_service import basic_auth_allows, parse_basic_credentials
from support import SITE_PASSWORD


def _basic(user: str, password: str) -> str:
    return 'Basic ' + base64.b64encode(f'{user}:{password}'.encode()).decode()


def test_correct_password_sets_session_cookie(client):
    response = client.post('/api/auth', json={'password': SITE_PASSWORD})
    assert response.status_code == 200
    assert response.json() == {'ok': True}
    cookie = response.headers['set-cookie']
    assert cookie.startswith('kt_auth=yes')
    assert 'HttpOnly' in cookie
    assert 'Max-Age=86400' in cookie
    assert client.get('/api/session').json() == {'ok': True}


def test_wrong_password_is_unauthorized(client):
    response = client.post('/api/auth', json={'password': 'guess'})
    assert response.status_code == 401
    assert response.json() == {'error': 'Incorrect password'}
    assert 'set-cookie' not in response.headers
    assert client.get('/api/session').json() == {'ok': False}


def test_missing_password_is_unauthorized(client):
    assert client.post('/api/auth', json={}).status_code == 401


def test_unset_password_fails_closed(client, make_container, use_container):
    use_container(make_container(site_password=None))
    response = client.post('/api/auth', json={'password': 'anything'})
    assert response.status_code == 500
    assert response.json() == {'error': 'Server password not set'}


def test_session_ignores_other_cookie_values(client):
    client.cookies.set('kt_auth', 'no')
    assert client.get('/api/session').json() == {'ok': False}


def test_parse_basic_credentials():
    assert parse_basic_credentials(_basic('ops', 'p:w')) == ('ops', 'p:w')
    assert parse_basic_credentials('Bearer abc') is None
    assert parse_basic_credentials('Basic !!!') is None
    assert parse_basic_credentials(None) is None


def test_basic_auth_allows_exact_match_only():
    assert basic_auth_allows(_basic('ops', 'secret'), 'ops', 'secret')
    assert not basic_auth_allows(_basic('ops', 'wrong'), 'ops', 'secret')
    assert not basic_auth_allows(_basic('other', 'secret'), 'ops', 'secret')


def _gated_app(user, password) -> TestClient:
    gated = FastAPI()
    gated.add_middleware(BasicAuthGate, user=user, password=password, realm='Reports')

    @gated.get('/ping')
    def ping() -> dict:
        return {'ok': True}

    return TestClient(gated)


def test_basic_gate_challenges_without_credentials():
    client = _gated_app('ops', 'secret')
    response = client.get('/ping')
    assert response.status_code == 401
    assert response.headers['www-authenticate'] == 'Basic realm="Reports"'
    assert client.get('/ping', headers={'Authorization': _basic('ops', 'secret')}).status_code == 200


def test_basic_gate_lets_preflight_through():
    client = _gated_app('ops', 'secret')
    assert client.options('/ping').status_code != 401


def test_basic_gate_is_off_without_both_credentials():
    assert _gated_app('ops', None).get('/ping').status_code == 200
    assert _gated_app(None, None).get('/ping').status_code == 200
