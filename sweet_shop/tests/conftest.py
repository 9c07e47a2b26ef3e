# -*- coding: utf-8 -*-
"""
Shared fixtures: in-memory application, HTTP client, seeded accounts.
"""
import pytest

from sweet_shop.app_container import AppContainer
from sweet_shop.config import Config
from sweet_shop.main import create_app
from sweet_shop.performance_logger import reset_function_stats
from sweet_shop.repositories import SweetRepository, UserRepository
from sweet_shop.seed import ensure_admin
from sweet_shop.services import AuthService, CatalogService, PasswordHasher, TokenSigner

ADMIN_EMAIL = 'admin@sweetshop.test'
ADMIN_PASSWORD = 'admin123'
USER_EMAIL = 'user@sweetshop.test'
USER_PASSWORD = 'user1234'

FAST_HASH = 'pbkdf2:sha256:1000'


def sweet_payload(**overrides):
    payload = {
        'name': 'Dark Chocolate Truffle',
        'description': 'Rich cocoa truffle',
        'category': 'chocolate',
        'price': 2.5,
        'quantity': 10,
    }
    payload.update(overrides)
    return payload


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


# ═══════════════════════════════════════════════════════════════════════════
# SERVICE-LEVEL FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_signer():
    return TokenSigner('unit-test-secret', expires_in=3600)


@pytest.fixture
def auth_service(token_signer):
    return AuthService(UserRepository(), PasswordHasher(FAST_HASH), token_signer)


@pytest.fixture
def catalog():
    return CatalogService(SweetRepository())


@pytest.fixture(autouse=True)
def _clean_function_stats():
    reset_function_stats()
    yield
    reset_function_stats()


# ═══════════════════════════════════════════════════════════════════════════
# APPLICATION FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def config():
    return Config.for_testing()


@pytest.fixture
def container(config):
    container = AppContainer(config)
    yield container
    container.close()


@pytest.fixture
def app(config, container):
    return create_app(config, container)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def admin_token(client, container):
    ensure_admin(container.auth_service, ADMIN_EMAIL, 'shopadmin', ADMIN_PASSWORD)
    r = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert r.status_code == 200
    return r.get_json()['data']['token']


@pytest.fixture
def user_token(client):
    r = client.post('/api/auth/register', json={
        'email': USER_EMAIL, 'username': 'customer', 'password': USER_PASSWORD
    })
    assert r.status_code == 201
    return r.get_json()['data']['token']


@pytest.fixture
def sweet_id(client, user_token):
    r = client.post('/api/sweets', json=sweet_payload(), headers=bearer(user_token))
    assert r.status_code == 201
    return r.get_json()['data']['id']
