# -*- coding: utf-8 -*-
"""
HTTP surface: status codes, envelopes, role gates.
"""
import pytest

from sweet_shop.seed import SAMPLE_SWEETS
from sweet_shop.tests.conftest import USER_EMAIL, USER_PASSWORD, bearer, sweet_payload


# ═══════════════════════════════════════════════════════════════════════════
# GENERAL
# ═══════════════════════════════════════════════════════════════════════════

def test_health(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    body = r.get_json()
    assert body['success'] is True
    assert 'timestamp' in body


def test_unknown_endpoint(client):
    r = client.get('/api/nothing-here')
    assert r.status_code == 404
    assert r.get_json() == {'success': False, 'message': 'Endpoint not found'}


def test_security_headers(client):
    r = client.get('/api/health')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'
    assert 'Referrer-Policy' in r.headers


def test_cors_allows_frontend(client, config):
    r = client.get('/api/health', headers={'Origin': config.frontend_url})
    assert r.headers.get('Access-Control-Allow-Origin') == config.frontend_url


# ═══════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════

def test_register_then_duplicate(client):
    payload = {'email': 'a@x.com', 'username': 'alice', 'password': 'secret1'}
    r = client.post('/api/auth/register', json=payload)
    assert r.status_code == 201
    data = r.get_json()['data']
    assert data['token']
    assert data['user']['email'] == 'a@x.com'
    assert 'password_hash' not in data['user']

    r = client.post('/api/auth/register', json=payload)
    assert r.status_code == 409
    assert r.get_json()['success'] is False


def test_register_validation_lists_every_field(client):
    r = client.post('/api/auth/register', json={'email': 'nope', 'username': 'ab', 'password': '123'})
    assert r.status_code == 400
    fields = {e['field'] for e in r.get_json()['errors']}
    assert fields == {'email', 'username', 'password'}


def test_register_without_json_body(client):
    r = client.post('/api/auth/register', data='not json')
    assert r.status_code == 400


def test_login(client, user_token):
    r = client.post('/api/auth/login', json={'email': USER_EMAIL, 'password': USER_PASSWORD})
    assert r.status_code == 200
    assert r.get_json()['data']['token']


def test_login_failures_look_alike(client, user_token):
    wrong = client.post('/api/auth/login', json={'email': USER_EMAIL, 'password': 'bad-password'})
    unknown = client.post('/api/auth/login', json={'email': 'ghost@x.com', 'password': USER_PASSWORD})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json()


def test_me(client, user_token):
    r = client.get('/api/auth/me', headers=bearer(user_token))
    assert r.status_code == 200
    assert r.get_json()['data']['email'] == USER_EMAIL


def test_me_requires_token(client):
    r = client.get('/api/auth/me')
    assert r.status_code == 401
    assert r.get_json()['message'] == 'No authentication token provided'

    r = client.get('/api/auth/me', headers=bearer('forged'))
    assert r.status_code == 401
    assert r.get_json()['message'] == 'Invalid or expired token'


def test_change_password(client, user_token):
    r = client.put('/api/auth/password', headers=bearer(user_token),
                   json={'currentPassword': 'wrong-one', 'newPassword': 'brand-new'})
    assert r.status_code == 401

    r = client.put('/api/auth/password', headers=bearer(user_token),
                   json={'currentPassword': USER_PASSWORD, 'newPassword': 'brand-new'})
    assert r.status_code == 200

    r = client.post('/api/auth/login', json={'email': USER_EMAIL, 'password': 'brand-new'})
    assert r.status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# CATALOG
# ═══════════════════════════════════════════════════════════════════════════

def test_catalog_requires_authentication(client):
    assert client.get('/api/sweets').status_code == 401
    assert client.post('/api/sweets', json=sweet_payload()).status_code == 401


def test_create_and_get_sweet(client, user_token):
    r = client.post('/api/sweets', json=sweet_payload(imageUrl='https://img.test/t.png'),
                    headers=bearer(user_token))
    assert r.status_code == 201
    created = r.get_json()['data']
    assert created['price'] == 2.5
    assert created['imageUrl'] == 'https://img.test/t.png'
    assert created['inStock'] is True

    r = client.get(f"/api/sweets/{created['id']}", headers=bearer(user_token))
    assert r.status_code == 200
    assert r.get_json()['data']['name'] == 'Dark Chocolate Truffle'


def test_create_sweet_validation(client, user_token):
    r = client.post('/api/sweets', headers=bearer(user_token), json={
        'name': '', 'category': 'vegetable', 'price': 0, 'quantity': -1, 'imageUrl': 'ftp://x'
    })
    assert r.status_code == 400
    fields = {e['field'] for e in r.get_json()['errors']}
    assert fields == {'name', 'category', 'price', 'quantity', 'imageUrl'}


def test_list_newest_first(client, user_token):
    for name in ('One', 'Two', 'Three'):
        client.post('/api/sweets', json=sweet_payload(name=name), headers=bearer(user_token))
    r = client.get('/api/sweets', headers=bearer(user_token))
    assert [s['name'] for s in r.get_json()['data']] == ['Three', 'Two', 'One']


def test_get_unknown_sweet(client, user_token):
    r = client.get('/api/sweets/missing', headers=bearer(user_token))
    assert r.status_code == 404
    assert r.get_json()['message'] == 'Sweet not found'


def test_update_sweet(client, user_token, sweet_id):
    r = client.put(f'/api/sweets/{sweet_id}', json={'price': 3.75}, headers=bearer(user_token))
    assert r.status_code == 200
    data = r.get_json()['data']
    assert data['price'] == 3.75
    assert data['quantity'] == 10

    r = client.put('/api/sweets/missing', json={'price': 3.75}, headers=bearer(user_token))
    assert r.status_code == 404


def test_search(client, user_token):
    for payload in (
        sweet_payload(name='Gummy Bears', category='candy', price=3),
        sweet_payload(name='Mint Candy', category='candy', price=1),
        sweet_payload(name='Truffle', category='chocolate', price=4.5),
    ):
        client.post('/api/sweets', json=payload, headers=bearer(user_token))

    def names(query):
        r = client.get(f'/api/sweets/search?{query}', headers=bearer(user_token))
        assert r.status_code == 200
        return [s['name'] for s in r.get_json()['data']]

    assert names('category=candy') == ['Gummy Bears', 'Mint Candy']
    assert names('minPrice=2&maxPrice=5') == ['Gummy Bears', 'Truffle']
    assert names('category=candy&minPrice=2&maxPrice=5') == ['Gummy Bears']
    assert names('name=TRUF') == ['Truffle']
    assert names('minPrice=5&maxPrice=2') == []


def test_search_validation(client, user_token):
    r = client.get('/api/sweets/search?minPrice=-1&category=nope', headers=bearer(user_token))
    assert r.status_code == 400
    fields = {e['field'] for e in r.get_json()['errors']}
    assert fields == {'minPrice', 'category'}


# ═══════════════════════════════════════════════════════════════════════════
# ADMIN GATES
# ═══════════════════════════════════════════════════════════════════════════

def test_delete_requires_admin(client, user_token, admin_token, sweet_id):
    r = client.delete(f'/api/sweets/{sweet_id}')
    assert r.status_code == 401

    r = client.delete(f'/api/sweets/{sweet_id}', headers=bearer(user_token))
    assert r.status_code == 403
    assert r.get_json()['message'] == 'Admin access required'
    assert client.get(f'/api/sweets/{sweet_id}', headers=bearer(user_token)).status_code == 200

    r = client.delete(f'/api/sweets/{sweet_id}', headers=bearer(admin_token))
    assert r.status_code == 204
    assert client.get(f'/api/sweets/{sweet_id}', headers=bearer(user_token)).status_code == 404

    r = client.delete(f'/api/sweets/{sweet_id}', headers=bearer(admin_token))
    assert r.status_code == 404


def test_restock_requires_admin(client, user_token, admin_token, sweet_id):
    r = client.post(f'/api/sweets/{sweet_id}/restock', json={'quantity': 5})
    assert r.status_code == 401

    r = client.post(f'/api/sweets/{sweet_id}/restock', json={'quantity': 5}, headers=bearer(user_token))
    assert r.status_code == 403
    r = client.get(f'/api/sweets/{sweet_id}', headers=bearer(user_token))
    assert r.get_json()['data']['quantity'] == 10


def test_reseed_requires_admin(client, user_token, admin_token):
    r = client.post('/api/sweets/reseed', headers=bearer(user_token))
    assert r.status_code == 403

    r = client.post('/api/sweets/reseed', headers=bearer(admin_token))
    assert r.status_code == 200
    assert len(r.get_json()['data']) == len(SAMPLE_SWEETS)


# ═══════════════════════════════════════════════════════════════════════════
# INVENTORY
# ═══════════════════════════════════════════════════════════════════════════

def test_inventory_scenario(client, user_token, admin_token, sweet_id):
    def quantity():
        r = client.get(f'/api/sweets/{sweet_id}', headers=bearer(user_token))
        return r.get_json()['data']['quantity']

    r = client.post(f'/api/sweets/{sweet_id}/purchase', json={'quantity': 2}, headers=bearer(user_token))
    assert r.status_code == 200
    assert r.get_json()['data']['quantity'] == 8

    r = client.post(f'/api/sweets/{sweet_id}/purchase', json={'quantity': 100}, headers=bearer(user_token))
    assert r.status_code == 400
    assert r.get_json()['message'] == 'Insufficient stock'
    assert quantity() == 8

    r = client.post(f'/api/sweets/{sweet_id}/restock', json={'quantity': 50}, headers=bearer(admin_token))
    assert r.status_code == 200
    assert r.get_json()['data']['quantity'] == 58

    r = client.post(f'/api/sweets/{sweet_id}/restock', json={'quantity': -10}, headers=bearer(admin_token))
    assert r.status_code == 400
    assert quantity() == 58


def test_purchase_defaults_to_one(client, user_token, sweet_id):
    r = client.post(f'/api/sweets/{sweet_id}/purchase', headers=bearer(user_token))
    assert r.status_code == 200
    assert r.get_json()['data']['quantity'] == 9
    assert r.get_json()['message'] == 'Successfully purchased 1 Dark Chocolate Truffle'


@pytest.mark.parametrize('amount', [0, -3, 'many', 1.5])
def test_purchase_invalid_amount(client, user_token, sweet_id, amount):
    r = client.post(f'/api/sweets/{sweet_id}/purchase', json={'quantity': amount}, headers=bearer(user_token))
    assert r.status_code == 400


def test_malformed_purchase_body_leaves_stock(client, user_token, sweet_id):
    r = client.post(f'/api/sweets/{sweet_id}/purchase', data='{"quantity": 5',
                    content_type='application/json', headers=bearer(user_token))
    assert r.status_code == 400
    assert r.get_json()['errors'][0]['field'] == 'body'

    r = client.get(f'/api/sweets/{sweet_id}', headers=bearer(user_token))
    assert r.get_json()['data']['quantity'] == 10


def test_malformed_bodies_rejected(client, user_token, admin_token, sweet_id):
    broken = {'data': '{"name": ', 'content_type': 'application/json'}
    assert client.post('/api/sweets', headers=bearer(user_token), **broken).status_code == 400
    assert client.put(f'/api/sweets/{sweet_id}', headers=bearer(user_token), **broken).status_code == 400
    assert client.post(f'/api/sweets/{sweet_id}/restock',
                       headers=bearer(admin_token), **broken).status_code == 400
    assert client.post('/api/auth/login', **broken).status_code == 400


def test_quantity_limit_enforced(client, user_token, sweet_id):
    r = client.post('/api/sweets', json=sweet_payload(quantity=10 ** 19), headers=bearer(user_token))
    assert r.status_code == 400
    assert r.get_json()['errors'][0]['field'] == 'quantity'

    r = client.put(f'/api/sweets/{sweet_id}', json={'quantity': 10 ** 19}, headers=bearer(user_token))
    assert r.status_code == 400


def test_purchase_unknown_sweet(client, user_token):
    r = client.post('/api/sweets/missing/purchase', json={'quantity': 1}, headers=bearer(user_token))
    assert r.status_code == 404


def test_restock_zero_rejected(client, admin_token, sweet_id):
    r = client.post(f'/api/sweets/{sweet_id}/restock', json={'quantity': 0}, headers=bearer(admin_token))
    assert r.status_code == 400


def test_restock_unknown_sweet(client, admin_token):
    r = client.post('/api/sweets/missing/restock', json={'quantity': 1}, headers=bearer(admin_token))
    assert r.status_code == 404
