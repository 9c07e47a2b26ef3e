# -*- coding: utf-8 -*-
"""
AccessControl gates: no identity -> 401, wrong role -> 403.
"""
import pytest

from sweet_shop.access_control import AccessControl
from sweet_shop.errors import AuthenticationError, AuthorizationError
from sweet_shop.models import Identity, UserRole


@pytest.fixture
def access(auth_service):
    return AccessControl(auth_service)


@pytest.mark.parametrize('header, expected', [
    ('Bearer abc.def', 'abc.def'),
    ('Bearer   spaced  ', 'spaced'),
    ('Bearer ', None),
    ('bearer abc', None),
    ('Basic abc', None),
    ('', None),
    (None, None),
])
def test_extract_bearer_token(header, expected):
    assert AccessControl.extract_bearer_token(header) == expected


def test_authenticate_without_header(access):
    with pytest.raises(AuthenticationError) as exc:
        access.authenticate(None)
    assert exc.value.message == 'No authentication token provided'


def test_authenticate_with_bad_token(access):
    with pytest.raises(AuthenticationError) as exc:
        access.authenticate('Bearer not-a-real-token')
    assert exc.value.message == 'Invalid or expired token'


def test_authenticate_with_valid_token(access, auth_service):
    result = auth_service.register('a@x.com', 'alice', 'secret1')
    identity = access.authenticate(f'Bearer {result.token}')
    assert identity.user_id == result.user['id']
    assert identity.email == 'a@x.com'


def test_authorize_states():
    admin = Identity(user_id='1', email='a@x.com', username='a', role=UserRole.ADMIN)
    user = Identity(user_id='2', email='b@x.com', username='b', role=UserRole.USER)

    assert AccessControl.authorize(admin) is admin

    with pytest.raises(AuthorizationError) as forbidden:
        AccessControl.authorize(user)
    assert forbidden.value.status_code == 403

    with pytest.raises(AuthenticationError) as anonymous:
        AccessControl.authorize(None)
    assert anonymous.value.status_code == 401

    assert AccessControl.authorize(user, UserRole.USER) is user
