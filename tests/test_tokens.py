# tests/test_tokens.py

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from django.conf import settings

from apps.core.exceptions import AuthenticationError
from apps.core.tokens import ALGORITHM, bearer_token, decode_token, issue_access_token, verify_token

pytestmark = pytest.mark.django_db


def test_issued_token_resolves_to_user(owner):
    token = issue_access_token(owner)

    assert decode_token(token)['sub'] == str(owner.pk)
    assert verify_token(token) == owner


def test_expired_token_is_rejected(owner):
    antes = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {'sub': str(owner.pk), 'type': 'access', 'iat': antes, 'exp': antes + timedelta(minutes=5)},
        settings.JWT_SECRET_KEY,
        algorithm=ALGORITHM,
    )

    with pytest.raises(AuthenticationError, match='expirado'):
        verify_token(token)


def test_token_of_another_type_is_rejected(owner):
    token = jwt.encode({'sub': str(owner.pk), 'type': 'refresh'}, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)

    with pytest.raises(AuthenticationError):
        verify_token(token)


def test_inactive_user_is_rejected(owner):
    token = issue_access_token(owner)
    owner.is_active = False
    owner.save()

    with pytest.raises(AuthenticationError, match='inativo'):
        verify_token(token)


def test_missing_token_is_rejected():
    with pytest.raises(AuthenticationError):
        verify_token('')


@pytest.mark.parametrize('header, esperado', [
    ('Bearer abc', 'abc'),
    (b'bearer abc', 'abc'),
    ('Token abc', ''),
    ('', ''),
    (None, ''),
])
def test_bearer_token_parsing(header, esperado):
    assert bearer_token(header) == esperado
