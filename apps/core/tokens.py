# apps/core/tokens.py

"""
Tokens JWT de acesso

Algoritmo: HS256
Validade:  JWT_ACCESS_EXPIRES segundos (padrão 1 hora)

Payload:
{
    "sub": "<user_id>",
    "type": "access",
    "iat": <emitido_em>,
    "exp": <expira_em>,
    "jti": <id_unico>
}
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model

from .exceptions import AuthenticationError


DEFAULT_ACCESS_EXPIRES = 3600
ALGORITHM = 'HS256'


def _get_secret():
    return getattr(settings, 'JWT_SECRET_KEY', None) or settings.SECRET_KEY


def access_token_lifetime():
    return getattr(settings, 'JWT_ACCESS_EXPIRES', DEFAULT_ACCESS_EXPIRES)


def issue_access_token(user) -> str:
    """Gera um token de acesso para o usuário"""
    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user.pk),
        'type': 'access',
        'iat': now,
        'exp': now + timedelta(seconds=access_token_lifetime()),
        'jti': uuid.uuid4().hex,
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def decode_token(token: str, expected_type: str = 'access') -> dict:
    """
    Decodifica e verifica o token

    Raises:
        AuthenticationError: token ausente, expirado, malformado ou de outro tipo
    """
    if not token:
        raise AuthenticationError('Token de autenticação ausente')

    try:
        payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError('Token expirado')
    except jwt.InvalidTokenError:
        raise AuthenticationError('Token inválido')

    if payload.get('type') != expected_type:
        raise AuthenticationError('Tipo de token inválido')

    return payload


def verify_token(token: str):
    """
    Resolve o usuário dono do token

    Usuários inexistentes ou inativos são rejeitados.
    """
    payload = decode_token(token)
    User = get_user_model()

    try:
        user = User.objects.get(pk=payload.get('sub'))
    except (User.DoesNotExist, ValueError, TypeError):
        raise AuthenticationError('Usuário não encontrado')

    if not user.is_active:
        raise AuthenticationError('Usuário inativo')

    return user


def bearer_token(header_value) -> str:
    """Extrai o token de um header 'Authorization: Bearer <token>'"""
    if not header_value:
        return ''
    if isinstance(header_value, bytes):
        header_value = header_value.decode('latin-1')

    partes = header_value.split()
    if len(partes) == 2 and partes[0].lower() == 'bearer':
        return partes[1]
    return ''
