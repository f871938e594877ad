# apps/board/middleware.py

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from apps.core.exceptions import AuthenticationError
from apps.core.tokens import bearer_token, verify_token

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_for_token(token):
    return verify_token(token)


def token_from_scope(scope):
    """Token da query string (?token=) ou do header Authorization"""
    query = parse_qs(scope.get('query_string', b'').decode('latin-1'))
    tokens = query.get('token')
    if tokens and tokens[0]:
        return tokens[0]

    for nome, valor in scope.get('headers', []):
        if nome == b'authorization':
            return bearer_token(valor)
    return ''


class TokenAuthMiddleware(BaseMiddleware):
    """
    Autentica o handshake WebSocket com o token JWT

    Sem token válido o escopo segue com AnonymousUser e o motivo em
    scope['auth_error']; o consumer encerra a conexão sem registrá-la.
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)

        try:
            scope['user'] = await get_user_for_token(token_from_scope(scope))
        except AuthenticationError as e:
            logger.warning(f"🔒 Handshake WebSocket rejeitado: {e.message}")
            scope['user'] = AnonymousUser()
            scope['auth_error'] = e.message

        return await super().__call__(scope, receive, send)
