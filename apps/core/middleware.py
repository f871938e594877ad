# apps/core/middleware.py

import logging

from django.contrib.auth.models import AnonymousUser

from .exceptions import AuthenticationError
from .tokens import bearer_token, verify_token

logger = logging.getLogger(__name__)


class JWTAuthenticationMiddleware:
    """
    Autentica requisições da API pelo header Authorization: Bearer

    Requisições sem token seguem como anônimas; as views decidem se
    exigem autenticação. Token presente porém inválido também vira
    anônimo, com o motivo guardado em request.auth_error.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = bearer_token(request.META.get('HTTP_AUTHORIZATION'))

        if token:
            try:
                request.user = verify_token(token)
            except AuthenticationError as e:
                logger.warning(f"🔒 Token rejeitado em {request.path}: {e.message}")
                request.user = AnonymousUser()
                request.auth_error = e.message

        return self.get_response(request)
