# apps/core/views.py

import logging

from django.contrib.auth import authenticate
from django.core.cache import cache
from django.http import JsonResponse
from django.utils import timezone

from apps import __version__

from .api import api_view, json_body, ok
from .exceptions import AuthenticationError
from .forms import TokenForm, validate_payload
from .models import User
from .serializers import serialize_user
from .tokens import access_token_lifetime, issue_access_token

logger = logging.getLogger(__name__)


@api_view('POST', auth=False)
def obtain_token(request):
    """
    Troca usuário e senha por um token de acesso
    """
    dados = validate_payload(TokenForm, json_body(request))
    user = authenticate(request, username=dados['username'], password=dados['password'])

    if user is None or not user.is_active:
        logger.warning(f"⚠️ Tentativa de login falhada para: {dados['username']}")
        raise AuthenticationError('Credenciais inválidas')

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return ok(
        token=issue_access_token(user),
        tokenType='Bearer',
        expiresIn=access_token_lifetime(),
        user=serialize_user(user),
    )


@api_view('GET')
def current_user(request):
    return ok(user=serialize_user(request.user))


def health_check(request):
    """
    Health check para monitoramento
    """
    try:
        # Verificar conexão com banco
        User.objects.count()

        # Verificar cache (Redis em produção)
        cache.set('health_check', 'ok', 60)
        cache.get('health_check')

        status = {
            'status': 'healthy',
            'database': 'ok',
            'cache': 'ok',
            'timestamp': timezone.now().isoformat(),
            'version': __version__
        }

        return JsonResponse(status)

    except Exception as e:
        logger.exception("❌ Health check falhou")
        status = {
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat(),
            'version': __version__
        }

        return JsonResponse(status, status=500)
