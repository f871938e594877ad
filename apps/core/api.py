# apps/core/api.py

"""
Utilitários das views JSON

O decorador api_view concentra o tratamento de erros: qualquer
BoardError vira {'success': False, 'message': ...} com o status HTTP
da classe do erro.
"""

import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .exceptions import AuthenticationError, BoardError, ValidationError

logger = logging.getLogger(__name__)


def api_view(*methods, auth=True):
    """
    Decorador para views da API

    Args:
        methods: Métodos HTTP aceitos
        auth: Se a view exige usuário autenticado (token Bearer)
    """

    def decorator(view_func):
        @csrf_exempt
        @wraps(view_func)
        def wrapped_view(request, *args, **kwargs):
            if methods and request.method not in methods:
                response = JsonResponse(
                    {'success': False, 'message': 'Método não permitido'}, status=405
                )
                response['Allow'] = ', '.join(methods)
                return response

            try:
                if auth and not request.user.is_authenticated:
                    raise AuthenticationError(getattr(request, 'auth_error', None))
                return view_func(request, *args, **kwargs)
            except BoardError as e:
                if e.status_code >= 500:
                    logger.exception(f"❌ Erro em {request.method} {request.path}")
                return JsonResponse(e.as_dict(), status=e.status_code)

        return wrapped_view

    return decorator


def json_body(request):
    """Corpo da requisição como dict - JSON malformado vira ValidationError"""
    if not request.body:
        return {}
    try:
        return json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('JSON inválido')


def ok(status=200, **data):
    return JsonResponse({'success': True, **data}, status=status)
