# apps/core/exceptions.py

"""
Taxonomia de erros do Fluxo Board

Todas as falhas de negócio sobem como subclasses de BoardError. As views
REST convertem para JSON com o status HTTP correspondente e o consumer
WebSocket converte para frames de erro.
"""


class BoardError(Exception):
    """Erro base - carrega status HTTP e mensagem para o usuário"""

    status_code = 500
    default_message = 'Erro interno do sistema'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        data = {'success': False, 'message': self.message}
        data.update(self.details)
        return data


class NotFound(BoardError):
    """Projeto, tarefa, comentário ou registro de tempo inexistente"""

    status_code = 404
    default_message = 'Recurso não encontrado'


class Forbidden(BoardError):
    """Autenticado, mas sem privilégio suficiente"""

    status_code = 403
    default_message = 'Você não tem permissão para esta ação'


class Conflict(BoardError):
    """Estado atual não permite a transição (ex: timer já rodando)"""

    status_code = 409
    default_message = 'Conflito com o estado atual'


class ValidationError(BoardError):
    """Entrada malformada ou regra de negócio violada"""

    status_code = 400
    default_message = 'Dados inválidos'


class AuthenticationError(BoardError):
    """Token ausente, inválido ou usuário inativo"""

    status_code = 401
    default_message = 'Autenticação necessária'
