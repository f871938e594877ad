# apps/core/permissions.py

"""
Gate de permissões do Fluxo Board

Resolve o papel efetivo de um usuário em um projeto e autoriza ações
contra um papel mínimo. A decisão é sempre recalculada a cada chamada:
papéis podem mudar entre requisições, então nada é cacheado.
"""

from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Mapping, Optional

from .exceptions import Forbidden, NotFound
from .models import Project, Role


OWNER_ONLY = 'owner'


class Action(str, Enum):
    """Ações que alteram estado - cada uma tem um papel mínimo na tabela abaixo"""

    UPDATE_PROJECT = 'update_project'
    DELETE_PROJECT = 'delete_project'
    ADD_MEMBER = 'add_member'
    REMOVE_MEMBER = 'remove_member'
    UPDATE_WORKFLOW = 'update_workflow'
    CREATE_TASK = 'create_task'
    UPDATE_TASK = 'update_task'
    MOVE_TASK = 'move_task'
    DELETE_TASK = 'delete_task'
    ADD_COMMENT = 'add_comment'
    UPDATE_COMMENT = 'update_comment'
    DELETE_COMMENT = 'delete_comment'
    CREATE_SPRINT = 'create_sprint'
    UPDATE_SPRINT = 'update_sprint'
    DELETE_SPRINT = 'delete_sprint'
    START_TIMER = 'start_timer'
    STOP_TIMER = 'stop_timer'
    LOG_TIME = 'log_time'
    DELETE_TIME_LOG = 'delete_time_log'
    ADD_ATTACHMENT = 'add_attachment'
    REMOVE_ATTACHMENT = 'remove_attachment'


# None = basta ser membro do projeto
ACTION_MIN_ROLE = {
    Action.UPDATE_PROJECT: Role.PROJECT_MANAGER,
    Action.DELETE_PROJECT: OWNER_ONLY,
    Action.ADD_MEMBER: Role.PROJECT_MANAGER,
    Action.REMOVE_MEMBER: Role.PROJECT_MANAGER,
    Action.UPDATE_WORKFLOW: Role.PROJECT_MANAGER,
    Action.CREATE_TASK: None,
    Action.UPDATE_TASK: None,
    Action.MOVE_TASK: None,
    Action.DELETE_TASK: None,
    Action.ADD_COMMENT: None,
    Action.UPDATE_COMMENT: None,
    Action.DELETE_COMMENT: None,
    Action.CREATE_SPRINT: Role.PROJECT_MANAGER,
    Action.UPDATE_SPRINT: Role.PROJECT_MANAGER,
    Action.DELETE_SPRINT: Role.PROJECT_MANAGER,
    Action.START_TIMER: None,
    Action.STOP_TIMER: None,
    Action.LOG_TIME: None,
    Action.DELETE_TIME_LOG: None,
    Action.ADD_ATTACHMENT: None,
    Action.REMOVE_ATTACHMENT: None,
}


@dataclass(frozen=True)
class Access:
    """Resultado de uma autorização bem-sucedida"""

    project: Project
    user_id: int
    role: str
    is_owner: bool


def resolve_access(project, user_id, required_role=None, members: Optional[Mapping] = None) -> Access:
    """
    Decide o acesso de um usuário a partir de um snapshot do projeto

    Args:
        project: Projeto já carregado
        user_id: Usuário que está agindo
        required_role: Papel mínimo exigido (None = apenas ser membro)
        members: Mapa user_id -> papel; carregado do banco se omitido

    Raises:
        Forbidden: usuário não é membro ou tem papel insuficiente
    """
    if project.owner_id == user_id:
        return Access(project=project, user_id=user_id, role=Role.ADMIN.value, is_owner=True)

    if members is None:
        members = dict(project.members.values_list('user_id', 'role'))

    role = members.get(user_id)
    if role is None:
        raise Forbidden('Você não tem acesso a este projeto')

    if required_role is not None and Role.rank(role) < Role.rank(required_role):
        raise Forbidden(f'Esta ação requer o papel {Role(required_role).label} ou superior')

    return Access(project=project, user_id=user_id, role=str(role), is_owner=False)


class PermissionGate:
    """
    Ponto único de autorização usado pelo pipeline de mutações,
    pelas views de leitura e pelo consumer WebSocket
    """

    def load_project(self, project_id) -> Project:
        try:
            return Project.objects.get(pk=project_id, is_active=True)
        except (Project.DoesNotExist, ValueError, TypeError):
            raise NotFound('Projeto não encontrado')

    def authorize(self, user_id, project_id, required_role=None) -> Access:
        """Carrega o projeto e autoriza contra o papel mínimo"""
        project = self.load_project(project_id)
        return resolve_access(project, user_id, required_role)

    def authorize_action(self, user_id, project_id, action: Action) -> Access:
        """Autoriza usando a tabela declarativa ação -> papel mínimo"""
        required = ACTION_MIN_ROLE[action]

        if required == OWNER_ONLY:
            access = self.authorize(user_id, project_id)
            if not access.is_owner:
                raise Forbidden('Apenas o dono do projeto pode realizar esta ação')
            return access

        return self.authorize(user_id, project_id, required)


# Instância global do gate
gate = PermissionGate()


# Decoradores para views

def project_access_required(required_role=None):
    """
    Decorador que verifica acesso ao projeto
    Espera que a view receba project_id como parâmetro
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapped_view(request, project_id, *args, **kwargs):
            access = gate.authorize(request.user.pk, project_id, required_role)

            # Adiciona o projeto ao request para uso na view
            request.project = access.project
            request.access = access
            return view_func(request, project_id, *args, **kwargs)

        return wrapped_view

    return decorator
