# apps/board/pipeline.py

"""
Pipeline de mutações

Toda ação que altera estado passa pelas mesmas etapas, nesta ordem:

    validar -> autorizar -> aplicar (atômico) -> registrar atividade -> anunciar

Falhas em validar, autorizar ou aplicar interrompem antes do log e do
anúncio. As duas últimas etapas são best-effort: uma falha nelas é
registrada no log e nunca desfaz a mutação já persistida.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from asgiref.sync import async_to_sync
from django.db import transaction

from apps.core.activity import ActivityDraft, record_activity
from apps.core.permissions import Access, Action, PermissionGate, gate as default_gate

from .broadcast import RealtimeHub, hub as default_hub
from .events import BoardEvent

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    """O que a etapa de aplicação produziu"""

    entity: Any
    event: Optional[BoardEvent] = None
    payload: Dict = field(default_factory=dict)
    activity: Optional[ActivityDraft] = None
    access: Optional[Access] = None


class MutationPipeline:

    def __init__(self, gate: PermissionGate = None, hub: RealtimeHub = None):
        self.gate = gate or default_gate
        self.hub = hub or default_hub

    def execute(self, actor, project_id, action: Action,
                apply: Callable[[Access], Outcome],
                validate: Optional[Callable[[], None]] = None) -> Outcome:
        """
        Executa a mutação

        Args:
            actor: Usuário que está agindo
            project_id: Projeto ao qual a ação se refere
            action: Ação consultada na tabela de papéis mínimos
            apply: Recebe o Access e aplica a mudança, devolvendo o Outcome
            validate: Validação opcional executada antes de tudo

        Raises:
            BoardError: falha de validação, autorização ou aplicação
        """
        if validate is not None:
            validate()

        with transaction.atomic():
            access = self.gate.authorize_action(actor.pk, project_id, action)
            outcome = apply(access)

        outcome.access = access
        project = access.project

        if outcome.activity is not None:
            record_activity(project, actor, outcome.activity)

        if outcome.event is not None:
            self.broadcast(project.pk, outcome.event, outcome.payload)

        return outcome

    def broadcast(self, project_id, event, payload):
        """Anuncia para a sala do projeto sem propagar falhas"""
        try:
            result = async_to_sync(self.hub.announce)(project_id, event, payload)
        except Exception:
            logger.exception(f"📡 Falha ao anunciar {event} no projeto {project_id}")
            return None

        if result.failed:
            logger.warning(
                f"📡 {event} entregue para {result.delivered}/{result.recipients} "
                f"conexões em {result.room}"
            )
        return result
