# apps/core/activity.py

"""
Log de atividades do projeto

A gravação é best-effort: uma falha aqui é registrada no log e nunca
desfaz a mutação que já foi persistida.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from django.db import transaction

from .models import Activity

logger = logging.getLogger(__name__)


@dataclass
class ActivityDraft:
    """Entrada ainda não gravada - produzida pelos serviços de mutação"""

    action: str
    entity_type: str
    entity_id: int
    details: Dict = field(default_factory=dict)


def record_activity(project, user, draft: ActivityDraft) -> Optional[Activity]:
    """
    Grava a entrada no log

    Roda em um savepoint próprio para que um erro de banco não contamine
    a transação externa. Retorna None quando a gravação falha.
    """
    try:
        with transaction.atomic():
            return Activity.objects.create(
                project=project,
                user=user,
                action=draft.action,
                entity_type=draft.entity_type,
                entity_id=draft.entity_id,
                details=draft.details,
            )
    except Exception:
        logger.exception(
            f"⚠️ Falha ao registrar atividade {draft.action} "
            f"({draft.entity_type} {draft.entity_id}) no projeto {project.pk}"
        )
        return None


def field_changes(instance, novos_valores: Dict) -> Dict:
    """
    Diferença campo a campo no formato {campo: {'old': ..., 'new': ...}}

    Apenas campos cujo valor realmente muda entram no resultado.
    """
    changes = {}
    for campo, novo in novos_valores.items():
        antigo = getattr(instance, campo)
        if antigo != novo:
            changes[campo] = {'old': _plain(antigo), 'new': _plain(novo)}
    return changes


def _plain(valor):
    """Converte valores para algo serializável em JSON"""
    if hasattr(valor, 'isoformat'):
        return valor.isoformat()
    if hasattr(valor, 'pk'):
        return valor.pk
    return valor
