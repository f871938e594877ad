# apps/core/time_tracking.py

"""
Máquina de estados do controle de tempo

    Parado --start--> Rodando --stop--> Parado

Cada usuário tem no máximo um registro rodando, em qualquer tarefa de
qualquer projeto. A checagem abaixo rejeita cedo; a constraint parcial
`unique_running_timelog_per_user` fecha a janela de corrida entre duas
requisições simultâneas.
"""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import Conflict, Forbidden, NotFound, ValidationError
from .models import TimeLog

logger = logging.getLogger(__name__)


def current_timer(user):
    """Registro rodando do usuário, ou None"""
    return (
        TimeLog.objects
        .select_related('task', 'user')
        .filter(user=user, is_running=True)
        .first()
    )


def start_timer(user, task, description='', now=None) -> TimeLog:
    """
    Inicia um timer na tarefa

    Raises:
        Conflict: o usuário já tem um timer rodando (nada é alterado)
    """
    if TimeLog.objects.filter(user=user, is_running=True).exists():
        raise Conflict('Você já possui um timer em andamento')

    try:
        with transaction.atomic():
            log = TimeLog.objects.create(
                task=task,
                user=user,
                start_time=now or timezone.now(),
                description=description or '',
                is_running=True,
            )
    except IntegrityError:
        logger.warning(f"⏱️ Corrida ao iniciar timer do usuário {user.pk} - rejeitado pela constraint")
        raise Conflict('Você já possui um timer em andamento')

    return log


def get_time_log(log_id) -> TimeLog:
    try:
        return TimeLog.objects.select_related('task', 'user').get(pk=log_id)
    except (TimeLog.DoesNotExist, ValueError, TypeError):
        raise NotFound('Registro de tempo não encontrado')


def stop_timer(user, log_id, now=None) -> TimeLog:
    """
    Para um timer

    Raises:
        NotFound: registro inexistente
        Forbidden: registro de outro usuário
        Conflict: registro já parado
    """
    log = get_time_log(log_id)

    if log.user_id != user.pk:
        raise Forbidden('Você só pode parar seus próprios timers')

    return close_time_log(log, now)


def close_time_log(log, now=None) -> TimeLog:
    """Fecha o registro calculando a duração a partir de início e fim"""
    if not log.is_running:
        raise Conflict('Este timer já foi parado')

    end_time = now or timezone.now()
    if end_time < log.start_time:
        end_time = log.start_time

    log.end_time = end_time
    log.is_running = False
    log.duration = log.compute_duration()
    log.save(update_fields=['end_time', 'is_running', 'duration', 'updated_at'])
    return log


def log_manual_time(user, task, start_time, end_time, description='') -> TimeLog:
    """
    Registro manual - já nasce parado

    Raises:
        ValidationError: fim não é posterior ao início
    """
    if end_time <= start_time:
        raise ValidationError('O fim deve ser posterior ao início')

    log = TimeLog(
        task=task,
        user=user,
        start_time=start_time,
        end_time=end_time,
        description=description or '',
        is_running=False,
    )
    log.duration = log.compute_duration()
    log.save()
    return log


def stop_running_in_project(user, project, now=None):
    """
    Para os timers rodando nas tarefas do projeto

    Com user=None para os timers de todos os usuários. Usado quando o
    usuário é removido ou o projeto é excluído: em ambos os casos o
    dono do timer não conseguiria mais pará-lo.
    """
    parados = []
    running = TimeLog.objects.select_related('task', 'user').filter(
        is_running=True, task__project=project
    )
    if user is not None:
        running = running.filter(user=user)
    for log in running:
        parados.append(close_time_log(log, now))
    return parados
