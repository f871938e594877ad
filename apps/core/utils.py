# apps/core/utils.py

from datetime import timedelta
from typing import Dict, Iterable, List


def format_duration(horas: float) -> str:
    """
    Formata duração em horas para formato legível
    Ex: 2.5 -> "2h 30min"
    """
    if not horas:
        return "0min"

    horas_int = int(horas)
    minutos = int(round((horas - horas_int) * 60))
    if minutos == 60:
        horas_int, minutos = horas_int + 1, 0

    if horas_int == 0:
        return f"{minutos}min"
    elif minutos == 0:
        return f"{horas_int}h"
    else:
        return f"{horas_int}h {minutos}min"


def done_stage_id(project) -> str:
    """Estágio considerado 'concluído': 'done' se existir, senão o último"""
    stages = project.stage_ids()
    if 'done' in stages or not stages:
        return 'done'
    return stages[-1]


def sprint_burndown(sprint) -> Dict:
    """
    Gera dados do gráfico burndown da sprint

    Trabalho restante = horas estimadas das tarefas ainda não concluídas
    até o fim de cada dia da sprint.
    """
    tasks = list(sprint.tasks.all())
    concluido = done_stage_id(sprint.project)
    total_estimado = sum(task.estimated_hours for task in tasks)

    inicio = sprint.start_date
    fim = sprint.end_date
    periodo = (fim - inicio).total_seconds() or 1

    dias = []
    dia_atual = inicio
    while dia_atual <= fim:
        fim_do_dia = dia_atual.replace(hour=23, minute=59, second=59, microsecond=999999)

        horas_concluidas = sum(
            task.estimated_hours for task in tasks
            if task.status == concluido and task.updated_at <= fim_do_dia
        )

        decorrido = (dia_atual - inicio).total_seconds() / periodo
        dias.append({
            'date': dia_atual.isoformat(),
            'remainingWork': max(0, total_estimado - horas_concluidas),
            'completedWork': horas_concluidas,
            'idealRemaining': total_estimado * (1 - decorrido),
        })

        dia_atual = dia_atual + timedelta(days=1)

    return {
        'totalEstimatedHours': total_estimado,
        'days': dias,
        'sprint': {
            'name': sprint.name,
            'startDate': sprint.start_date.isoformat(),
            'endDate': sprint.end_date.isoformat(),
        }
    }


def summarize_time_logs(time_logs: Iterable) -> Dict:
    """
    Soma horas de uma lista de registros e agrupa por usuário
    """
    total = 0.0
    por_usuario: Dict[int, Dict] = {}

    for log in time_logs:
        total += log.duration
        grupo = por_usuario.setdefault(log.user_id, {
            'user': log.user.public_identity(),
            'duration': 0.0,
            'logs': 0,
        })
        grupo['duration'] += log.duration
        grupo['logs'] += 1

    by_user: List[Dict] = sorted(por_usuario.values(), key=lambda g: g['duration'], reverse=True)

    return {
        'totalDuration': total,
        'totalHours': f"{total:.2f}",
        'byUser': by_user,
    }
