# apps/board/views.py

"""
API REST do board

Leituras autorizam pelo gate (basta ser membro). Escritas delegam ao
board_service, que passa pelo pipeline de mutações e anuncia o evento
para a sala do projeto.
"""

from django.db.models import Q
from django.http import JsonResponse

from apps.core.api import api_view, json_body, ok
from apps.core.exceptions import NotFound
from apps.core.forms import PageForm, TaskFilterForm, validate_payload
from apps.core.models import Activity, Project, Task, TimeLog
from apps.core.permissions import gate, project_access_required
from apps.core.serializers import (
    serialize_activity, serialize_attachment, serialize_comment, serialize_member,
    serialize_project, serialize_sprint, serialize_task, serialize_time_log,
)
from apps.core.time_tracking import current_timer
from apps.core.utils import sprint_burndown, summarize_time_logs

from .services import board_service, get_sprint, get_task


def paginate(request, queryset):
    """Paginação por limit/skip com indicador hasMore"""
    pagina = validate_payload(PageForm, request.GET.dict())
    limit, skip = pagina['limit'], pagina['skip']

    itens = list(queryset[skip:skip + limit + 1])
    return itens[:limit], {'limit': limit, 'skip': skip, 'hasMore': len(itens) > limit}


def refresh_sprint_status(sprint):
    """Status da sprint acompanha as datas"""
    if sprint.update_status():
        sprint.save(update_fields=['status', 'updated_at'])
    return sprint


# =================== PROJETOS ===================

@api_view('GET', 'POST')
def projects(request):
    """
    GET: projetos ativos em que o usuário é dono ou membro
    POST: cria projeto - o criador vira dono e Admin
    """
    if request.method == 'POST':
        project = board_service.create_project(request.user, json_body(request))
        return ok(status=201, project=serialize_project(project, with_members=True))

    queryset = (
        Project.objects
        .filter(is_active=True)
        .filter(Q(owner=request.user) | Q(members__user=request.user))
        .select_related('owner')
        .distinct()
    )
    return ok(projects=[serialize_project(p) for p in queryset])


@api_view('GET', 'PATCH', 'DELETE')
def project_detail(request, project_id):
    if request.method == 'PATCH':
        outcome = board_service.update_project(request.user, project_id, json_body(request))
        return ok(project=serialize_project(outcome.entity))

    if request.method == 'DELETE':
        board_service.delete_project(request.user, project_id)
        return ok(message='Projeto excluído')

    access = gate.authorize(request.user.pk, project_id)
    dados = serialize_project(access.project, with_members=True)
    dados['myRole'] = access.role
    return ok(project=dados)


@api_view('GET', 'POST')
def project_members(request, project_id):
    if request.method == 'POST':
        outcome = board_service.add_member(request.user, project_id, json_body(request))
        return ok(status=201, member=serialize_member(outcome.entity))

    access = gate.authorize(request.user.pk, project_id)
    membros = access.project.members.select_related('user')
    return ok(members=[serialize_member(m) for m in membros])


@api_view('DELETE')
def project_member_detail(request, project_id, user_id):
    board_service.remove_member(request.user, project_id, user_id)
    return ok(message='Membro removido')


@api_view('GET', 'PUT')
def project_workflow(request, project_id):
    if request.method == 'PUT':
        outcome = board_service.update_workflow(request.user, project_id, json_body(request))
        return ok(workflow=outcome.entity.ordered_stages())

    access = gate.authorize(request.user.pk, project_id)
    return ok(workflow=access.project.ordered_stages())


@api_view('GET', 'POST')
def project_tasks(request, project_id):
    """
    GET: tarefas do projeto com filtros (status, assignee, sprint, priority)
    POST: cria tarefa no projeto
    """
    if request.method == 'POST':
        outcome = board_service.create_task(request.user, project_id, json_body(request))
        return ok(status=201, task=serialize_task(outcome.entity))

    access = gate.authorize(request.user.pk, project_id)
    filtros = validate_payload(TaskFilterForm, request.GET.dict())

    queryset = Task.objects.filter(project=access.project).select_related('assignee', 'reporter')
    if filtros.get('status'):
        queryset = queryset.filter(status=filtros['status'])
    if filtros.get('assignee') is not None:
        queryset = queryset.filter(assignee_id=filtros['assignee'])
    if filtros.get('sprint') is not None:
        queryset = queryset.filter(sprint_id=filtros['sprint'])
    if filtros.get('priority'):
        queryset = queryset.filter(priority=filtros['priority'])

    return ok(tasks=[serialize_task(t) for t in queryset.order_by('order', '-created_at')])


@api_view('GET', 'POST')
def project_sprints(request, project_id):
    if request.method == 'POST':
        outcome = board_service.create_sprint(request.user, project_id, json_body(request))
        return ok(status=201, sprint=serialize_sprint(outcome.entity))

    access = gate.authorize(request.user.pk, project_id)
    sprints = [refresh_sprint_status(s) for s in access.project.sprints.all()]
    return ok(sprints=[serialize_sprint(s) for s in sprints])


@api_view('GET')
@project_access_required()
def project_activity(request, project_id):
    """Feed de atividades do projeto, mais recentes primeiro"""
    queryset = Activity.objects.filter(project=request.project).select_related('user')
    itens, pagina = paginate(request, queryset)
    return ok(activities=[serialize_activity(a) for a in itens], **pagina)


# =================== TAREFAS ===================

@api_view('GET', 'PATCH', 'DELETE')
def task_detail(request, task_id):
    if request.method == 'PATCH':
        outcome = board_service.update_task(request.user, task_id, json_body(request))
        return ok(task=serialize_task(outcome.entity))

    if request.method == 'DELETE':
        board_service.delete_task(request.user, task_id)
        return ok(message='Tarefa excluída')

    task = get_task(task_id)
    gate.authorize(request.user.pk, task.project_id)
    return ok(task=serialize_task(task))


@api_view('PATCH', 'POST')
def task_move(request, task_id):
    outcome = board_service.move_task(request.user, task_id, json_body(request))
    return ok(task=serialize_task(outcome.entity))


@api_view('GET', 'POST')
def task_comments(request, task_id):
    if request.method == 'POST':
        outcome = board_service.add_comment(request.user, task_id, json_body(request))
        return ok(status=201, comment=serialize_comment(outcome.entity))

    task = get_task(task_id)
    gate.authorize(request.user.pk, task.project_id)
    comentarios = task.comments.select_related('author').prefetch_related('mentions')
    return ok(comments=[serialize_comment(c) for c in comentarios])


@api_view('PATCH', 'DELETE')
def comment_detail(request, comment_id):
    if request.method == 'PATCH':
        outcome = board_service.update_comment(request.user, comment_id, json_body(request))
        return ok(comment=serialize_comment(outcome.entity))

    board_service.delete_comment(request.user, comment_id)
    return ok(message='Comentário excluído')


@api_view('GET', 'POST')
def task_attachments(request, task_id):
    if request.method == 'POST':
        outcome = board_service.add_attachment(request.user, task_id, json_body(request))
        return ok(status=201, attachment=serialize_attachment(outcome.entity))

    task = get_task(task_id)
    gate.authorize(request.user.pk, task.project_id)
    anexos = task.attachments.select_related('uploaded_by')
    return ok(attachments=[serialize_attachment(a) for a in anexos])


@api_view('DELETE')
def task_attachment_detail(request, task_id, attachment_id):
    board_service.remove_attachment(request.user, task_id, attachment_id)
    return ok(message='Anexo removido')


@api_view('GET')
def task_time_logs(request, task_id):
    """Registros de tempo da tarefa com o total de horas"""
    task = get_task(task_id)
    gate.authorize(request.user.pk, task.project_id)

    logs = list(task.time_logs.select_related('user'))
    resumo = summarize_time_logs(logs)
    return ok(
        timeLogs=[serialize_time_log(log) for log in logs],
        totalDuration=resumo['totalDuration'],
        totalHours=resumo['totalHours'],
    )


# =================== SPRINTS ===================

@api_view('GET', 'PATCH', 'DELETE')
def sprint_detail(request, sprint_id):
    if request.method == 'PATCH':
        outcome = board_service.update_sprint(request.user, sprint_id, json_body(request))
        return ok(sprint=serialize_sprint(outcome.entity))

    if request.method == 'DELETE':
        board_service.delete_sprint(request.user, sprint_id)
        return ok(message='Sprint excluída')

    sprint = get_sprint(sprint_id)
    gate.authorize(request.user.pk, sprint.project_id)
    refresh_sprint_status(sprint)

    dados = serialize_sprint(sprint)
    dados['tasks'] = [serialize_task(t) for t in sprint.tasks.select_related('assignee', 'reporter')]
    return ok(sprint=dados)


@api_view('GET')
def sprint_burndown_view(request, sprint_id):
    sprint = get_sprint(sprint_id)
    gate.authorize(request.user.pk, sprint.project_id)
    return ok(burndown=sprint_burndown(sprint))


@api_view('GET')
def sprint_time_summary(request, sprint_id):
    """Horas registradas nas tarefas da sprint, agrupadas por usuário"""
    sprint = get_sprint(sprint_id)
    gate.authorize(request.user.pk, sprint.project_id)

    logs = TimeLog.objects.filter(task__sprint=sprint).select_related('user')
    return ok(summary=summarize_time_logs(logs))


# =================== CONTROLE DE TEMPO ===================

@api_view('POST')
def timer_start(request):
    outcome = board_service.start_timer(request.user, json_body(request))
    return ok(status=201, timeLog=serialize_time_log(outcome.entity))


@api_view('POST', 'PATCH')
def timer_stop(request, log_id):
    outcome = board_service.stop_timer(request.user, log_id)
    return ok(timeLog=serialize_time_log(outcome.entity))


@api_view('POST')
def time_log_manual(request):
    outcome = board_service.log_time(request.user, json_body(request))
    return ok(status=201, timeLog=serialize_time_log(outcome.entity))


@api_view('GET')
def timer_current(request):
    log = current_timer(request.user)
    dados = serialize_time_log(log) if log else None
    if log:
        dados['task'] = {'id': log.task_id, 'title': log.task.title, 'projectId': log.task.project_id}
    return ok(timeLog=dados)


@api_view('DELETE')
def time_log_detail(request, log_id):
    board_service.delete_time_log(request.user, log_id)
    return ok(message='Registro excluído')


# =================== ATIVIDADES ===================

@api_view('GET')
def my_activity(request):
    """Atividades do próprio usuário em projetos ativos"""
    queryset = (
        Activity.objects
        .filter(user=request.user, project__is_active=True)
        .select_related('user')
    )
    itens, pagina = paginate(request, queryset)
    return ok(activities=[serialize_activity(a) for a in itens], **pagina)


def not_found(request, exception=None):
    """Handler 404 em JSON"""
    return JsonResponse(NotFound().as_dict(), status=404)
