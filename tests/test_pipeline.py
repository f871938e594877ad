# tests/test_pipeline.py

import pytest
from asgiref.sync import async_to_sync

from apps.core import time_tracking
from apps.core.exceptions import Conflict, Forbidden, ValidationError
from apps.core.models import Activity, Project, ProjectMember, Task, TimeLog
from apps.board.services import board_service

pytestmark = pytest.mark.django_db


def connect(hub, conn_id, user, project=None):
    hub.register(conn_id, user)
    if project is not None:
        async_to_sync(hub.join_project)(conn_id, project.pk)


def test_task_moved_reaches_each_room_member_exactly_once(
        service_hub, channel_layer, project, owner, developer, outsider, task):
    connect(service_hub, 'conn-a', owner, project)
    connect(service_hub, 'conn-b1', developer, project)
    connect(service_hub, 'conn-b2', developer, project)
    connect(service_hub, 'conn-c', outsider)
    channel_layer.clear()

    board_service.move_task(developer, task.pk, {'status': 'inprogress', 'order': 2})

    for conn_id in ('conn-a', 'conn-b1', 'conn-b2'):
        eventos = channel_layer.events_for(conn_id, 'task_moved')
        assert len(eventos) == 1
        payload = eventos[0]['payload']
        assert payload['fromStatus'] == 'todo'
        assert payload['toStatus'] == 'inprogress'
        assert payload['newOrder'] == 2
        assert payload['user'] == {'id': developer.pk, 'name': developer.display_name}

    assert channel_layer.events_for('conn-c') == []

    task.refresh_from_db()
    assert (task.status, task.order) == ('inprogress', 2)
    assert Activity.objects.filter(action=Activity.Action.TASK_MOVED, entity_id=task.pk).count() == 1


def test_reorder_within_stage_is_broadcast_but_not_logged(service_hub, channel_layer, project, owner, task):
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    board_service.move_task(owner, task.pk, {'status': 'todo', 'order': 5})

    task.refresh_from_db()
    assert (task.status, task.order) == ('todo', 5)
    assert len(channel_layer.events_for('conn-a', 'task_moved')) == 1
    assert not Activity.objects.filter(action=Activity.Action.TASK_MOVED, entity_id=task.pk).exists()


@pytest.mark.parametrize('campos', [{'status': 'review'}, {'order': 3}, {'title': 'Outro', 'status': 'done'}])
def test_update_task_does_not_change_stage_or_order(service_hub, channel_layer, project, owner, task, campos):
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    with pytest.raises(ValidationError):
        board_service.update_task(owner, task.pk, campos)

    task.refresh_from_db()
    assert (task.title, task.status, task.order) == ('Tela de login', 'todo', 0)
    assert channel_layer.sent == []


def test_update_without_changes_writes_no_activity(service_hub, channel_layer, project, owner, task):
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    board_service.update_task(owner, task.pk, {'title': task.title})

    assert not Activity.objects.filter(entity_type=Activity.EntityType.TASK, entity_id=task.pk).exists()
    assert len(channel_layer.events_for('conn-a', 'task_updated')) == 1


def test_deleting_project_stops_running_timers(service_hub, channel_layer, project, owner, developer, task):
    board_service.start_timer(developer, {'taskId': task.pk})
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    board_service.delete_project(owner, project.pk)

    assert not TimeLog.objects.filter(user=developer, is_running=True).exists()
    assert [m['event'] for m in channel_layer.events_for('conn-a')] == ['project_deleted', 'timer_stopped']
    assert Activity.objects.filter(
        project=project, user=developer, action=Activity.Action.TIMER_STOPPED,
        details__reason='project_deleted',
    ).exists()

    # o usuário continua podendo registrar tempo em outro projeto
    outro = Project.objects.create(name='Intranet', owner=developer)
    outra_tarefa = Task.objects.create(project=outro, title='Deploy', reporter=developer)
    assert time_tracking.start_timer(developer, outra_tarefa).is_running


def test_attachment_url_without_scheme_assumes_https(service_hub, project, developer, task):
    anexo = board_service.add_attachment(developer, task.pk, {'url': 'arquivos.fluxo.dev/contrato.pdf'}).entity
    assert anexo.url == 'https://arquivos.fluxo.dev/contrato.pdf'


def test_move_to_unknown_stage_has_no_side_effects(service_hub, channel_layer, project, owner, task):
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    with pytest.raises(ValidationError):
        board_service.move_task(owner, task.pk, {'status': 'arquivado'})

    task.refresh_from_db()
    assert task.status == 'todo'
    assert channel_layer.sent == []
    assert not Activity.objects.filter(action=Activity.Action.TASK_MOVED).exists()


def test_team_member_cannot_remove_members(service_hub, channel_layer, project, developer, manager):
    with pytest.raises(Forbidden):
        board_service.remove_member(developer, project.pk, manager.pk)

    assert ProjectMember.objects.filter(project=project, user=manager).exists()
    assert channel_layer.sent == []
    assert not Activity.objects.filter(action=Activity.Action.MEMBER_REMOVED).exists()


@pytest.mark.parametrize('actor_fixture', ['owner', 'manager'])
def test_owner_can_never_be_removed(request, service_hub, project, owner, actor_fixture):
    actor = request.getfixturevalue(actor_fixture)

    with pytest.raises(Forbidden):
        board_service.remove_member(actor, project.pk, owner.pk)

    assert ProjectMember.objects.filter(project=project, user=owner).exists()


def test_add_existing_member_conflicts(service_hub, project, owner, developer):
    with pytest.raises(Conflict):
        board_service.add_member(owner, project.pk, {'userId': developer.pk})


def test_remove_member_stops_timers_and_evicts_connections(
        service_hub, channel_layer, project, manager, developer, task):
    board_service.start_timer(developer, {'taskId': task.pk})
    connect(service_hub, 'conn-pm', manager, project)
    connect(service_hub, 'conn-dev', developer, project)
    channel_layer.clear()

    board_service.remove_member(manager, project.pk, developer.pk)

    assert not ProjectMember.objects.filter(project=project, user=developer).exists()
    assert not TimeLog.objects.filter(user=developer, is_running=True).exists()
    assert not service_hub.rooms.is_member('conn-dev', project.pk)

    recebidos = [m['event'] for m in channel_layer.events_for('conn-pm')]
    assert recebidos == ['member_removed', 'timer_stopped', 'user_left']


def test_activity_failure_does_not_undo_mutation(monkeypatch, service_hub, channel_layer, project, owner):
    connect(service_hub, 'conn-a', owner, project)
    channel_layer.clear()

    def quebrar(**kwargs):
        raise RuntimeError('disco cheio')

    monkeypatch.setattr(Activity.objects, 'create', quebrar)

    outcome = board_service.create_task(owner, project.pk, {'title': 'Nova tarefa'})

    assert Task.objects.filter(pk=outcome.entity.pk).exists()
    assert len(channel_layer.events_for('conn-a', 'task_created')) == 1


def test_dead_connection_does_not_fail_the_mutation(service_hub, channel_layer, project, owner, manager, task):
    connect(service_hub, 'conn-a', owner, project)
    connect(service_hub, 'conn-b', manager, project)
    channel_layer.dead.add('conn-b')
    channel_layer.clear()

    board_service.update_task(owner, task.pk, {'title': 'Tela de login v2'})

    task.refresh_from_db()
    assert task.title == 'Tela de login v2'
    assert len(channel_layer.events_for('conn-a', 'task_updated')) == 1


def test_reassignment_is_logged_as_task_assigned(service_hub, project, owner, manager, task):
    board_service.update_task(owner, task.pk, {'assignee': manager.pk})

    entrada = Activity.objects.get(entity_id=task.pk, action=Activity.Action.TASK_ASSIGNED)
    assert entrada.details['changes']['assignee']['new'] == manager.pk


def test_workflow_cannot_drop_stage_with_tasks(service_hub, project, owner, task):
    with pytest.raises(ValidationError) as excinfo:
        board_service.update_workflow(owner, project.pk, {'workflow': [{'id': 'doing', 'name': 'Doing'}]})

    assert excinfo.value.details['stagesInUse'] == ['todo']


def test_only_author_edits_comment(service_hub, project, developer, manager, task):
    comment = board_service.add_comment(developer, task.pk, {'content': 'Começando'}).entity

    with pytest.raises(Forbidden):
        board_service.update_comment(manager, comment.pk, {'content': 'Editado'})

    board_service.update_comment(developer, comment.pk, {'content': 'Em andamento'})
    comment.refresh_from_db()
    assert comment.content == 'Em andamento'
