# tests/test_time_tracking.py

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core import time_tracking
from apps.core.exceptions import Conflict, Forbidden, ValidationError
from apps.core.models import Task, TimeLog

pytestmark = pytest.mark.django_db


@pytest.fixture
def other_task(project, owner):
    return Task.objects.create(project=project, title='Documentar API', reporter=owner)


def test_start_start_stop(developer, task, other_task):
    primeiro = time_tracking.start_timer(developer, task)

    with pytest.raises(Conflict):
        time_tracking.start_timer(developer, other_task)

    assert TimeLog.objects.filter(user=developer, is_running=True).count() == 1
    assert time_tracking.current_timer(developer) == primeiro

    parado = time_tracking.stop_timer(developer, primeiro.pk)
    assert not parado.is_running
    assert time_tracking.current_timer(developer) is None

    # depois de parar pode iniciar de novo
    segundo = time_tracking.start_timer(developer, other_task)
    assert segundo.is_running


def test_stop_twice_then_conflict(developer, task):
    log = time_tracking.start_timer(developer, task)
    TimeLog.objects.filter(pk=log.pk).update(start_time=timezone.now() - timedelta(minutes=90))

    parado = time_tracking.stop_timer(developer, log.pk)
    assert parado.duration == pytest.approx(1.5, abs=0.01)
    assert parado.end_time is not None

    with pytest.raises(Conflict):
        time_tracking.stop_timer(developer, log.pk)

    parado.refresh_from_db()
    assert parado.duration == pytest.approx(1.5, abs=0.01)


def test_cannot_stop_someone_elses_timer(developer, manager, task):
    log = time_tracking.start_timer(developer, task)

    with pytest.raises(Forbidden):
        time_tracking.stop_timer(manager, log.pk)

    log.refresh_from_db()
    assert log.is_running


def test_running_timer_is_global_per_user(developer, task, make_user):
    time_tracking.start_timer(developer, task)
    colega = make_user('renata')

    # outro usuário não é afetado
    assert time_tracking.start_timer(colega, task).is_running


def test_database_rejects_second_running_log(developer, task):
    time_tracking.start_timer(developer, task)

    with pytest.raises(IntegrityError), transaction.atomic():
        TimeLog.objects.create(task=task, user=developer, start_time=timezone.now(), is_running=True)


def test_manual_log_requires_end_after_start(developer, task):
    inicio = timezone.now() - timedelta(hours=2)

    with pytest.raises(ValidationError):
        time_tracking.log_manual_time(developer, task, inicio, inicio)

    log = time_tracking.log_manual_time(developer, task, inicio, inicio + timedelta(hours=2), 'Revisão')
    assert not log.is_running
    assert log.duration == pytest.approx(2.0)


def test_stop_running_in_project_only_touches_that_project(developer, task, owner):
    from apps.core.models import Project

    outro_projeto = Project.objects.create(name='Intranet', owner=owner)
    outra_tarefa = Task.objects.create(project=outro_projeto, title='Deploy', reporter=owner)
    log = time_tracking.start_timer(developer, outra_tarefa)

    assert time_tracking.stop_running_in_project(developer, task.project) == []

    parados = time_tracking.stop_running_in_project(developer, outro_projeto)
    assert [p.pk for p in parados] == [log.pk]
