# tests/test_views.py

import pytest
from django.urls import reverse

from apps.core.models import Activity, ProjectMember, Task

pytestmark = pytest.mark.django_db


@pytest.fixture
def api(client, auth_headers):
    """Cliente JSON autenticado"""

    class Api:
        def __init__(self, user):
            self.headers = auth_headers(user)

        def get(self, url, **params):
            return client.get(url, params, **self.headers)

        def post(self, url, data=None):
            return client.post(url, data or {}, content_type='application/json', **self.headers)

        def patch(self, url, data=None):
            return client.patch(url, data or {}, content_type='application/json', **self.headers)

        def put(self, url, data=None):
            return client.put(url, data or {}, content_type='application/json', **self.headers)

        def delete(self, url):
            return client.delete(url, **self.headers)

    return Api


def test_obtain_token_and_me(client, owner):
    resposta = client.post(
        reverse('core:token'),
        {'username': owner.username, 'password': 'senha-forte-123'},
        content_type='application/json',
    )
    assert resposta.status_code == 200
    token = resposta.json()['token']

    me = client.get(reverse('core:me'), HTTP_AUTHORIZATION=f'Bearer {token}')
    assert me.json()['user']['id'] == owner.pk


def test_wrong_password_is_unauthorized(client, owner):
    resposta = client.post(
        reverse('core:token'),
        {'username': owner.username, 'password': 'errada'},
        content_type='application/json',
    )
    assert resposta.status_code == 401
    assert resposta.json() == {'success': False, 'message': 'Credenciais inválidas'}


def test_requests_without_token_are_rejected(client, project):
    resposta = client.get(reverse('board:projects'))
    assert resposta.status_code == 401


def test_invalid_token_reports_reason(client):
    resposta = client.get(reverse('board:projects'), HTTP_AUTHORIZATION='Bearer lixo')
    assert resposta.status_code == 401
    assert resposta.json()['message'] == 'Token inválido'


def test_method_not_allowed(api, owner, project):
    resposta = api(owner).put(reverse('board:projects'))
    assert resposta.status_code == 405
    assert resposta['Allow'] == 'GET, POST'


def test_create_project_makes_creator_admin(api, owner):
    resposta = api(owner).post(reverse('board:projects'), {'name': 'Aplicativo'})

    assert resposta.status_code == 201
    dados = resposta.json()['project']
    assert [s['id'] for s in dados['workflow']] == ['todo', 'inprogress', 'review', 'done']
    assert ProjectMember.objects.get(project_id=dados['id'], user=owner).role == 'Admin'
    assert Activity.objects.filter(project_id=dados['id'], action='project_created').exists()


def test_short_project_name_is_rejected(api, owner):
    resposta = api(owner).post(reverse('board:projects'), {'name': 'AB'})
    assert resposta.status_code == 400
    assert 'name' in resposta.json()['errors']


def test_projects_list_only_shows_memberships(api, owner, outsider, project):
    assert [p['id'] for p in api(owner).get(reverse('board:projects')).json()['projects']] == [project.pk]
    assert api(outsider).get(reverse('board:projects')).json()['projects'] == []


def test_project_detail_includes_role(api, manager, outsider, project):
    url = reverse('board:project_detail', args=[project.pk])

    assert api(manager).get(url).json()['project']['myRole'] == 'Project Manager'
    assert api(outsider).get(url).status_code == 403


def test_create_and_move_task(service_hub, api, developer, project):
    cliente = api(developer)
    resposta = cliente.post(
        reverse('board:project_tasks', args=[project.pk]),
        {'title': 'Corrigir bug', 'priority': 'High', 'labels': ['bug']},
    )
    assert resposta.status_code == 201
    task = resposta.json()['task']
    assert task['status'] == 'todo'
    assert task['reporter']['id'] == developer.pk

    movida = cliente.patch(reverse('board:task_move', args=[task['id']]), {'status': 'done'})
    assert movida.status_code == 200
    assert movida.json()['task']['status'] == 'done'

    filtradas = cliente.get(reverse('board:project_tasks', args=[project.pk]), status='done')
    assert [t['id'] for t in filtradas.json()['tasks']] == [task['id']]


def test_unknown_status_on_create_is_rejected(service_hub, api, owner, project):
    resposta = api(owner).post(
        reverse('board:project_tasks', args=[project.pk]), {'title': 'X', 'status': 'backlog'}
    )
    assert resposta.status_code == 400
    assert not Task.objects.exists()


def test_team_member_cannot_remove_member_over_http(service_hub, api, developer, manager, project):
    resposta = api(developer).delete(reverse('board:project_member_detail', args=[project.pk, manager.pk]))
    assert resposta.status_code == 403


def test_timer_flow_over_http(service_hub, api, developer, task):
    cliente = api(developer)

    iniciado = cliente.post(reverse('board:timer_start'), {'taskId': task.pk})
    assert iniciado.status_code == 201
    log_id = iniciado.json()['timeLog']['id']

    assert cliente.post(reverse('board:timer_start'), {'taskId': task.pk}).status_code == 409
    assert cliente.get(reverse('board:timer_current')).json()['timeLog']['id'] == log_id

    url_stop = reverse('board:timer_stop', args=[log_id])
    assert cliente.post(url_stop).status_code == 200
    assert cliente.post(url_stop).status_code == 409
    assert cliente.get(reverse('board:timer_current')).json()['timeLog'] is None


def test_activity_feed_is_paginated(service_hub, api, owner, project):
    cliente = api(owner)
    for numero in range(3):
        cliente.post(reverse('board:project_tasks', args=[project.pk]), {'title': f'Tarefa {numero}'})

    resposta = cliente.get(reverse('board:project_activity', args=[project.pk]), limit=2)
    dados = resposta.json()
    assert len(dados['activities']) == 2
    assert dados['hasMore'] is True

    resto = cliente.get(reverse('board:project_activity', args=[project.pk]), limit=2, skip=2).json()
    assert len(resto['activities']) == 1
    assert resto['hasMore'] is False


def test_deleted_project_disappears(service_hub, api, owner, manager, project):
    assert api(manager).delete(reverse('board:project_detail', args=[project.pk])).status_code == 403
    assert api(owner).delete(reverse('board:project_detail', args=[project.pk])).status_code == 200

    assert api(owner).get(reverse('board:project_detail', args=[project.pk])).status_code == 404


def test_health_check(client):
    resposta = client.get('/health/')
    assert resposta.status_code == 200
    assert resposta.json()['status'] == 'healthy'
