# tests/conftest.py

import pytest

from apps.board.broadcast import RealtimeHub
from apps.board.pipeline import MutationPipeline
from apps.board.services import board_service
from apps.core.models import Project, ProjectMember, Role, Task, User
from apps.core.permissions import gate
from apps.core.tokens import issue_access_token


class RecordingChannelLayer:
    """
    Channel layer falso - guarda cada envio e falha para os canais em `dead`
    """

    def __init__(self, dead=()):
        self.sent = []
        self.dead = set(dead)

    async def send(self, channel, message):
        if channel in self.dead:
            raise ConnectionError(f'{channel} fechado')
        self.sent.append((channel, message))

    def events_for(self, channel, event=None):
        return [
            message for destino, message in self.sent
            if destino == channel and (event is None or message['event'] == event)
        ]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def channel_layer():
    return RecordingChannelLayer()


@pytest.fixture
def hub(channel_layer):
    return RealtimeHub(channel_layer=channel_layer)


@pytest.fixture
def service_hub(monkeypatch, hub):
    """Faz o board_service anunciar no hub de teste"""
    monkeypatch.setattr(board_service, 'pipeline', MutationPipeline(gate, hub))
    return hub


@pytest.fixture
def make_user(db):
    def make(username, **extra):
        extra.setdefault('first_name', username.capitalize())
        return User.objects.create_user(username=username, password='senha-forte-123', **extra)
    return make


@pytest.fixture
def owner(make_user):
    return make_user('olivia')


@pytest.fixture
def manager(make_user):
    return make_user('paulo')


@pytest.fixture
def developer(make_user):
    return make_user('teresa')


@pytest.fixture
def outsider(make_user):
    return make_user('xavier')


@pytest.fixture
def project(owner, manager, developer):
    project = Project.objects.create(name='Portal do Cliente', owner=owner)
    ProjectMember.objects.create(project=project, user=manager, role=Role.PROJECT_MANAGER)
    ProjectMember.objects.create(project=project, user=developer, role=Role.TEAM_MEMBER)
    return project


@pytest.fixture
def task(project, owner, developer):
    return Task.objects.create(
        project=project,
        title='Tela de login',
        status='todo',
        reporter=owner,
        assignee=developer,
    )


@pytest.fixture
def auth_headers():
    def headers(user):
        return {'HTTP_AUTHORIZATION': f'Bearer {issue_access_token(user)}'}
    return headers
