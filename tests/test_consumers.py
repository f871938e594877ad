# tests/test_consumers.py

import pytest
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from apps.board.broadcast import RealtimeHub
from apps.board.consumers import AUTH_FAILED_CLOSE_CODE, ProjectConsumer
from apps.board.events import BoardEvent
from apps.board.middleware import TokenAuthMiddleware
from apps.board.routing import websocket_urlpatterns
from apps.core.tokens import issue_access_token

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]

application = TokenAuthMiddleware(URLRouter(websocket_urlpatterns))


@pytest.fixture
def ws_hub(monkeypatch):
    hub = RealtimeHub()
    monkeypatch.setattr(ProjectConsumer, 'hub', hub)
    return hub


@pytest.fixture
def open_socket():
    async def open_(user):
        communicator = WebsocketCommunicator(application, f'/ws/projects/?token={issue_access_token(user)}')
        connected, _ = await communicator.connect()
        assert connected
        hello = await communicator.receive_json_from()
        assert hello['type'] == 'connected'
        return communicator

    return open_


async def join(communicator, project):
    await communicator.send_json_to({'type': 'join_project', 'projectId': project.pk})
    return await communicator.receive_json_from()


async def test_handshake_without_token_is_closed(ws_hub):
    communicator = WebsocketCommunicator(application, '/ws/projects/')
    connected, _ = await communicator.connect()
    assert connected

    frame = await communicator.receive_json_from()
    assert frame['type'] == 'error'
    assert frame['code'] == 'authentication_failed'

    closed = await communicator.receive_output()
    assert closed['type'] == 'websocket.close'
    assert closed['code'] == AUTH_FAILED_CLOSE_CODE
    assert len(ws_hub.sessions) == 0


async def test_handshake_with_invalid_token_is_closed(ws_hub):
    communicator = WebsocketCommunicator(application, '/ws/projects/?token=nao-e-um-jwt')
    await communicator.connect()

    frame = await communicator.receive_json_from()
    assert frame['message'] == 'Token inválido'
    assert (await communicator.receive_output())['code'] == AUTH_FAILED_CLOSE_CODE


async def test_connected_frame_and_ping(ws_hub, open_socket, owner):
    communicator = await open_socket(owner)

    await communicator.send_json_to({'type': 'ping'})
    assert (await communicator.receive_json_from())['type'] == 'pong'

    await communicator.disconnect()
    assert len(ws_hub.sessions) == 0


async def test_join_project_lists_online_users(ws_hub, open_socket, project, owner, manager):
    primeiro = await open_socket(owner)
    segundo = await open_socket(manager)

    resposta = await join(primeiro, project)
    assert resposta['type'] == 'joined_project'
    assert resposta['onlineUsers'] == [owner.public_identity()]

    resposta = await join(segundo, project)
    assert {u['id'] for u in resposta['onlineUsers']} == {owner.pk, manager.pk}

    aviso = await primeiro.receive_json_from()
    assert aviso['type'] == 'user_joined'
    assert aviso['payload']['userId'] == manager.pk

    await primeiro.disconnect()
    saida = await segundo.receive_json_from()
    assert saida['type'] == 'user_left'
    assert saida['payload']['userId'] == owner.pk

    await segundo.disconnect()


async def test_outsider_cannot_join(ws_hub, open_socket, project, outsider):
    communicator = await open_socket(outsider)

    resposta = await join(communicator, project)
    assert resposta == {'type': 'error', 'message': 'Você não tem acesso a este projeto', 'code': 'Forbidden'}
    assert ws_hub.rooms.active_rooms() == []

    await communicator.disconnect()


async def test_server_events_reach_the_room(ws_hub, open_socket, project, owner):
    communicator = await open_socket(owner)
    await join(communicator, project)

    await ws_hub.announce(project.pk, BoardEvent.TASK_CREATED, {'task': {'id': 1, 'title': 'Nova'}})

    evento = await communicator.receive_json_from()
    assert evento['type'] == 'task_created'
    assert evento['payload'] == {'task': {'id': 1, 'title': 'Nova'}}
    assert 'timestamp' in evento

    await communicator.disconnect()


async def test_clients_cannot_send_state_changes(ws_hub, open_socket, project, owner, manager):
    primeiro = await open_socket(owner)
    segundo = await open_socket(manager)
    await join(primeiro, project)
    await join(segundo, project)
    await primeiro.receive_json_from()  # user_joined

    await segundo.send_json_to({'type': 'task_moved', 'projectId': project.pk, 'taskId': 1})

    resposta = await segundo.receive_json_from()
    assert resposta['code'] == 'server_only_event'
    assert await primeiro.receive_nothing()

    await primeiro.disconnect()
    await segundo.disconnect()


async def test_typing_is_relayed_to_others(ws_hub, open_socket, project, owner, manager):
    primeiro = await open_socket(owner)
    segundo = await open_socket(manager)
    await join(primeiro, project)
    await join(segundo, project)
    await primeiro.receive_json_from()  # user_joined

    await segundo.send_json_to({'type': 'typing_start', 'projectId': project.pk, 'taskId': 9})

    evento = await primeiro.receive_json_from()
    assert evento['type'] == 'typing_start'
    assert evento['payload'] == {'taskId': 9, 'user': manager.public_identity()}
    assert await segundo.receive_nothing()

    await primeiro.disconnect()
    await segundo.disconnect()


async def test_typing_requires_joining_first(ws_hub, open_socket, project, owner):
    communicator = await open_socket(owner)

    await communicator.send_json_to({'type': 'typing_stop', 'projectId': project.pk, 'taskId': 9})
    resposta = await communicator.receive_json_from()
    assert resposta['type'] == 'error'
    assert resposta['code'] == 'ValidationError'

    await communicator.disconnect()


async def test_sync_project_counts_tasks_per_stage(ws_hub, open_socket, project, owner, task):
    communicator = await open_socket(owner)
    await join(communicator, project)

    await communicator.send_json_to({'type': 'sync_project', 'projectId': project.pk})
    resposta = await communicator.receive_json_from()

    assert resposta['type'] == 'project_sync'
    contagem = {s['id']: s['taskCount'] for s in resposta['payload']['stages']}
    assert contagem == {'todo': 1, 'inprogress': 0, 'review': 0, 'done': 0}

    await communicator.disconnect()


async def test_invalid_json_gets_error_frame(ws_hub, open_socket, owner):
    communicator = await open_socket(owner)

    await communicator.send_to(text_data='{quebrado')
    resposta = await communicator.receive_json_from()
    assert resposta == {'type': 'error', 'message': 'JSON inválido'}

    await communicator.disconnect()
