# tests/test_broadcast.py

from types import SimpleNamespace

import pytest

from apps.board.events import BoardEvent

pytestmark = pytest.mark.asyncio


def fake_user(pk, name):
    return SimpleNamespace(pk=pk, display_name=name)


async def test_announce_reaches_everyone_in_the_room(hub, channel_layer):
    hub.register('c1', fake_user(1, 'Ana'))
    hub.register('c2', fake_user(2, 'Bruno'))
    hub.rooms.join('c1', 10)
    hub.rooms.join('c2', 10)

    result = await hub.announce(10, BoardEvent.TASK_CREATED, {'task': {'id': 1}})

    assert result.room == 'project:10'
    assert result.recipients == result.delivered == 2
    assert result.success
    assert [c for c, _ in channel_layer.sent] == ['c1', 'c2']
    assert channel_layer.sent[0][1]['type'] == 'board.event'
    assert channel_layer.sent[0][1]['event'] == 'task_created'


async def test_relay_skips_the_origin(hub, channel_layer):
    hub.register('c1', fake_user(1, 'Ana'))
    hub.register('c2', fake_user(2, 'Bruno'))
    hub.rooms.join('c1', 10)
    hub.rooms.join('c2', 10)

    await hub.relay('c1', 10, BoardEvent.TYPING_START, {'taskId': 5})

    assert channel_layer.events_for('c1') == []
    assert len(channel_layer.events_for('c2', 'typing_start')) == 1


async def test_join_twice_announces_once(hub, channel_layer):
    hub.register('c1', fake_user(1, 'Ana'))
    hub.register('c2', fake_user(2, 'Bruno'))
    await hub.join_project('c1', 10)

    assert await hub.join_project('c2', 10) is True
    assert await hub.join_project('c2', 10) is False

    joined = channel_layer.events_for('c1', 'user_joined')
    assert len(joined) == 1
    assert joined[0]['payload']['userId'] == 2
    assert joined[0]['payload']['userName'] == 'Bruno'


async def test_disconnect_from_n_rooms_sends_n_user_left(hub, channel_layer):
    hub.register('saindo', fake_user(1, 'Ana'))
    hub.register('observador', fake_user(2, 'Bruno'))
    for project_id in (1, 2, 3):
        await hub.join_project('saindo', project_id)
        await hub.join_project('observador', project_id)
    channel_layer.clear()

    projetos = await hub.disconnect('saindo')

    assert projetos == [1, 2, 3]
    assert len(channel_layer.events_for('observador', 'user_left')) == 3
    assert not hub.is_connected('saindo')
    assert hub.rooms.rooms_of('saindo') == frozenset()

    # desconectar de novo não gera avisos
    channel_layer.clear()
    assert await hub.disconnect('saindo') == []
    assert channel_layer.sent == []


async def test_dead_connection_is_best_effort(hub, channel_layer):
    for pk, conn_id in enumerate(('c1', 'morta', 'c3'), start=1):
        hub.register(conn_id, fake_user(pk, conn_id))
        hub.rooms.join(conn_id, 7)
    channel_layer.dead.add('morta')

    result = await hub.announce(7, BoardEvent.TASK_DELETED, {'taskId': 1})

    assert result.failed == ['morta']
    assert result.delivered == 2
    assert not result.success
    assert len(channel_layer.events_for('c1')) == 1
    assert len(channel_layer.events_for('c3')) == 1


async def test_online_users_are_distinct(hub):
    ana = fake_user(1, 'Ana')
    hub.register('aba-1', ana)
    hub.register('aba-2', ana)
    hub.register('c3', fake_user(2, 'Bruno'))
    for conn_id in ('aba-1', 'aba-2', 'c3'):
        hub.rooms.join(conn_id, 4)

    assert hub.online_users(4) == [{'id': 1, 'name': 'Ana'}, {'id': 2, 'name': 'Bruno'}]


async def test_evict_user_removes_all_their_connections(hub, channel_layer):
    ana = fake_user(1, 'Ana')
    hub.register('aba-1', ana)
    hub.register('aba-2', ana)
    hub.register('c3', fake_user(2, 'Bruno'))
    for conn_id in ('aba-1', 'aba-2', 'c3'):
        hub.rooms.join(conn_id, 4)
    hub.rooms.join('aba-1', 5)

    removidas = await hub.evict_user(4, 1)

    assert removidas == ['aba-1', 'aba-2']
    assert hub.rooms.members(4) == frozenset({'c3'})
    assert hub.rooms.is_member('aba-1', 5)
    assert hub.is_connected('aba-1')
    assert len(channel_layer.events_for('c3', 'user_left')) == 2
