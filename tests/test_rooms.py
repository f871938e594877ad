# tests/test_rooms.py

import pytest

from apps.board.rooms import RoomDirectory, get_project_room
from apps.board.sessions import Identity, SessionRegistry
from apps.core.exceptions import NotFound


def test_room_name_format():
    assert get_project_room(42) == 'project:42'


def test_join_is_idempotent():
    rooms = RoomDirectory()

    assert rooms.join('c1', 1) is True
    assert rooms.join('c1', 1) is False
    assert rooms.members(1) == frozenset({'c1'})


def test_leave_removes_empty_room():
    rooms = RoomDirectory()
    rooms.join('c1', 1)

    assert rooms.leave('c1', 1) is True
    assert rooms.leave('c1', 1) is False
    assert rooms.active_rooms() == []
    assert rooms.rooms_of('c1') == frozenset()


def test_members_is_a_snapshot():
    rooms = RoomDirectory()
    rooms.join('c1', 1)
    snapshot = rooms.members(1)

    rooms.join('c2', 1)

    assert snapshot == frozenset({'c1'})
    assert rooms.members(1) == frozenset({'c1', 'c2'})


def test_drop_connection_leaves_every_room():
    rooms = RoomDirectory()
    for project_id in (3, 1, 2):
        rooms.join('c1', project_id)
    rooms.join('c2', 2)

    assert rooms.drop_connection('c1') == [1, 2, 3]
    assert rooms.active_rooms() == [2]
    assert rooms.members(2) == frozenset({'c2'})
    assert rooms.drop_connection('c1') == []


def test_session_registry_tracks_connections_per_user():
    sessions = SessionRegistry()
    ana = Identity(user_id=1, name='Ana')

    sessions.register('c1', ana)
    sessions.register('c2', ana)

    assert sessions.connections_of(1) == frozenset({'c1', 'c2'})
    assert sessions.identity_of('c1') == ana
    assert len(sessions) == 2

    assert sessions.unregister('c1') == ana
    assert sessions.unregister('c1') is None
    assert sessions.connections_of(1) == frozenset({'c2'})


def test_unknown_connection_is_not_found():
    with pytest.raises(NotFound):
        SessionRegistry().identity_of('nada')


def test_identity_exposes_only_public_fields():
    assert Identity(user_id=7, name='Bia').public() == {'id': 7, 'name': 'Bia'}
