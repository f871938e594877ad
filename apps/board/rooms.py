# apps/board/rooms.py

"""
Salas de projeto

Uma sala existe enquanto tiver ao menos uma conexão. O índice reverso
conexão -> projetos permite que a desconexão saia de todas as salas
sem varrer as salas de todo o processo.

Todas as operações são síncronas: nenhuma delas cruza um await, então
cada mutação acontece inteira dentro de um único turno do event loop.
"""

from typing import Dict, FrozenSet, List, Set


def get_project_room(project_id) -> str:
    """Nome da sala de um projeto no formato 'project:{id}'"""
    return f"project:{project_id}"


class RoomDirectory:

    def __init__(self):
        self._rooms: Dict[int, Set[str]] = {}
        self._joined: Dict[str, Set[int]] = {}

    def join(self, conn_id: str, project_id: int) -> bool:
        """Adiciona a conexão à sala. Retorna False se ela já estava lá."""
        membros = self._rooms.setdefault(project_id, set())
        if conn_id in membros:
            return False

        membros.add(conn_id)
        self._joined.setdefault(conn_id, set()).add(project_id)
        return True

    def leave(self, conn_id: str, project_id: int) -> bool:
        """Remove a conexão da sala. Retorna False se ela não estava lá."""
        membros = self._rooms.get(project_id)
        if not membros or conn_id not in membros:
            return False

        membros.discard(conn_id)
        if not membros:
            del self._rooms[project_id]

        projetos = self._joined.get(conn_id)
        if projetos is not None:
            projetos.discard(project_id)
            if not projetos:
                del self._joined[conn_id]
        return True

    def members(self, project_id: int) -> FrozenSet[str]:
        """Snapshot dos membros - seguro para iterar durante o envio"""
        return frozenset(self._rooms.get(project_id, ()))

    def rooms_of(self, conn_id: str) -> FrozenSet[int]:
        return frozenset(self._joined.get(conn_id, ()))

    def is_member(self, conn_id: str, project_id: int) -> bool:
        return conn_id in self._rooms.get(project_id, ())

    def drop_connection(self, conn_id: str) -> List[int]:
        """
        Remove a conexão de todas as salas

        Retorna os projetos que ela deixou, um por sala afetada.
        """
        projetos = self._joined.pop(conn_id, set())
        for project_id in projetos:
            membros = self._rooms.get(project_id)
            if membros is None:
                continue
            membros.discard(conn_id)
            if not membros:
                del self._rooms[project_id]
        return sorted(projetos)

    def active_rooms(self) -> List[int]:
        return sorted(self._rooms)
