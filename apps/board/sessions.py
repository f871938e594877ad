# apps/board/sessions.py

"""
Registro de sessões WebSocket autenticadas

Mapeia cada conexão (channel_name) para a identidade do usuário e cada
usuário para o conjunto de conexões abertas. Estado apenas em memória,
válido para o processo ASGI atual.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Set

from apps.core.exceptions import NotFound


@dataclass(frozen=True)
class Identity:
    """Identidade imutável de uma conexão - fixada no handshake"""

    user_id: int
    name: str

    @classmethod
    def from_user(cls, user):
        return cls(user_id=user.pk, name=user.display_name)

    def public(self):
        return {'id': self.user_id, 'name': self.name}


class SessionRegistry:

    def __init__(self):
        self._identities: Dict[str, Identity] = {}
        self._by_user: Dict[int, Set[str]] = {}

    def register(self, conn_id: str, identity: Identity):
        self._identities[conn_id] = identity
        self._by_user.setdefault(identity.user_id, set()).add(conn_id)

    def identity_of(self, conn_id: str) -> Identity:
        try:
            return self._identities[conn_id]
        except KeyError:
            raise NotFound('Conexão não registrada')

    def is_registered(self, conn_id: str) -> bool:
        return conn_id in self._identities

    def unregister(self, conn_id: str):
        """Remove a conexão. Idempotente."""
        identity = self._identities.pop(conn_id, None)
        if identity is None:
            return None

        conexoes = self._by_user.get(identity.user_id)
        if conexoes is not None:
            conexoes.discard(conn_id)
            if not conexoes:
                del self._by_user[identity.user_id]
        return identity

    def connections_of(self, user_id: int) -> FrozenSet[str]:
        return frozenset(self._by_user.get(user_id, ()))

    def __len__(self):
        return len(self._identities)
