# apps/board/broadcast.py

"""
Hub de tempo real - sessões, salas e fan-out de eventos

Dois primitivos de envio:
- announce: todos os membros da sala (eventos originados pelo servidor)
- relay: todos exceto a conexão de origem (eventos entre pares)

A entrega é best-effort por destinatário: uma conexão morta é registrada
no log e nunca propaga erro para quem originou o evento.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from channels.layers import get_channel_layer
from django.utils import timezone

from .events import BoardEvent
from .rooms import RoomDirectory, get_project_room
from .sessions import Identity, SessionRegistry

logger = logging.getLogger(__name__)

# Tipo da mensagem no channel layer - despachado para ProjectConsumer.board_event
BOARD_EVENT_TYPE = 'board.event'


@dataclass
class BroadcastResult:
    """Resultado de um envio para uma sala"""

    room: str
    event: str
    recipients: int
    delivered: int
    failed: List[str] = field(default_factory=list)

    @property
    def success(self):
        return not self.failed


class RealtimeHub:
    """
    Compõe o registro de sessões e o diretório de salas

    Existe uma instância padrão por processo (`hub`); os testes criam
    as suas próprias com um channel layer falso.
    """

    def __init__(self, sessions=None, rooms=None, channel_layer=None):
        self.sessions = sessions or SessionRegistry()
        self.rooms = rooms or RoomDirectory()
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    # === Sessões ===

    def register(self, conn_id: str, user) -> Identity:
        identity = Identity.from_user(user)
        self.sessions.register(conn_id, identity)
        return identity

    def is_connected(self, conn_id: str) -> bool:
        return self.sessions.is_registered(conn_id)

    def online_users(self, project_id) -> List[Dict]:
        """Usuários distintos com ao menos uma conexão na sala"""
        vistos = {}
        for conn_id in self.rooms.members(project_id):
            if self.sessions.is_registered(conn_id):
                identity = self.sessions.identity_of(conn_id)
                vistos.setdefault(identity.user_id, identity.public())
        return [vistos[user_id] for user_id in sorted(vistos)]

    # === Fan-out ===

    async def announce(self, project_id, event, payload) -> BroadcastResult:
        """Envia para todos os membros da sala"""
        recipients = self.rooms.members(project_id)
        return await self._deliver(project_id, recipients, event, payload)

    async def relay(self, origin_conn: str, project_id, event, payload) -> BroadcastResult:
        """Envia para todos os membros da sala, exceto a origem"""
        recipients = self.rooms.members(project_id) - {origin_conn}
        return await self._deliver(project_id, recipients, event, payload)

    async def _deliver(self, project_id, recipients, event, payload) -> BroadcastResult:
        event_name = event.value if isinstance(event, BoardEvent) else str(event)
        message = {
            'type': BOARD_EVENT_TYPE,
            'event': event_name,
            'payload': payload,
            'timestamp': timezone.now().isoformat(),
        }

        destinatarios = sorted(recipients)
        resultados = await asyncio.gather(
            *(self._send_one(conn_id, message) for conn_id in destinatarios)
        )

        falhas = [conn_id for conn_id, ok in zip(destinatarios, resultados) if not ok]
        return BroadcastResult(
            room=get_project_room(project_id),
            event=event_name,
            recipients=len(destinatarios),
            delivered=len(destinatarios) - len(falhas),
            failed=falhas,
        )

    async def _send_one(self, conn_id: str, message: Dict[str, Any]) -> bool:
        try:
            await self.channel_layer.send(conn_id, message)
            return True
        except Exception:
            logger.warning(
                f"📭 Falha ao entregar {message['event']} para {conn_id}",
                exc_info=True
            )
            return False

    # === Salas ===

    async def join_project(self, conn_id: str, project_id) -> bool:
        """
        Entra na sala e avisa os demais membros

        Idempotente: entrar de novo não gera um segundo user_joined.
        """
        identity = self.sessions.identity_of(conn_id)
        if not self.rooms.join(conn_id, project_id):
            return False

        logger.info(f"🚪 {identity.name} entrou em {get_project_room(project_id)}")
        await self.relay(conn_id, project_id, BoardEvent.USER_JOINED, _presence(identity))
        return True

    async def leave_project(self, conn_id: str, project_id) -> bool:
        identity = self.sessions.identity_of(conn_id)
        if not self.rooms.leave(conn_id, project_id):
            return False

        logger.info(f"🚶 {identity.name} saiu de {get_project_room(project_id)}")
        await self.relay(conn_id, project_id, BoardEvent.USER_LEFT, _presence(identity))
        return True

    async def disconnect(self, conn_id: str) -> List[int]:
        """
        Remove a conexão de todas as salas e do registro de sessões

        A remoção acontece antes de qualquer await; os avisos user_left
        (um por sala) são enviados depois.
        """
        identity = self.sessions.unregister(conn_id)
        projetos = self.rooms.drop_connection(conn_id)

        if identity is None:
            return projetos

        for project_id in projetos:
            await self.relay(conn_id, project_id, BoardEvent.USER_LEFT, _presence(identity))

        return projetos

    async def evict_user(self, project_id, user_id: int) -> List[str]:
        """
        Tira todas as conexões do usuário da sala do projeto

        Usado quando o membro é removido; cada conexão removida gera um
        user_left para os que ficam.
        """
        removidas = []
        for conn_id in sorted(self.sessions.connections_of(user_id)):
            if self.rooms.leave(conn_id, project_id):
                removidas.append(conn_id)

        for conn_id in removidas:
            # a conexão pode ter caído durante um dos envios anteriores
            if not self.sessions.is_registered(conn_id):
                continue
            identity = self.sessions.identity_of(conn_id)
            await self.relay(conn_id, project_id, BoardEvent.USER_LEFT, _presence(identity))

        if removidas:
            logger.info(f"⛔ Usuário {user_id} removido de {get_project_room(project_id)} ({len(removidas)} conexões)")
        return removidas


def _presence(identity: Identity) -> Dict:
    return {
        'userId': identity.user_id,
        'userName': identity.name,
        'timestamp': timezone.now().isoformat(),
    }


# Hub padrão do processo
hub = RealtimeHub()
