# apps/board/consumers.py

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.db.models import Count
from django.utils import timezone

from apps.core.exceptions import BoardError, ValidationError
from apps.core.permissions import gate as default_gate

from .broadcast import hub as default_hub
from .events import SERVER_ONLY_EVENTS, BoardEvent

logger = logging.getLogger(__name__)

# Código de fechamento para falha de autenticação no handshake
AUTH_FAILED_CLOSE_CODE = 4001


class ProjectConsumer(AsyncWebsocketConsumer):
    """
    Consumer WebSocket da camada em tempo real

    Uma conexão por cliente, que entra e sai das salas de projeto por
    mensagens. O canal só aceita presença e sincronização; mudanças de
    estado chegam pela API REST e são anunciadas pelo servidor.

    Mensagens aceitas:
    - ping
    - join_project / leave_project
    - typing_start / typing_stop
    - sync_project
    """

    hub = default_hub
    gate = default_gate

    async def connect(self):
        """
        Registra a sessão se o handshake estiver autenticado
        """
        self.user = self.scope.get('user')
        auth_error = self.scope.get('auth_error')

        if auth_error or self.user is None or not self.user.is_authenticated:
            # aceitar antes de fechar para o cliente receber o motivo
            await self.accept()
            await self.send_error(auth_error or 'Autenticação necessária', code='authentication_failed')
            await self.close(code=AUTH_FAILED_CLOSE_CODE)
            return

        self.identity = self.hub.register(self.channel_name, self.user)
        await self.accept()

        await self.send_json({
            'type': 'connected',
            'user': self.identity.public(),
            'heartbeatInterval': getattr(settings, 'FLUXO_WS_HEARTBEAT_INTERVAL', 30),
            'timestamp': self.get_timestamp(),
        })
        logger.info(f"✅ WebSocket conectado - {self.user.username} ({self.channel_name})")

    async def disconnect(self, close_code):
        """
        Sai de todas as salas e remove a sessão
        """
        if not self.hub.is_connected(self.channel_name):
            return

        projetos = await self.hub.disconnect(self.channel_name)
        logger.info(f"🔌 WebSocket desconectado - {self.user.username} (saiu de {len(projetos)} salas)")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Recebe mensagens do cliente e despacha pelo campo `type`
        """
        if not self.hub.is_connected(self.channel_name):
            return

        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            logger.error(f"❌ JSON inválido recebido via WebSocket de {self.user.username}")
            await self.send_error('JSON inválido')
            return

        if not isinstance(data, dict):
            await self.send_error('A mensagem deve ser um objeto JSON')
            return

        message_type = data.get('type')
        handler = self.handlers.get(message_type)

        if handler is None:
            if message_type in SERVER_ONLY_EVENTS:
                await self.send_error(
                    'Alterações devem ser feitas pela API; o servidor anuncia o evento',
                    code='server_only_event'
                )
            else:
                await self.send_error(f'Tipo de mensagem desconhecido: {message_type}')
            return

        try:
            await handler(self, data)
        except BoardError as e:
            await self.send_error(e.message, code=type(e).__name__)

    # === Handlers de mensagens do cliente ===

    async def handle_ping(self, data):
        await self.send_json({'type': 'pong', 'timestamp': self.get_timestamp()})

    async def handle_join_project(self, data):
        project_id = self.project_id_from(data)
        await self.authorize(project_id)

        # a conexão pode ter caído enquanto o banco respondia
        if not self.hub.is_connected(self.channel_name):
            return

        await self.hub.join_project(self.channel_name, project_id)
        await self.send_json({
            'type': 'joined_project',
            'projectId': project_id,
            'onlineUsers': self.hub.online_users(project_id),
            'timestamp': self.get_timestamp(),
        })

    async def handle_leave_project(self, data):
        project_id = self.project_id_from(data)
        await self.hub.leave_project(self.channel_name, project_id)
        await self.send_json({'type': 'left_project', 'projectId': project_id})

    async def handle_typing_start(self, data):
        project_id = self.joined_project_from(data)
        await self.hub.relay(self.channel_name, project_id, BoardEvent.TYPING_START, {
            'taskId': data.get('taskId'),
            'user': self.identity.public(),
        })

    async def handle_typing_stop(self, data):
        project_id = self.joined_project_from(data)
        await self.hub.relay(self.channel_name, project_id, BoardEvent.TYPING_STOP, {
            'taskId': data.get('taskId'),
            'userId': self.identity.user_id,
        })

    async def handle_sync_project(self, data):
        project_id = self.joined_project_from(data)
        access = await self.authorize(project_id)
        stages = await self.get_board_state(access.project)

        await self.send_json({
            'type': 'project_sync',
            'payload': {
                'projectId': project_id,
                'stages': stages,
                'onlineUsers': self.hub.online_users(project_id),
            },
            'timestamp': self.get_timestamp(),
        })

    handlers = {
        'ping': handle_ping,
        'join_project': handle_join_project,
        'leave_project': handle_leave_project,
        'typing_start': handle_typing_start,
        'typing_stop': handle_typing_stop,
        'sync_project': handle_sync_project,
    }

    # === Eventos vindos do hub ===

    async def board_event(self, event):
        """
        Repassa um evento da sala para o cliente
        """
        await self.send_json({
            'type': event['event'],
            'payload': event['payload'],
            'timestamp': event['timestamp'],
        })

    # === Métodos auxiliares ===

    def project_id_from(self, data):
        try:
            return int(data.get('projectId'))
        except (TypeError, ValueError):
            raise ValidationError('projectId inválido')

    def joined_project_from(self, data):
        project_id = self.project_id_from(data)
        if not self.hub.rooms.is_member(self.channel_name, project_id):
            raise ValidationError('Entre no projeto antes de enviar esta mensagem')
        return project_id

    async def authorize(self, project_id):
        return await database_sync_to_async(self.gate.authorize)(self.user.pk, project_id)

    @database_sync_to_async
    def get_board_state(self, project):
        """
        Estágios do workflow com a contagem de tarefas
        """
        contagem = dict(
            project.tasks.order_by().values('status').annotate(total=Count('id')).values_list('status', 'total')
        )
        return [
            {
                'id': stage['id'],
                'name': stage['name'],
                'order': stage.get('order'),
                'color': stage.get('color'),
                'taskCount': contagem.get(stage['id'], 0),
            }
            for stage in project.ordered_stages()
        ]

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    async def send_error(self, message, code=None):
        frame = {'type': 'error', 'message': message}
        if code:
            frame['code'] = code
        await self.send_json(frame)

    def get_timestamp(self):
        """
        Retorna timestamp atual em formato ISO
        """
        return timezone.now().isoformat()
