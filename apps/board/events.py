# apps/board/events.py

"""
Catálogo de eventos em tempo real

Os nomes são o campo `type` dos frames enviados aos clientes.
"""

from enum import Enum


class BoardEvent(str, Enum):
    # Anunciados pelo pipeline de mutações
    TASK_CREATED = 'task_created'
    TASK_UPDATED = 'task_updated'
    TASK_MOVED = 'task_moved'
    TASK_DELETED = 'task_deleted'
    COMMENT_ADDED = 'comment_added'
    COMMENT_UPDATED = 'comment_updated'
    COMMENT_DELETED = 'comment_deleted'
    FILE_UPLOADED = 'file_uploaded'
    FILE_REMOVED = 'file_removed'
    MEMBER_ADDED = 'member_added'
    MEMBER_REMOVED = 'member_removed'
    WORKFLOW_UPDATED = 'workflow_updated'
    SPRINT_UPDATED = 'sprint_updated'
    PROJECT_UPDATED = 'project_updated'
    PROJECT_DELETED = 'project_deleted'
    TIMER_STARTED = 'timer_started'
    TIMER_STOPPED = 'timer_stopped'
    TIME_LOGGED = 'time_logged'

    # Repassados entre pares
    TYPING_START = 'typing_start'
    TYPING_STOP = 'typing_stop'
    USER_JOINED = 'user_joined'
    USER_LEFT = 'user_left'


# Eventos que só o servidor pode originar - espelhos enviados pelo
# cliente são rejeitados pelo consumer
SERVER_ONLY_EVENTS = frozenset({
    BoardEvent.TASK_CREATED,
    BoardEvent.TASK_UPDATED,
    BoardEvent.TASK_MOVED,
    BoardEvent.TASK_DELETED,
    BoardEvent.COMMENT_ADDED,
    BoardEvent.COMMENT_UPDATED,
    BoardEvent.COMMENT_DELETED,
    BoardEvent.FILE_UPLOADED,
    BoardEvent.FILE_REMOVED,
    BoardEvent.MEMBER_ADDED,
    BoardEvent.MEMBER_REMOVED,
    BoardEvent.WORKFLOW_UPDATED,
    BoardEvent.SPRINT_UPDATED,
    BoardEvent.PROJECT_UPDATED,
    BoardEvent.PROJECT_DELETED,
    BoardEvent.TIMER_STARTED,
    BoardEvent.TIMER_STOPPED,
    BoardEvent.TIME_LOGGED,
    BoardEvent.USER_JOINED,
    BoardEvent.USER_LEFT,
})
