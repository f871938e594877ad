# apps/board/services.py

"""
Serviço de mutações do board

Uma operação por ação do usuário. Cada uma valida a entrada, delega ao
pipeline (autorização, aplicação atômica, atividade e anúncio) e devolve
o Outcome com a entidade alterada.
"""

import logging
from typing import Dict

from asgiref.sync import async_to_sync
from django.db import transaction
from django.db.models import Max

from apps.core import time_tracking
from apps.core.activity import ActivityDraft, field_changes, record_activity
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from apps.core.forms import (
    AttachmentForm, CommentForm, CommentUpdateForm, ManualTimeForm, MemberForm,
    MoveTaskForm, ProjectForm, SprintForm, TaskForm, TimerStartForm, WorkflowForm,
    validate_payload,
)
from apps.core.models import (
    Activity, Attachment, Comment, Project, ProjectMember, Sprint, Task,
)
from apps.core.permissions import Action
from apps.core.serializers import (
    serialize_attachment, serialize_comment, serialize_member, serialize_project,
    serialize_sprint, serialize_task, serialize_time_log,
)

from .events import BoardEvent
from .pipeline import MutationPipeline, Outcome

logger = logging.getLogger(__name__)

# Campos não anuláveis - None em atualização parcial é ignorado
_NON_NULLABLE_TASK_FIELDS = ('title', 'priority', 'estimated_hours', 'labels', 'description')

# Campos alterados apenas pela movimentação da tarefa
_MOVE_FIELDS = ('status', 'order')


def get_task(task_id) -> Task:
    try:
        return Task.objects.select_related('project', 'assignee', 'reporter').get(
            pk=task_id, project__is_active=True
        )
    except (Task.DoesNotExist, ValueError, TypeError):
        raise NotFound('Tarefa não encontrada')


def get_comment(comment_id) -> Comment:
    try:
        return Comment.objects.select_related('task', 'author').get(
            pk=comment_id, task__project__is_active=True
        )
    except (Comment.DoesNotExist, ValueError, TypeError):
        raise NotFound('Comentário não encontrado')


def get_sprint(sprint_id) -> Sprint:
    try:
        return Sprint.objects.select_related('project').get(pk=sprint_id, project__is_active=True)
    except (Sprint.DoesNotExist, ValueError, TypeError):
        raise NotFound('Sprint não encontrada')


def is_project_member(project, user) -> bool:
    if user is None:
        return False
    return project.owner_id == user.pk or project.members.filter(user=user).exists()


def next_order(project, status) -> int:
    maior = Task.objects.filter(project=project, status=status).aggregate(maior=Max('order'))['maior']
    return 0 if maior is None else maior + 1


class BoardService:
    """
    Operações de escrita do Fluxo Board

    Princípios aplicados:
    - Nenhuma escrita fora do pipeline (exceto criação de projeto, que
      ainda não tem sala nem membros para autorizar)
    - Payloads de eventos carregam só a identidade pública do autor
    """

    def __init__(self, pipeline: MutationPipeline = None):
        self.pipeline = pipeline or MutationPipeline()

    # =================== PROJETOS ===================

    def create_project(self, actor, data) -> Project:
        dados = validate_payload(ProjectForm, data)

        with transaction.atomic():
            project = Project(
                name=dados['name'],
                description=dados.get('description') or '',
                owner=actor,
            )
            if dados.get('workflow'):
                project.workflow = dados['workflow']
            project.save()

        record_activity(project, actor, ActivityDraft(
            action=Activity.Action.PROJECT_CREATED,
            entity_type=Activity.EntityType.PROJECT,
            entity_id=project.pk,
            details={'name': project.name},
        ))
        logger.info(f"📁 Projeto '{project.name}' criado por {actor.username}")
        return project

    def update_project(self, actor, project_id, data) -> Outcome:
        dados = validate_payload(ProjectForm, data, partial=True)
        dados.pop('workflow', None)
        dados = {k: v for k, v in dados.items() if v is not None}

        def apply(access):
            project = access.project
            changes = field_changes(project, dados)
            for campo, valor in dados.items():
                setattr(project, campo, valor)
            project.save()

            return Outcome(
                entity=project,
                event=BoardEvent.PROJECT_UPDATED,
                payload={'project': serialize_project(project), 'changes': changes,
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.PROJECT_UPDATED,
                    entity_type=Activity.EntityType.PROJECT,
                    entity_id=project.pk,
                    details={'changes': changes},
                ),
            )

        return self.pipeline.execute(actor, project_id, Action.UPDATE_PROJECT, apply)

    def delete_project(self, actor, project_id) -> Outcome:
        """
        Exclusão lógica - o projeto some das listagens e das salas

        Timers rodando nas tarefas do projeto são parados: depois da
        exclusão ninguém mais consegue pará-los pela API.
        """
        parados = []

        def apply(access):
            project = access.project
            project.is_active = False
            project.save(update_fields=['is_active', 'updated_at'])
            parados.extend(time_tracking.stop_running_in_project(None, project))

            return Outcome(
                entity=project,
                event=BoardEvent.PROJECT_DELETED,
                payload={'projectId': project.pk, 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.PROJECT_UPDATED,
                    entity_type=Activity.EntityType.PROJECT,
                    entity_id=project.pk,
                    details={'changes': {'isActive': {'old': True, 'new': False}}},
                ),
            )

        outcome = self.pipeline.execute(actor, project_id, Action.DELETE_PROJECT, apply)
        self._announce_stopped_timers(outcome.access.project, parados, 'project_deleted')
        return outcome

    # =================== MEMBROS E WORKFLOW ===================

    def add_member(self, actor, project_id, data) -> Outcome:
        dados = validate_payload(MemberForm, data)
        novo = dados['user_id']

        def apply(access):
            project = access.project
            if is_project_member(project, novo):
                raise Conflict('Usuário já é membro do projeto')

            member = ProjectMember.objects.create(project=project, user=novo, role=dados['role'])

            return Outcome(
                entity=member,
                event=BoardEvent.MEMBER_ADDED,
                payload={'project': serialize_project(project), 'newMember': serialize_member(member)},
                activity=ActivityDraft(
                    action=Activity.Action.MEMBER_ADDED,
                    entity_type=Activity.EntityType.PROJECT,
                    entity_id=project.pk,
                    details={'userId': novo.pk, 'userName': novo.display_name, 'role': member.role},
                ),
            )

        return self.pipeline.execute(actor, project_id, Action.ADD_MEMBER, apply)

    def remove_member(self, actor, project_id, user_id) -> Outcome:
        """
        Remove o membro, para os timers dele nas tarefas do projeto e
        tira as conexões dele da sala
        """
        parados = []

        def apply(access):
            project = access.project
            if str(project.owner_id) == str(user_id):
                raise Forbidden('O dono do projeto não pode ser removido')

            member = (
                ProjectMember.objects.select_related('user')
                .filter(project=project, user_id=user_id)
                .first()
            )
            if member is None:
                raise NotFound('Membro não encontrado neste projeto')

            removido = member.user
            member.delete()
            parados.extend(time_tracking.stop_running_in_project(removido, project))

            return Outcome(
                entity=removido,
                event=BoardEvent.MEMBER_REMOVED,
                payload={'project': serialize_project(project), 'removedUserId': removido.pk},
                activity=ActivityDraft(
                    action=Activity.Action.MEMBER_REMOVED,
                    entity_type=Activity.EntityType.PROJECT,
                    entity_id=project.pk,
                    details={'userId': removido.pk, 'userName': removido.display_name},
                ),
            )

        outcome = self.pipeline.execute(actor, project_id, Action.REMOVE_MEMBER, apply)
        removido = outcome.entity
        project = outcome.access.project

        self._announce_stopped_timers(project, parados, 'member_removed')

        try:
            async_to_sync(self.pipeline.hub.evict_user)(project.pk, removido.pk)
        except Exception:
            logger.exception(f"⛔ Falha ao remover conexões do usuário {removido.pk} do projeto {project.pk}")

        return outcome

    def update_workflow(self, actor, project_id, data) -> Outcome:
        dados = validate_payload(WorkflowForm, data)
        stages = dados['workflow']

        def apply(access):
            project = access.project
            novos_ids = {stage['id'] for stage in stages}
            em_uso = set(
                Task.objects.filter(project=project)
                .exclude(status__in=novos_ids)
                .values_list('status', flat=True)
            )
            if em_uso:
                raise ValidationError(
                    'Existem tarefas em estágios removidos: ' + ', '.join(sorted(em_uso)),
                    stagesInUse=sorted(em_uso),
                )

            antigo = project.ordered_stages()
            project.workflow = stages
            project.save(update_fields=['workflow', 'updated_at'])

            return Outcome(
                entity=project,
                event=BoardEvent.WORKFLOW_UPDATED,
                payload={'workflow': project.ordered_stages()},
                activity=ActivityDraft(
                    action=Activity.Action.WORKFLOW_UPDATED,
                    entity_type=Activity.EntityType.PROJECT,
                    entity_id=project.pk,
                    details={'old': [s['id'] for s in antigo], 'new': project.stage_ids()},
                ),
            )

        return self.pipeline.execute(actor, project_id, Action.UPDATE_WORKFLOW, apply)

    def _announce_stopped_timers(self, project, logs, reason):
        """Atividade e timer_stopped para timers parados pelo sistema"""
        for log in logs:
            record_activity(project, log.user, ActivityDraft(
                action=Activity.Action.TIMER_STOPPED,
                entity_type=Activity.EntityType.TIME_LOG,
                entity_id=log.pk,
                details={'taskId': log.task_id, 'duration': log.duration, 'reason': reason},
            ))
            self.pipeline.broadcast(project.pk, BoardEvent.TIMER_STOPPED, {
                'taskId': log.task_id,
                'timeLog': serialize_time_log(log),
                'user': log.user.public_identity(),
            })

    # =================== TAREFAS ===================

    def _check_task_refs(self, project, dados: Dict):
        """Estágio, responsável e sprint precisam pertencer ao projeto"""
        status = dados.get('status')
        if status and not project.has_stage(status):
            raise ValidationError(f'Status inválido: {status}')

        assignee = dados.get('assignee')
        if assignee is not None and not is_project_member(project, assignee):
            raise ValidationError('O responsável precisa ser membro do projeto')

        sprint = dados.get('sprint')
        if sprint is not None and sprint.project_id != project.pk:
            raise ValidationError('A sprint não pertence a este projeto')

    def create_task(self, actor, project_id, data) -> Outcome:
        dados = validate_payload(TaskForm, data)

        def apply(access):
            project = access.project
            self._check_task_refs(project, dados)

            status = dados.get('status') or project.first_stage_id()
            order = dados.get('order')
            if order is None:
                order = next_order(project, status)

            task = Task.objects.create(
                project=project,
                title=dados['title'],
                description=dados.get('description') or '',
                status=status,
                priority=dados.get('priority') or Task.Priority.MEDIUM,
                assignee=dados.get('assignee'),
                reporter=actor,
                labels=dados.get('labels') or [],
                due_date=dados.get('due_date'),
                sprint=dados.get('sprint'),
                estimated_hours=dados.get('estimated_hours') or 0,
                order=order,
            )

            return Outcome(
                entity=task,
                event=BoardEvent.TASK_CREATED,
                payload={'task': serialize_task(task), 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.TASK_CREATED,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task.pk,
                    details={'title': task.title, 'status': task.status},
                ),
            )

        return self.pipeline.execute(actor, project_id, Action.CREATE_TASK, apply)

    def update_task(self, actor, task_id, data) -> Outcome:
        """
        Atualiza os campos da tarefa

        Estágio e ordem só mudam por move_task, que registra a transição
        e anuncia task_moved.
        """
        task = get_task(task_id)
        dados = validate_payload(TaskForm, data, partial=True)

        movimento = sorted(set(dados) & set(_MOVE_FIELDS))
        if movimento:
            raise ValidationError(
                'Use o endpoint de mover tarefa para alterar status ou ordem',
                fields=movimento,
            )

        dados = {
            k: v for k, v in dados.items()
            if v is not None or k not in _NON_NULLABLE_TASK_FIELDS
        }

        def apply(access):
            self._check_task_refs(access.project, dados)

            changes = field_changes(task, dados)
            for campo, valor in dados.items():
                setattr(task, campo, valor)
            task.save()

            activity = None
            if changes:
                if set(changes) == {'assignee'}:
                    acao = Activity.Action.TASK_ASSIGNED
                else:
                    acao = Activity.Action.TASK_UPDATED
                activity = ActivityDraft(
                    action=acao,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task.pk,
                    details={'changes': changes},
                )

            return Outcome(
                entity=task,
                event=BoardEvent.TASK_UPDATED,
                payload={'task': serialize_task(task), 'changes': changes, 'user': actor.public_identity()},
                activity=activity,
            )

        return self.pipeline.execute(actor, task.project_id, Action.UPDATE_TASK, apply)

    def move_task(self, actor, task_id, data) -> Outcome:
        """
        Move a tarefa entre estágios

        Status e ordem são independentes: mudar só a ordem mantém o
        estágio, e mudar o estágio sem ordem mantém a ordem atual.
        """
        task = get_task(task_id)
        dados = validate_payload(MoveTaskForm, data)

        def apply(access):
            destino = dados['status']
            if not access.project.has_stage(destino):
                raise ValidationError(f'Status inválido: {destino}')

            origem = task.status
            task.status = destino
            if dados.get('order') is not None:
                task.order = dados['order']
            task.save(update_fields=['status', 'order', 'updated_at'])

            # reordenar dentro do mesmo estágio não é uma transição
            activity = None
            if origem != destino:
                activity = ActivityDraft(
                    action=Activity.Action.TASK_MOVED,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task.pk,
                    details={'fromStatus': origem, 'toStatus': destino, 'newOrder': task.order},
                )

            return Outcome(
                entity=task,
                event=BoardEvent.TASK_MOVED,
                payload={
                    'taskId': task.pk,
                    'task': serialize_task(task),
                    'fromStatus': origem,
                    'toStatus': destino,
                    'newOrder': task.order,
                    'user': actor.public_identity(),
                },
                activity=activity,
            )

        return self.pipeline.execute(actor, task.project_id, Action.MOVE_TASK, apply)

    def delete_task(self, actor, task_id) -> Outcome:
        task = get_task(task_id)

        def apply(access):
            task_pk = task.pk
            titulo = task.title
            task.delete()

            return Outcome(
                entity=None,
                event=BoardEvent.TASK_DELETED,
                payload={'taskId': task_pk, 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.TASK_DELETED,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task_pk,
                    details={'title': titulo},
                ),
            )

        return self.pipeline.execute(actor, task.project_id, Action.DELETE_TASK, apply)

    # =================== COMENTÁRIOS ===================

    def add_comment(self, actor, task_id, data) -> Outcome:
        task = get_task(task_id)
        dados = validate_payload(CommentForm, data)

        def apply(access):
            parent = dados.get('parent')
            if parent is not None and parent.task_id != task.pk:
                raise ValidationError('O comentário pai pertence a outra tarefa')

            mencionados = list(dados.get('mentions') or [])
            for user in mencionados:
                if not is_project_member(access.project, user):
                    raise ValidationError(f'{user.display_name} não é membro do projeto')

            comment = Comment.objects.create(
                task=task, author=actor, content=dados['content'], parent=parent
            )
            if mencionados:
                comment.mentions.set(mencionados)

            return Outcome(
                entity=comment,
                event=BoardEvent.COMMENT_ADDED,
                payload={'comment': serialize_comment(comment), 'taskId': task.pk,
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.COMMENT_ADDED,
                    entity_type=Activity.EntityType.COMMENT,
                    entity_id=comment.pk,
                    details={'taskId': task.pk, 'taskTitle': task.title},
                ),
            )

        return self.pipeline.execute(actor, task.project_id, Action.ADD_COMMENT, apply)

    def update_comment(self, actor, comment_id, data) -> Outcome:
        comment = get_comment(comment_id)
        dados = validate_payload(CommentUpdateForm, data)

        def apply(access):
            if comment.author_id != actor.pk:
                raise Forbidden('Você só pode editar seus próprios comentários')

            comment.content = dados['content']
            comment.save(update_fields=['content', 'updated_at'])

            return Outcome(
                entity=comment,
                event=BoardEvent.COMMENT_UPDATED,
                payload={'comment': serialize_comment(comment), 'taskId': comment.task_id,
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.COMMENT_UPDATED,
                    entity_type=Activity.EntityType.COMMENT,
                    entity_id=comment.pk,
                    details={'taskId': comment.task_id},
                ),
            )

        return self.pipeline.execute(actor, comment.task.project_id, Action.UPDATE_COMMENT, apply)

    def delete_comment(self, actor, comment_id) -> Outcome:
        comment = get_comment(comment_id)

        def apply(access):
            if comment.author_id != actor.pk:
                raise Forbidden('Você só pode excluir seus próprios comentários')

            comment_pk = comment.pk
            comment.delete()

            return Outcome(
                entity=None,
                event=BoardEvent.COMMENT_DELETED,
                payload={'commentId': comment_pk, 'taskId': comment.task_id,
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.COMMENT_DELETED,
                    entity_type=Activity.EntityType.COMMENT,
                    entity_id=comment_pk,
                    details={'taskId': comment.task_id},
                ),
            )

        return self.pipeline.execute(actor, comment.task.project_id, Action.DELETE_COMMENT, apply)

    # =================== ANEXOS ===================

    def add_attachment(self, actor, task_id, data) -> Outcome:
        task = get_task(task_id)
        dados = validate_payload(AttachmentForm, data)

        def apply(access):
            attachment = Attachment.objects.create(
                task=task,
                kind=dados['kind'],
                filename=dados['filename'],
                url=dados['url'],
                size=dados.get('size'),
                uploaded_by=actor,
            )

            return Outcome(
                entity=attachment,
                event=BoardEvent.FILE_UPLOADED,
                payload={'file': serialize_attachment(attachment), 'taskId': task.pk,
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.FILE_UPLOADED,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task.pk,
                    details={'filename': attachment.filename, 'kind': attachment.kind},
                ),
            )

        return self.pipeline.execute(actor, task.project_id, Action.ADD_ATTACHMENT, apply)

    def remove_attachment(self, actor, task_id, attachment_id) -> Outcome:
        task = get_task(task_id)
        attachment = task.attachments.filter(pk=attachment_id).first()
        if attachment is None:
            raise NotFound('Anexo não encontrado')

        def apply(access):
            if attachment.uploaded_by_id != actor.pk:
                raise Forbidden('Apenas quem enviou o anexo pode removê-lo')

            attachment_pk = attachment.pk
            attachment.delete()

            return Outcome(
                entity=None,
                event=BoardEvent.FILE_REMOVED,
                payload={'fileId': attachment_pk, 'taskId': task.pk, 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.FILE_REMOVED,
                    entity_type=Activity.EntityType.TASK,
                    entity_id=task.pk,
                    details={'filename': attachment.filename},
                ),
            )

        return self.pipeline.execute(actor, task.project_id, Action.REMOVE_ATTACHMENT, apply)

    # =================== SPRINTS ===================

    def create_sprint(self, actor, project_id, data) -> Outcome:
        dados = validate_payload(SprintForm, data)

        def apply(access):
            sprint = Sprint(
                project=access.project,
                name=dados['name'],
                goal=dados.get('goal') or '',
                start_date=dados['start_date'],
                end_date=dados['end_date'],
            )
            if dados.get('status') == Sprint.Status.CANCELLED:
                sprint.status = Sprint.Status.CANCELLED
            else:
                sprint.update_status()
            sprint.save()

            return self._sprint_outcome(actor, sprint, 'created', Activity.Action.SPRINT_CREATED)

        return self.pipeline.execute(actor, project_id, Action.CREATE_SPRINT, apply)

    def update_sprint(self, actor, sprint_id, data) -> Outcome:
        sprint = get_sprint(sprint_id)
        dados = validate_payload(SprintForm, data, partial=True)
        dados = {k: v for k, v in dados.items() if v is not None}

        inicio = dados.get('start_date', sprint.start_date)
        fim = dados.get('end_date', sprint.end_date)
        if fim <= inicio:
            raise ValidationError('A data de fim deve ser posterior à de início')

        def apply(access):
            novo_status = dados.pop('status', None)
            for campo, valor in dados.items():
                setattr(sprint, campo, valor)

            if novo_status == Sprint.Status.CANCELLED:
                sprint.status = Sprint.Status.CANCELLED
            elif novo_status or sprint.status != Sprint.Status.CANCELLED:
                # reativar uma sprint cancelada volta ao status pelas datas
                sprint.status = Sprint.Status.PLANNING
                sprint.update_status()
            sprint.save()

            return self._sprint_outcome(actor, sprint, 'updated', Activity.Action.SPRINT_UPDATED)

        return self.pipeline.execute(actor, sprint.project_id, Action.UPDATE_SPRINT, apply)

    def delete_sprint(self, actor, sprint_id) -> Outcome:
        """As tarefas da sprint ficam sem sprint (SET_NULL)"""
        sprint = get_sprint(sprint_id)

        def apply(access):
            dados = serialize_sprint(sprint)
            sprint.delete()

            return Outcome(
                entity=None,
                event=BoardEvent.SPRINT_UPDATED,
                payload={'sprint': dados, 'action': 'deleted', 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.SPRINT_DELETED,
                    entity_type=Activity.EntityType.SPRINT,
                    entity_id=dados['id'],
                    details={'name': dados['name']},
                ),
            )

        return self.pipeline.execute(actor, sprint.project_id, Action.DELETE_SPRINT, apply)

    def _sprint_outcome(self, actor, sprint, acao, activity_action) -> Outcome:
        return Outcome(
            entity=sprint,
            event=BoardEvent.SPRINT_UPDATED,
            payload={'sprint': serialize_sprint(sprint), 'action': acao, 'user': actor.public_identity()},
            activity=ActivityDraft(
                action=activity_action,
                entity_type=Activity.EntityType.SPRINT,
                entity_id=sprint.pk,
                details={'name': sprint.name, 'status': sprint.status},
            ),
        )

    # =================== CONTROLE DE TEMPO ===================

    def start_timer(self, actor, data) -> Outcome:
        dados = validate_payload(TimerStartForm, data)
        task = dados['task_id']

        def apply(access):
            log = time_tracking.start_timer(actor, task, dados.get('description'))

            return Outcome(
                entity=log,
                event=BoardEvent.TIMER_STARTED,
                payload={'taskId': task.pk, 'timeLog': serialize_time_log(log), 'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.TIMER_STARTED,
                    entity_type=Activity.EntityType.TIME_LOG,
                    entity_id=log.pk,
                    details={'taskId': task.pk, 'taskTitle': task.title},
                ),
            )

        return self.pipeline.execute(actor, task.project_id, Action.START_TIMER, apply)

    def stop_timer(self, actor, log_id) -> Outcome:
        log = time_tracking.get_time_log(log_id)

        def apply(access):
            parado = time_tracking.stop_timer(actor, log.pk)

            return Outcome(
                entity=parado,
                event=BoardEvent.TIMER_STOPPED,
                payload={'taskId': parado.task_id, 'timeLog': serialize_time_log(parado),
                         'user': actor.public_identity()},
                activity=ActivityDraft(
                    action=Activity.Action.TIMER_STOPPED,
                    entity_type=Activity.EntityType.TIME_LOG,
                    entity_id=parado.pk,
                    details={'taskId': parado.task_id, 'duration': parado.duration},
                ),
            )

        return self.pipeline.execute(actor, log.task.project_id, Action.STOP_TIMER, apply)

    def log_time(self, actor, data) -> Outcome:
        dados = validate_payload(ManualTimeForm, data)
        task = dados['task_id']

        def apply(access):
            log = time_tracking.log_manual_time(
                actor, task, dados['start_time'], dados['end_time'], dados.get('description')
            )

            return Outcome(
                entity=log,
                event=BoardEvent.TIME_LOGGED,
                payload={'taskId': task.pk, 'timeLog': serialize_time_log(log), 'user': actor.public_identity()},
            )

        return self.pipeline.execute(actor, task.project_id, Action.LOG_TIME, apply)

    def delete_time_log(self, actor, log_id) -> Outcome:
        log = time_tracking.get_time_log(log_id)

        def apply(access):
            if log.user_id != actor.pk:
                raise Forbidden('Você só pode excluir seus próprios registros')
            log.delete()
            return Outcome(entity=None)

        return self.pipeline.execute(actor, log.task.project_id, Action.DELETE_TIME_LOG, apply)


# Instância global do serviço
board_service = BoardService()
