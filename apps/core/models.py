# apps/core/models.py

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q
from django.utils import timezone


DEFAULT_WORKFLOW = [
    {'id': 'todo', 'name': 'To Do', 'order': 1, 'color': '#94a3b8'},
    {'id': 'inprogress', 'name': 'In Progress', 'order': 2, 'color': '#3b82f6'},
    {'id': 'review', 'name': 'Review', 'order': 3, 'color': '#f59e0b'},
    {'id': 'done', 'name': 'Done', 'order': 4, 'color': '#10b981'},
]


def default_workflow():
    """Workflow padrão de novos projetos (sobrescrevível via settings)"""
    stages = getattr(settings, 'FLUXO_DEFAULT_WORKFLOW', None) or DEFAULT_WORKFLOW
    return [dict(stage) for stage in stages]


class Role(models.TextChoices):
    """
    Papéis de um membro no projeto

    Totalmente ordenados: Admin > Project Manager > Team Member
    """

    ADMIN = 'Admin', 'Admin'
    PROJECT_MANAGER = 'Project Manager', 'Project Manager'
    TEAM_MEMBER = 'Team Member', 'Team Member'

    @classmethod
    def rank(cls, role):
        """Posição do papel na hierarquia (0 = desconhecido)"""
        return ROLE_RANK.get(str(role), 0)


ROLE_RANK = {
    Role.TEAM_MEMBER.value: 1,
    Role.PROJECT_MANAGER.value: 2,
    Role.ADMIN.value: 3,
}


class User(AbstractUser):
    """
    Usuário do sistema

    A identidade pública (id + nome) é o único dado do usuário que
    trafega nos eventos em tempo real.
    """

    avatar = models.URLField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'app_user'

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def public_identity(self):
        """Retorna apenas id e nome - nunca credenciais"""
        return {'id': self.pk, 'name': self.display_name}

    def __str__(self):
        return self.display_name


class Project(models.Model):
    """
    Projeto - agregador de tarefas, sprints e membros

    O dono é imutável após a criação e tem papel Admin implícito,
    mesmo que não esteja listado entre os membros.
    """

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='owned_projects'
    )
    workflow = models.JSONField(default=default_workflow)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'project'
        ordering = ['-updated_at']

    def __str__(self):
        return self.name

    def ordered_stages(self):
        return sorted(self.workflow, key=lambda stage: stage.get('order', 0))

    def stage_ids(self):
        return [stage['id'] for stage in self.ordered_stages()]

    def has_stage(self, stage_id):
        return stage_id in self.stage_ids()

    def first_stage_id(self):
        stages = self.stage_ids()
        return stages[0] if stages else 'todo'


class ProjectMember(models.Model):
    """Participação de um usuário em um projeto, com papel"""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='members'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.TEAM_MEMBER
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'project_member'
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(fields=['project', 'user'], name='unique_project_member'),
        ]

    def __str__(self):
        return f"{self.user} ({self.role}) em {self.project}"


class Sprint(models.Model):
    """Sprint do projeto - status derivado das datas, exceto quando cancelada"""

    class Status(models.TextChoices):
        PLANNING = 'Planning', 'Planning'
        ACTIVE = 'Active', 'Active'
        COMPLETED = 'Completed', 'Completed'
        CANCELLED = 'Cancelled', 'Cancelled'

    name = models.CharField(max_length=200)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='sprints'
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    goal = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PLANNING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sprint'
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.name} ({self.project})"

    def update_status(self, now=None):
        """Recalcula o status pelas datas. Retorna True se mudou."""
        if self.status == self.Status.CANCELLED:
            return False

        now = now or timezone.now()
        if now < self.start_date:
            novo_status = self.Status.PLANNING
        elif now <= self.end_date:
            novo_status = self.Status.ACTIVE
        else:
            novo_status = self.Status.COMPLETED

        mudou = novo_status != self.status
        self.status = novo_status
        return mudou


class Task(models.Model):
    """
    Tarefa do board

    O status deve ser um dos ids de estágio do workflow do projeto.
    A ordem não é única - serve apenas para ordenar dentro do mesmo status.
    """

    class Priority(models.TextChoices):
        LOW = 'Low', 'Low'
        MEDIUM = 'Medium', 'Medium'
        HIGH = 'High', 'High'
        CRITICAL = 'Critical', 'Critical'

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='tasks'
    )
    status = models.CharField(max_length=50, default='todo')
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM
    )
    assignee = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks'
    )
    reporter = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='reported_tasks'
    )
    labels = models.JSONField(default=list, blank=True)
    due_date = models.DateTimeField(null=True, blank=True)
    sprint = models.ForeignKey(
        Sprint,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tasks'
    )
    estimated_hours = models.FloatField(default=0)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'task'
        ordering = ['order', '-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='task_project_4b6b1e_idx'),
        ]

    def __str__(self):
        return self.title


class Attachment(models.Model):
    """Arquivo (metadados) ou link anexado a uma tarefa"""

    class Kind(models.TextChoices):
        FILE = 'file', 'File'
        LINK = 'link', 'Link'

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='attachments'
    )
    kind = models.CharField(max_length=10, choices=Kind.choices, default=Kind.FILE)
    filename = models.CharField(max_length=255)
    url = models.URLField(max_length=500)
    size = models.PositiveIntegerField(null=True, blank=True)
    uploaded_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='attachments'
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'attachment'
        ordering = ['uploaded_at']

    def __str__(self):
        return self.filename


class Comment(models.Model):
    """Comentário em uma tarefa, com respostas e menções"""

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    content = models.TextField()
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='replies'
    )
    mentions = models.ManyToManyField(
        User,
        blank=True,
        related_name='mentioned_in'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'comment'
        ordering = ['created_at']

    def __str__(self):
        return f"Comentário de {self.author} em {self.created_at:%d/%m/%Y}"


class Activity(models.Model):
    """
    Entrada do log de atividades - somente inserção

    Nunca é atualizada ou apagada pelas operações normais; alimenta
    apenas o feed de auditoria.
    """

    class Action(models.TextChoices):
        PROJECT_CREATED = 'project_created'
        PROJECT_UPDATED = 'project_updated'
        TASK_CREATED = 'task_created'
        TASK_UPDATED = 'task_updated'
        TASK_MOVED = 'task_moved'
        TASK_DELETED = 'task_deleted'
        TASK_ASSIGNED = 'task_assigned'
        COMMENT_ADDED = 'comment_added'
        COMMENT_UPDATED = 'comment_updated'
        COMMENT_DELETED = 'comment_deleted'
        FILE_UPLOADED = 'file_uploaded'
        FILE_REMOVED = 'file_removed'
        SPRINT_CREATED = 'sprint_created'
        SPRINT_UPDATED = 'sprint_updated'
        SPRINT_DELETED = 'sprint_deleted'
        MEMBER_ADDED = 'member_added'
        MEMBER_REMOVED = 'member_removed'
        WORKFLOW_UPDATED = 'workflow_updated'
        TIMER_STARTED = 'timer_started'
        TIMER_STOPPED = 'timer_stopped'

    class EntityType(models.TextChoices):
        PROJECT = 'Project'
        TASK = 'Task'
        COMMENT = 'Comment'
        SPRINT = 'Sprint'
        TIME_LOG = 'TimeLog'

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='activities'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='activities'
    )
    action = models.CharField(max_length=30, choices=Action.choices)
    entity_type = models.CharField(max_length=20, choices=EntityType.choices)
    entity_id = models.PositiveBigIntegerField()
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'activity'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'activities'
        indexes = [
            models.Index(fields=['project', '-created_at'], name='activity_project_9c2f0a_idx'),
            models.Index(fields=['user', '-created_at'], name='activity_user_id_5e1d7c_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Entradas de atividade são imutáveis")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.action} por {self.user} em {self.project}"


class TimeLog(models.Model):
    """
    Registro de tempo de um usuário em uma tarefa

    No máximo um registro por usuário pode estar rodando, em qualquer
    tarefa de qualquer projeto. A constraint parcial no banco é a
    garantia definitiva; a checagem no serviço é só uma otimização.
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='time_logs'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='time_logs'
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(null=True, blank=True)
    duration = models.FloatField(default=0, help_text="Duração em horas (derivada)")
    description = models.TextField(blank=True)
    is_running = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'time_log'
        ordering = ['-start_time']
        indexes = [
            models.Index(fields=['user', '-start_time'], name='time_log_user_id_8a3b2d_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=Q(is_running=True),
                name='unique_running_timelog_per_user'
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.task}"

    def compute_duration(self):
        """Duração em horas entre início e fim (0 se ainda aberto)"""
        if self.end_time and self.start_time:
            return (self.end_time - self.start_time).total_seconds() / 3600
        return 0

    def clean(self):
        from django.core.exceptions import ValidationError

        if self.end_time and self.end_time <= self.start_time:
            raise ValidationError("Fim deve ser posterior ao início")
