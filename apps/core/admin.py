# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import (
    User, Project, ProjectMember, Sprint, Task, Attachment,
    Comment, Activity, TimeLog
)


@admin.register(User)
class FluxoUserAdmin(BaseUserAdmin):
    """Admin customizado para o modelo User"""

    list_display = [
        'username', 'email', 'get_full_name', 'is_active', 'date_joined'
    ]
    list_filter = ['is_staff', 'is_active', 'date_joined']
    search_fields = ['username', 'first_name', 'last_name', 'email']
    ordering = ['-date_joined']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Informações Adicionais', {
            'fields': ('avatar',)
        }),
    )


class ProjectMemberInline(admin.TabularInline):
    """Inline para membros do projeto"""
    model = ProjectMember
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Admin para gerenciamento de projetos"""

    list_display = [
        'name', 'owner', 'members_count', 'tasks_count',
        'is_active', 'created_at'
    ]
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'description', 'owner__username']
    readonly_fields = ['owner', 'created_at', 'updated_at']
    inlines = [ProjectMemberInline]

    fieldsets = (
        ('Informações Básicas', {
            'fields': ('name', 'description', 'is_active')
        }),
        ('Equipe', {
            'fields': ('owner',)
        }),
        ('Workflow', {
            'fields': ('workflow',)
        }),
        ('Datas', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    def members_count(self, obj):
        """Conta quantidade de membros"""
        return obj.members.count()

    members_count.short_description = 'Membros'

    def tasks_count(self, obj):
        return obj.tasks.count()

    tasks_count.short_description = 'Tarefas'


class CommentInline(admin.TabularInline):
    """Inline para comentários - somente leitura"""
    model = Comment
    extra = 0
    fields = ['author', 'content', 'created_at']
    readonly_fields = ['created_at']

    def has_add_permission(self, request, obj=None):
        return False


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    fields = ['kind', 'filename', 'url', 'uploaded_by', 'uploaded_at']
    readonly_fields = ['uploaded_at']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin para tarefas"""

    list_display = [
        'id', 'title', 'project', 'status', 'priority_badge',
        'assignee', 'order'
    ]
    list_filter = ['priority', 'status', 'project', 'created_at']
    search_fields = ['title', 'description']
    readonly_fields = ['reporter', 'created_at', 'updated_at']
    inlines = [CommentInline, AttachmentInline]

    def priority_badge(self, obj):
        """Exibe a prioridade com badge colorido"""
        cores = {
            'Low': '#10B981',
            'Medium': '#F59E0B',
            'High': '#F97316',
            'Critical': '#EF4444'
        }
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}</span>',
            cores.get(obj.priority, '#6B7280'), obj.get_priority_display()
        )

    priority_badge.short_description = 'Prioridade'


@admin.register(Sprint)
class SprintAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'start_date', 'end_date', 'status']
    list_filter = ['status', 'project']
    search_fields = ['name', 'goal']


@admin.register(TimeLog)
class TimeLogAdmin(admin.ModelAdmin):
    """Admin para registros de tempo"""

    list_display = ['user', 'task', 'start_time', 'end_time', 'duration_display', 'is_running']
    list_filter = ['is_running', 'start_time']
    search_fields = ['user__username', 'task__title', 'description']
    readonly_fields = ['duration']

    def duration_display(self, obj):
        """Exibe duração formatada"""
        from .utils import format_duration
        return format_duration(obj.duration)

    duration_display.short_description = 'Duração'


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    """Log de atividades - somente leitura"""

    list_display = ['action', 'user', 'project', 'entity_type', 'entity_id', 'created_at']
    list_filter = ['action', 'entity_type', 'project']
    search_fields = ['user__username', 'project__name']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
