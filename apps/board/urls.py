# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # === PROJETOS ===
    path('projects/', views.projects, name='projects'),
    path('projects/<int:project_id>/', views.project_detail, name='project_detail'),
    path('projects/<int:project_id>/members/', views.project_members, name='project_members'),
    path('projects/<int:project_id>/members/<int:user_id>/', views.project_member_detail, name='project_member_detail'),
    path('projects/<int:project_id>/workflow/', views.project_workflow, name='project_workflow'),
    path('projects/<int:project_id>/tasks/', views.project_tasks, name='project_tasks'),
    path('projects/<int:project_id>/sprints/', views.project_sprints, name='project_sprints'),
    path('projects/<int:project_id>/activity/', views.project_activity, name='project_activity'),

    # === TAREFAS ===
    path('tasks/<int:task_id>/', views.task_detail, name='task_detail'),
    path('tasks/<int:task_id>/move/', views.task_move, name='task_move'),
    path('tasks/<int:task_id>/comments/', views.task_comments, name='task_comments'),
    path('tasks/<int:task_id>/attachments/', views.task_attachments, name='task_attachments'),
    path('tasks/<int:task_id>/attachments/<int:attachment_id>/', views.task_attachment_detail, name='task_attachment_detail'),
    path('tasks/<int:task_id>/time-logs/', views.task_time_logs, name='task_time_logs'),

    # === COMENTÁRIOS ===
    path('comments/<int:comment_id>/', views.comment_detail, name='comment_detail'),

    # === SPRINTS ===
    path('sprints/<int:sprint_id>/', views.sprint_detail, name='sprint_detail'),
    path('sprints/<int:sprint_id>/burndown/', views.sprint_burndown_view, name='sprint_burndown'),
    path('sprints/<int:sprint_id>/time-summary/', views.sprint_time_summary, name='sprint_time_summary'),

    # === CONTROLE DE TEMPO ===
    path('time-logs/start/', views.timer_start, name='timer_start'),
    path('time-logs/manual/', views.time_log_manual, name='time_log_manual'),
    path('time-logs/current/', views.timer_current, name='timer_current'),
    path('time-logs/<int:log_id>/stop/', views.timer_stop, name='timer_stop'),
    path('time-logs/<int:log_id>/', views.time_log_detail, name='time_log_detail'),

    # === ATIVIDADES ===
    path('activity/mine/', views.my_activity, name='my_activity'),
]
