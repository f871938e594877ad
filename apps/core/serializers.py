# apps/core/serializers.py

"""
Representação pública dos modelos

Tudo que sai pela API REST ou pelos eventos em tempo real passa por
aqui. Usuários aparecem sempre pela identidade pública (id + nome).
"""


def _iso(valor):
    return valor.isoformat() if valor else None


def _identity(user):
    return user.public_identity() if user else None


def serialize_user(user):
    dados = user.public_identity()
    dados.update({
        'username': user.username,
        'email': user.email,
        'avatar': user.avatar,
    })
    return dados


def serialize_member(member):
    return {
        'user': _identity(member.user),
        'role': member.role,
        'joinedAt': _iso(member.joined_at),
    }


def serialize_project(project, with_members=False):
    dados = {
        'id': project.pk,
        'name': project.name,
        'description': project.description,
        'owner': _identity(project.owner),
        'workflow': project.ordered_stages(),
        'isActive': project.is_active,
        'createdAt': _iso(project.created_at),
        'updatedAt': _iso(project.updated_at),
    }
    if with_members:
        dados['members'] = [
            serialize_member(m) for m in project.members.select_related('user')
        ]
    return dados


def serialize_task(task):
    return {
        'id': task.pk,
        'title': task.title,
        'description': task.description,
        'projectId': task.project_id,
        'status': task.status,
        'priority': task.priority,
        'assignee': _identity(task.assignee),
        'reporter': _identity(task.reporter),
        'labels': task.labels,
        'dueDate': _iso(task.due_date),
        'sprintId': task.sprint_id,
        'estimatedHours': task.estimated_hours,
        'order': task.order,
        'createdAt': _iso(task.created_at),
        'updatedAt': _iso(task.updated_at),
    }


def serialize_comment(comment):
    return {
        'id': comment.pk,
        'taskId': comment.task_id,
        'author': _identity(comment.author),
        'content': comment.content,
        'parentId': comment.parent_id,
        'mentions': [_identity(u) for u in comment.mentions.all()],
        'createdAt': _iso(comment.created_at),
        'updatedAt': _iso(comment.updated_at),
    }


def serialize_attachment(attachment):
    return {
        'id': attachment.pk,
        'taskId': attachment.task_id,
        'kind': attachment.kind,
        'filename': attachment.filename,
        'url': attachment.url,
        'size': attachment.size,
        'uploadedBy': _identity(attachment.uploaded_by),
        'uploadedAt': _iso(attachment.uploaded_at),
    }


def serialize_sprint(sprint):
    return {
        'id': sprint.pk,
        'projectId': sprint.project_id,
        'name': sprint.name,
        'goal': sprint.goal,
        'startDate': _iso(sprint.start_date),
        'endDate': _iso(sprint.end_date),
        'status': sprint.status,
        'createdAt': _iso(sprint.created_at),
    }


def serialize_time_log(log):
    return {
        'id': log.pk,
        'taskId': log.task_id,
        'user': _identity(log.user),
        'startTime': _iso(log.start_time),
        'endTime': _iso(log.end_time),
        'duration': log.duration,
        'description': log.description,
        'isRunning': log.is_running,
    }


def serialize_activity(activity):
    return {
        'id': activity.pk,
        'projectId': activity.project_id,
        'user': _identity(activity.user),
        'action': activity.action,
        'entityType': activity.entity_type,
        'entityId': activity.entity_id,
        'details': activity.details,
        'createdAt': _iso(activity.created_at),
    }
