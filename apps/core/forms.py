# apps/core/forms.py

"""
Validação de entrada da API

Os formulários do Django fazem a validação dos payloads JSON. As chaves
chegam em camelCase (dueDate, taskId) e são convertidas para os nomes
dos campos antes da validação.
"""

import re

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError as FormValidationError
from django.utils.text import slugify

from .exceptions import ValidationError
from .models import Attachment, Comment, Role, Sprint, Task, User


_CAMEL = re.compile(r'(?<!^)(?=[A-Z])')


def snake_case(key):
    return _CAMEL.sub('_', key).lower()


def validate_payload(form_class, data, partial=False, **kwargs):
    """
    Valida o payload com o formulário e devolve os dados limpos

    Em atualizações parciais nenhum campo é obrigatório e apenas as
    chaves presentes no payload são devolvidas.

    Raises:
        ValidationError: com os erros por campo em `errors`
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('O corpo da requisição deve ser um objeto JSON')

    data = {snake_case(key): value for key, value in data.items()}
    form = form_class(data=data, **kwargs)

    if partial:
        for field in form.fields.values():
            field.required = False

    if not form.is_valid():
        errors = {campo: list(mensagens) for campo, mensagens in form.errors.items()}
        primeira = next(iter(errors.values()))[0]
        raise ValidationError(primeira, errors=errors)

    if partial:
        return {k: v for k, v in form.cleaned_data.items() if k in data}
    return form.cleaned_data


def clean_workflow(stages):
    """
    Normaliza a lista de estágios do workflow

    Estágios sem id recebem o slug do nome; ids precisam ser únicos.
    A ordem segue a posição na lista quando não informada.
    """
    if not isinstance(stages, list) or not stages:
        raise FormValidationError('O workflow deve ter ao menos um estágio')

    normalizados = []
    vistos = set()
    for posicao, stage in enumerate(stages, start=1):
        if not isinstance(stage, dict) or not str(stage.get('name', '')).strip():
            raise FormValidationError('Cada estágio precisa de um nome')

        nome = str(stage['name']).strip()
        stage_id = str(stage.get('id') or slugify(nome)).strip()
        if not stage_id:
            raise FormValidationError(f'Não foi possível gerar um id para o estágio "{nome}"')
        if stage_id in vistos:
            raise FormValidationError(f'Id de estágio duplicado: {stage_id}')
        vistos.add(stage_id)

        order = stage.get('order', posicao)
        if not isinstance(order, int) or isinstance(order, bool):
            raise FormValidationError(f'Ordem inválida no estágio "{nome}"')

        normalizados.append({
            'id': stage_id,
            'name': nome,
            'order': order,
            'color': stage.get('color') or '#94a3b8',
        })

    return normalizados


class TokenForm(forms.Form):
    """Troca de usuário e senha por um token"""

    username = forms.CharField(max_length=150)
    password = forms.CharField()


class ProjectForm(forms.Form):
    name = forms.CharField(max_length=200)
    description = forms.CharField(required=False)
    workflow = forms.JSONField(required=False)

    def clean_name(self):
        nome = self.cleaned_data['name'].strip()
        if len(nome) < 3:
            raise FormValidationError("Nome do projeto deve ter pelo menos 3 caracteres")
        return nome

    def clean_workflow(self):
        stages = self.cleaned_data.get('workflow')
        if stages is None:
            return None
        return clean_workflow(stages)


class WorkflowForm(forms.Form):
    workflow = forms.JSONField()

    def clean_workflow(self):
        return clean_workflow(self.cleaned_data['workflow'])


class MemberForm(forms.Form):
    """Adição de membro ao projeto"""

    user_id = forms.ModelChoiceField(
        queryset=User.objects.filter(is_active=True),
        error_messages={'invalid_choice': 'Usuário não encontrado'}
    )
    role = forms.ChoiceField(choices=Role.choices, required=False)

    def clean_role(self):
        return self.cleaned_data.get('role') or Role.TEAM_MEMBER.value


class TaskForm(forms.Form):
    title = forms.CharField(max_length=200)
    description = forms.CharField(required=False)
    status = forms.CharField(max_length=50, required=False)
    priority = forms.ChoiceField(choices=Task.Priority.choices, required=False)
    assignee = forms.ModelChoiceField(
        queryset=User.objects.filter(is_active=True),
        required=False,
        error_messages={'invalid_choice': 'Responsável não encontrado'}
    )
    labels = forms.JSONField(required=False)
    due_date = forms.DateTimeField(required=False)
    sprint = forms.ModelChoiceField(
        queryset=Sprint.objects.all(),
        required=False,
        error_messages={'invalid_choice': 'Sprint não encontrada'}
    )
    estimated_hours = forms.FloatField(min_value=0, required=False)
    order = forms.IntegerField(required=False)

    def clean_title(self):
        titulo = (self.cleaned_data.get('title') or '').strip()
        if 'title' in self.data and not titulo:
            raise FormValidationError('O título é obrigatório')
        return titulo

    def clean_labels(self):
        labels = self.cleaned_data.get('labels') or []
        if not isinstance(labels, list) or not all(isinstance(l, str) for l in labels):
            raise FormValidationError('Labels devem ser uma lista de textos')
        return labels


class MoveTaskForm(forms.Form):
    status = forms.CharField(max_length=50)
    order = forms.IntegerField(required=False)


class TaskFilterForm(forms.Form):
    """Filtros da listagem de tarefas (query string)"""

    status = forms.CharField(required=False)
    assignee = forms.IntegerField(required=False)
    sprint = forms.IntegerField(required=False)
    priority = forms.ChoiceField(choices=Task.Priority.choices, required=False)


class CommentForm(forms.Form):
    content = forms.CharField()
    parent = forms.ModelChoiceField(
        queryset=Comment.objects.all(),
        required=False,
        error_messages={'invalid_choice': 'Comentário pai não encontrado'}
    )
    mentions = forms.ModelMultipleChoiceField(
        queryset=User.objects.filter(is_active=True),
        required=False
    )

    def clean_content(self):
        conteudo = self.cleaned_data['content'].strip()
        if not conteudo:
            raise FormValidationError('O comentário não pode ser vazio')
        return conteudo


class CommentUpdateForm(forms.Form):
    content = forms.CharField()

    def clean_content(self):
        conteudo = self.cleaned_data['content'].strip()
        if not conteudo:
            raise FormValidationError('O comentário não pode ser vazio')
        return conteudo


class SprintForm(forms.Form):
    name = forms.CharField(max_length=200)
    goal = forms.CharField(required=False)
    start_date = forms.DateTimeField()
    end_date = forms.DateTimeField()
    status = forms.ChoiceField(choices=Sprint.Status.choices, required=False)

    def clean(self):
        cleaned_data = super().clean()
        inicio = cleaned_data.get('start_date')
        fim = cleaned_data.get('end_date')

        if inicio and fim and fim <= inicio:
            raise FormValidationError('A data de fim deve ser posterior à de início')

        return cleaned_data


class TimerStartForm(forms.Form):
    task_id = forms.ModelChoiceField(
        queryset=Task.objects.select_related('project'),
        error_messages={'invalid_choice': 'Tarefa não encontrada'}
    )
    description = forms.CharField(required=False)


class ManualTimeForm(forms.Form):
    task_id = forms.ModelChoiceField(
        queryset=Task.objects.select_related('project'),
        error_messages={'invalid_choice': 'Tarefa não encontrada'}
    )
    start_time = forms.DateTimeField()
    end_time = forms.DateTimeField()
    description = forms.CharField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        inicio = cleaned_data.get('start_time')
        fim = cleaned_data.get('end_time')

        if inicio and fim and fim <= inicio:
            raise FormValidationError('O fim deve ser posterior ao início')

        return cleaned_data


class AttachmentForm(forms.Form):
    kind = forms.ChoiceField(choices=Attachment.Kind.choices, required=False)
    filename = forms.CharField(max_length=255, required=False)
    url = forms.URLField(max_length=500, assume_scheme='https')
    size = forms.IntegerField(min_value=0, required=False)

    def clean_size(self):
        tamanho = self.cleaned_data.get('size')
        limite = getattr(settings, 'FLUXO_ATTACHMENT_MAX_BYTES', None)
        if tamanho and limite and tamanho > limite:
            raise FormValidationError(f'Arquivo excede o limite de {limite} bytes')
        return tamanho

    def clean(self):
        cleaned_data = super().clean()
        cleaned_data['kind'] = cleaned_data.get('kind') or Attachment.Kind.FILE.value

        url = cleaned_data.get('url')
        if url and not cleaned_data.get('filename'):
            cleaned_data['filename'] = url.rstrip('/').rsplit('/', 1)[-1] or url

        return cleaned_data


class PageForm(forms.Form):
    """Paginação dos feeds de atividade"""

    limit = forms.IntegerField(min_value=1, max_value=100, required=False)
    skip = forms.IntegerField(min_value=0, required=False)

    def clean_limit(self):
        return self.cleaned_data.get('limit') or getattr(settings, 'FLUXO_ACTIVITY_PAGE_SIZE', 20)

    def clean_skip(self):
        return self.cleaned_data.get('skip') or 0
