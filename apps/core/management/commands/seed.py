# apps/core/management/commands/seed.py

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.board.services import board_service
from apps.core.models import Project, Role, Task, User


DEMO_USERS = [
    ('ana', 'Ana', 'Souza'),
    ('bruno', 'Bruno', 'Lima'),
    ('carla', 'Carla', 'Mendes'),
]

DEMO_PASSWORD = 'fluxo123'


class Command(BaseCommand):
    help = 'Popula o banco com um projeto de demonstração'

    def add_arguments(self, parser):
        parser.add_argument(
            '--force',
            action='store_true',
            help='Cria o projeto demo mesmo que já exista'
        )

    def handle(self, *args, **options):
        self.stdout.write('🌱 Populando banco com dados demo...')

        if Project.objects.filter(name='Projeto Demo').exists() and not options['force']:
            self.stdout.write(self.style.WARNING('⚠️  Projeto demo já existe (use --force para recriar)'))
            return

        with transaction.atomic():
            usuarios = self._criar_usuarios()
            dono, gerente, dev = usuarios

            project = board_service.create_project(dono, {
                'name': 'Projeto Demo',
                'description': 'Board de demonstração do Fluxo',
            })
            board_service.add_member(dono, project.pk, {'userId': gerente.pk, 'role': Role.PROJECT_MANAGER})
            board_service.add_member(dono, project.pk, {'userId': dev.pk, 'role': Role.TEAM_MEMBER})

            agora = timezone.now()
            sprint = board_service.create_sprint(gerente, project.pk, {
                'name': 'Sprint 1',
                'goal': 'Primeira entrega',
                'startDate': agora - timedelta(days=3),
                'endDate': agora + timedelta(days=11),
            }).entity

            tarefas = [
                ('Configurar ambiente', 'done', Task.Priority.HIGH),
                ('Modelar banco de dados', 'review', Task.Priority.MEDIUM),
                ('Tela de login', 'inprogress', Task.Priority.HIGH),
                ('Documentar API', 'todo', Task.Priority.LOW),
            ]
            for titulo, status, prioridade in tarefas:
                board_service.create_task(gerente, project.pk, {
                    'title': titulo,
                    'status': status,
                    'priority': prioridade,
                    'assignee': dev.pk,
                    'sprint': sprint.pk,
                    'estimatedHours': 4,
                })

        self.stdout.write(self.style.SUCCESS(
            f'✅ Projeto "{project.name}" criado com {len(tarefas)} tarefas\n'
            f'🔑 Usuários: {", ".join(u.username for u in usuarios)} (senha: {DEMO_PASSWORD})'
        ))

    def _criar_usuarios(self):
        usuarios = []
        for username, first_name, last_name in DEMO_USERS:
            user, criado = User.objects.get_or_create(
                username=username,
                defaults={
                    'first_name': first_name,
                    'last_name': last_name,
                    'email': f'{username}@fluxo.dev',
                }
            )
            if criado:
                user.set_password(DEMO_PASSWORD)
                user.save()
                self.stdout.write(f'  👤 Usuário criado: {username}')
            usuarios.append(user)
        return usuarios
