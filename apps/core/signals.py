# apps/core/signals.py

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import Project, ProjectMember, Role, TimeLog, default_workflow

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Project)
def garantir_workflow(sender, instance, **kwargs):
    """
    Projetos nunca ficam sem estágios - workflow vazio vira o padrão
    """
    if not instance.workflow:
        instance.workflow = default_workflow()


@receiver(post_save, sender=Project)
def adicionar_dono_como_membro(sender, instance, created, **kwargs):
    """
    O criador entra na lista de membros como Admin
    """
    if created:
        ProjectMember.objects.get_or_create(
            project=instance,
            user=instance.owner,
            defaults={'role': Role.ADMIN},
        )


@receiver(pre_save, sender=TimeLog)
def calcular_duracao_automatica(sender, instance, **kwargs):
    """
    Duração é sempre derivada de início e fim, nunca informada
    """
    if instance.end_time and instance.start_time:
        if instance.end_time < instance.start_time:
            logger.warning(f"⏱️ Registro {instance.pk} com fim antes do início - ajustando")
            instance.end_time = instance.start_time
        instance.is_running = False
        instance.duration = instance.compute_duration()
    else:
        instance.duration = 0
