# apps/core/__init__.py

"""
Core - Aplicação principal do Fluxo Board

Contém:
- Models (User, Project, Task, Sprint, TimeLog, Activity, ...)
- Gate de permissões por papel
- Taxonomia de erros e tokens JWT
- Controle de tempo e log de atividades
"""
