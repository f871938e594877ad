# apps/board/routing.py

from django.urls import re_path
from . import consumers

# Rotas WebSocket da camada em tempo real
websocket_urlpatterns = [
    # Uma conexão por cliente - as salas de projeto são escolhidas por mensagem
    re_path(r'ws/projects/$', consumers.ProjectConsumer.as_asgi()),
]
