# apps/board/__init__.py

"""
Board - Camada colaborativa do Fluxo Board

Funcionalidades:
- Salas de projeto e fan-out de eventos via WebSocket
- Pipeline de mutações (validar, autorizar, aplicar, registrar, anunciar)
- API REST JSON
"""
