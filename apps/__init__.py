# apps/__init__.py

"""
Fluxo Board - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Models principais, permissões, tokens e controle de tempo
- board: Camada em tempo real, pipeline de mutações e API REST
"""

__version__ = '0.1.0'
