"""
Módulo de rotas do WhatsApp.

Este módulo contém:
- webhook.py: Endpoint que recebe eventos de sessão do gateway
- utils.py: Funções utilitárias
"""

from backend.routes.whatsapp.webhook import router

__all__ = ["router"]
