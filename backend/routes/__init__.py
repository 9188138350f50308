from backend.routes.auth import router as auth_router
from backend.routes.contas import router as contas_router
from backend.routes.contatos import router as contatos_router
from backend.routes.mensagens import router as mensagens_router
from backend.routes.modelos import router as modelos_router
from backend.routes.whatsapp import router as whatsapp_router

__all__ = [
    "auth_router",
    "contas_router",
    "contatos_router",
    "mensagens_router",
    "modelos_router",
    "whatsapp_router",
]
