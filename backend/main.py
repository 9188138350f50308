import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.routes import (
    auth_router,
    contas_router,
    contatos_router,
    mensagens_router,
    modelos_router,
    whatsapp_router
)
from backend.services.queue_service import queue_service

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia ciclo de vida da aplicacao."""
    # Startup
    logger.info("Disparador WhatsApp API iniciando...")
    logger.info(f"Gateway WhatsApp: {settings.WHATSAPP_API_URL}")
    logger.info("Envios agendados são executados pelo worker arq: arq backend.worker.WorkerSettings")

    yield

    # Shutdown
    await queue_service.close()
    logger.info("Disparador WhatsApp API encerrando...")

app = FastAPI(
    title="Disparador WhatsApp API",
    description="API para envio de mensagens WhatsApp, modelos, contatos e gestão de contas",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def adicionar_headers_seguranca(request: Request, call_next):
    response = await call_next(request)
    for header, valor in SECURITY_HEADERS.items():
        response.headers[header] = valor
    return response


# Routers
app.include_router(auth_router)
app.include_router(contas_router)
app.include_router(mensagens_router)
app.include_router(modelos_router)
app.include_router(contatos_router)
app.include_router(whatsapp_router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Disparador WhatsApp API"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Iniciando Disparador WhatsApp API em http://{settings.HOST}:{settings.PORT}")

    uvicorn.run(
        "backend.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
