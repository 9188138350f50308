"""
Arq Worker - Task Queue assíncrono.

Responsabilidades:
- Executar envios de mensagem agendados
- Sincronizar periodicamente o status das contas com o gateway

Para rodar o worker:
    arq backend.worker.WorkerSettings

Para rodar com hot-reload (dev):
    arq backend.worker.WorkerSettings --watch backend
"""

import logging

from arq import cron

from backend.config import settings
from backend.core.database import SessionLocal
from backend.services.queue_service import parse_redis_url

logger = logging.getLogger(__name__)


# =============================================================================
# JOBS
# =============================================================================

async def job_enviar_mensagem_agendada(ctx: dict, conta_id: int, numero: str, texto: str) -> dict:
    """
    Envia uma mensagem agendada pela API.
    A conta precisa continuar conectada no momento do envio.
    """
    from backend.services.envios import enviar_para_destinatario, obter_conta_conectada
    from backend.services.sessoes import registrar_atividade
    from backend.services.whatsapp import WhatsAppError, whatsapp_service

    logger.info(f"[Worker] Envio agendado para {numero} pela conta {conta_id}")

    db = SessionLocal()
    try:
        conta = obter_conta_conectada(db, conta_id)
        if not conta:
            logger.warning(f"[Worker] Conta {conta_id} não está conectada, envio descartado")
            return {"sucesso": False, "erro": "Conta não encontrada ou não conectada"}

        try:
            envio = await enviar_para_destinatario(db, conta, numero, texto, whatsapp_service)
        except WhatsAppError as e:
            logger.error(f"[Worker] Falha no envio agendado para {numero}: {e.mensagem}")
            return {"sucesso": False, "erro": e.mensagem}

        registrar_atividade(db, conta.id, "mensagem_enviada", f"Mensagem agendada enviada para {numero}")
        db.commit()

        return {"sucesso": True, "mensagem_id": envio["mensagem_id"]}
    finally:
        db.close()


async def job_sincronizar_contas(ctx: dict) -> dict:
    """Atualiza o status de todas as contas que não estão desconectadas"""
    from backend.models import Conta, StatusConta
    from backend.services.sessoes import sincronizar_status
    from backend.services.whatsapp import WhatsAppError, whatsapp_service

    db = SessionLocal()
    resultados = {"contas_verificadas": 0, "erros": 0}

    try:
        contas = db.query(Conta).filter(Conta.status != StatusConta.DESCONECTADA).all()

        for conta in contas:
            try:
                await sincronizar_status(db, conta, whatsapp_service)
                resultados["contas_verificadas"] += 1
            except WhatsAppError as e:
                resultados["erros"] += 1
                logger.error(f"[Worker] Erro ao sincronizar conta {conta.id}: {e.mensagem}")
    finally:
        db.close()

    logger.info(f"[Worker] Sincronização concluída: {resultados}")
    return resultados


# =============================================================================
# STARTUP/SHUTDOWN
# =============================================================================

async def startup(ctx: dict):
    """Executado quando o worker inicia."""
    logger.info("[Worker] Iniciando worker arq...")
    logger.info(
        f"[Worker] Sincronização de contas a cada {settings.SINCRONIZACAO_INTERVALO_MINUTOS} min"
    )


async def shutdown(ctx: dict):
    """Executado quando o worker para."""
    logger.info("[Worker] Encerrando worker arq...")


# =============================================================================
# CONFIGURAÇÃO DO WORKER
# =============================================================================

def _minutos_sincronizacao() -> set:
    intervalo = max(1, settings.SINCRONIZACAO_INTERVALO_MINUTOS)
    return set(range(0, 60, intervalo))


class WorkerSettings:
    """Configurações do worker arq."""

    # Conexão Redis
    redis_settings = parse_redis_url(settings.REDIS_URL)

    # Funções de lifecycle
    on_startup = startup
    on_shutdown = shutdown

    # Jobs disponíveis para enfileiramento
    functions = [
        job_enviar_mensagem_agendada,
        job_sincronizar_contas,
    ]

    # Jobs agendados (cron)
    cron_jobs = [
        cron(
            job_sincronizar_contas,
            minute=_minutos_sincronizacao(),
            timeout=120,
            run_at_startup=True,
        ),
    ]

    # Retry policy
    max_tries = 3
    retry_delay = 60  # 1 minuto entre retries

    # Health check
    health_check_interval = 60
