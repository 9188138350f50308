"""
Queue Service - Interface para enfileirar jobs no arq.

Responsabilidades:
- Agendar envios de mensagem para o worker
- Consultar status dos jobs
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any
from urllib.parse import urlparse

from arq import create_pool
from arq.connections import RedisSettings

from backend.config import settings

logger = logging.getLogger(__name__)


def parse_redis_url(url: str) -> RedisSettings:
    """Converte URL Redis para RedisSettings do arq."""
    parsed = urlparse(url)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or 0),
        password=parsed.password,
    )


class QueueService:
    """Serviço para interagir com a fila arq."""

    def __init__(self):
        self._pool = None
        self._redis_settings = parse_redis_url(settings.REDIS_URL)

    async def get_pool(self):
        """Retorna pool de conexões Redis."""
        if self._pool is None:
            self._pool = await create_pool(self._redis_settings)
        return self._pool

    async def close(self):
        """Fecha pool de conexões."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    async def enqueue_envio_agendado(
        self,
        conta_id: int,
        numero: str,
        texto: str,
        agendar_em: datetime,
    ) -> Dict[str, Any]:
        """
        Agenda o envio de uma mensagem de texto.

        Args:
            conta_id: Conta que fará o envio
            numero: Destinatário
            texto: Mensagem
            agendar_em: Momento do envio

        Returns:
            Dict com job_id e status ("error" se a fila estiver indisponível)
        """
        try:
            pool = await self.get_pool()
            job = await pool.enqueue_job(
                "job_enviar_mensagem_agendada",
                conta_id,
                numero,
                texto,
                _defer_until=agendar_em,
            )

            logger.info(
                f"[Queue] Envio agendado para {numero} (conta {conta_id}) em {agendar_em.isoformat()}"
            )

            return {
                "job_id": job.job_id,
                "conta_id": conta_id,
                "status": "enqueued",
                "agendado_para": agendar_em.isoformat(),
            }

        except Exception as e:
            logger.error(f"[Queue] Erro ao enfileirar envio agendado: {e}")
            return {
                "erro": str(e),
                "conta_id": conta_id,
                "status": "error"
            }

    async def get_job_info(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Busca informações de um job.

        Args:
            job_id: ID do job

        Returns:
            Dict com informações do job (status "error" se a fila estiver
            indisponível) ou None se o job não existir
        """
        from arq.jobs import Job

        try:
            pool = await self.get_pool()
            job = Job(job_id, pool)
            info = await job.info()

            if info is None:
                return None

            return {
                "job_id": job_id,
                "status": (await job.status()).value,
                "function": info.function,
                "enqueue_time": info.enqueue_time.isoformat() if info.enqueue_time else None,
                "success": getattr(info, "success", None),
                "result": getattr(info, "result", None),
            }

        except Exception as e:
            logger.error(f"[Queue] Erro ao buscar job {job_id}: {e}")
            return {"job_id": job_id, "status": "error", "erro": str(e)}


# Instância global
queue_service = QueueService()


def obter_queue_service() -> QueueService:
    """Dependency que retorna o serviço de fila"""
    return queue_service
