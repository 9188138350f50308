"""
Webhook do gateway WhatsApp - atualiza o status das contas.
"""

import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from backend.core.database import get_db
from backend.routes.whatsapp.utils import extrair_status_evento, verify_webhook_signature
from backend.schemas import EventoSessao
from backend.services.sessoes import aplicar_status_sessao, obter_conta_por_sessao

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/whatsapp", tags=["WhatsApp"])

EVENTO_STATUS_SESSAO = "session.status"


@router.post("/webhook")
async def webhook_whatsapp(
    request: Request,
    db: Session = Depends(get_db),
    x_webhook_signature: str | None = Header(None, alias="X-Webhook-Signature"),
):
    """
    Recebe eventos do gateway.

    Valida assinatura HMAC-SHA256 se WEBHOOK_SECRET estiver configurado.
    Apenas eventos session.status são processados.
    """
    body = await request.body()
    if not verify_webhook_signature(body, x_webhook_signature):
        logger.warning("[Webhook] Assinatura inválida - rejeitando requisição")
        raise HTTPException(status_code=401, detail="Assinatura do webhook inválida")

    try:
        evento = EventoSessao.model_validate(json.loads(body))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"[Webhook] Payload inválido: {e}")
        raise HTTPException(status_code=400, detail="Payload inválido")

    logger.debug(f"[Webhook] Evento recebido: {evento.event} ({evento.session})")

    if evento.event != EVENTO_STATUS_SESSAO:
        return {"status": "ignored", "reason": f"event type: {evento.event}"}

    conta = obter_conta_por_sessao(db, evento.session)
    if not conta:
        return {"status": "ignored", "reason": "unknown session"}

    status_sessao, qr_code = extrair_status_evento(evento.payload)
    if not status_sessao:
        return {"status": "ignored", "reason": "missing status"}

    novo_status = aplicar_status_sessao(db, conta, status_sessao, qr_code)

    return {"status": "ok", "conta_id": conta.id, "status_conta": novo_status.value}
