"""
Funções utilitárias para o webhook do gateway WhatsApp.
"""

import hashlib
import hmac

from backend.config import settings


def verify_webhook_signature(payload: bytes, signature: str | None) -> bool:
    """
    Verifica a assinatura HMAC-SHA256 do webhook.

    Args:
        payload: Corpo da requisição em bytes
        signature: Assinatura enviada no header X-Webhook-Signature

    Returns:
        True se a assinatura for válida ou se WEBHOOK_SECRET não estiver configurado
    """
    # Sem secret configurado a validação é ignorada (desenvolvimento)
    if not settings.WEBHOOK_SECRET:
        return True

    if not signature:
        return False

    expected_signature = hmac.new(
        settings.WEBHOOK_SECRET.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(expected_signature, signature)


def extrair_status_evento(payload: dict) -> tuple[str | None, str | None]:
    """
    Extrai (status, qr_code) do payload de um evento session.status.

    Args:
        payload: Campo "payload" do evento

    Returns:
        Status da sessão (ex: "WORKING") e QR code, quando enviado
    """
    status_sessao = payload.get("status")
    qr_code = payload.get("qr") or payload.get("qrcode")
    return status_sessao, qr_code
