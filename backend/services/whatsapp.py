"""
Cliente do gateway WhatsApp (API compatível com WAHA).

Todo o trabalho de protocolo (pareamento, QR code, transporte) fica no
gateway. Cada conta do painel corresponde a uma sessão no gateway.
"""

import base64
import enum
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from backend.config import settings

logger = logging.getLogger(__name__)


class StatusSessao(str, enum.Enum):
    """Status de sessão reportados pelo gateway"""
    STARTING = "STARTING"
    SCAN_QR_CODE = "SCAN_QR_CODE"
    WORKING = "WORKING"
    FAILED = "FAILED"
    STOPPED = "STOPPED"


class WhatsAppError(Exception):
    """Erro base do gateway"""

    def __init__(self, mensagem: str, status_code: Optional[int] = None, detalhes: Optional[dict] = None):
        self.mensagem = mensagem
        self.status_code = status_code
        self.detalhes = detalhes or {}
        super().__init__(mensagem)


class WhatsAppConexaoError(WhatsAppError):
    """Gateway inacessível ou timeout"""


class WhatsAppSessaoError(WhatsAppError):
    """Falha ao manipular a sessão"""


class WhatsAppMensagemError(WhatsAppError):
    """Falha ao enviar mensagem"""


class WhatsAppService:
    """Serviço para gerenciar sessões e enviar mensagens via gateway"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        webhook_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        url = base_url if base_url is not None else settings.WHATSAPP_API_URL
        self.base_url = url.rstrip("/") if url else ""
        self.api_key = api_key if api_key is not None else settings.WHATSAPP_API_KEY
        self.timeout = timeout or settings.WHATSAPP_TIMEOUT
        self.webhook_url = webhook_url if webhook_url is not None else settings.WHATSAPP_WEBHOOK_URL
        self.transport = transport

    def _get_headers(self) -> dict:
        """Retorna headers para requisições ao gateway"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers

    @staticmethod
    def _formatar_chat_id(numero: str) -> str:
        """Converte número em chat id (5511999999999@c.us)"""
        numero_limpo = "".join(filter(str.isdigit, numero))
        return f"{numero_limpo}@c.us"

    @staticmethod
    def extrair_mensagem_id(resultado: Any) -> Optional[str]:
        """Extrai o id da mensagem da resposta do gateway"""
        if not isinstance(resultado, dict):
            return None

        chave = resultado.get("key")
        if isinstance(chave, dict) and chave.get("id"):
            return str(chave["id"])

        mensagem_id = resultado.get("id")
        if isinstance(mensagem_id, dict):
            mensagem_id = mensagem_id.get("_serialized") or mensagem_id.get("id")
        return str(mensagem_id) if mensagem_id else None

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Dict[str, Any]:
        """
        Executa requisição HTTP ao gateway.

        Raises:
            WhatsAppConexaoError: gateway inacessível
            WhatsAppError: resposta com status >= 400
        """
        if not self.base_url:
            raise WhatsAppConexaoError("Gateway WhatsApp não configurado")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method,
                    endpoint,
                    json=json_data,
                    params=params,
                    headers=self._get_headers(),
                )
        except httpx.TimeoutException as e:
            logger.error(f"[WhatsApp] Timeout em {method} {endpoint}: {e}")
            raise WhatsAppConexaoError("Tempo esgotado ao acessar o gateway", detalhes={"erro": str(e)})
        except httpx.HTTPError as e:
            logger.error(f"[WhatsApp] Erro de conexão em {method} {endpoint}: {e}")
            raise WhatsAppConexaoError(
                f"Não foi possível conectar ao gateway em {self.base_url}",
                detalhes={"erro": str(e)}
            )

        logger.debug(f"[WhatsApp] {method} {endpoint} -> {response.status_code}")

        if response.status_code >= 400:
            detalhe = response.text
            try:
                detalhe = response.json().get("message", detalhe)
            except (ValueError, AttributeError):
                pass

            logger.error(f"[WhatsApp] Erro {response.status_code} em {endpoint}: {detalhe}")
            raise WhatsAppError(
                f"Erro do gateway: {detalhe}",
                status_code=response.status_code,
                detalhes={"endpoint": endpoint, "resposta": detalhe}
            )

        if not response.headers.get("content-type", "").startswith("application/json"):
            return {"raw": response.text}

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"[WhatsApp] Resposta inválida em {endpoint}: {e}")
            raise WhatsAppError(
                "Resposta inválida do gateway",
                status_code=response.status_code,
                detalhes={"endpoint": endpoint, "resposta": response.text[:200]}
            )

    # ==================== SESSÕES ====================

    async def iniciar_sessao(self, nome: str) -> Dict[str, Any]:
        """Cria e inicia a sessão; se já existir, apenas inicia"""
        payload: Dict[str, Any] = {"name": nome, "start": True}

        if self.webhook_url:
            payload["config"] = {
                "webhooks": [{
                    "url": self.webhook_url,
                    "events": ["session.status"],
                }]
            }

        logger.info(f"[WhatsApp] Iniciando sessão {nome}")

        try:
            return await self._request("POST", "/api/sessions", json_data=payload)
        except WhatsAppConexaoError:
            raise
        except WhatsAppError as e:
            if e.status_code != 422:
                raise WhatsAppSessaoError(
                    f"Falha ao criar sessão: {e.mensagem}",
                    status_code=e.status_code,
                    detalhes=e.detalhes
                )

        # Sessão já existe
        try:
            return await self._request("POST", f"/api/sessions/{nome}/start")
        except WhatsAppConexaoError:
            raise
        except WhatsAppError as e:
            if e.status_code == 422:
                return await self.obter_sessao(nome)
            raise WhatsAppSessaoError(
                f"Falha ao iniciar sessão: {e.mensagem}",
                status_code=e.status_code,
                detalhes=e.detalhes
            )

    async def obter_sessao(self, nome: str) -> Dict[str, Any]:
        """Retorna informações da sessão (name, status, me...)"""
        return await self._request("GET", f"/api/sessions/{nome}")

    async def logout_sessao(self, nome: str) -> Dict[str, Any]:
        """Desvincula o dispositivo da sessão"""
        logger.info(f"[WhatsApp] Logout da sessão {nome}")
        return await self._request("POST", f"/api/sessions/{nome}/logout")

    async def remover_sessao(self, nome: str) -> Dict[str, Any]:
        """Remove a sessão e as credenciais salvas no gateway"""
        logger.info(f"[WhatsApp] Removendo sessão {nome}")
        return await self._request("DELETE", f"/api/sessions/{nome}")

    async def obter_qr_code(self, nome: str) -> Optional[str]:
        """Retorna o valor bruto do QR code (para o front renderizar)"""
        try:
            resultado = await self._request("GET", f"/api/{nome}/auth/qr", params={"format": "raw"})
        except WhatsAppConexaoError:
            raise
        except WhatsAppError as e:
            raise WhatsAppSessaoError(
                f"Sessão {nome} não está pronta para QR code",
                status_code=e.status_code,
                detalhes=e.detalhes
            )
        return resultado.get("value") or resultado.get("raw")

    # ==================== MENSAGENS ====================

    async def enviar_texto(self, sessao: str, numero: str, texto: str) -> Dict[str, Any]:
        """
        Envia mensagem de texto.

        Args:
            sessao: Nome da sessão no gateway
            numero: Número do destinatário (apenas dígitos)
            texto: Texto da mensagem

        Returns:
            dict com a mensagem criada pelo gateway
        """
        payload = {
            "session": sessao,
            "chatId": self._formatar_chat_id(numero),
            "text": texto,
        }

        try:
            resultado = await self._request("POST", "/api/sendText", json_data=payload)
        except WhatsAppConexaoError:
            raise
        except WhatsAppError as e:
            raise WhatsAppMensagemError(
                f"Falha ao enviar mensagem: {e.mensagem}",
                status_code=e.status_code,
                detalhes={"numero": numero, **e.detalhes}
            )

        logger.info(f"[WhatsApp] Mensagem enviada para {numero} via {sessao}")
        return resultado

    async def enviar_midia(
        self,
        sessao: str,
        numero: str,
        caminho: Path,
        mimetype: str,
        nome_arquivo: Optional[str] = None,
        legenda: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Envia arquivo (imagem, vídeo, áudio ou documento) com legenda opcional"""
        caminho = Path(caminho)
        dados = base64.b64encode(caminho.read_bytes()).decode("ascii")

        if mimetype.startswith("image/"):
            endpoint = "/api/sendImage"
        elif mimetype.startswith("video/"):
            endpoint = "/api/sendVideo"
        elif mimetype.startswith("audio/"):
            endpoint = "/api/sendVoice"
        else:
            endpoint = "/api/sendFile"

        payload: Dict[str, Any] = {
            "session": sessao,
            "chatId": self._formatar_chat_id(numero),
            "file": {
                "mimetype": mimetype,
                "filename": nome_arquivo or caminho.name,
                "data": dados,
            },
        }
        # Áudio de voz não aceita legenda
        if legenda and endpoint != "/api/sendVoice":
            payload["caption"] = legenda

        try:
            resultado = await self._request("POST", endpoint, json_data=payload)
        except WhatsAppConexaoError:
            raise
        except WhatsAppError as e:
            raise WhatsAppMensagemError(
                f"Falha ao enviar mídia: {e.mensagem}",
                status_code=e.status_code,
                detalhes={"numero": numero, **e.detalhes}
            )

        logger.info(f"[WhatsApp] Mídia {mimetype} enviada para {numero} via {sessao}")
        return resultado


# Instância global
whatsapp_service = WhatsAppService()


def obter_whatsapp_service() -> WhatsAppService:
    """Dependency que retorna o cliente do gateway"""
    return whatsapp_service
