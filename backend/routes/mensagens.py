import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from backend.config import settings
from backend.core.database import get_db
from backend.core.security import obter_usuario_atual
from backend.models import Mensagem, StatusMensagem
from backend.schemas import EnvioEmMassa, EnvioMensagem, MensagemResposta, ResultadoEnvioEmMassa
from backend.services.envios import enviar_em_massa, enviar_para_destinatario, obter_conta_conectada
from backend.services.queue_service import QueueService, obter_queue_service
from backend.services.sessoes import registrar_atividade
from backend.services.whatsapp import WhatsAppError, WhatsAppService, obter_whatsapp_service
from backend.utils.arquivos import ArquivoInvalidoError, ArquivoTemporario, remover_arquivo, salvar_upload
from backend.utils.formatters import numero_valido, numeros_invalidos

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/mensagens",
    tags=["Mensagens"],
    dependencies=[Depends(obter_usuario_atual)]
)

CONTA_INDISPONIVEL = "Conta não encontrada ou não conectada"


def _erro(detalhe, codigo: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    return HTTPException(status_code=codigo, detail=detalhe)


def _validar_destinatarios(destinatarios: list, limite: int, tipo_envio: str) -> List[str]:
    """Valida a lista e devolve os números como texto"""
    invalidos = numeros_invalidos(destinatarios)
    if invalidos:
        raise _erro({
            "erro": "Números de telefone inválidos",
            "numeros_invalidos": invalidos
        })

    if len(destinatarios) > limite:
        raise _erro(f"Máximo de {limite} destinatários por {tipo_envio}")

    return [str(numero) for numero in destinatarios]


async def _receber_midia(midia: Optional[UploadFile]) -> Optional[ArquivoTemporario]:
    if midia is None or not midia.filename:
        return None
    try:
        return await salvar_upload(midia)
    except ArquivoInvalidoError as e:
        raise _erro(str(e))


@router.post("/enviar")
async def enviar_mensagem(
    dados: EnvioMensagem,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service),
    fila: QueueService = Depends(obter_queue_service)
):
    """Envia (ou agenda) uma mensagem de texto"""

    if not dados.conta_id or not dados.numero or not (dados.mensagem and dados.mensagem.strip()):
        raise _erro("conta_id, numero e mensagem são obrigatórios")

    if not numero_valido(dados.numero):
        raise _erro("Número de telefone inválido")

    conta = obter_conta_conectada(db, dados.conta_id)
    if not conta:
        raise _erro(CONTA_INDISPONIVEL)

    if dados.agendar_em:
        agendamento = await fila.enqueue_envio_agendado(
            conta.id, dados.numero, dados.mensagem, dados.agendar_em
        )
        if agendamento.get("status") == "error":
            raise _erro(
                f"Falha ao agendar mensagem: {agendamento['erro']}",
                status.HTTP_503_SERVICE_UNAVAILABLE
            )

        registrar_atividade(
            db, conta.id, "mensagem_agendada",
            f"Mensagem para {dados.numero} agendada para {dados.agendar_em.isoformat()}"
        )
        db.commit()
        return {
            "sucesso": True,
            "agendada": True,
            "mensagem": "Mensagem agendada com sucesso",
            "job_id": agendamento["job_id"],
        }

    try:
        envio = await enviar_para_destinatario(db, conta, dados.numero, dados.mensagem, gateway)
    except WhatsAppError as e:
        logger.error(f"[Mensagens] Falha ao enviar para {dados.numero}: {e.mensagem}")
        raise _erro(f"Falha ao enviar mensagem: {e.mensagem}", status.HTTP_500_INTERNAL_SERVER_ERROR)

    registrar_atividade(db, conta.id, "mensagem_enviada", f"Mensagem enviada para {dados.numero}")
    db.commit()

    return {
        "sucesso": True,
        "mensagem": "Mensagem enviada com sucesso",
        "mensagem_id": envio["mensagem_id"],
        "resultado": envio["resposta"],
    }


@router.post("/enviar-midia")
async def enviar_midia(
    conta_id: Optional[int] = Form(None),
    numero: Optional[str] = Form(None),
    mensagem: Optional[str] = Form(None),
    agendar_em: Optional[datetime] = Form(None),
    midia: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Envia mensagem com mídia anexada (imagem, vídeo, áudio ou documento)"""

    arquivo = None
    try:
        arquivo = await _receber_midia(midia)
        texto = (mensagem or "").strip()

        logger.info(
            f"[Mensagens] Envio de mídia: conta={conta_id} numero={numero} "
            f"arquivo={arquivo.nome_original if arquivo else None}"
        )

        if not conta_id or not numero:
            raise _erro("Conta e número de destino são obrigatórios")

        if not texto and not arquivo:
            raise _erro("Informe uma mensagem ou um arquivo de mídia")

        if not numero_valido(numero):
            raise _erro("Número de telefone inválido")

        conta = obter_conta_conectada(db, conta_id)
        if not conta:
            raise _erro(CONTA_INDISPONIVEL)

        if agendar_em:
            # TODO: agendar mídia exige guardar o arquivo fora da pasta temporária
            raise _erro(
                "Envio agendado de mídia ainda não implementado",
                status.HTTP_501_NOT_IMPLEMENTED
            )

        try:
            envio = await enviar_para_destinatario(db, conta, numero, texto or None, gateway, arquivo)
        except WhatsAppError as e:
            logger.error(f"[Mensagens] Falha ao enviar mídia para {numero}: {e.mensagem}")
            raise _erro(
                f"Falha ao enviar mensagem com mídia: {e.mensagem}",
                status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        registrar_atividade(db, conta.id, "midia_enviada", f"Mensagem com mídia enviada para {numero}")
        db.commit()

        return {
            "sucesso": True,
            "mensagem": "Mensagem com mídia enviada com sucesso",
            "mensagem_id": envio["mensagem_id"],
            "resultado": envio["resposta"],
        }
    finally:
        if arquivo:
            remover_arquivo(arquivo.caminho)


@router.post("/enviar-em-massa", response_model=ResultadoEnvioEmMassa)
async def enviar_mensagem_em_massa(
    dados: EnvioEmMassa,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Envia a mesma mensagem de texto para vários números, um a um"""

    if not dados.conta_id or not isinstance(dados.destinatarios, list) or not dados.destinatarios:
        raise _erro("Dados da requisição inválidos")

    if not dados.mensagem or not dados.mensagem.strip():
        raise _erro("Mensagem é obrigatória")

    destinatarios = _validar_destinatarios(
        dados.destinatarios, settings.MAX_DESTINATARIOS_TEXTO, "envio em massa"
    )

    conta = obter_conta_conectada(db, dados.conta_id)
    if not conta:
        raise _erro(CONTA_INDISPONIVEL)

    resumo = await enviar_em_massa(db, conta, destinatarios, dados.mensagem, gateway)

    registrar_atividade(
        db, conta.id, "envio_em_massa",
        f"Envio em massa: {resumo['sucesso']} com sucesso, {resumo['falhas']} com falha"
    )
    db.commit()

    return {
        "mensagem": f"Envio em massa concluído: {resumo['sucesso']} com sucesso, {resumo['falhas']} com falha",
        **resumo,
    }


@router.post("/enviar-midia-em-massa", response_model=ResultadoEnvioEmMassa)
async def enviar_midia_em_massa(
    conta_id: Optional[int] = Form(None),
    destinatarios: Optional[str] = Form(None),
    mensagem: Optional[str] = Form(None),
    midia: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Envia mídia (com legenda opcional) ou texto para vários números"""

    arquivo = None
    try:
        arquivo = await _receber_midia(midia)
        texto = (mensagem or "").strip()

        if not conta_id or not destinatarios:
            raise _erro("Campos obrigatórios ausentes")

        try:
            lista = json.loads(destinatarios)
        except json.JSONDecodeError:
            raise _erro("Formato de destinatários inválido")

        if not isinstance(lista, list) or not lista:
            raise _erro("Destinatários devem ser uma lista não vazia")

        lista = _validar_destinatarios(lista, settings.MAX_DESTINATARIOS_MIDIA, "envio em massa com mídia")

        if not arquivo and not texto:
            raise _erro("Informe uma mensagem ou um arquivo de mídia")

        conta = obter_conta_conectada(db, conta_id)
        if not conta:
            raise _erro(CONTA_INDISPONIVEL)

        resumo = await enviar_em_massa(db, conta, lista, texto or None, gateway, arquivo)

        registrar_atividade(
            db, conta.id, "envio_em_massa_midia",
            f"Envio em massa com mídia: {resumo['sucesso']} com sucesso, {resumo['falhas']} com falha"
        )
        db.commit()

        return {
            "mensagem": (
                f"Envio em massa com mídia concluído: "
                f"{resumo['sucesso']} com sucesso, {resumo['falhas']} com falha"
            ),
            **resumo,
        }
    finally:
        if arquivo:
            remover_arquivo(arquivo.caminho)


@router.get("/historico", response_model=List[MensagemResposta])
async def listar_historico(
    conta_id: Optional[int] = None,
    status_envio: Optional[StatusMensagem] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Histórico de mensagens enviadas, mais recentes primeiro"""

    query = db.query(Mensagem)

    if conta_id:
        query = query.filter(Mensagem.conta_id == conta_id)
    if status_envio:
        query = query.filter(Mensagem.status == status_envio)

    return query.order_by(Mensagem.enviada_em.desc(), Mensagem.id.desc()).offset(skip).limit(limit).all()


@router.get("/agendamentos/{job_id}")
async def obter_agendamento(
    job_id: str,
    fila: QueueService = Depends(obter_queue_service)
):
    """Consulta o status de um envio agendado"""
    info = await fila.get_job_info(job_id)
    if info is None:
        raise _erro("Agendamento não encontrado", status.HTTP_404_NOT_FOUND)
    if info.get("status") == "error":
        raise _erro(
            f"Falha ao consultar agendamento: {info['erro']}",
            status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return info
