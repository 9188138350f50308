"""
Ciclo de vida das contas WhatsApp.

Traduz o status das sessões do gateway para o status das contas e registra
as atividades de cada conta.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from backend.models import Conta, LogAtividade, StatusConta
from backend.services.whatsapp import StatusSessao, WhatsAppError, WhatsAppService

logger = logging.getLogger(__name__)

MAPA_STATUS = {
    StatusSessao.STARTING: StatusConta.CONECTANDO,
    StatusSessao.SCAN_QR_CODE: StatusConta.AGUARDANDO_QR,
    StatusSessao.WORKING: StatusConta.CONECTADA,
    StatusSessao.FAILED: StatusConta.DESCONECTADA,
    StatusSessao.STOPPED: StatusConta.DESCONECTADA,
}


def registrar_atividade(db: Session, conta_id: int, acao: str, descricao: str) -> LogAtividade:
    """Adiciona um registro ao log de atividades da conta (commit fica com o chamador)"""
    log = LogAtividade(conta_id=conta_id, acao=acao, descricao=descricao)
    db.add(log)
    return log


def obter_conta_por_sessao(db: Session, nome_sessao: str) -> Optional[Conta]:
    """Resolve 'conta-<id>' para a conta correspondente"""
    prefixo, _, sufixo = (nome_sessao or "").partition("-")
    if prefixo != "conta" or not sufixo.isdigit():
        return None
    return db.query(Conta).filter(Conta.id == int(sufixo)).first()


def aplicar_status_sessao(
    db: Session,
    conta: Conta,
    status_sessao: str,
    qr_code: Optional[str] = None,
) -> StatusConta:
    """
    Atualiza a conta de acordo com o status reportado pelo gateway.

    Status desconhecidos não alteram a conta.
    """
    try:
        novo_status = MAPA_STATUS[StatusSessao(status_sessao)]
    except ValueError:
        logger.warning(f"[Sessões] Status desconhecido para conta {conta.id}: {status_sessao}")
        return conta.status

    status_anterior = conta.status
    conta.status = novo_status

    if novo_status == StatusConta.AGUARDANDO_QR:
        if qr_code:
            conta.qr_code = qr_code
    else:
        conta.qr_code = None

    if novo_status == StatusConta.CONECTADA and status_anterior != StatusConta.CONECTADA:
        conta.ultima_conexao = datetime.utcnow()
        registrar_atividade(db, conta.id, "conectada", "Conta conectada ao WhatsApp")
    elif novo_status == StatusConta.DESCONECTADA and status_anterior == StatusConta.CONECTADA:
        registrar_atividade(db, conta.id, "desconectada", f"Sessão encerrada ({status_sessao})")

    db.commit()
    db.refresh(conta)

    if novo_status != status_anterior:
        logger.info(f"[Sessões] Conta {conta.id}: {status_anterior.value} -> {novo_status.value}")

    return novo_status


async def conectar_conta(db: Session, conta: Conta, gateway: WhatsAppService) -> Conta:
    """Inicia a sessão no gateway e guarda status/QR code na conta"""
    conta.status = StatusConta.CONECTANDO
    registrar_atividade(db, conta.id, "conexao_iniciada", "Conexão iniciada")
    db.commit()

    try:
        sessao = await gateway.iniciar_sessao(conta.nome_sessao)
        status_sessao = sessao.get("status", StatusSessao.STARTING.value)

        qr_code = None
        if status_sessao == StatusSessao.SCAN_QR_CODE.value:
            qr_code = await gateway.obter_qr_code(conta.nome_sessao)
    except WhatsAppError as e:
        conta.status = StatusConta.DESCONECTADA
        conta.qr_code = None
        registrar_atividade(db, conta.id, "conexao_falhou", f"Falha ao conectar: {e.mensagem}")
        db.commit()
        raise

    aplicar_status_sessao(db, conta, status_sessao, qr_code)
    return conta


async def desconectar_conta(db: Session, conta: Conta, gateway: WhatsAppService) -> Conta:
    """Faz logout da sessão e marca a conta como desconectada"""
    try:
        await gateway.logout_sessao(conta.nome_sessao)
    except WhatsAppError as e:
        # Sessão inexistente no gateway já é o estado desejado
        if e.status_code != 404:
            raise
        logger.info(f"[Sessões] Sessão {conta.nome_sessao} não existe no gateway")

    conta.status = StatusConta.DESCONECTADA
    conta.qr_code = None
    registrar_atividade(db, conta.id, "desconectada", "Conta desconectada")
    db.commit()
    db.refresh(conta)
    return conta


async def forcar_reconexao(db: Session, conta: Conta, gateway: WhatsAppService) -> Conta:
    """Remove a sessão (e as credenciais) do gateway e conecta do zero"""
    try:
        await gateway.remover_sessao(conta.nome_sessao)
    except WhatsAppError as e:
        if e.status_code != 404:
            raise

    conta.status = StatusConta.DESCONECTADA
    conta.qr_code = None
    conta.ultima_conexao = None
    db.commit()

    return await conectar_conta(db, conta, gateway)


async def sincronizar_status(db: Session, conta: Conta, gateway: WhatsAppService) -> StatusConta:
    """Consulta o gateway e aplica o status atual da sessão na conta"""
    try:
        sessao = await gateway.obter_sessao(conta.nome_sessao)
    except WhatsAppError as e:
        if e.status_code != 404:
            raise
        return aplicar_status_sessao(db, conta, StatusSessao.STOPPED.value)

    status_sessao = sessao.get("status", "")
    qr_code = None
    if status_sessao == StatusSessao.SCAN_QR_CODE.value:
        qr_code = await gateway.obter_qr_code(conta.nome_sessao)

    return aplicar_status_sessao(db, conta, status_sessao, qr_code)
