import asyncio
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.config import settings
from backend.core.database import SessionLocal, get_db
from backend.core.security import obter_usuario_atual
from backend.models import Conta, LogAtividade, StatusConta
from backend.schemas import ContaAtualizar, ContaCriar, ContaResposta, LogAtividadeResposta
from backend.services.sessoes import (
    conectar_conta,
    desconectar_conta,
    forcar_reconexao,
    registrar_atividade,
    sincronizar_status,
)
from backend.services.whatsapp import WhatsAppError, WhatsAppService, obter_whatsapp_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/contas",
    tags=["Contas"],
    dependencies=[Depends(obter_usuario_atual)]
)


def _obter_conta(db: Session, conta_id: int) -> Conta:
    conta = db.query(Conta).filter(Conta.id == conta_id).first()
    if not conta:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conta não encontrada"
        )
    return conta


async def _reconectar_em_segundo_plano(conta_id: int, gateway: WhatsAppService):
    """Aguarda a limpeza da sessão anterior e inicia uma nova conexão"""
    await asyncio.sleep(settings.RECONEXAO_DELAY_SEGUNDOS)

    db = SessionLocal()
    try:
        conta = db.query(Conta).filter(Conta.id == conta_id).first()
        if not conta:
            logger.warning(f"[Contas] Conta {conta_id} removida antes da reconexão")
            return
        await conectar_conta(db, conta, gateway)
        logger.info(f"[Contas] Nova conexão iniciada para conta {conta_id}")
    except WhatsAppError as e:
        logger.error(f"[Contas] Falha na reconexão da conta {conta_id}: {e.mensagem}")
    finally:
        db.close()


@router.get("", response_model=List[ContaResposta])
async def listar_contas(db: Session = Depends(get_db)):
    """Lista todas as contas, mais recentes primeiro"""
    return db.query(Conta).order_by(Conta.criado_em.desc(), Conta.id.desc()).all()


@router.get("/{conta_id}", response_model=ContaResposta)
async def obter_conta(conta_id: int, db: Session = Depends(get_db)):
    """Obtém uma conta específica"""
    return _obter_conta(db, conta_id)


@router.post("", response_model=ContaResposta, status_code=status.HTTP_201_CREATED)
async def criar_conta(dados: ContaCriar, db: Session = Depends(get_db)):
    """Cadastra uma nova conta (ainda desconectada)"""

    if dados.telefone:
        existente = db.query(Conta).filter(Conta.telefone == dados.telefone).first()
        if existente:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Telefone já cadastrado"
            )

    conta = Conta(
        nome=dados.nome,
        telefone=dados.telefone or None,
        status=StatusConta.DESCONECTADA
    )
    db.add(conta)
    db.flush()

    registrar_atividade(db, conta.id, "criada", "Conta criada")
    db.commit()
    db.refresh(conta)

    logger.info(f"[Contas] Conta {conta.id} criada")
    return conta


@router.post("/{conta_id}/conectar")
async def conectar(
    conta_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Inicia a sessão no gateway (gera QR code)"""
    conta = _obter_conta(db, conta_id)

    try:
        await conectar_conta(db, conta, gateway)
    except WhatsAppError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao conectar conta: {e.mensagem}"
        )

    return {
        "mensagem": "Conexão iniciada. Escaneie o QR code.",
        "status": conta.status,
        "qr_code": conta.qr_code,
    }


@router.post("/{conta_id}/reconectar")
async def reconectar(
    conta_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Reconexão do zero reaproveitando o cadastro da conta"""
    conta = _obter_conta(db, conta_id)

    logger.info(f"[Contas] Reconexão iniciada para conta {conta_id}")

    try:
        await desconectar_conta(db, conta, gateway)
    except WhatsAppError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao encerrar sessão anterior: {e.mensagem}"
        )

    conta.status = StatusConta.CONECTANDO
    conta.qr_code = None
    conta.ultima_conexao = None
    registrar_atividade(db, conta.id, "reconexao", "Reconexão iniciada - nova sessão")
    db.commit()

    background_tasks.add_task(_reconectar_em_segundo_plano, conta.id, gateway)

    return {
        "sucesso": True,
        "mensagem": "Reconexão iniciada. O QR code será gerado em instantes."
    }


@router.post("/{conta_id}/forcar-reconexao")
async def forcar_reconexao_conta(
    conta_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Remove a sessão e as credenciais no gateway e gera novo QR code"""
    conta = _obter_conta(db, conta_id)

    registrar_atividade(
        db, conta.id, "reconexao_forcada",
        "Reconexão forçada - gerando novo QR code"
    )
    db.commit()

    try:
        await forcar_reconexao(db, conta, gateway)
    except WhatsAppError as e:
        logger.error(f"[Contas] Erro na reconexão forçada da conta {conta_id}: {e.mensagem}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao forçar reconexão: {e.mensagem}"
        )

    return {
        "mensagem": "Reconexão forçada iniciada. Um novo QR code será gerado.",
        "observacao": "Os dados da sessão foram apagados para nova autenticação."
    }


@router.post("/{conta_id}/desconectar")
async def desconectar(
    conta_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Desconecta a conta do WhatsApp"""
    conta = _obter_conta(db, conta_id)

    try:
        await desconectar_conta(db, conta, gateway)
    except WhatsAppError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao desconectar conta: {e.mensagem}"
        )

    return {"mensagem": "Conta desconectada com sucesso"}


@router.post("/{conta_id}/sincronizar", response_model=ContaResposta)
async def sincronizar(
    conta_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Atualiza o status da conta consultando o gateway"""
    conta = _obter_conta(db, conta_id)

    try:
        await sincronizar_status(db, conta, gateway)
    except WhatsAppError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao consultar sessão: {e.mensagem}"
        )

    return conta


@router.put("/{conta_id}", response_model=ContaResposta)
async def atualizar_conta(conta_id: int, dados: ContaAtualizar, db: Session = Depends(get_db)):
    """Atualiza nome e telefone da conta"""
    conta = _obter_conta(db, conta_id)

    telefone_em_uso = db.query(Conta).filter(
        Conta.telefone == dados.telefone,
        Conta.id != conta_id
    ).first()
    if telefone_em_uso:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Telefone já cadastrado"
        )

    conta.nome = dados.nome
    conta.telefone = dados.telefone
    conta.atualizado_em = datetime.utcnow()
    registrar_atividade(
        db, conta.id, "atualizada",
        f"Dados da conta atualizados para {dados.nome} - {dados.telefone}"
    )
    db.commit()
    db.refresh(conta)

    return conta


@router.delete("/{conta_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deletar_conta(
    conta_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(obter_whatsapp_service)
):
    """Desconecta (se possível) e remove a conta com seu histórico"""
    conta = _obter_conta(db, conta_id)

    try:
        await gateway.logout_sessao(conta.nome_sessao)
    except WhatsAppError as e:
        logger.warning(f"[Contas] Erro ao desconectar conta {conta_id} na exclusão: {e.mensagem}")

    db.delete(conta)
    db.commit()

    return None


@router.get("/{conta_id}/logs", response_model=List[LogAtividadeResposta])
async def listar_logs(
    conta_id: int,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Log de atividades da conta, mais recentes primeiro"""
    return db.query(LogAtividade).filter(
        LogAtividade.conta_id == conta_id
    ).order_by(
        LogAtividade.criado_em.desc(), LogAtividade.id.desc()
    ).offset(offset).limit(limit).all()
