"""
Envio de mensagens: registro no histórico e laço de envio em massa.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models import Conta, Mensagem, StatusConta, StatusMensagem, TipoMensagem
from backend.services.whatsapp import WhatsAppError, WhatsAppService
from backend.utils.arquivos import ArquivoTemporario

logger = logging.getLogger(__name__)


def obter_conta_conectada(db: Session, conta_id: int) -> Optional[Conta]:
    return db.query(Conta).filter(
        Conta.id == conta_id,
        Conta.status == StatusConta.CONECTADA
    ).first()


def registrar_mensagem(
    db: Session,
    conta_id: int,
    numero: str,
    texto: Optional[str],
    status: StatusMensagem,
    tipo: TipoMensagem = TipoMensagem.TEXTO,
    caminho_midia: Optional[str] = None,
    mensagem_id: Optional[str] = None,
    erro: Optional[str] = None,
) -> Optional[Mensagem]:
    """
    Grava a tentativa de envio no histórico.

    Falhas de banco não interrompem o envio: são logadas e retornam None.
    """
    mensagem = Mensagem(
        conta_id=conta_id,
        numero_destino=numero,
        texto=texto,
        caminho_midia=caminho_midia,
        tipo=tipo,
        status=status,
        mensagem_id=mensagem_id,
        erro=erro,
    )
    try:
        db.add(mensagem)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[Envio] Erro ao registrar mensagem para {numero}: {e}")
        return None
    return mensagem


async def enviar_para_destinatario(
    db: Session,
    conta: Conta,
    numero: str,
    texto: Optional[str],
    gateway: WhatsAppService,
    midia: Optional[ArquivoTemporario] = None,
) -> dict:
    """
    Envia texto ou mídia para um número e registra no histórico.

    Raises:
        WhatsAppError: falha no gateway (a tentativa fica registrada como falha)
    """
    tipo = TipoMensagem.MIDIA if midia else TipoMensagem.TEXTO
    caminho = str(midia.caminho) if midia else None

    try:
        if midia:
            resultado = await gateway.enviar_midia(
                conta.nome_sessao,
                numero,
                midia.caminho,
                midia.mimetype,
                nome_arquivo=midia.nome_original,
                legenda=texto or None,
            )
        else:
            resultado = await gateway.enviar_texto(conta.nome_sessao, numero, texto)
    except WhatsAppError as e:
        registrar_mensagem(
            db, conta.id, numero, texto, StatusMensagem.FALHOU,
            tipo=tipo, caminho_midia=caminho, erro=e.mensagem
        )
        raise

    mensagem_id = gateway.extrair_mensagem_id(resultado)
    registrar_mensagem(
        db, conta.id, numero, texto, StatusMensagem.ENVIADA,
        tipo=tipo, caminho_midia=caminho, mensagem_id=mensagem_id
    )
    return {"mensagem_id": mensagem_id, "resposta": resultado}


async def enviar_em_massa(
    db: Session,
    conta: Conta,
    destinatarios: List[str],
    texto: Optional[str],
    gateway: WhatsAppService,
    midia: Optional[ArquivoTemporario] = None,
) -> dict:
    """Envia sequencialmente para cada destinatário, coletando o resultado de cada um"""
    resultados = []

    for numero in destinatarios:
        try:
            envio = await enviar_para_destinatario(db, conta, numero, texto, gateway, midia)
            resultados.append({
                "numero": numero,
                "sucesso": True,
                "mensagem_id": envio["mensagem_id"],
            })
        except WhatsAppError as e:
            logger.error(f"[Envio] Erro ao enviar para {numero}: {e.mensagem}")
            resultados.append({
                "numero": numero,
                "sucesso": False,
                "erro": e.mensagem,
            })

    sucesso = sum(1 for r in resultados if r["sucesso"])
    falhas = len(resultados) - sucesso

    logger.info(f"[Envio] Envio em massa pela conta {conta.id}: {sucesso} ok, {falhas} falhas")

    return {
        "sucesso": sucesso,
        "falhas": falhas,
        "resultados": resultados,
    }
