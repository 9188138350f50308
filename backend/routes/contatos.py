import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.database import get_db
from backend.core.security import obter_usuario_atual
from backend.models import Contato
from backend.schemas import (
    ContatoAtualizar, ContatoCriar, ContatoResposta,
    GrupoContatos, ImportacaoContatos, ResultadoImportacao
)
from backend.utils.formatters import limpar_telefone

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/contatos",
    tags=["Contatos"],
    dependencies=[Depends(obter_usuario_atual)]
)

MAX_ERROS_IMPORTACAO = 10


def _telefone_limpo(telefone: str) -> str:
    telefone_limpo = limpar_telefone(telefone)
    if not telefone_limpo:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Telefone inválido"
        )
    return telefone_limpo


@router.get("", response_model=List[ContatoResposta])
async def listar_contatos(grupo: Optional[str] = None, db: Session = Depends(get_db)):
    """Lista contatos ativos, opcionalmente de um grupo"""

    query = db.query(Contato).filter(Contato.ativo == True)

    if grupo:
        query = query.filter(Contato.grupo == grupo)

    return query.order_by(Contato.criado_em.desc(), Contato.id.desc()).all()


@router.get("/grupos", response_model=List[GrupoContatos])
async def listar_grupos(db: Session = Depends(get_db)):
    """Grupos de contatos ativos com a quantidade de cada um"""

    grupos = db.query(
        Contato.grupo,
        func.count(Contato.id)
    ).filter(
        Contato.ativo == True,
        Contato.grupo.isnot(None)
    ).group_by(Contato.grupo).order_by(Contato.grupo).all()

    return [{"grupo": grupo, "total_contatos": total} for grupo, total in grupos]


@router.post("", response_model=ContatoResposta, status_code=status.HTTP_201_CREATED)
async def criar_contato(contato: ContatoCriar, db: Session = Depends(get_db)):
    """Adiciona um contato"""

    novo_contato = Contato(
        nome=contato.nome,
        telefone=_telefone_limpo(contato.telefone),
        grupo=contato.grupo or None
    )

    db.add(novo_contato)
    db.commit()
    db.refresh(novo_contato)

    return novo_contato


@router.post("/importar", response_model=ResultadoImportacao)
async def importar_contatos(dados: ImportacaoContatos, db: Session = Depends(get_db)):
    """Importa uma lista de contatos; itens inválidos são reportados sem interromper a importação"""

    if not dados.contatos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Lista de contatos é obrigatória"
        )

    total_sucesso = 0
    erros = []

    for item in dados.contatos:
        if not isinstance(item, dict):
            erros.append(f"Contato sem nome ou telefone: {json.dumps(item, ensure_ascii=False)}")
            continue

        nome = item.get("nome")
        telefone = item.get("telefone")

        if not nome or not telefone:
            erros.append(f"Contato sem nome ou telefone: {json.dumps(item, ensure_ascii=False)}")
            continue

        telefone_limpo = limpar_telefone(telefone)
        if not telefone_limpo:
            erros.append(f"Telefone inválido para o contato {nome}")
            continue

        try:
            db.add(Contato(nome=str(nome), telefone=telefone_limpo, grupo=item.get("grupo") or None))
            db.commit()
            total_sucesso += 1
        except SQLAlchemyError as e:
            db.rollback()
            erros.append(f"Erro ao adicionar contato {nome}: {e}")

    logger.info(f"[Contatos] Importação: {total_sucesso} adicionados, {len(erros)} erros")

    return {
        "mensagem": "Importação concluída",
        "total_sucesso": total_sucesso,
        "total_erros": len(erros),
        "erros": erros[:MAX_ERROS_IMPORTACAO],
    }


@router.put("/{contato_id}", response_model=ContatoResposta)
async def atualizar_contato(
    contato_id: int,
    dados: ContatoAtualizar,
    db: Session = Depends(get_db)
):
    """Atualiza um contato"""

    contato = db.query(Contato).filter(Contato.id == contato_id).first()

    if not contato:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contato não encontrado"
        )

    contato.nome = dados.nome
    contato.telefone = _telefone_limpo(dados.telefone)
    contato.grupo = dados.grupo or None
    contato.ativo = dados.ativo

    db.commit()
    db.refresh(contato)

    return contato


@router.delete("/{contato_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deletar_contato(contato_id: int, db: Session = Depends(get_db)):
    """Remove um contato"""

    contato = db.query(Contato).filter(Contato.id == contato_id).first()

    if not contato:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contato não encontrado"
        )

    db.delete(contato)
    db.commit()

    return None
