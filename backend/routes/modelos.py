from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List

from backend.core.database import get_db
from backend.core.security import obter_usuario_atual
from backend.models import ModeloMensagem
from backend.schemas import ModeloMensagemAtualizar, ModeloMensagemCriar, ModeloMensagemResposta

router = APIRouter(
    prefix="/api/modelos",
    tags=["Modelos de Mensagem"],
    dependencies=[Depends(obter_usuario_atual)]
)


def _obter_modelo(db: Session, modelo_id: int) -> ModeloMensagem:
    modelo = db.query(ModeloMensagem).filter(ModeloMensagem.id == modelo_id).first()
    if not modelo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Modelo não encontrado"
        )
    return modelo


@router.get("", response_model=List[ModeloMensagemResposta])
async def listar_modelos(db: Session = Depends(get_db)):
    """Lista modelos de mensagem, mais recentes primeiro"""
    return db.query(ModeloMensagem).order_by(
        ModeloMensagem.criado_em.desc(), ModeloMensagem.id.desc()
    ).all()


@router.get("/{modelo_id}", response_model=ModeloMensagemResposta)
async def obter_modelo(modelo_id: int, db: Session = Depends(get_db)):
    return _obter_modelo(db, modelo_id)


@router.post("", response_model=ModeloMensagemResposta, status_code=status.HTTP_201_CREATED)
async def criar_modelo(modelo: ModeloMensagemCriar, db: Session = Depends(get_db)):
    """Cria um modelo de mensagem reutilizável"""

    novo_modelo = ModeloMensagem(**modelo.model_dump())

    db.add(novo_modelo)
    db.commit()
    db.refresh(novo_modelo)

    return novo_modelo


@router.put("/{modelo_id}", response_model=ModeloMensagemResposta)
async def atualizar_modelo(
    modelo_id: int,
    dados: ModeloMensagemAtualizar,
    db: Session = Depends(get_db)
):
    """Substitui todos os campos do modelo"""

    modelo = _obter_modelo(db, modelo_id)

    for campo, valor in dados.model_dump().items():
        setattr(modelo, campo, valor)
    modelo.atualizado_em = datetime.utcnow()

    db.commit()
    db.refresh(modelo)

    return modelo


@router.delete("/{modelo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deletar_modelo(modelo_id: int, db: Session = Depends(get_db)):
    modelo = _obter_modelo(db, modelo_id)

    db.delete(modelo)
    db.commit()

    return None
