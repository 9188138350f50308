from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional, List, Any, Dict

from backend.models.models import StatusConta, TipoMensagem, StatusMensagem


def _validar_forca_senha(senha: str) -> str:
    if len(senha) < 8:
        raise ValueError("Senha deve ter pelo menos 8 caracteres")
    if not any(c.isupper() for c in senha):
        raise ValueError("Senha deve ter pelo menos uma letra maiúscula")
    if not any(c.isdigit() for c in senha):
        raise ValueError("Senha deve ter pelo menos um número")
    return senha


# ==================== Usuario ====================

class UsuarioBase(BaseModel):
    nome: str
    email: EmailStr


class UsuarioCriar(UsuarioBase):
    senha: str

    @field_validator("senha")
    @classmethod
    def validar_senha(cls, v: str) -> str:
        return _validar_forca_senha(v)


class UsuarioAtualizar(BaseModel):
    nome: Optional[str] = None
    email: Optional[EmailStr] = None


class UsuarioAlterarSenha(BaseModel):
    senha_atual: str
    senha_nova: str

    @field_validator("senha_nova")
    @classmethod
    def validar_senha_nova(cls, v: str) -> str:
        return _validar_forca_senha(v)


class UsuarioResposta(UsuarioBase):
    id: int
    ativo: bool
    criado_em: datetime

    class Config:
        from_attributes = True


# ==================== Auth ====================

class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int


class LoginRequest(BaseModel):
    email: EmailStr
    senha: str


# ==================== Conta ====================

class ContaCriar(BaseModel):
    nome: str = Field(min_length=1)
    telefone: Optional[str] = None


class ContaAtualizar(BaseModel):
    nome: str = Field(min_length=1)
    telefone: str = Field(min_length=1)


class ContaResposta(BaseModel):
    id: int
    nome: str
    telefone: Optional[str] = None
    status: StatusConta
    qr_code: Optional[str] = None
    criado_em: datetime
    atualizado_em: datetime
    ultima_conexao: Optional[datetime] = None

    class Config:
        from_attributes = True


class LogAtividadeResposta(BaseModel):
    id: int
    conta_id: int
    acao: str
    descricao: Optional[str] = None
    criado_em: datetime

    class Config:
        from_attributes = True


# ==================== Mensagens ====================

class EnvioMensagem(BaseModel):
    conta_id: Optional[int] = None
    numero: Optional[str] = None
    mensagem: Optional[str] = None
    agendar_em: Optional[datetime] = None


class EnvioEmMassa(BaseModel):
    conta_id: Optional[int] = None
    # Lista validada na rota (aceita números JSON)
    destinatarios: Optional[Any] = None
    mensagem: Optional[str] = None


class ResultadoEnvio(BaseModel):
    numero: str
    sucesso: bool
    mensagem_id: Optional[str] = None
    erro: Optional[str] = None


class ResultadoEnvioEmMassa(BaseModel):
    mensagem: str
    sucesso: int
    falhas: int
    resultados: List[ResultadoEnvio]


class MensagemResposta(BaseModel):
    id: int
    conta_id: int
    numero_destino: str
    texto: Optional[str] = None
    caminho_midia: Optional[str] = None
    tipo: TipoMensagem
    status: StatusMensagem
    mensagem_id: Optional[str] = None
    erro: Optional[str] = None
    enviada_em: datetime

    class Config:
        from_attributes = True


# ==================== Modelos de Mensagem ====================

class ModeloMensagemBase(BaseModel):
    nome: str = Field(min_length=1)
    texto: str = Field(min_length=1)
    tem_midia: bool = False
    tipo_midia: Optional[str] = None
    caminho_midia: Optional[str] = None


class ModeloMensagemCriar(ModeloMensagemBase):
    pass


class ModeloMensagemAtualizar(ModeloMensagemBase):
    pass


class ModeloMensagemResposta(ModeloMensagemBase):
    id: int
    criado_em: datetime
    atualizado_em: datetime

    class Config:
        from_attributes = True


# ==================== Contatos ====================

class ContatoCriar(BaseModel):
    nome: str = Field(min_length=1)
    telefone: str = Field(min_length=1)
    grupo: Optional[str] = None


class ContatoAtualizar(ContatoCriar):
    ativo: bool = True


class ContatoResposta(BaseModel):
    id: int
    nome: str
    telefone: str
    grupo: Optional[str] = None
    ativo: bool
    criado_em: datetime

    class Config:
        from_attributes = True


class GrupoContatos(BaseModel):
    grupo: str
    total_contatos: int


class ImportacaoContatos(BaseModel):
    # Itens validados um a um na rota
    contatos: Optional[List[Any]] = None


class ResultadoImportacao(BaseModel):
    mensagem: str
    total_sucesso: int
    total_erros: int
    erros: List[str]


# ==================== Webhook ====================

class EventoSessao(BaseModel):
    event: str
    session: Optional[str] = None
    payload: Dict[str, Any] = {}
