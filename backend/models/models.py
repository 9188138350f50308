from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Enum
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import enum
import logging

from backend.core.database import engine

logger = logging.getLogger(__name__)

Base = declarative_base()


class StatusConta(str, enum.Enum):
    DESCONECTADA = "desconectada"
    CONECTANDO = "conectando"
    AGUARDANDO_QR = "aguardando_qr"
    CONECTADA = "conectada"


class TipoMensagem(str, enum.Enum):
    TEXTO = "texto"
    MIDIA = "midia"


class StatusMensagem(str, enum.Enum):
    ENVIADA = "enviada"
    FALHOU = "falhou"


class Usuario(Base):
    """Operador do painel"""
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    senha_hash = Column(String(255), nullable=False)
    ativo = Column(Boolean, default=True)
    criado_em = Column(DateTime, default=datetime.utcnow)
    atualizado_em = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Conta(Base):
    """Conta (sessão de dispositivo) do WhatsApp"""
    __tablename__ = "contas"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    telefone = Column(String(20), unique=True, index=True, nullable=True)
    status = Column(Enum(StatusConta), default=StatusConta.DESCONECTADA, nullable=False)
    qr_code = Column(Text)
    criado_em = Column(DateTime, default=datetime.utcnow)
    atualizado_em = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    ultima_conexao = Column(DateTime, nullable=True)

    # Relacionamentos
    logs = relationship("LogAtividade", back_populates="conta", cascade="all, delete-orphan")
    mensagens = relationship("Mensagem", back_populates="conta", cascade="all, delete-orphan")

    @property
    def nome_sessao(self) -> str:
        """Nome da sessão no gateway"""
        return f"conta-{self.id}"


class LogAtividade(Base):
    __tablename__ = "logs_atividade"

    id = Column(Integer, primary_key=True, index=True)
    conta_id = Column(Integer, ForeignKey("contas.id", ondelete="CASCADE"), nullable=False, index=True)
    acao = Column(String(50), nullable=False)
    descricao = Column(Text)
    criado_em = Column(DateTime, default=datetime.utcnow, index=True)

    conta = relationship("Conta", back_populates="logs")


class ModeloMensagem(Base):
    __tablename__ = "modelos_mensagem"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    texto = Column(Text, nullable=False)
    tem_midia = Column(Boolean, default=False)
    tipo_midia = Column(String(50))
    caminho_midia = Column(String(500))
    criado_em = Column(DateTime, default=datetime.utcnow)
    atualizado_em = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Contato(Base):
    __tablename__ = "contatos"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    telefone = Column(String(20), nullable=False, index=True)
    grupo = Column(String(100), index=True)
    ativo = Column(Boolean, default=True)
    criado_em = Column(DateTime, default=datetime.utcnow)


class Mensagem(Base):
    """Histórico de mensagens enviadas"""
    __tablename__ = "mensagens"

    id = Column(Integer, primary_key=True, index=True)
    conta_id = Column(Integer, ForeignKey("contas.id", ondelete="CASCADE"), nullable=False, index=True)
    numero_destino = Column(String(20), nullable=False, index=True)
    texto = Column(Text)
    caminho_midia = Column(String(500))
    tipo = Column(Enum(TipoMensagem), default=TipoMensagem.TEXTO, nullable=False)
    status = Column(Enum(StatusMensagem), nullable=False)
    mensagem_id = Column(String(255))
    erro = Column(Text)
    enviada_em = Column(DateTime, default=datetime.utcnow, index=True)

    conta = relationship("Conta", back_populates="mensagens")


def criar_tabelas():
    """Cria todas as tabelas no banco de dados"""
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas criadas com sucesso")
