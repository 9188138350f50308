"""
Fixtures compartilhados para testes.
"""

import json
import os
import tempfile
from typing import Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

# Set test environment variables BEFORE importing the app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["WHATSAPP_API_URL"] = "http://gateway.test"
os.environ["WEBHOOK_SECRET"] = ""
os.environ["RECONEXAO_DELAY_SEGUNDOS"] = "0"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="disparador-test-")

from backend.core.database import engine, get_db
from backend.core.security import gerar_hash_senha
from backend.main import app
from backend.models import Base, Conta, StatusConta, Usuario
from backend.services.queue_service import obter_queue_service
from backend.services.whatsapp import WhatsAppService, obter_whatsapp_service

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ENDPOINTS_ENVIO = {"/api/sendText", "/api/sendImage", "/api/sendVideo", "/api/sendVoice", "/api/sendFile"}


class GatewayFalso:
    """Simula a API do gateway (WAHA) em memória."""

    def __init__(self):
        self.sessoes: dict[str, str] = {}
        self.enviadas: list[tuple[str, dict]] = []
        self.requisicoes: list[tuple[str, str]] = []
        self.status_inicial = "SCAN_QR_CODE"
        self.qr = "2@QRCODEFALSO"
        self.numeros_com_falha: set[str] = set()
        self.numeros_com_resposta_invalida: set[str] = set()
        self.falhar_sessoes = False

    def _resposta(self, status_code: int, dados) -> httpx.Response:
        return httpx.Response(status_code, json=dados)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        metodo = request.method
        caminho = request.url.path
        corpo = json.loads(request.content) if request.content else {}
        self.requisicoes.append((metodo, caminho))

        partes = caminho.strip("/").split("/")

        if self.falhar_sessoes and partes[:2] == ["api", "sessions"]:
            return self._resposta(500, {"message": "gateway indisponível"})

        if metodo == "POST" and caminho == "/api/sessions":
            nome = corpo["name"]
            if nome in self.sessoes:
                return self._resposta(422, {"message": f"Session '{nome}' already exists"})
            self.sessoes[nome] = self.status_inicial
            return self._resposta(201, {"name": nome, "status": self.status_inicial})

        if partes[:2] == ["api", "sessions"] and len(partes) >= 3:
            nome = partes[2]
            acao = partes[3] if len(partes) > 3 else None
            if nome not in self.sessoes:
                return self._resposta(404, {"message": "Session not found"})
            if metodo == "GET" and acao is None:
                return self._resposta(200, {"name": nome, "status": self.sessoes[nome]})
            if metodo == "DELETE" and acao is None:
                del self.sessoes[nome]
                return self._resposta(200, {})
            if metodo == "POST" and acao == "start":
                self.sessoes[nome] = self.status_inicial
                return self._resposta(201, {"name": nome, "status": self.status_inicial})
            if metodo == "POST" and acao in ("stop", "logout"):
                self.sessoes[nome] = "STOPPED"
                return self._resposta(201, {"name": nome, "status": "STOPPED"})

        if metodo == "GET" and len(partes) == 4 and partes[2:] == ["auth", "qr"]:
            if partes[1] not in self.sessoes:
                return self._resposta(404, {"message": "Session not found"})
            return self._resposta(200, {"value": self.qr})

        if metodo == "POST" and caminho in ENDPOINTS_ENVIO:
            numero = corpo["chatId"].split("@")[0]
            if numero in self.numeros_com_falha:
                return self._resposta(500, {"message": "Falha na entrega"})
            if numero in self.numeros_com_resposta_invalida:
                return httpx.Response(201, content=b"<html>bad", headers={"content-type": "application/json"})
            self.enviadas.append((caminho, corpo))
            return self._resposta(201, {"id": f"true_{corpo['chatId']}_MSG{len(self.enviadas)}"})

        return self._resposta(404, {"message": "Not found"})


class FilaFalsa:
    """Substitui o QueueService sem Redis."""

    def __init__(self):
        self.agendados: list[dict] = []
        self.indisponivel = False

    async def enqueue_envio_agendado(self, conta_id, numero, texto, agendar_em):
        if self.indisponivel:
            return {"erro": "Connection refused", "conta_id": conta_id, "status": "error"}
        job_id = f"job-{len(self.agendados) + 1}"
        self.agendados.append({
            "job_id": job_id,
            "conta_id": conta_id,
            "numero": numero,
            "texto": texto,
            "agendar_em": agendar_em,
        })
        return {"job_id": job_id, "conta_id": conta_id, "status": "enqueued"}

    async def get_job_info(self, job_id):
        if self.indisponivel:
            return {"job_id": job_id, "status": "error", "erro": "Connection refused"}
        for agendado in self.agendados:
            if agendado["job_id"] == job_id:
                return {"job_id": job_id, "status": "deferred", "function": "job_enviar_mensagem_agendada"}
        return None


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway() -> GatewayFalso:
    return GatewayFalso()


@pytest.fixture
def whatsapp(gateway: GatewayFalso) -> WhatsAppService:
    """Cliente real do gateway apontando para o gateway falso."""
    return WhatsAppService(
        base_url="http://gateway.test",
        api_key="chave-teste",
        transport=httpx.MockTransport(gateway),
    )


@pytest.fixture
def fila() -> FilaFalsa:
    return FilaFalsa()


@pytest.fixture(scope="function")
def client(db: Session, whatsapp: WhatsAppService, fila: FilaFalsa) -> Generator[TestClient, None, None]:
    """Create a test client with database, gateway and queue overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[obter_whatsapp_service] = lambda: whatsapp
    app.dependency_overrides[obter_queue_service] = lambda: fila

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(db: Session) -> Usuario:
    """Create a test user."""
    user = Usuario(
        nome="Test User",
        email="test@example.com",
        senha_hash=gerar_hash_senha("TestPass123"),
        ativo=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(client: TestClient, test_user: Usuario) -> dict:
    """Get authentication headers for a test user."""
    response = client.post(
        "/api/auth/login",
        json={"email": "test@example.com", "senha": "TestPass123"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def inactive_user(db: Session) -> Usuario:
    """Create an inactive test user."""
    user = Usuario(
        nome="Inactive User",
        email="inactive@example.com",
        senha_hash=gerar_hash_senha("TestPass123"),
        ativo=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def conta(db: Session) -> Conta:
    """Conta cadastrada e ainda desconectada."""
    conta = Conta(nome="Comercial", telefone="5511999990000", status=StatusConta.DESCONECTADA)
    db.add(conta)
    db.commit()
    db.refresh(conta)
    return conta


@pytest.fixture
def conta_conectada(db: Session, gateway: GatewayFalso) -> Conta:
    """Conta com sessão ativa no gateway."""
    conta = Conta(nome="Suporte", telefone="5511988880000", status=StatusConta.CONECTADA)
    db.add(conta)
    db.commit()
    db.refresh(conta)
    gateway.sessoes[conta.nome_sessao] = "WORKING"
    return conta
