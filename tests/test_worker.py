"""
Testes para os jobs do worker arq.
"""

import asyncio
from datetime import datetime

import pytest
from sqlalchemy.orm import Session

from backend import worker
from backend.models import Conta, LogAtividade, Mensagem, StatusConta, StatusMensagem
from backend.services.queue_service import QueueService, parse_redis_url


@pytest.fixture
def gateway_do_worker(monkeypatch, whatsapp):
    """Faz o worker usar o cliente apontado para o gateway falso."""
    monkeypatch.setattr("backend.services.whatsapp.whatsapp_service", whatsapp)
    return whatsapp


class TestEnvioAgendado:

    def test_envia_mensagem(self, db: Session, conta_conectada: Conta, gateway, gateway_do_worker):
        resultado = asyncio.run(
            worker.job_enviar_mensagem_agendada({}, conta_conectada.id, "5511912345678", "Lembrete")
        )
        assert resultado["sucesso"] is True
        assert resultado["mensagem_id"] == "true_5511912345678@c.us_MSG1"
        assert gateway.enviadas[0][1]["text"] == "Lembrete"

        db.expire_all()
        assert db.query(Mensagem).one().status == StatusMensagem.ENVIADA
        log = db.query(LogAtividade).filter(LogAtividade.acao == "mensagem_enviada").one()
        assert log.descricao == "Mensagem agendada enviada para 5511912345678"

    def test_conta_desconectada(self, db: Session, conta: Conta, gateway, gateway_do_worker):
        resultado = asyncio.run(worker.job_enviar_mensagem_agendada({}, conta.id, "5511912345678", "oi"))
        assert resultado == {"sucesso": False, "erro": "Conta não encontrada ou não conectada"}
        assert gateway.enviadas == []

    def test_falha_no_gateway(self, db: Session, conta_conectada: Conta, gateway, gateway_do_worker):
        gateway.numeros_com_falha.add("5511912345678")
        resultado = asyncio.run(
            worker.job_enviar_mensagem_agendada({}, conta_conectada.id, "5511912345678", "oi")
        )
        assert resultado["sucesso"] is False

        db.expire_all()
        assert db.query(Mensagem).one().status == StatusMensagem.FALHOU


class TestSincronizacao:

    def test_sincroniza_contas_ativas(
        self, db: Session, conta: Conta, conta_conectada: Conta, gateway, gateway_do_worker
    ):
        """Contas desconectadas não são consultadas."""
        gateway.sessoes[conta_conectada.nome_sessao] = "STOPPED"

        resultado = asyncio.run(worker.job_sincronizar_contas({}))
        assert resultado == {"contas_verificadas": 1, "erros": 0}
        assert ("GET", f"/api/sessions/{conta.nome_sessao}") not in gateway.requisicoes

        db.expire_all()
        assert db.get(Conta, conta_conectada.id).status == StatusConta.DESCONECTADA

    def test_sessao_removida_no_gateway(self, db: Session, conta_conectada: Conta, gateway, gateway_do_worker):
        del gateway.sessoes[conta_conectada.nome_sessao]

        asyncio.run(worker.job_sincronizar_contas({}))

        db.expire_all()
        assert db.get(Conta, conta_conectada.id).status == StatusConta.DESCONECTADA

    def test_erro_no_gateway_e_contado(self, db: Session, conta_conectada: Conta, gateway, gateway_do_worker):
        gateway.falhar_sessoes = True
        resultado = asyncio.run(worker.job_sincronizar_contas({}))
        assert resultado == {"contas_verificadas": 0, "erros": 1}


class TestConfiguracao:

    def test_parse_redis_url(self):
        redis = parse_redis_url("redis://:senha@redis.local:6380/2")
        assert redis.host == "redis.local"
        assert redis.port == 6380
        assert redis.database == 2
        assert redis.password == "senha"

    def test_minutos_sincronizacao(self, monkeypatch):
        monkeypatch.setattr(worker.settings, "SINCRONIZACAO_INTERVALO_MINUTOS", 15)
        assert worker._minutos_sincronizacao() == {0, 15, 30, 45}


class TestFila:
    """QueueService com Redis indisponível"""

    def test_enfileirar_sem_redis(self, monkeypatch):
        fila = QueueService()

        async def sem_conexao():
            raise ConnectionError("Connection refused")

        monkeypatch.setattr(fila, "get_pool", sem_conexao)

        resultado = asyncio.run(
            fila.enqueue_envio_agendado(1, "5511912345678", "oi", datetime(2030, 1, 1, 9, 0))
        )
        assert resultado["status"] == "error"
        assert "Connection refused" in resultado["erro"]

    def test_consultar_job_sem_redis(self, monkeypatch):
        fila = QueueService()

        async def sem_conexao():
            raise ConnectionError("Connection refused")

        monkeypatch.setattr(fila, "get_pool", sem_conexao)

        resultado = asyncio.run(fila.get_job_info("job-1"))
        assert resultado == {"job_id": "job-1", "status": "error", "erro": "Connection refused"}
