"""
Testes para modelos de mensagem.
"""

from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.models import ModeloMensagem


def _criar_modelo(db: Session, **campos) -> ModeloMensagem:
    modelo = ModeloMensagem(nome=campos.get("nome", "Boas-vindas"), texto=campos.get("texto", "Olá!"))
    db.add(modelo)
    db.commit()
    db.refresh(modelo)
    return modelo


class TestModelos:
    """CRUD de modelos de mensagem"""

    def test_criar_modelo(self, client: TestClient, auth_headers: dict):
        response = client.post(
            "/api/modelos",
            headers=auth_headers,
            json={
                "nome": "Catálogo",
                "texto": "Confira nosso catálogo",
                "tem_midia": True,
                "tipo_midia": "application/pdf",
                "caminho_midia": "uploads/catalogo.pdf",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["nome"] == "Catálogo"
        assert data["tem_midia"] is True
        assert "criado_em" in data

    def test_criar_modelo_padrao_sem_midia(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/modelos", headers=auth_headers, json={"nome": "Oi", "texto": "Oi!"})
        assert response.status_code == 201
        assert response.json()["tem_midia"] is False
        assert response.json()["tipo_midia"] is None

    def test_criar_modelo_sem_texto(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/modelos", headers=auth_headers, json={"nome": "Vazio", "texto": ""})
        assert response.status_code == 422

    def test_listar_modelos(self, client: TestClient, db: Session, auth_headers: dict):
        _criar_modelo(db, nome="Primeiro")
        _criar_modelo(db, nome="Segundo")

        response = client.get("/api/modelos", headers=auth_headers)
        assert response.status_code == 200
        assert [m["nome"] for m in response.json()] == ["Segundo", "Primeiro"]

    def test_obter_modelo(self, client: TestClient, db: Session, auth_headers: dict):
        modelo = _criar_modelo(db)
        response = client.get(f"/api/modelos/{modelo.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["texto"] == "Olá!"

    def test_atualizar_modelo_substitui_campos(self, client: TestClient, db: Session, auth_headers: dict):
        modelo = _criar_modelo(db)
        modelo.tem_midia = True
        modelo.tipo_midia = "image/png"
        db.commit()

        response = client.put(
            f"/api/modelos/{modelo.id}",
            headers=auth_headers,
            json={"nome": "Boas-vindas v2", "texto": "Seja bem-vindo!"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["nome"] == "Boas-vindas v2"
        assert data["tem_midia"] is False
        assert data["tipo_midia"] is None

    def test_atualizar_modelo_renova_data(self, client: TestClient, db: Session, auth_headers: dict):
        """PUT com os mesmos dados ainda atualiza atualizado_em."""
        modelo = _criar_modelo(db)
        modelo.atualizado_em = datetime(2020, 1, 1)
        db.commit()

        response = client.put(
            f"/api/modelos/{modelo.id}",
            headers=auth_headers,
            json={"nome": modelo.nome, "texto": modelo.texto},
        )
        assert response.status_code == 200
        assert datetime.fromisoformat(response.json()["atualizado_em"]) > datetime(2020, 1, 1)

    def test_deletar_modelo(self, client: TestClient, db: Session, auth_headers: dict):
        modelo = _criar_modelo(db)
        response = client.delete(f"/api/modelos/{modelo.id}", headers=auth_headers)
        assert response.status_code == 204
        assert db.query(ModeloMensagem).count() == 0

    def test_modelo_inexistente(self, client: TestClient, auth_headers: dict):
        assert client.get("/api/modelos/999", headers=auth_headers).status_code == 404
        response = client.put("/api/modelos/999", headers=auth_headers, json={"nome": "x", "texto": "y"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Modelo não encontrado"
        assert client.delete("/api/modelos/999", headers=auth_headers).status_code == 404

    def test_sem_autenticacao(self, client: TestClient):
        assert client.get("/api/modelos").status_code == 401
