# tests/conciliacao/test_router.py
"""
Testes das rotas de conciliação.

Cobertura:
- Segredo do agendador (401)
- Respostas de "nada a fazer", sucesso e erro
- Execução ponta a ponta com clientes reais sobre httpx.MockTransport
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from config import get_settings
from main import app
from services.banco_inter import BancoInterClient
from services.conta49 import Conta49Client, ScraperFatura
from services.exceptions import FetchError
from sistemas.conciliacao.dependencies import get_conciliacao_service
from sistemas.conciliacao.models import EventoPagamento
from sistemas.conciliacao.schemas import ResumoCobrancas
from sistemas.conciliacao.services import ConciliacaoService

AUTH = {"Authorization": "Bearer segredo-de-teste"}

BR_CODE = (
    "00020101021226900014br.gov.bcb.pix2568qrpix.exemplo.com.br/qr/v2/cobv/"
    "9d36b84f5204000053039865406150.005802BR5911EMPRESA LTDA6009SAO PAULO62070503***6304A1B2"
)


def _lote(*conteudos):
    return [{"result": {"data": {"json": c}}} for c in conteudos]


class FakeConta49Inter:
    """Simula Firebase, Conta49, página de fatura do Asaas e Banco Inter."""

    def __init__(self):
        self.pix_enviados = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        path = request.url.path

        if "signInWithPassword" in url:
            return httpx.Response(200, json={"idToken": "id-token-1"})
        if path.endswith("/auth.signIn"):
            return httpx.Response(
                200, json=_lote(None), headers={"set-cookie": "session=cookie-abc; Path=/"}
            )
        if "account.getCharges" in path:
            return httpx.Response(200, json=_lote(
                {"id": "me"},
                [
                    {
                        "id": "C1",
                        "status": "PENDING",
                        "description": "Honorários contábeis",
                        "value": 100.0,
                        "invoiceUrl": "https://www.asaas.com/i/XYZ",
                    },
                    {
                        "id": "C0",
                        "status": "RECEIVED",
                        "description": "Honorários anteriores",
                        "value": 150.0,
                        "invoiceUrl": "https://www.asaas.com/i/fat0",
                    },
                ],
            ))
        if path == "/b/preview/XYZ":
            return httpx.Response(
                200,
                text=f"<html><body><h5>Código Pix copia e cola</h5><p>{BR_CODE}</p></body></html>",
            )
        if path == "/oauth/v2/token":
            return httpx.Response(200, json={
                "access_token": "inter-token",
                "token_type": "Bearer",
                "scope": "pagamento-pix.write pagamento-boleto.write",
                "expires_in": 3600,
            })
        if path == "/banking/v2/pix":
            self.pix_enviados.append(json.loads(request.content))
            return httpx.Response(200, json={
                "tipoRetorno": "APROVACAO",
                "codigoSolicitacao": "R1",
            })
        return httpx.Response(404)


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def _usar_servico(servico):
    async def _dependencia():
        yield servico
    app.dependency_overrides[get_conciliacao_service] = _dependencia


class TestAutorizacao:

    def test_sem_header(self, client):
        response = client.get("/api/charges")
        assert response.status_code == 401

    def test_segredo_errado(self, client):
        response = client.get("/api/charges", headers={"Authorization": "Bearer outro"})
        assert response.status_code == 401

    def test_sem_segredo_configurado_recusa(self, client, settings):
        from dataclasses import replace

        app.dependency_overrides[get_settings] = lambda: replace(settings, cron_secret="")
        response = client.get("/api/charges", headers={"Authorization": "Bearer "})
        assert response.status_code == 401


class TestRespostas:

    def test_nenhuma_cobranca(self, client):
        servico = MagicMock(spec=ConciliacaoService)
        servico.processar_cobrancas = AsyncMock(return_value=ResumoCobrancas())
        _usar_servico(servico)

        response = client.get("/api/charges", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"message": "No pending charges found"}

    def test_erro_vira_500(self, client):
        servico = MagicMock(spec=ConciliacaoService)
        servico.processar_cobrancas = AsyncMock(side_effect=FetchError("Conta49 respondeu HTTP 502"))
        _usar_servico(servico)

        response = client.get("/api/charges", headers=AUTH)

        assert response.status_code == 500
        assert response.json() == {"message": "error", "error": "Conta49 respondeu HTTP 502"}


class TestPontaAPonta:

    @pytest.fixture
    def fake(self):
        return FakeConta49Inter()

    @pytest.fixture
    def servico(self, settings, db_session, fake):
        http = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        servico = ConciliacaoService(
            db_session,
            conta49=Conta49Client(settings.conta49, client=http),
            banco=BancoInterClient(settings.banco_inter, client=http),
            scraper=ScraperFatura(client=http),
        )
        _usar_servico(servico)
        return servico

    def test_paga_somente_a_pendente(self, client, servico, fake, db_session):
        response = client.get("/api/charges", headers=AUTH)

        assert response.status_code == 200
        corpo = response.json()
        assert corpo["message"] == "success"
        assert corpo["count"] == 1
        assert corpo["pagas"] == 1
        assert corpo["charges"][0]["id"] == "C1"
        assert corpo["charges"][0]["invoiceUrl"] == "https://www.asaas.com/b/preview/XYZ"
        assert corpo["charges"][0]["pixCode"] == BR_CODE

        assert len(fake.pix_enviados) == 1
        pix = fake.pix_enviados[0]
        assert pix["valor"] == 100.0
        assert pix["descricao"] == "Honorários contábeis"
        assert pix["destinatario"] == {"tipo": "PIX_COPIA_E_COLA", "pixCopiaECola": BR_CODE}

        evento = db_session.get(EventoPagamento, "C1")
        assert evento.codigo_solicitacao == "R1"
        assert db_session.get(EventoPagamento, "C0") is None

    def test_segunda_execucao_nao_paga(self, client, servico, fake):
        client.get("/api/charges", headers=AUTH)
        response = client.get("/api/charges", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["pagas"] == 0
        assert len(fake.pix_enviados) == 1
