# tests/test_request_id.py
"""
Testes do middleware de identificação de execução (X-Request-ID).
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, get_request_id


def _app():
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/eco")
    async def eco():
        return {"request_id": get_request_id()}

    return app


def test_gera_id_quando_ausente():
    response = TestClient(_app()).get("/eco")

    gerado = response.headers[REQUEST_ID_HEADER]
    assert len(gerado) == 36
    assert response.json() == {"request_id": gerado}


def test_reaproveita_id_do_agendador():
    response = TestClient(_app()).get("/eco", headers={REQUEST_ID_HEADER: "cron-2026-10-18"})

    assert response.headers[REQUEST_ID_HEADER] == "cron-2026-10-18"
    assert response.json() == {"request_id": "cron-2026-10-18"}


def test_id_externo_truncado():
    response = TestClient(_app()).get("/eco", headers={REQUEST_ID_HEADER: "x" * 200})

    assert len(response.headers[REQUEST_ID_HEADER]) == 64


def test_fora_de_requisicao():
    assert get_request_id() is None
