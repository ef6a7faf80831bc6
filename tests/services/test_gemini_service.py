# tests/services/test_gemini_service.py
"""
Testes do serviço Gemini (chamada com documento inline).
"""

import base64
import json

import httpx
import pytest

from config import GeminiConfig
from services.gemini_service import GeminiService


def _resposta_gemini(texto: str, tokens: int = 42):
    return {
        "candidates": [{
            "content": {"parts": [{"text": texto}]},
            "finishReason": "STOP",
        }],
        "usageMetadata": {"totalTokenCount": tokens},
    }


def _servico(handler, api_key="gemini-key"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiService(GeminiConfig(api_key=api_key, model="gemini-2.5-flash"), client=client)


class TestPayload:

    def test_documento_inline_e_json(self):
        servico = GeminiService(GeminiConfig(api_key="k"))
        payload = servico._build_payload_with_document(
            prompt="Extraia",
            document=b"%PDF",
            mime_type="application/pdf",
            json_output=True,
        )

        documento, texto = payload["contents"][0]["parts"]
        assert documento["inline_data"] == {
            "mime_type": "application/pdf",
            "data": base64.b64encode(b"%PDF").decode(),
        }
        assert texto == {"text": "Extraia"}
        assert payload["generationConfig"]["responseMimeType"] == "application/json"
        assert "systemInstruction" not in payload

    def test_sem_json_output(self):
        servico = GeminiService(GeminiConfig(api_key="k"))
        payload = servico._build_payload_with_document("p", b"x", "image/png", system_prompt="sys")

        assert "responseMimeType" not in payload["generationConfig"]
        assert payload["systemInstruction"] == {"parts": [{"text": "sys"}]}

    def test_normalize_model(self):
        assert GeminiService.normalize_model("google/gemini-2.5-pro") == "gemini-2.5-pro"
        assert GeminiService.normalize_model("gemini-2.5-flash") == "gemini-2.5-flash"


class TestGenerateWithDocument:

    @pytest.mark.asyncio
    async def test_sucesso(self):
        capturado = {}

        def handler(request):
            capturado["url"] = str(request.url)
            capturado["payload"] = json.loads(request.content)
            return httpx.Response(200, json=_resposta_gemini('{"ok": true}'))

        resposta = await _servico(handler).generate_with_document("Extraia", b"%PDF")

        assert resposta.success
        assert resposta.content == '{"ok": true}'
        assert resposta.tokens_used == 42
        assert "gemini-2.5-flash:generateContent" in capturado["url"]
        assert "key=gemini-key" in capturado["url"]

    @pytest.mark.asyncio
    async def test_sem_api_key(self):
        def handler(request):
            raise AssertionError("não deveria chamar a API")

        resposta = await _servico(handler, api_key="").generate_with_document("p", b"x")

        assert not resposta.success
        assert "GEMINI_KEY" in resposta.error

    def test_is_configured(self):
        assert GeminiService(GeminiConfig(api_key="k")).is_configured()
        assert not GeminiService(GeminiConfig(api_key="")).is_configured()

    def test_metricas_com_timestamp_utc(self):
        from datetime import timezone

        from services.gemini_service import GeminiMetrics

        assert GeminiMetrics().timestamp.tzinfo == timezone.utc

    @pytest.mark.asyncio
    async def test_erro_http(self):
        resposta = await _servico(
            lambda request: httpx.Response(500, text="internal")
        ).generate_with_document("p", b"x")

        assert not resposta.success
        assert "500" in resposta.error

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("lento", request=request)

        resposta = await _servico(handler).generate_with_document("p", b"x")

        assert not resposta.success
        assert "Timeout" in resposta.error

    @pytest.mark.asyncio
    async def test_resposta_bloqueada(self):
        resposta = await _servico(
            lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
        ).generate_with_document("p", b"x")

        assert not resposta.success
        assert "vazia" in resposta.error
