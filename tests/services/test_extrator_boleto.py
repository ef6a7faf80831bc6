# tests/services/test_extrator_boleto.py
"""
Testes do leitor de boletos.

Cobertura:
- Validação do código de 48 dígitos (47 falha)
- Remoção de espaços e hífens
- Cerca markdown ```json
- Respostas não-JSON / não-objeto
- Fluxo download -> Gemini -> Boleto
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from services.exceptions import ExtractionError
from services.extrator_boleto import ExtratorBoleto, PROMPT_EXTRACAO, interpretar_resposta
from services.gemini_service import GeminiResponse

CODIGO_48 = "858900000050682103852509790716250721167229931410"
CODIGO_47 = "85890000005068210385250979071625072116722993141"


def _json(payment_code=CODIGO_48, value="123.45", expiration_date="2026-03-15"):
    return json.dumps({
        "payment_code": payment_code,
        "value": value,
        "expiration_date": expiration_date,
    })


class TestInterpretarResposta:

    def test_resposta_valida(self):
        boleto = interpretar_resposta(_json())
        assert boleto.payment_code == CODIGO_48
        assert boleto.value == "123.45"
        assert boleto.expiration_date == "2026-03-15"
        assert boleto.completo

    def test_codigo_com_47_digitos_falha(self):
        with pytest.raises(ExtractionError, match="48"):
            interpretar_resposta(_json(payment_code=CODIGO_47))

    def test_codigo_com_digitos_nao_ascii_falha(self):
        # Dígitos arábico-índicos (U+0661)
        with pytest.raises(ExtractionError):
            interpretar_resposta(_json(payment_code="١" * 48))

    def test_valor_com_digitos_nao_ascii_falha(self):
        with pytest.raises(ExtractionError):
            interpretar_resposta(_json(value="١٢.٣٤"))

    def test_remove_hifens(self):
        boleto = interpretar_resposta(
            _json(payment_code="81670000001-0 75610521202-8 50331032515-7 53710070000-5")
        )
        assert boleto.payment_code == "816700000010756105212028503310325157537100700005"

    def test_remove_espacos(self):
        boleto = interpretar_resposta(
            _json(payment_code="85890000005 0 68210385250 9 79071625072 1 16722993141 0")
        )
        assert boleto.payment_code == CODIGO_48

    def test_cerca_markdown(self):
        texto = f"```json\n{_json()}\n```"
        assert interpretar_resposta(texto).payment_code == CODIGO_48

    def test_campos_vazios_sao_aceitos(self):
        boleto = interpretar_resposta(_json(payment_code="", value="", expiration_date=""))
        assert boleto.payment_code == ""
        assert not boleto.completo

    def test_valor_sem_duas_casas_falha(self):
        with pytest.raises(ExtractionError):
            interpretar_resposta(_json(value="123.4"))

    def test_data_invalida_falha(self):
        with pytest.raises(ExtractionError):
            interpretar_resposta(_json(expiration_date="15/03/2026"))

    def test_texto_livre_falha(self):
        with pytest.raises(ExtractionError, match="JSON"):
            interpretar_resposta("Não encontrei o código de barras.")

    def test_lista_json_falha(self):
        with pytest.raises(ExtractionError, match="objeto"):
            interpretar_resposta("[1, 2]")

    def test_tipo_errado_falha(self):
        with pytest.raises(ExtractionError):
            interpretar_resposta(json.dumps({"payment_code": 123, "value": "", "expiration_date": ""}))


class TestExtratorBoleto:

    @pytest.fixture
    def gemini(self):
        gemini = AsyncMock()
        gemini.generate_with_document.return_value = GeminiResponse(success=True, content=_json())
        return gemini

    def _extrator(self, gemini, handler):
        return ExtratorBoleto(gemini, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    @pytest.mark.asyncio
    async def test_envia_pdf_ao_gemini(self, gemini):
        pdf = b"%PDF-1.4 guia"

        def handler(request):
            return httpx.Response(200, content=pdf, headers={"content-type": "application/pdf"})

        boleto = await self._extrator(gemini, handler).extrair("https://storage.exemplo.com/guia.pdf")

        assert boleto.payment_code == CODIGO_48
        kwargs = gemini.generate_with_document.await_args.kwargs
        assert kwargs["document"] == pdf
        assert kwargs["mime_type"] == "application/pdf"
        assert kwargs["prompt"] == PROMPT_EXTRACAO
        assert kwargs["json_output"] is True

    @pytest.mark.asyncio
    async def test_octet_stream_tratado_como_pdf(self, gemini):
        def handler(request):
            return httpx.Response(200, content=b"%PDF", headers={"content-type": "application/octet-stream"})

        await self._extrator(gemini, handler).extrair("https://storage.exemplo.com/guia")
        assert gemini.generate_with_document.await_args.kwargs["mime_type"] == "application/pdf"

    @pytest.mark.asyncio
    async def test_falha_no_download(self, gemini):
        extrator = self._extrator(gemini, lambda request: httpx.Response(403, text="expirado"))

        with pytest.raises(ExtractionError, match="baixar"):
            await extrator.extrair("https://storage.exemplo.com/guia.pdf")
        gemini.generate_with_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falha_do_gemini(self, gemini):
        gemini.generate_with_document.return_value = GeminiResponse(success=False, error="Erro HTTP 500")
        extrator = self._extrator(gemini, lambda request: httpx.Response(200, content=b"%PDF"))

        with pytest.raises(ExtractionError, match="500"):
            await extrator.extrair("https://storage.exemplo.com/guia.pdf")
