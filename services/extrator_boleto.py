# services/extrator_boleto.py
"""
Leitor de boletos e guias de impostos.

Baixa o PDF do documento, envia ao Gemini e valida o JSON retornado:
- payment_code: exatamente 48 dígitos (espaços e hífens removidos)
- value: decimal com 2 casas
- expiration_date: data ISO

Campos não encontrados vêm como "". Qualquer outro formato é ExtractionError.
"""

import json
import logging
import re
from typing import Optional, Tuple

import httpx
from pydantic import ValidationError

from services.banco_inter.models import Boleto
from services.exceptions import ExtractionError
from services.gemini_service import GeminiService
from utils.timeouts import get_timeout

logger = logging.getLogger(__name__)


PROMPT_EXTRACAO = """Você vai extrair os dados de pagamento de um boleto/guia de imposto brasileiro em PDF.

1. Localize o código de pagamento (linha digitável). Ele tem sempre exatamente 48 dígitos.
   Formatos possíveis:
   - Sem separadores: 85890000005068210385250979071625072116722993141
   - Com espaços: 85890000005 0 68210385250 9 79071625072 1 16722993141 0
   - Com hífens: 81670000001-0 75610521202-8 50331032515-7 53710070000-5
2. Remova todos os espaços e hífens sem perder nenhum dígito (atenção aos dígitos após hífens).
3. Localize a data de vencimento.
4. Localize o valor a pagar e formate com 2 casas decimais, ponto como separador.

Responda APENAS com um objeto JSON válido:

{
  "payment_code": "858900000050682103852509790716250721167229931410",
  "value": "123.45",
  "expiration_date": "2024-03-15"
}

Se não encontrar algum campo, use string vazia ("") no valor correspondente.
O payment_code deve conter somente números, exatamente 48.
"""

# Remove ```json ... ```
_CERCA_MARKDOWN = re.compile(r'```(?:json)?\s*(\{.*\})\s*```', re.DOTALL)


def interpretar_resposta(texto: str) -> Boleto:
    """
    Converte a resposta textual do modelo em Boleto.

    Raises:
        ExtractionError: Resposta não é JSON, não é objeto ou viola o formato
    """
    texto = (texto or "").strip()
    match = _CERCA_MARKDOWN.search(texto)
    if match:
        texto = match.group(1)

    try:
        dados = json.loads(texto)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Resposta do leitor não é JSON válido: {e}") from e

    if not isinstance(dados, dict):
        raise ExtractionError(f"Resposta do leitor não é um objeto JSON: {type(dados).__name__}")

    try:
        return Boleto.model_validate(dados)
    except ValidationError as e:
        raise ExtractionError(f"Dados do boleto fora do formato esperado: {e}") from e


class ExtratorBoleto:
    """
    Extrai código de barras, valor e vencimento de um documento por URL.

    Uso:
        extrator = ExtratorBoleto(GeminiService())
        boleto = await extrator.extrair("https://.../guia.pdf")
    """

    def __init__(self, gemini: GeminiService, client: Optional[httpx.AsyncClient] = None):
        self.gemini = gemini
        self._client = client
        self._owns_client = False

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=get_timeout("document_download", as_httpx=True),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def fechar(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
        await self.gemini.fechar()

    async def _baixar_documento(self, url: str) -> Tuple[bytes, str]:
        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExtractionError(f"Falha ao baixar documento: {e}") from e

        mime_type = response.headers.get("content-type", "application/pdf").split(";")[0].strip()
        if not mime_type or mime_type in ("application/octet-stream", "binary/octet-stream"):
            mime_type = "application/pdf"
        return response.content, mime_type

    async def extrair(self, url_documento: str) -> Boleto:
        """
        Lê o documento e retorna os dados de pagamento.

        Raises:
            ExtractionError: Download falhou, modelo falhou ou resposta inválida
        """
        conteudo, mime_type = await self._baixar_documento(url_documento)
        logger.info(f"[Boleto] Documento baixado ({len(conteudo)} bytes, {mime_type})")

        resposta = await self.gemini.generate_with_document(
            prompt=PROMPT_EXTRACAO,
            document=conteudo,
            mime_type=mime_type,
            temperature=0.0,
            json_output=True,
        )
        if not resposta.success:
            raise ExtractionError(f"Leitor de boletos falhou: {resposta.error}")

        boleto = interpretar_resposta(resposta.content)

        if not boleto.completo:
            logger.warning(
                f"[Boleto] Extração parcial: codigo={bool(boleto.payment_code)} "
                f"valor={bool(boleto.value)} vencimento={bool(boleto.expiration_date)}"
            )
        else:
            logger.info(f"[Boleto] Extraído: R$ {boleto.value} vence {boleto.expiration_date}")
        return boleto
