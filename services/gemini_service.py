# services/gemini_service.py
"""
Serviço de chamadas à API do Google Gemini.

Usado pelo leitor de boletos: o PDF da guia é enviado como inline_data e o
modelo devolve os dados de pagamento em JSON.

- HTTP client reutilizável (injetável em testes)
- Timeouts granulares (connect vs read)
- Métricas de latência em log
- Sem retry interno: a próxima execução do agendador tenta de novo
"""

import base64
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from config import GeminiConfig, get_settings
from utils.timeouts import Timeouts, get_timeout
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


# ============================================
# INSTRUMENTAÇÃO DE MÉTRICAS
# ============================================

@dataclass
class GeminiMetrics:
    """Métricas de uma chamada ao Gemini para diagnóstico de latência"""
    timestamp: datetime = field(default_factory=now_utc)
    model: str = ""
    prompt_chars: int = 0
    document_bytes: int = 0
    response_tokens: int = 0

    # Tempos em milissegundos
    time_request_ms: float = 0
    time_total_ms: float = 0

    success: bool = True
    error: str = ""

    def log(self):
        """Log estruturado das métricas"""
        if self.success:
            logger.info(
                f"[Gemini] model={self.model} "
                f"prompt={self.prompt_chars}chars "
                f"documento={self.document_bytes}bytes "
                f"response={self.response_tokens}tok "
                f"request={self.time_request_ms:.0f}ms "
                f"total={self.time_total_ms:.0f}ms"
            )
        else:
            logger.warning(
                f"[Gemini] ERRO model={self.model} "
                f"total={self.time_total_ms:.0f}ms "
                f"error={self.error[:100]}"
            )


@dataclass
class GeminiResponse:
    """Resposta padronizada do Gemini"""
    success: bool
    content: str = ""
    error: Optional[str] = None
    tokens_used: int = 0
    metrics: Optional[GeminiMetrics] = None


class GeminiService:
    """
    Serviço para chamadas à API do Google Gemini.

    Uso:
        gemini = GeminiService()
        response = await gemini.generate_with_document(
            prompt="Extraia os dados do boleto",
            document=pdf_bytes,
            mime_type="application/pdf",
            json_output=True,
        )
    """

    # URL base da API Gemini
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_settings().gemini
        self._client = client
        self._owns_client = False

    def is_configured(self) -> bool:
        """Verifica se o serviço está configurado"""
        return bool(self.config.api_key)

    @staticmethod
    def normalize_model(model: str) -> str:
        """Remove prefixo 'google/' se presente"""
        if model.startswith("google/"):
            return model[7:]
        return model

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    get_timeout("gemini_api"),
                    connect=Timeouts.HTTP_CONNECT,
                )
            )
            self._owns_client = True
        return self._client

    async def fechar(self):
        """Fecha o HTTP client se foi criado aqui"""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def generate_with_document(
        self,
        prompt: str,
        document: bytes,
        mime_type: str = "application/pdf",
        system_prompt: str = "",
        model: str = None,
        temperature: float = 0.0,
        json_output: bool = False,
    ) -> GeminiResponse:
        """
        Gera texto analisando um documento.

        Args:
            prompt: Instruções para o modelo
            document: Conteúdo binário do documento
            mime_type: Tipo do documento (application/pdf, image/png, ...)
            system_prompt: Instruções do sistema (opcional)
            model: Nome do modelo (opcional, usa o configurado)
            temperature: Temperatura (0-2)
            json_output: Se True, pede resposta em application/json

        Returns:
            GeminiResponse com o resultado (nunca levanta exceção de transporte)
        """
        metrics = GeminiMetrics()
        t_start = time.perf_counter()

        if not self.is_configured():
            metrics.success = False
            metrics.error = "GEMINI_KEY não configurada"
            return GeminiResponse(success=False, error=metrics.error, metrics=metrics)

        model = self.normalize_model(model or self.config.model)
        metrics.model = model
        metrics.prompt_chars = len(prompt)
        metrics.document_bytes = len(document)

        url = f"{self.BASE_URL}/{model}:generateContent?key={self.config.api_key}"
        payload = self._build_payload_with_document(
            prompt=prompt,
            document=document,
            mime_type=mime_type,
            system_prompt=system_prompt,
            temperature=temperature,
            json_output=json_output,
        )

        try:
            client = await self._get_client()
            t_request = time.perf_counter()
            response = await client.post(url, json=payload)
            metrics.time_request_ms = (time.perf_counter() - t_request) * 1000
            response.raise_for_status()
            data = response.json()

        except httpx.HTTPStatusError as e:
            metrics.success = False
            metrics.error = f"Erro HTTP {e.response.status_code}: {e.response.text[:200]}"
            metrics.time_total_ms = (time.perf_counter() - t_start) * 1000
            metrics.log()
            return GeminiResponse(success=False, error=metrics.error, metrics=metrics)

        except httpx.TimeoutException as e:
            metrics.success = False
            metrics.error = f"Timeout na chamada ao Gemini: {e}"
            metrics.time_total_ms = (time.perf_counter() - t_start) * 1000
            metrics.log()
            return GeminiResponse(success=False, error=metrics.error, metrics=metrics)

        except (httpx.HTTPError, ValueError) as e:
            metrics.success = False
            metrics.error = str(e)
            metrics.time_total_ms = (time.perf_counter() - t_start) * 1000
            metrics.log()
            return GeminiResponse(success=False, error=f"Erro: {e}", metrics=metrics)

        content = self._extract_content(data)
        tokens = self._extract_tokens(data)
        metrics.time_total_ms = (time.perf_counter() - t_start) * 1000

        if not content:
            metrics.success = False
            metrics.error = "Resposta vazia do Gemini (sem conteúdo gerado)"
            metrics.log()
            return GeminiResponse(success=False, error=metrics.error, metrics=metrics)

        metrics.response_tokens = tokens
        metrics.log()
        return GeminiResponse(success=True, content=content, tokens_used=tokens, metrics=metrics)

    def _build_payload_with_document(
        self,
        prompt: str,
        document: bytes,
        mime_type: str,
        system_prompt: str = "",
        temperature: float = 0.0,
        json_output: bool = False,
    ) -> Dict[str, Any]:
        """Monta o payload com o documento em inline_data seguido do prompt."""
        parts = [
            {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(document).decode("ascii"),
                }
            },
            {"text": prompt},
        ]

        generation_config: Dict[str, Any] = {"temperature": temperature}
        if json_output:
            generation_config["responseMimeType"] = "application/json"

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        return payload

    def _extract_content(self, data: Dict) -> str:
        """Extrai conteúdo da resposta do Gemini"""
        candidates = data.get("candidates", [])
        if candidates:
            finish_reason = candidates[0].get("finishReason", "")
            if finish_reason in ("SAFETY", "RECITATION", "OTHER"):
                logger.warning(f"[Gemini] Resposta bloqueada: finishReason={finish_reason}")

            parts = candidates[0].get("content", {}).get("parts", [])
            # Com thinking, a primeira part pode vir sem texto
            for part in parts:
                text = part.get("text", "")
                if text:
                    return text
        else:
            block_reason = data.get("promptFeedback", {}).get("blockReason", "")
            if block_reason:
                logger.warning(f"[Gemini] Prompt bloqueado: blockReason={block_reason}")
            else:
                logger.warning(f"[Gemini] Resposta sem candidates. Keys: {list(data.keys())}")
        return ""

    def _extract_tokens(self, data: Dict) -> int:
        """Extrai contagem de tokens da resposta"""
        return data.get("usageMetadata", {}).get("totalTokenCount", 0)
