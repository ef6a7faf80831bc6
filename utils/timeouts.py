# utils/timeouts.py
"""
Configuração centralizada de timeouts para integrações externas.

Toda chamada de saída (Conta49, página de fatura, Banco Inter, Gemini)
tem um timeout limitado. Timeout é tratado como falha transitória da
chamada; quem repete é o agendador, na próxima execução.

USO:
    from utils.timeouts import Timeouts, get_timeout

    timeout = get_timeout("banco_inter", as_httpx=True)

VARIÁVEIS DE AMBIENTE:
    TIMEOUT_HTTP_CONNECT=10
    TIMEOUT_CONTA49=30
    TIMEOUT_SCRAPER=20
    TIMEOUT_BANCO_INTER=30
    TIMEOUT_GEMINI_API=120
    TIMEOUT_DOCUMENT_DOWNLOAD=60
"""

import os
from dataclasses import dataclass
from typing import Optional, Union
import httpx


@dataclass(frozen=True)
class Timeouts:
    """
    Timeouts padrão por integração.

    Valores em segundos.
    """

    # HTTP genérico
    HTTP_DEFAULT: float = 30.0
    HTTP_CONNECT: float = 10.0

    # Conta49 (tRPC + Firebase)
    CONTA49: float = 30.0

    # Página de fatura (Asaas)
    SCRAPER: float = 20.0

    # Banco Inter (mTLS)
    BANCO_INTER: float = 30.0

    # Gemini (leitura do boleto em PDF pode demorar)
    GEMINI_API: float = 120.0
    DOCUMENT_DOWNLOAD: float = 60.0


def get_timeout(
    operation: str,
    default: Optional[float] = None,
    as_httpx: bool = False
) -> Union[float, httpx.Timeout]:
    """
    Obtém timeout para uma operação, com suporte a override via env var.

    Args:
        operation: Nome da operação (ex: "conta49", "banco_inter")
        default: Valor padrão se a operação não for conhecida
        as_httpx: Se True, retorna httpx.Timeout ao invés de float

    Example:
        get_timeout("gemini_api")  # 120.0
        get_timeout("banco_inter", as_httpx=True)
        # httpx.Timeout(30.0, connect=10.0)
    """
    defaults_map = {
        "http_default": Timeouts.HTTP_DEFAULT,
        "http_connect": Timeouts.HTTP_CONNECT,
        "conta49": Timeouts.CONTA49,
        "scraper": Timeouts.SCRAPER,
        "banco_inter": Timeouts.BANCO_INTER,
        "gemini_api": Timeouts.GEMINI_API,
        "document_download": Timeouts.DOCUMENT_DOWNLOAD,
    }

    operation_lower = operation.lower().replace("-", "_")
    timeout_default = defaults_map.get(operation_lower, default or Timeouts.HTTP_DEFAULT)

    # Override via env var (TIMEOUT_BANCO_INTER, etc.)
    env_value = os.getenv(f"TIMEOUT_{operation_lower.upper()}")
    if env_value:
        try:
            timeout_default = float(env_value)
        except ValueError:
            pass  # Mantém o default se env var for inválida

    if as_httpx:
        connect_timeout = get_timeout("http_connect")
        return httpx.Timeout(timeout_default, connect=connect_timeout)

    return timeout_default


__all__ = [
    "Timeouts",
    "get_timeout",
]
