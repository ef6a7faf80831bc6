# utils/timezone.py
"""
POLÍTICA DE TIMEZONE DO SISTEMA

REGRAS:
1. GRAVAÇÃO NO BANCO: Sempre UTC (timezone-aware)
2. DATA DE PAGAMENTO: Sempre o dia corrente em America/Sao_Paulo
   (é o calendário que o Banco Inter usa para dataPagamento)

USO:
    from utils.timezone import now_utc, hoje_local_iso

    created_at = now_utc()
    data_pagamento = hoje_local_iso()  # "2026-10-18"
"""

from datetime import datetime, timezone
import pytz

# =============================================================================
# CONFIGURAÇÃO DE TIMEZONE
# =============================================================================

TIMEZONE_LOCAL_NAME = "America/Sao_Paulo"
TIMEZONE_LOCAL = pytz.timezone(TIMEZONE_LOCAL_NAME)

UTC = timezone.utc


def now_utc() -> datetime:
    """
    Retorna o datetime atual em UTC com timezone-aware.

    USE ESTA FUNÇÃO para gravar timestamps no banco de dados.
    """
    return datetime.now(UTC)


def now_local() -> datetime:
    """Retorna o datetime atual no timezone local (America/Sao_Paulo)."""
    return datetime.now(TIMEZONE_LOCAL)


def hoje_local_iso() -> str:
    """
    Data de hoje no timezone local, formato YYYY-MM-DD.

    Example:
        >>> hoje_local_iso()
        '2026-10-18'
    """
    return now_local().date().isoformat()


# =============================================================================
# FUNÇÕES PARA SQLALCHEMY
# =============================================================================

def get_utc_now():
    """
    Função callable para uso em Column(default=...).

    USE EM MODELS:
        from utils.timezone import get_utc_now
        created_at = Column(DateTime(timezone=True), default=get_utc_now)
    """
    return now_utc()
