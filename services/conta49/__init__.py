# services/conta49/__init__.py
"""
Integração com a Conta49 (serviço contábil).

- Autenticação Firebase + sessão Conta49
- Cobranças pendentes e documentos fiscais
- Código PIX das faturas (página do Asaas)

Uso:
    from services.conta49 import Conta49Client, ScraperFatura

    async with Conta49Client() as conta49:
        cobrancas = await conta49.listar_cobrancas_pendentes()
"""

from .models import (
    Cobranca,
    CobrancaComPix,
    DocumentoFiscal,
    RespostaFirebase,
    SessaoConta49,
    StatusCobranca,
    TAGS_FISCAIS,
)
from .parsers import desembrulhar_lote, normalizar_url_fatura
from .client import Conta49Client
from .scraper import ScraperFatura, extrair_codigo_pix_html

__all__ = [
    "Conta49Client",
    "ScraperFatura",
    "extrair_codigo_pix_html",
    "desembrulhar_lote",
    "normalizar_url_fatura",
    "Cobranca",
    "CobrancaComPix",
    "DocumentoFiscal",
    "RespostaFirebase",
    "SessaoConta49",
    "StatusCobranca",
    "TAGS_FISCAIS",
]
