# services/conta49/parsers.py
"""
Decodificação das respostas da Conta49.

Toda resposta tRPC em lote tem o formato [{"result": {"data": {"json": ...}}}];
o envelope é validado antes de qualquer desembrulho.
"""

import re
from typing import Any, List

from pydantic import TypeAdapter, ValidationError

from services.exceptions import FetchError
from .models import ItemLote

_RESPOSTA_LOTE = TypeAdapter(List[ItemLote])

_FATURA_CURTA = re.compile(r"/i/([^/]+)$")

URL_PREVIEW_ASAAS = "https://www.asaas.com/b/preview/{id}"


def desembrulhar_lote(payload: Any, indice: int) -> Any:
    """
    Valida o envelope em lote e retorna o conteúdo `json` da posição pedida.

    Raises:
        FetchError: Envelope malformado ou posição inexistente
    """
    try:
        itens = _RESPOSTA_LOTE.validate_python(payload)
    except ValidationError as e:
        raise FetchError(f"Resposta em lote da Conta49 inválida: {e}") from e

    if indice >= len(itens):
        raise FetchError(
            f"Resposta em lote da Conta49 sem a posição {indice} ({len(itens)} itens)"
        )
    return itens[indice].result.data.conteudo


def normalizar_url_fatura(url: str) -> str:
    """
    Converte o link curto de fatura (/i/{id}) na página de preview do Asaas.

    Ex: 'https://www.asaas.com/i/abc123' -> 'https://www.asaas.com/b/preview/abc123'
    Links que já são preview, ou em outro formato, voltam inalterados.
    """
    if "/b/preview/" in url:
        return url

    match = _FATURA_CURTA.search(url)
    if match:
        return URL_PREVIEW_ASAAS.format(id=match.group(1))
    return url
