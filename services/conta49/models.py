# services/conta49/models.py
"""
Modelos de dados da Conta49 (serviço contábil).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from services.banco_inter.models import Boleto


class StatusCobranca(str, Enum):
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    RECEIVED = "RECEIVED"


STATUS_PENDENTES = (StatusCobranca.PENDING, StatusCobranca.OVERDUE)

# Tags (case-sensitive) que marcam um documento como guia de imposto
TAGS_FISCAIS = frozenset({"guia", "Boleto"})


# ==========================================
# Envelope tRPC em lote
# ==========================================

class DadosLote(BaseModel):
    conteudo: Any = Field(..., alias="json")


class ResultadoLote(BaseModel):
    data: DadosLote


class ItemLote(BaseModel):
    result: ResultadoLote


# ==========================================
# Autenticação
# ==========================================

class RespostaFirebase(BaseModel):
    """Resposta do signInWithPassword do Firebase"""
    model_config = ConfigDict(populate_by_name=True)

    id_token: str = Field(..., alias="idToken", min_length=1)
    email: str = ""
    refresh_token: str = Field("", alias="refreshToken")
    expires_in: str = Field("", alias="expiresIn")
    local_id: str = Field("", alias="localId")
    registered: Optional[bool] = None


@dataclass(frozen=True)
class SessaoConta49:
    """Sessão autenticada, válida apenas durante uma execução."""
    id_token: str
    session_cookie: str


# ==========================================
# Cobranças e documentos
# ==========================================

class Cobranca(BaseModel):
    """Cobrança emitida contra a empresa (fatura Asaas)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    status: StatusCobranca
    description: str
    value: Decimal
    invoice_url: str = Field(..., alias="invoiceUrl")

    @property
    def pendente(self) -> bool:
        return self.status in STATUS_PENDENTES


class CobrancaComPix(Cobranca):
    """Cobrança com o código PIX copia e cola extraído da fatura (se houver)."""
    pix_code: Optional[str] = Field(None, alias="pixCode")


class DocumentoFiscal(BaseModel):
    """Documento do painel contábil (guias, boletos e outros)."""

    id: str
    name: str
    title: str
    description: str
    tags: List[str]
    created_at: datetime

    payment_code: Optional[str] = Field(None, min_length=48, max_length=48)
    value: Optional[str] = None
    expiration_date: Optional[str] = None

    @property
    def eh_fiscal(self) -> bool:
        return bool(TAGS_FISCAIS.intersection(self.tags))

    def com_boleto(self, boleto: Boleto) -> "DocumentoFiscal":
        """Cópia do documento preenchida com os dados de pagamento extraídos."""
        return self.model_copy(update={
            "payment_code": boleto.payment_code or None,
            "value": boleto.value,
            "expiration_date": boleto.expiration_date,
        })
