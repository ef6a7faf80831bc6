# sistemas/conciliacao/schemas.py
"""
Schemas Pydantic dos resumos de execução da conciliação
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from services.conta49.models import CobrancaComPix


class ResumoCobrancas(BaseModel):
    """Resultado do pagamento das cobranças pendentes"""
    encontradas: int = 0
    pagas: int = 0
    ja_pagas: int = Field(0, description="Cobranças com evento de pagamento já registrado")
    sem_pix: int = 0
    falhas: int = 0
    cobrancas: List[CobrancaComPix] = Field(default_factory=list)
    erro: Optional[str] = None


class ResumoDocumentos(BaseModel):
    """Resultado da sincronização dos documentos fiscais"""
    encontrados: int = 0
    novos: int = 0
    persistidos: int = 0
    falhas: int = 0
    erro: Optional[str] = None


class ResumoConciliacao(BaseModel):
    """Resultado de uma execução completa"""
    cobrancas: ResumoCobrancas
    documentos: ResumoDocumentos


class ResumoPagamentoBoletos(BaseModel):
    """Resultado do pagamento dos documentos persistidos"""
    encontrados: int = 0
    pagos: int = 0
    falhas: int = 0
