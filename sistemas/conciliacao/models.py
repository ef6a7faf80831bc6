# sistemas/conciliacao/models.py
"""
Modelos SQLAlchemy do estado persistido da conciliação.

- Documento: guia/boleto já visto na Conta49 (inserido uma única vez)
- EventoPagamento: registro de que uma cobrança foi paga (id = id da cobrança)

As duas tabelas usam a chave natural como chave primária; é ela que impede
linhas duplicadas quando duas execuções se sobrepõem.
"""

from sqlalchemy import Column, String, Boolean, DateTime

from database.connection import Base
from utils.timezone import get_utc_now


class Documento(Base):
    """Documento fiscal (guia ou boleto) conhecido pelo sistema."""
    __tablename__ = "documentos"

    id = Column(String(36), primary_key=True)
    name = Column(String(256), nullable=False)

    # Só transita de False para True
    paid = Column(Boolean, nullable=False, default=False)

    # Preenchidos pelo leitor de boletos; "" quando não encontrados
    payment_code = Column(String(1024), nullable=False, default="")
    value = Column(String(1024), nullable=False, default="")
    expiration_date = Column(String(1024), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=get_utc_now)

    def __repr__(self):
        return f"<Documento {self.id} paid={self.paid}>"


class EventoPagamento(Base):
    """Pagamento de uma cobrança já realizado (guarda de no máximo uma vez)."""
    __tablename__ = "eventos_pagamento"

    id = Column(String(36), primary_key=True)
    description = Column(String(1024), nullable=True)
    codigo_solicitacao = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=get_utc_now)

    def __repr__(self):
        return f"<EventoPagamento {self.id}>"
