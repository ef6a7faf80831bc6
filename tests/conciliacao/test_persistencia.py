# tests/conciliacao/test_persistencia.py
"""
Testes do estado de idempotência (documentos e eventos de pagamento).
"""

from datetime import datetime, timezone
from decimal import Decimal

from services.conta49.models import Cobranca, DocumentoFiscal, StatusCobranca
from sistemas.conciliacao.models import Documento, EventoPagamento
from sistemas.conciliacao.persistencia import (
    evento_pagamento_existe,
    ids_documentos_persistidos,
    inserir_documento,
    listar_documentos_a_pagar,
    marcar_documento_pago,
    registrar_evento_pagamento,
)

CODIGO_48 = "858900000050682103852509790716250721167229931410"


def _documento(id, payment_code=None, value=None, expiration_date=None):
    return DocumentoFiscal(
        id=id,
        name=f"{id}.pdf",
        title=id,
        description="",
        tags=["guia"],
        created_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
        payment_code=payment_code,
        value=value,
        expiration_date=expiration_date,
    )


def _cobranca(id):
    return Cobranca(
        id=id,
        status=StatusCobranca.PENDING,
        description=f"Mensalidade {id}",
        value=Decimal("150.00"),
        invoice_url="https://www.asaas.com/b/preview/x",
    )


class TestDocumentos:

    def test_insere_uma_unica_vez(self, db_session):
        assert inserir_documento(db_session, _documento("d1", CODIGO_48, "10.00", "2026-10-30"))
        assert not inserir_documento(db_session, _documento("d1"))

        assert ids_documentos_persistidos(db_session) == {"d1"}
        salvo = db_session.get(Documento, "d1")
        assert salvo.paid is False
        assert salvo.payment_code == CODIGO_48

    def test_campos_ausentes_viram_string_vazia(self, db_session):
        inserir_documento(db_session, _documento("d2"))
        salvo = db_session.get(Documento, "d2")
        assert (salvo.payment_code, salvo.value, salvo.expiration_date) == ("", "", "")

    def test_sessao_continua_utilizavel_apos_duplicata(self, db_session):
        inserir_documento(db_session, _documento("d1"))
        inserir_documento(db_session, _documento("d1"))
        assert inserir_documento(db_session, _documento("d2"))
        assert ids_documentos_persistidos(db_session) == {"d1", "d2"}

    def test_a_pagar_exige_codigo_e_nao_pago(self, db_session):
        inserir_documento(db_session, _documento("com-codigo", CODIGO_48, "10.00", "2026-10-30"))
        inserir_documento(db_session, _documento("sem-codigo"))
        inserir_documento(db_session, _documento("pago", CODIGO_48, "20.00", "2026-10-30"))
        marcar_documento_pago(db_session, "pago")

        assert [d.id for d in listar_documentos_a_pagar(db_session)] == ["com-codigo"]

    def test_marcar_pago_e_monotono(self, db_session):
        inserir_documento(db_session, _documento("d1", CODIGO_48, "10.00", "2026-10-30"))

        assert marcar_documento_pago(db_session, "d1")
        assert marcar_documento_pago(db_session, "d1")
        assert db_session.get(Documento, "d1").paid is True

    def test_marcar_pago_inexistente(self, db_session):
        assert not marcar_documento_pago(db_session, "nao-existe")


class TestEventosPagamento:

    def test_registra_uma_unica_vez(self, db_session):
        assert not evento_pagamento_existe(db_session, "c1")

        assert registrar_evento_pagamento(db_session, _cobranca("c1"), "sol-1")
        assert not registrar_evento_pagamento(db_session, _cobranca("c1"), "sol-2")

        assert evento_pagamento_existe(db_session, "c1")
        evento = db_session.get(EventoPagamento, "c1")
        assert evento.codigo_solicitacao == "sol-1"
        assert evento.description == "Mensalidade c1"
