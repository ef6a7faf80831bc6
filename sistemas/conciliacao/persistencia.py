# sistemas/conciliacao/persistencia.py
"""
Acesso ao estado de idempotência.

Inserções são "insere se ausente": a chave primária natural decide, e uma
IntegrityError significa que outra execução chegou antes.
"""

import logging
from typing import List, Optional, Set

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from services.conta49.models import Cobranca, DocumentoFiscal
from sistemas.conciliacao.models import Documento, EventoPagamento
from utils.timezone import get_utc_now

logger = logging.getLogger(__name__)


def ids_documentos_persistidos(db: Session) -> Set[str]:
    """Ids de todos os documentos já conhecidos."""
    return set(db.scalars(select(Documento.id)).all())


def inserir_documento(db: Session, documento: DocumentoFiscal) -> bool:
    """
    Persiste um documento fiscal, se ainda não existir.

    Returns:
        True se inseriu, False se já estava presente
    """
    try:
        db.execute(insert(Documento).values(
            id=documento.id,
            name=documento.name,
            paid=False,
            payment_code=documento.payment_code or "",
            value=documento.value or "",
            expiration_date=documento.expiration_date or "",
            created_at=documento.created_at,
        ))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"[Conciliacao] Documento {documento.id} já persistido")
        return False
    return True


def evento_pagamento_existe(db: Session, cobranca_id: str) -> bool:
    return db.get(EventoPagamento, cobranca_id) is not None


def registrar_evento_pagamento(
    db: Session,
    cobranca: Cobranca,
    codigo_solicitacao: Optional[str] = None,
) -> bool:
    """
    Registra que a cobrança foi paga.

    Returns:
        True se registrou, False se já havia registro
    """
    try:
        db.execute(insert(EventoPagamento).values(
            id=cobranca.id,
            description=cobranca.description,
            codigo_solicitacao=codigo_solicitacao,
        ))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"[Conciliacao] Evento de pagamento da cobrança {cobranca.id} já existia")
        return False
    return True


def listar_documentos_a_pagar(db: Session) -> List[Documento]:
    """Documentos não pagos que já têm código de barras."""
    consulta = (
        select(Documento)
        .where(Documento.paid.is_(False), Documento.payment_code != "")
        .order_by(Documento.created_at)
    )
    return list(db.scalars(consulta).all())


def marcar_documento_pago(db: Session, documento_id: str) -> bool:
    """
    Marca o documento como pago. Nunca desfaz um pagamento.

    Returns:
        True se o documento existia e passou a pago
    """
    documento = db.get(Documento, documento_id)
    if documento is None:
        return False
    if not documento.paid:
        documento.paid = True
        documento.updated_at = get_utc_now()
        db.commit()
    return True
