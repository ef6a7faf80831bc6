# sistemas/conciliacao/dependencies.py
"""
Dependencies das rotas de conciliação.

- verificar_cron_secret: exige `Authorization: Bearer <CRON_SECRET>`
- get_conciliacao_service: serviço com clientes reais, fechado ao fim da requisição
"""

import secrets
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database.connection import get_db
from sistemas.conciliacao.services import ConciliacaoService


def verificar_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency que exige o segredo do agendador.

    Sem CRON_SECRET configurado, todas as chamadas são recusadas.
    """
    esperado = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not authorization or not secrets.compare_digest(
        authorization.encode(), esperado.encode()
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_conciliacao_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[ConciliacaoService, None]:
    servico = ConciliacaoService.from_settings(db, settings)
    try:
        yield servico
    finally:
        await servico.fechar()
