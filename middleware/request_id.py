# middleware/request_id.py
"""
Middleware que identifica cada execução disparada pelo agendador.

Cada chamada às rotas /api recebe um ID (ou reaproveita o X-Request-ID
enviado pelo agendador), que aparece em todos os logs da execução. Assim é
possível reconstruir, a partir dos logs, quais cobranças foram pagas ou
falharam em uma execução específica.

Uso em outros módulos:
    from middleware.request_id import get_request_id
"""

import uuid
import logging
from contextvars import ContextVar
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = logging.getLogger(__name__)


def get_request_id() -> Optional[str]:
    """Retorna o ID da execução atual, ou None fora de uma requisição."""
    return _request_id_ctx.get()


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Propaga o ID da execução para o ContextVar e para o header da resposta.

    Uso:
        app.add_middleware(RequestIDMiddleware)
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        # Limita tamanho do ID externo
        request_id = (request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4()))[:64]

        request.state.request_id = request_id
        set_request_id(request_id)

        try:
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            logger.error(f"[{request_id}] Erro durante execução: {e}")
            raise

        finally:
            set_request_id(None)
