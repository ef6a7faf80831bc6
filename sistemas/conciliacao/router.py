# sistemas/conciliacao/router.py
"""
Router da conciliação, chamado pelo agendador (cron).

Endpoints:
- GET /api/charges: paga cobranças pendentes via PIX
- GET /api/tax-documents: sincroniza guias e boletos novos
- GET /api/pay-tax-documents: paga os boletos persistidos
- GET /api/conciliacao: execução completa
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sistemas.conciliacao.dependencies import get_conciliacao_service, verificar_cron_secret
from sistemas.conciliacao.services import ConciliacaoService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Conciliação"],
    dependencies=[Depends(verificar_cron_secret)],
)


def _erro(e: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": "error", "error": str(e)})


@router.get("/charges")
async def pagar_cobrancas(servico: ConciliacaoService = Depends(get_conciliacao_service)):
    """Paga as cobranças pendentes que têm PIX copia e cola"""
    try:
        resumo = await servico.processar_cobrancas()
    except Exception as e:
        logger.exception(f"[Conciliacao] Erro no pagamento de cobranças: {e}")
        return _erro(e)

    if resumo.encontradas == 0:
        return {"message": "No pending charges found"}

    return {
        "message": "success",
        "count": resumo.encontradas,
        "pagas": resumo.pagas,
        "charges": [c.model_dump(mode="json", by_alias=True) for c in resumo.cobrancas],
    }


@router.get("/tax-documents")
async def sincronizar_documentos(servico: ConciliacaoService = Depends(get_conciliacao_service)):
    """Lê e persiste os documentos fiscais ainda não conhecidos"""
    try:
        resumo = await servico.processar_documentos()
    except Exception as e:
        logger.exception(f"[Conciliacao] Erro na sincronização de documentos: {e}")
        return _erro(e)

    if resumo.encontrados == 0:
        return {"message": "No tax documents found"}
    if resumo.novos == 0:
        return {"message": "No pending taxes found"}

    return {"message": "success", **resumo.model_dump(exclude={"erro"})}


@router.get("/pay-tax-documents")
async def pagar_documentos(servico: ConciliacaoService = Depends(get_conciliacao_service)):
    """Paga os boletos persistidos e ainda não pagos"""
    try:
        resumo = await servico.pagar_documentos_pendentes()
    except Exception as e:
        logger.exception(f"[Conciliacao] Erro no pagamento de boletos: {e}")
        return _erro(e)

    return {"message": "success", **resumo.model_dump()}


@router.get("/conciliacao")
async def executar_conciliacao(servico: ConciliacaoService = Depends(get_conciliacao_service)):
    """Execução completa: documentos e cobranças"""
    try:
        resumo = await servico.executar()
    except Exception as e:
        logger.exception(f"[Conciliacao] Erro na execução: {e}")
        return _erro(e)

    return {"message": "success", **resumo.model_dump(mode="json", by_alias=True)}
