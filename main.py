# main.py
"""
Assistente Financeiro - Aplicação FastAPI Principal

Endpoints chamados pelo agendador (cron) para conciliar as cobranças e guias
da Conta49 com pagamentos no Banco Inter.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import get_settings
from database.init_db import init_database
from middleware.request_id import RequestIDMiddleware
from sistemas.conciliacao.router import router as conciliacao_router
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle events da aplicação.
    Executa na inicialização e no shutdown.
    """
    # Startup
    setup_logging()
    logger.info("Iniciando Assistente Financeiro...")
    get_settings()
    init_database()
    yield
    # Shutdown
    logger.info("Encerrando Assistente Financeiro...")


# Cria a aplicação FastAPI
app = FastAPI(
    title="Assistente Financeiro",
    description="Conciliação de pagamentos Conta49 -> Banco Inter",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(RequestIDMiddleware)


# ==================================================
# ROTAS
# ==================================================

@app.get("/health")
async def health_check():
    """Health check para monitoramento"""
    settings = get_settings()
    return {
        "status": "ok",
        "service": "assistente-financeiro",
        "has_conta49_credentials": bool(settings.conta49.email and settings.conta49.password),
        "has_inter_certificate": settings.banco_inter.tem_certificado,
        "has_gemini_key": bool(settings.gemini.api_key),
    }


app.include_router(conciliacao_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
