# database/init_db.py
"""
Inicialização do banco de dados
"""

import time
import logging

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from database.connection import engine, Base

# Importa modelos para registrar as tabelas no metadata
from sistemas.conciliacao.models import Documento, EventoPagamento  # noqa: F401

logger = logging.getLogger(__name__)


def wait_for_db(max_retries=10, delay=3):
    """Aguarda o banco de dados ficar disponível"""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Conexão com banco de dados estabelecida")
            return True
        except OperationalError:
            if attempt < max_retries - 1:
                logger.warning(f"Aguardando banco de dados... tentativa {attempt + 1}/{max_retries}")
                time.sleep(delay)
            else:
                logger.error(f"Não foi possível conectar ao banco após {max_retries} tentativas")
                raise
    return False


def create_tables(bind=None):
    """Cria as tabelas de documentos e eventos de pagamento"""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Tabelas criadas/verificadas")


def init_database():
    """Executado no startup da aplicação"""
    wait_for_db()
    create_tables()
