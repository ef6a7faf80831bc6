# tests/conftest.py
"""
Configuração global do pytest para o Assistente Financeiro.

Este arquivo é executado automaticamente pelo pytest antes dos testes.
"""

import sys
import os

# Adiciona o diretório raiz do projeto ao PYTHONPATH
# para que os imports funcionem corretamente nos testes
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Configura variáveis de ambiente para testes
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GEMINI_KEY", "test-key-for-tests")
os.environ.setdefault("CRON_SECRET", "segredo-de-teste")


import pytest
from sqlalchemy.orm import sessionmaker

from config import BancoInterConfig, Conta49Config, GeminiConfig, Settings


@pytest.fixture
def conta49_config():
    return Conta49Config(
        email="financeiro@empresa.com.br",
        password="senha-secreta",
        firebase_api_key="firebase-key",
        account_id="conta-123",
    )


@pytest.fixture
def inter_config():
    # Material inline fictício: só é carregado quando o cliente cria o próprio httpx
    return BancoInterConfig(
        client_id="client-id",
        client_secret="client-secret",
        cert_b64="Y2VydA==",
        key_b64="Y2hhdmU=",
    )


@pytest.fixture
def settings(conta49_config, inter_config):
    return Settings(
        conta49=conta49_config,
        banco_inter=inter_config,
        gemini=GeminiConfig(api_key="gemini-key"),
        cron_secret="segredo-de-teste",
    )


@pytest.fixture
def db_session():
    """Sessão em banco SQLite em memória, com as tabelas criadas."""
    from database.connection import criar_engine
    from database.init_db import create_tables

    engine = criar_engine("sqlite://")
    create_tables(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    yield db
    db.close()
    engine.dispose()
