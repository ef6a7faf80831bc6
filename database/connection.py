# database/connection.py
"""
Conexão com o banco de dados (SQLAlchemy 2.0).

Guarda apenas o estado de idempotência: documentos fiscais conhecidos e
eventos de pagamento. A unicidade é garantida pela chave primária natural
(id do documento / id da cobrança), não só pelo filtro em memória.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL


def criar_engine(url: str) -> Engine:
    """Cria o engine adequado ao tipo de banco."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}  # Necessário para SQLite
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Banco em memória precisa de uma única conexão compartilhada
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)

    # PostgreSQL - configuração para produção
    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recicla conexões a cada 30 min
        pool_pre_ping=True
    )


engine = criar_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para os models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency que fornece uma sessão do banco de dados.
    Uso: db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
