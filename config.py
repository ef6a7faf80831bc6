# config.py
# -*- coding: utf-8 -*-
"""
Configurações centralizadas do Assistente Financeiro

As credenciais dos serviços externos são carregadas UMA vez por processo em
um Settings imutável e passadas explicitamente para cada cliente.
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from dotenv import load_dotenv

# Carrega variáveis de ambiente (apenas se existir .env)
load_dotenv()

logger = logging.getLogger(__name__)

# ==================================================
# AMBIENTE
# ==================================================
ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

# ==================================================
# CONFIGURAÇÕES DO BANCO DE DADOS
# ==================================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./financeiro.db")

# Railway/Heroku usam postgres:// mas SQLAlchemy precisa de postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# ==================================================
# AGENDADOR (cron)
# ==================================================
# Segredo compartilhado enviado pelo agendador no header Authorization
CRON_SECRET = os.getenv("CRON_SECRET", "")


@dataclass(frozen=True)
class Conta49Config:
    """Credenciais e endpoints da Conta49 (serviço contábil)."""

    email: str = ""
    password: str = ""
    firebase_api_key: str = ""
    account_id: str = ""

    base_url: str = "https://app.conta49.com.br/api/trpc"
    firebase_url: str = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

    @classmethod
    def from_env(cls) -> "Conta49Config":
        return cls(
            email=os.getenv("CONTA49_EMAIL", "").strip(),
            password=os.getenv("CONTA49_PASSWORD", ""),
            firebase_api_key=os.getenv("CONTA49_FIREBASE_API_KEY", "").strip(),
            account_id=os.getenv("CONTA49_ACCOUNT_ID", "").strip(),
            base_url=os.getenv("CONTA49_BASE_URL", cls.base_url).strip().rstrip("/"),
        )


@dataclass(frozen=True)
class BancoInterConfig:
    """
    Credenciais do Banco Inter (API Banking PJ).

    O certificado e a chave podem vir de arquivos (BANCO_INTER_CERT_PATH /
    BANCO_INTER_KEY_PATH) ou inline, codificados em base64 (BANCO_INTER_CERT /
    BANCO_INTER_KEY). Os arquivos têm precedência.
    """

    client_id: str = ""
    client_secret: str = ""

    cert_path: str = ""
    key_path: str = ""
    cert_b64: str = ""
    key_b64: str = ""

    base_url: str = "https://cdpj.partners.bancointer.com.br"
    scope: str = "pagamento-pix.write pagamento-boleto.write"

    @classmethod
    def from_env(cls) -> "BancoInterConfig":
        return cls(
            client_id=os.getenv("BANCO_INTER_CLIENT_ID", "").strip(),
            client_secret=os.getenv("BANCO_INTER_CLIENT_SECRET", "").strip(),
            cert_path=os.getenv("BANCO_INTER_CERT_PATH", "").strip(),
            key_path=os.getenv("BANCO_INTER_KEY_PATH", "").strip(),
            cert_b64=os.getenv("BANCO_INTER_CERT", "").strip(),
            key_b64=os.getenv("BANCO_INTER_KEY", "").strip(),
            base_url=os.getenv("BANCO_INTER_BASE_URL", cls.base_url).strip().rstrip("/"),
            scope=os.getenv("BANCO_INTER_SCOPE", cls.scope),
        )

    @property
    def tem_certificado(self) -> bool:
        """Indica se há material de certificado configurado (arquivo ou inline)."""
        return bool(self.cert_path and self.key_path) or bool(self.cert_b64 and self.key_b64)


@dataclass(frozen=True)
class GeminiConfig:
    """Configuração do serviço de leitura de documentos (Google Gemini)."""

    api_key: str = ""
    model: str = "gemini-2.5-flash"

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        return cls(
            api_key=os.getenv("GEMINI_KEY", ""),
            model=os.getenv("GEMINI_MODEL", cls.model),
        )


@dataclass(frozen=True)
class Settings:
    """Configuração completa do processo (imutável)."""

    conta49: Conta49Config
    banco_inter: BancoInterConfig
    gemini: GeminiConfig
    cron_secret: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            conta49=Conta49Config.from_env(),
            banco_inter=BancoInterConfig.from_env(),
            gemini=GeminiConfig.from_env(),
            cron_secret=os.getenv("CRON_SECRET", ""),
        )

        # Log de configuração (sem segredos)
        logger.info(
            f"Settings carregado: conta49_email={bool(settings.conta49.email)}, "
            f"conta49_account={bool(settings.conta49.account_id)}, "
            f"inter_client={bool(settings.banco_inter.client_id)}, "
            f"inter_cert={settings.banco_inter.tem_certificado}, "
            f"gemini_key={bool(settings.gemini.api_key)}"
        )
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Obtém a configuração global (carregada uma vez por processo)."""
    return Settings.from_env()


def reload_settings() -> Settings:
    """Descarta a configuração em cache e recarrega das variáveis de ambiente."""
    get_settings.cache_clear()
    return get_settings()
