# services/banco_inter/client.py
"""
Cliente da API Banking PJ do Banco Inter.

Todas as chamadas usam TLS mútuo (certificado + chave do cliente).

Inclui:
- Autenticação client_credentials (/oauth/v2/token)
- Pagamento PIX (/banking/v2/pix)
- Pagamento de boleto/guia (/banking/v2/pagamento)

Não há retry interno: um pagamento repetido pode ser um pagamento duplicado.
"""

import base64
import binascii
import logging
import os
import ssl
import tempfile
from typing import Optional

import httpx
from pydantic import ValidationError

from config import BancoInterConfig, get_settings
from services.exceptions import AuthError, PaymentError
from utils.timeouts import get_timeout
from .models import (
    Boleto,
    PagamentoBoleto,
    PagamentoPix,
    RespostaPagamentoPix,
    TokenInter,
)

logger = logging.getLogger(__name__)


def _gravar_temporario(conteudo: bytes, sufixo: str) -> str:
    """Grava material PEM em arquivo temporário e retorna o caminho."""
    fd, caminho = tempfile.mkstemp(suffix=sufixo)
    with os.fdopen(fd, "wb") as f:
        f.write(conteudo)
    return caminho


def criar_contexto_ssl(config: BancoInterConfig) -> ssl.SSLContext:
    """
    Monta o contexto TLS com o certificado do cliente.

    Usa os arquivos configurados ou, na falta deles, o material inline em
    base64. Os temporários são removidos logo após a carga.

    Raises:
        AuthError: Certificado ausente, base64 inválido ou PEM ilegível
    """
    if not config.tem_certificado:
        raise AuthError("Certificado do Banco Inter não configurado")

    contexto = ssl.create_default_context()

    if config.cert_path and config.key_path:
        try:
            contexto.load_cert_chain(certfile=config.cert_path, keyfile=config.key_path)
        except (ssl.SSLError, OSError) as e:
            raise AuthError(f"Falha ao carregar certificado do Banco Inter: {e}") from e
        return contexto

    try:
        cert = base64.b64decode(config.cert_b64, validate=True)
        chave = base64.b64decode(config.key_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthError(f"Certificado do Banco Inter em base64 inválido: {e}") from e

    cert_path = _gravar_temporario(cert, ".crt")
    key_path = _gravar_temporario(chave, ".key")
    try:
        contexto.load_cert_chain(certfile=cert_path, keyfile=key_path)
    except (ssl.SSLError, OSError) as e:
        raise AuthError(f"Falha ao carregar certificado do Banco Inter: {e}") from e
    finally:
        os.unlink(cert_path)
        os.unlink(key_path)

    return contexto


class BancoInterClient:
    """
    Cliente do Banco Inter.

    Exemplo de uso:

        async with BancoInterClient() as inter:
            token = await inter.autenticar()
            resposta = await inter.pagar_pix(pagamento, token)
    """

    def __init__(
        self,
        config: Optional[BancoInterConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_settings().banco_inter
        self._client = client
        self._owns_client = False
        self.token: Optional[TokenInter] = None

    async def __aenter__(self):
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.fechar()

    async def fechar(self):
        """Fecha o cliente HTTP se foi criado aqui."""
        if self._owns_client and self._client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def _get_client(self) -> httpx.AsyncClient:
        """Obtém cliente HTTP com mTLS, criando se necessário."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=criar_contexto_ssl(self.config),
                timeout=get_timeout("banco_inter", as_httpx=True),
            )
            self._owns_client = True
        return self._client

    def _url(self, caminho: str) -> str:
        return f"{self.config.base_url}{caminho}"

    # ========== AUTENTICAÇÃO ==========

    async def autenticar(self) -> TokenInter:
        """
        Obtém token de acesso com os escopos de pagamento PIX e boleto.

        Raises:
            AuthError: Credenciais ausentes, rejeitadas ou resposta inválida
        """
        if not self.config.client_id or not self.config.client_secret:
            raise AuthError("BANCO_INTER_CLIENT_ID/BANCO_INTER_CLIENT_SECRET não configurados")
        if not self.config.tem_certificado:
            raise AuthError("Certificado do Banco Inter não configurado")

        client = await self._get_client()

        try:
            response = await client.post(
                self._url("/oauth/v2/token"),
                data={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "grant_type": "client_credentials",
                    "scope": self.config.scope,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            response.raise_for_status()
            token = TokenInter.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise AuthError(
                f"Banco Inter recusou a autenticação (HTTP {e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise AuthError(f"Falha de comunicação ao autenticar no Banco Inter: {e}") from e
        except (ValidationError, ValueError) as e:
            raise AuthError(f"Resposta de token inválida do Banco Inter: {e}") from e

        self.token = token
        logger.info(f"[Inter] Token obtido (escopo: {token.scope or self.config.scope})")
        return token

    def _headers(self, token: TokenInter) -> dict:
        return {
            "Authorization": f"Bearer {token.access_token}",
            "Content-Type": "application/json",
        }

    # ========== PAGAMENTOS ==========

    async def pagar_pix(self, pagamento: PagamentoPix, token: TokenInter) -> RespostaPagamentoPix:
        """
        Submete um pagamento PIX.

        Resposta 2xx é sempre tratada como pagamento aceito, mesmo que o corpo
        não traga os campos esperados.

        Raises:
            PaymentError: Rejeição do banco (não 2xx) ou falha de transporte
        """
        client = await self._get_client()
        corpo = pagamento.model_dump(by_alias=True, mode="json")

        logger.info(
            f"[Inter] Enviando PIX de R$ {corpo['valor']:.2f} "
            f"({pagamento.destinatario.tipo}) para {pagamento.data_pagamento}"
        )

        try:
            response = await client.post(
                self._url("/banking/v2/pix"),
                json=corpo,
                headers=self._headers(token),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PaymentError(
                f"Banco Inter rejeitou o PIX (HTTP {e.response.status_code}): {e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            raise PaymentError(f"Falha de comunicação ao enviar PIX: {e}") from e

        try:
            resposta = RespostaPagamentoPix.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            logger.warning(f"[Inter] PIX aceito mas resposta não reconhecida: {e}")
            return RespostaPagamentoPix()

        logger.info(
            f"[Inter] PIX aceito: codigoSolicitacao={resposta.codigo_solicitacao} "
            f"tipoRetorno={resposta.tipo_retorno}"
        )
        return resposta

    async def pagar_boleto(self, boleto: Boleto, token: TokenInter, item_id: str = None) -> None:
        """
        Submete o pagamento de um boleto/guia pelo código de barras.

        Raises:
            PaymentError: Boleto incompleto (sem submissão), rejeição do banco
                ou falha de transporte
        """
        pagamento = PagamentoBoleto.de_boleto(boleto, item_id=item_id)
        client = await self._get_client()

        logger.info(
            f"[Inter] Pagando boleto {item_id or ''} de R$ {boleto.value} "
            f"(vencimento {boleto.expiration_date})"
        )

        try:
            response = await client.post(
                self._url("/banking/v2/pagamento"),
                json=pagamento.model_dump(by_alias=True, mode="json"),
                headers=self._headers(token),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PaymentError(
                f"Banco Inter rejeitou o boleto (HTTP {e.response.status_code}): {e.response.text[:500]}",
                item_id=item_id,
            ) from e
        except httpx.HTTPError as e:
            raise PaymentError(f"Falha de comunicação ao pagar boleto: {e}", item_id=item_id) from e

        logger.info(f"[Inter] Boleto {item_id or ''} aceito")
