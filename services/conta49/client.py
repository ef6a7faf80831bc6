# services/conta49/client.py
"""
Cliente da Conta49 (tRPC em lote, sessão via Firebase).

Fluxo de autenticação:
1. signInWithPassword no Firebase -> idToken
2. auth.signIn na Conta49 com o idToken -> cookie `session`

A sessão vale para a execução corrente; não há renovação.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from config import Conta49Config, get_settings
from services.banco_inter.models import Boleto
from services.exceptions import AuthError, ExtractionError, FetchError
from utils.timeouts import get_timeout
from .models import Cobranca, DocumentoFiscal, RespostaFirebase, SessaoConta49
from .parsers import desembrulhar_lote, normalizar_url_fatura

logger = logging.getLogger(__name__)

_LISTA_COBRANCAS = TypeAdapter(List[Cobranca])
_LISTA_DOCUMENTOS = TypeAdapter(List[DocumentoFiscal])
_URL_HTTP = TypeAdapter(AnyHttpUrl)

# Primeira posição dos lotes: account.getMe, sem parâmetros
_ENTRADA_GET_ME = {"json": None, "meta": {"values": ["undefined"]}}


class Conta49Client:
    """
    Cliente da Conta49.

    Exemplo de uso:

        async with Conta49Client(extrator=extrator) as conta49:
            cobrancas = await conta49.listar_cobrancas_pendentes()
            documentos = await conta49.listar_documentos_fiscais()
    """

    def __init__(
        self,
        config: Optional[Conta49Config] = None,
        extrator=None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            config: Credenciais (usa get_settings() se não fornecidas)
            extrator: ExtratorBoleto usado por resolver_codigo_pagamento
            client: httpx.AsyncClient compartilhado (opcional)
        """
        self.config = config or get_settings().conta49
        self.extrator = extrator
        self.sessao: Optional[SessaoConta49] = None
        self._client = client
        self._owns_client = False

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
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=get_timeout("conta49", as_httpx=True))
            self._owns_client = True
        return self._client

    def _url(self, procedimento: str) -> str:
        return f"{self.config.base_url}/{procedimento}"

    # ========== AUTENTICAÇÃO ==========

    async def autenticar(self) -> SessaoConta49:
        """
        Autentica no Firebase e abre sessão na Conta49.

        Raises:
            AuthError: Credencial ausente, rejeitada ou cookie de sessão ausente
        """
        faltando = [
            nome for nome, valor in (
                ("CONTA49_EMAIL", self.config.email),
                ("CONTA49_PASSWORD", self.config.password),
                ("CONTA49_FIREBASE_API_KEY", self.config.firebase_api_key),
            ) if not valor
        ]
        if faltando:
            raise AuthError(f"Credenciais da Conta49 não configuradas: {', '.join(faltando)}")

        logger.info(f"[Conta49] Autenticando {self.config.email}")
        firebase = await self._autenticar_firebase()
        cookie = await self._entrar_conta49(firebase.id_token)

        self.sessao = SessaoConta49(id_token=firebase.id_token, session_cookie=cookie)
        logger.info("[Conta49] Sessão aberta")
        return self.sessao

    async def _autenticar_firebase(self) -> RespostaFirebase:
        client = await self._get_client()
        try:
            response = await client.post(
                self.config.firebase_url,
                params={"key": self.config.firebase_api_key},
                json={
                    "returnSecureToken": True,
                    "email": self.config.email,
                    "password": self.config.password,
                },
            )
            response.raise_for_status()
            return RespostaFirebase.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise AuthError(
                f"Firebase recusou a autenticação (HTTP {e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise AuthError(f"Falha de comunicação com o Firebase: {e}") from e
        except (ValidationError, ValueError) as e:
            raise AuthError(f"Resposta inválida do Firebase: {e}") from e

    async def _entrar_conta49(self, id_token: str) -> str:
        client = await self._get_client()
        try:
            response = await client.post(
                self._url("auth.signIn"),
                params={"batch": "1"},
                json={"0": {"json": {"tokenId": id_token}}},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AuthError(
                f"Conta49 recusou o login (HTTP {e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise AuthError(f"Falha de comunicação com a Conta49: {e}") from e

        cookies = response.headers.get_list("set-cookie")
        if not cookies:
            raise AuthError("Conta49 não retornou cookies no login")

        for cookie in cookies:
            if cookie.startswith("session="):
                return cookie.split(";", 1)[0][len("session="):]

        raise AuthError("Cookie de sessão não encontrado na resposta da Conta49")

    async def _garantir_sessao(self) -> SessaoConta49:
        if self.sessao is None:
            await self.autenticar()
        return self.sessao

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Cookie": f"session={self.sessao.session_cookie}",
        }

    def _exigir_conta(self) -> str:
        if not self.config.account_id:
            raise FetchError("CONTA49_ACCOUNT_ID não configurado")
        return self.config.account_id

    # ========== LEITURAS ==========

    async def _consultar_lote(self, procedimentos: str, entrada: Dict[str, Any]) -> Any:
        """GET de procedimentos tRPC em lote; retorna o JSON bruto."""
        await self._garantir_sessao()
        client = await self._get_client()
        try:
            response = await client.get(
                self._url(procedimentos),
                params={"batch": "1", "input": json.dumps(entrada)},
                headers=self._headers(),
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Conta49 respondeu HTTP {e.response.status_code} em {procedimentos}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Falha de comunicação com a Conta49 em {procedimentos}: {e}") from e
        except ValueError as e:
            raise FetchError(f"Resposta não-JSON da Conta49 em {procedimentos}") from e

    async def listar_cobrancas_pendentes(self) -> List[Cobranca]:
        """
        Lista cobranças PENDING/OVERDUE com a URL da fatura normalizada.

        Raises:
            FetchError: Falha de transporte ou payload fora do formato
        """
        account_id = self._exigir_conta()
        payload = await self._consultar_lote(
            "account.getMe,account.getCharges",
            {"0": _ENTRADA_GET_ME, "1": {"json": {"accountId": account_id}}},
        )

        try:
            cobrancas = _LISTA_COBRANCAS.validate_python(desembrulhar_lote(payload, 1))
        except ValidationError as e:
            raise FetchError(f"Lista de cobranças inválida: {e}") from e

        pendentes = [
            c.model_copy(update={"invoice_url": normalizar_url_fatura(c.invoice_url)})
            for c in cobrancas if c.pendente
        ]
        logger.info(
            f"[Conta49] {len(cobrancas)} cobranças: {len(pendentes)} pendentes, "
            f"{len(cobrancas) - len(pendentes)} quitadas"
        )
        return pendentes

    async def listar_documentos_fiscais(self) -> List[DocumentoFiscal]:
        """
        Lista documentos marcados como guia ou Boleto.

        Raises:
            FetchError: Falha de transporte ou payload fora do formato
        """
        account_id = self._exigir_conta()
        payload = await self._consultar_lote(
            "account.getMe,account.getDocuments,account.getDocumentTags",
            {
                "0": _ENTRADA_GET_ME,
                "1": {"json": {"accountId": account_id, "tag": "", "ids": ""}},
                "2": {"json": account_id},
            },
        )

        try:
            documentos = _LISTA_DOCUMENTOS.validate_python(desembrulhar_lote(payload, 1))
        except ValidationError as e:
            raise FetchError(f"Lista de documentos inválida: {e}") from e

        fiscais = [d for d in documentos if d.eh_fiscal]
        logger.info(f"[Conta49] {len(fiscais)} documentos fiscais (guias e boletos) de {len(documentos)}")
        return fiscais

    async def obter_url_download(self, documento_id: str) -> str:
        """
        Obtém a URL temporária de download de um documento.

        Raises:
            FetchError: Resposta sem URL http(s) válida
        """
        account_id = self._exigir_conta()
        await self._garantir_sessao()
        client = await self._get_client()

        try:
            response = await client.post(
                self._url("account.getDocumentDownloadUrl"),
                params={"batch": "1"},
                json={"0": {"json": {"accountId": account_id, "documentId": documento_id}}},
                headers=self._headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise FetchError(f"Falha ao obter URL do documento {documento_id}: {e}") from e
        except ValueError as e:
            raise FetchError(f"Resposta não-JSON ao obter URL do documento {documento_id}") from e

        url = desembrulhar_lote(payload, 0)
        if not isinstance(url, str):
            raise FetchError(f"URL do documento {documento_id} ausente na resposta")
        try:
            _URL_HTTP.validate_python(url)
        except ValidationError as e:
            raise FetchError(f"URL do documento {documento_id} inválida: {url!r}") from e
        return url

    async def resolver_codigo_pagamento(self, documento_id: str) -> Boleto:
        """
        Obtém código de barras, valor e vencimento de um documento.

        Raises:
            FetchError: URL de download ausente ou malformada
            ExtractionError: Leitura do documento falhou
        """
        if self.extrator is None:
            raise ExtractionError("Leitor de boletos não configurado")

        url = await self.obter_url_download(documento_id)
        logger.info(f"[Conta49] Lendo dados de pagamento do documento {documento_id}")
        return await self.extrator.extrair(url)
