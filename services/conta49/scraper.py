# services/conta49/scraper.py
"""
Extração do código PIX copia e cola da página de fatura do Asaas.

Heurísticas, na ordem:
1. parágrafos dentro de .pix-section
2. parágrafo logo após o título "Código Pix copia e cola"
3. qualquer parágrafo com br.gov.bcb.pix iniciando com 00020101

Um candidato só é aceito se começar com o prefixo do BR Code. Falha de rede
nunca levanta exceção: a cobrança apenas fica sem PIX.
"""

import logging
from typing import Callable, List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from utils.timeouts import get_timeout

logger = logging.getLogger(__name__)

PREFIXO_BR_CODE = "00020101"
MARCADOR_PIX = "br.gov.bcb.pix"
TITULO_COPIA_E_COLA = "Código Pix copia e cola"

_TITULOS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def _da_secao_pix(soup: BeautifulSoup) -> str:
    secao = soup.select_one(".pix-section")
    if secao is None:
        return ""
    return "".join(p.get_text() for p in secao.find_all("p")).strip()


def _do_titulo(soup: BeautifulSoup) -> str:
    for titulo in soup.find_all(_TITULOS):
        if TITULO_COPIA_E_COLA not in titulo.get_text():
            continue
        proximo = titulo.find_next_sibling()
        if proximo is not None and proximo.name == "p":
            return proximo.get_text().strip()
    return ""


def _de_paragrafo(soup: BeautifulSoup) -> str:
    for p in soup.find_all("p"):
        texto = p.get_text().strip()
        if MARCADOR_PIX in texto and texto.startswith(PREFIXO_BR_CODE):
            return texto
    return ""


HEURISTICAS: List[Tuple[str, Callable[[BeautifulSoup], str]]] = [
    ("pix-section", _da_secao_pix),
    ("titulo", _do_titulo),
    ("paragrafo", _de_paragrafo),
]


def extrair_codigo_pix_html(html: str) -> Optional[str]:
    """Aplica as heurísticas sobre o HTML e retorna o primeiro BR Code válido."""
    soup = BeautifulSoup(html, "html.parser")

    for nome, heuristica in HEURISTICAS:
        candidato = heuristica(soup)
        if candidato.startswith(PREFIXO_BR_CODE):
            logger.info(f"[Fatura] Código PIX encontrado via {nome}")
            return candidato
        if candidato:
            logger.debug(f"[Fatura] Candidato via {nome} sem prefixo {PREFIXO_BR_CODE}, ignorado")

    return None


class ScraperFatura:
    """
    Lê páginas de fatura em busca do PIX copia e cola.

    Uso:
        scraper = ScraperFatura()
        codigo = await scraper.extrair_codigo_pix("https://www.asaas.com/b/preview/abc")
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._owns_client = False

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=get_timeout("scraper", as_httpx=True),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def fechar(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def extrair_codigo_pix(self, url: str) -> Optional[str]:
        """
        Baixa a página da fatura e extrai o código PIX.

        Returns:
            BR Code (começa com 00020101) ou None se não encontrado/inacessível
        """
        logger.info(f"[Fatura] Buscando código PIX em {url}")
        client = await self._get_client()

        try:
            response = await client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"[Fatura] Falha ao acessar {url}: {e}")
            return None

        codigo = extrair_codigo_pix_html(response.text)
        if codigo is None:
            logger.warning(f"[Fatura] Código PIX não encontrado em {url}")
        return codigo
