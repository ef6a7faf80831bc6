# sistemas/conciliacao/services.py
"""
Motor de conciliação Conta49 -> Banco Inter.

Uma execução:
1. Autentica no Banco Inter e na Conta49
2. Busca cobranças pendentes e documentos fiscais em paralelo
3. Documentos novos: lê o boleto e persiste (uma única vez)
4. Cobranças: extrai o PIX da fatura, paga e registra o evento

Cada cobrança/documento é isolado: uma falha é registrada em log e a
execução segue para o próximo item. Nada é repetido dentro da execução.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from services.banco_inter import (
    BancoInterClient,
    Boleto,
    RespostaPagamentoPix,
    TokenInter,
    criar_pagamento_pix_copia_e_cola,
)
from services.conta49 import (
    Cobranca,
    CobrancaComPix,
    Conta49Client,
    DocumentoFiscal,
    ScraperFatura,
)
from services.exceptions import ExtractionError, FetchError
from services.extrator_boleto import ExtratorBoleto
from services.gemini_service import GeminiService
from sistemas.conciliacao.persistencia import (
    evento_pagamento_existe,
    ids_documentos_persistidos,
    inserir_documento,
    listar_documentos_a_pagar,
    marcar_documento_pago,
    registrar_evento_pagamento,
)
from sistemas.conciliacao.schemas import (
    ResumoCobrancas,
    ResumoConciliacao,
    ResumoDocumentos,
    ResumoPagamentoBoletos,
)

logger = logging.getLogger(__name__)


class ConciliacaoService:
    """
    Orquestra uma execução de conciliação.

    Uso:
        async with ConciliacaoService.from_settings(db) as servico:
            resumo = await servico.executar()
    """

    def __init__(
        self,
        db: Session,
        conta49: Conta49Client,
        banco: BancoInterClient,
        scraper: ScraperFatura,
    ):
        self.db = db
        self.conta49 = conta49
        self.banco = banco
        self.scraper = scraper

    @classmethod
    def from_settings(cls, db: Session, settings: Optional[Settings] = None) -> "ConciliacaoService":
        """Monta o serviço com os clientes reais a partir da configuração."""
        settings = settings or get_settings()
        extrator = ExtratorBoleto(GeminiService(settings.gemini))
        return cls(
            db=db,
            conta49=Conta49Client(settings.conta49, extrator=extrator),
            banco=BancoInterClient(settings.banco_inter),
            scraper=ScraperFatura(),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.fechar()

    async def fechar(self):
        """Fecha os clientes HTTP criados pelo serviço."""
        await self.conta49.fechar()
        if self.conta49.extrator is not None:
            await self.conta49.extrator.fechar()
        await self.banco.fechar()
        await self.scraper.fechar()

    # ==========================================
    # Execução completa
    # ==========================================

    async def executar(self) -> ResumoConciliacao:
        """
        Executa cobranças e documentos numa única passada.

        Raises:
            AuthError: Falha de autenticação (aborta antes de qualquer pagamento)
            FetchError: Uma das listagens falhou (a outra é processada antes)
        """
        logger.info("[Conciliacao] Iniciando execução")
        token = await self.banco.autenticar()
        await self.conta49.autenticar()

        cobrancas, documentos = await asyncio.gather(
            self.conta49.listar_cobrancas_pendentes(),
            self.conta49.listar_documentos_fiscais(),
            return_exceptions=True,
        )

        for resultado in (cobrancas, documentos):
            if isinstance(resultado, BaseException) and not isinstance(resultado, FetchError):
                raise resultado

        erros: List[FetchError] = []

        if isinstance(documentos, FetchError):
            logger.error(f"[Conciliacao] Falha ao listar documentos: {documentos}")
            erros.append(documentos)
            resumo_documentos = ResumoDocumentos(erro=str(documentos))
        else:
            resumo_documentos = await self._sincronizar_documentos(documentos)

        if isinstance(cobrancas, FetchError):
            logger.error(f"[Conciliacao] Falha ao listar cobranças: {cobrancas}")
            erros.append(cobrancas)
            resumo_cobrancas = ResumoCobrancas(erro=str(cobrancas))
        else:
            resumo_cobrancas = await self._pagar_cobrancas(cobrancas, token)

        resumo = ResumoConciliacao(cobrancas=resumo_cobrancas, documentos=resumo_documentos)
        self._log_resumo(resumo)

        if erros:
            raise erros[0]
        return resumo

    async def processar_cobrancas(self) -> ResumoCobrancas:
        """Paga as cobranças pendentes (sem tocar em documentos)."""
        token = await self.banco.autenticar()
        await self.conta49.autenticar()
        cobrancas = await self.conta49.listar_cobrancas_pendentes()
        return await self._pagar_cobrancas(cobrancas, token)

    async def processar_documentos(self) -> ResumoDocumentos:
        """Sincroniza os documentos fiscais novos (sem pagar)."""
        await self.conta49.autenticar()
        documentos = await self.conta49.listar_documentos_fiscais()
        return await self._sincronizar_documentos(documentos)

    # ==========================================
    # Cobranças
    # ==========================================

    async def enriquecer_cobrancas(self, cobrancas: List[Cobranca]) -> List[CobrancaComPix]:
        """Anexa a cada cobrança o PIX copia e cola da fatura, quando houver."""
        enriquecidas = []
        for cobranca in cobrancas:
            try:
                codigo = await self.scraper.extrair_codigo_pix(cobranca.invoice_url)
            except Exception as e:
                logger.exception(
                    f"[Conciliacao] Falha ao extrair PIX da cobrança {cobranca.id} "
                    f"({cobranca.invoice_url}): {e}"
                )
                codigo = None
            enriquecidas.append(CobrancaComPix(**cobranca.model_dump(), pix_code=codigo))
        return enriquecidas

    async def _pagar_cobranca(self, cobranca: CobrancaComPix, token: TokenInter) -> RespostaPagamentoPix:
        pagamento = criar_pagamento_pix_copia_e_cola(
            valor=cobranca.value,
            codigo=cobranca.pix_code,
            descricao=cobranca.description,
        )
        return await self.banco.pagar_pix(pagamento, token)

    async def _pagar_cobrancas(self, cobrancas: List[Cobranca], token: TokenInter) -> ResumoCobrancas:
        enriquecidas = await self.enriquecer_cobrancas(cobrancas)
        resumo = ResumoCobrancas(encontradas=len(enriquecidas), cobrancas=enriquecidas)

        for cobranca in enriquecidas:
            if not cobranca.pix_code:
                logger.warning(f"[Conciliacao] Cobrança {cobranca.id} sem código PIX, ignorada")
                resumo.sem_pix += 1
                continue

            if evento_pagamento_existe(self.db, cobranca.id):
                logger.info(f"[Conciliacao] Cobrança {cobranca.id} já paga anteriormente")
                resumo.ja_pagas += 1
                continue

            try:
                resposta = await self._pagar_cobranca(cobranca, token)
            except Exception as e:
                logger.exception(
                    f"[Conciliacao] Falha ao pagar cobrança {cobranca.id} (R$ {cobranca.value}): {e}"
                )
                resumo.falhas += 1
                continue

            try:
                registrar_evento_pagamento(self.db, cobranca, resposta.codigo_solicitacao)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.critical(
                    f"[Conciliacao] Cobrança {cobranca.id} PAGA mas não registrada "
                    f"(codigoSolicitacao={resposta.codigo_solicitacao}): {e}"
                )
                resumo.falhas += 1
                continue

            logger.info(f"[Conciliacao] Cobrança {cobranca.id} paga: R$ {cobranca.value}")
            resumo.pagas += 1

        return resumo

    # ==========================================
    # Documentos
    # ==========================================

    async def _sincronizar_documentos(self, documentos: List[DocumentoFiscal]) -> ResumoDocumentos:
        existentes = ids_documentos_persistidos(self.db)
        novos = [d for d in documentos if d.id not in existentes]
        resumo = ResumoDocumentos(encontrados=len(documentos), novos=len(novos))

        if not novos:
            logger.info("[Conciliacao] Nenhum documento fiscal novo")
            return resumo

        for documento in novos:
            try:
                boleto = await self.conta49.resolver_codigo_pagamento(documento.id)
            except (FetchError, ExtractionError) as e:
                # Não persiste: a próxima execução tenta de novo
                logger.error(f"[Conciliacao] Documento {documento.id} ({documento.name}) não lido: {e}")
                resumo.falhas += 1
                continue

            if inserir_documento(self.db, documento.com_boleto(boleto)):
                logger.info(
                    f"[Conciliacao] Documento {documento.id} persistido "
                    f"(valor={boleto.value or '-'}, vencimento={boleto.expiration_date or '-'})"
                )
                resumo.persistidos += 1

        return resumo

    async def pagar_documentos_pendentes(self) -> ResumoPagamentoBoletos:
        """Paga os boletos persistidos ainda não pagos."""
        token = await self.banco.autenticar()
        documentos = listar_documentos_a_pagar(self.db)
        resumo = ResumoPagamentoBoletos(encontrados=len(documentos))
        logger.info(f"[Conciliacao] {len(documentos)} documentos a pagar")

        for documento in documentos:
            try:
                boleto = Boleto(
                    payment_code=documento.payment_code,
                    value=documento.value,
                    expiration_date=documento.expiration_date,
                )
                await self.banco.pagar_boleto(boleto, token, item_id=documento.id)
            except Exception as e:
                logger.exception(f"[Conciliacao] Falha ao pagar documento {documento.id}: {e}")
                resumo.falhas += 1
                continue

            try:
                marcar_documento_pago(self.db, documento.id)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.critical(
                    f"[Conciliacao] Documento {documento.id} PAGO mas não marcado como pago: {e}"
                )
                resumo.falhas += 1
                continue

            resumo.pagos += 1

        return resumo

    def _log_resumo(self, resumo: ResumoConciliacao):
        c, d = resumo.cobrancas, resumo.documentos
        logger.info(
            f"[Conciliacao] Fim: cobranças encontradas={c.encontradas} pagas={c.pagas} "
            f"ja_pagas={c.ja_pagas} sem_pix={c.sem_pix} falhas={c.falhas} | "
            f"documentos encontrados={d.encontrados} novos={d.novos} "
            f"persistidos={d.persistidos} falhas={d.falhas}"
        )
