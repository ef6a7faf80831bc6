#!/usr/bin/env python3
"""
Lista pendências da Conta49 sem pagar nada.

Uso:
    python scripts/listar_pendencias.py cobrancas
    python scripts/listar_pendencias.py documentos

- cobrancas: cobranças PENDING/OVERDUE com o PIX copia e cola da fatura
- documentos: guias e boletos do painel contábil
"""

import asyncio
import argparse
import sys
import os

# Adiciona o diretório raiz ao path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_settings
from services.conta49 import Conta49Client, ScraperFatura
from services.exceptions import AssistenteFinanceiroError
from utils.logging_config import setup_logging


async def listar_cobrancas():
    settings = get_settings()
    scraper = ScraperFatura()
    try:
        async with Conta49Client(settings.conta49) as conta49:
            cobrancas = await conta49.listar_cobrancas_pendentes()

        print(f"\n{len(cobrancas)} cobranças pendentes\n")
        for i, cobranca in enumerate(cobrancas, 1):
            pix = await scraper.extrair_codigo_pix(cobranca.invoice_url)
            print(f"Cobrança {i}:")
            print(f"  ID: {cobranca.id}")
            print(f"  Status: {cobranca.status.value}")
            print(f"  Descrição: {cobranca.description}")
            print(f"  Valor: R$ {cobranca.value}")
            print(f"  Fatura: {cobranca.invoice_url}")
            print(f"  PIX: {pix or '(não encontrado)'}")
            print("-" * 40)
    finally:
        await scraper.fechar()


async def listar_documentos():
    settings = get_settings()
    async with Conta49Client(settings.conta49) as conta49:
        documentos = await conta49.listar_documentos_fiscais()

    print(f"\n{len(documentos)} documentos fiscais\n")
    for i, documento in enumerate(documentos, 1):
        print(f"Documento {i}:")
        print(f"  ID: {documento.id}")
        print(f"  Título: {documento.title}")
        print(f"  Arquivo: {documento.name}")
        print(f"  Descrição: {documento.description}")
        print(f"  Tags: {', '.join(documento.tags)}")
        print(f"  Criado em: {documento.created_at.isoformat()}")
        print("-" * 40)


def main():
    parser = argparse.ArgumentParser(description="Lista pendências da Conta49 (somente leitura)")
    parser.add_argument("tipo", choices=["cobrancas", "documentos"], help="O que listar")
    args = parser.parse_args()

    setup_logging()

    acao = listar_cobrancas if args.tipo == "cobrancas" else listar_documentos
    try:
        asyncio.run(acao())
    except AssistenteFinanceiroError as e:
        print(f"Erro: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
