# services/banco_inter/__init__.py
"""
Integração com a API Banking PJ do Banco Inter (mTLS).

Uso:
    from services.banco_inter import BancoInterClient, criar_pagamento_pix_copia_e_cola

    async with BancoInterClient() as inter:
        token = await inter.autenticar()
        await inter.pagar_pix(criar_pagamento_pix_copia_e_cola(valor, codigo, "Fatura"), token)
"""

from .models import (
    Boleto,
    DestinatarioChave,
    DestinatarioDadosBancarios,
    DestinatarioPixCopiaECola,
    InstituicaoFinanceira,
    PagamentoBoleto,
    PagamentoPix,
    RespostaPagamentoPix,
    TokenInter,
    criar_pagamento_pix_chave,
    criar_pagamento_pix_copia_e_cola,
    criar_pagamento_pix_dados_bancarios,
)
from .client import BancoInterClient, criar_contexto_ssl

__all__ = [
    "BancoInterClient",
    "criar_contexto_ssl",
    "Boleto",
    "DestinatarioChave",
    "DestinatarioDadosBancarios",
    "DestinatarioPixCopiaECola",
    "InstituicaoFinanceira",
    "PagamentoBoleto",
    "PagamentoPix",
    "RespostaPagamentoPix",
    "TokenInter",
    "criar_pagamento_pix_chave",
    "criar_pagamento_pix_copia_e_cola",
    "criar_pagamento_pix_dados_bancarios",
]
