# services/__init__.py
"""
Serviços compartilhados do Assistente Financeiro

Nota: Os imports são feitos através de __getattr__ para suportar lazy loading
e evitar problemas com importação durante testes.
"""

__all__ = [
    # Gemini
    "GeminiService",
    "ExtratorBoleto",

    # Conta49
    "Conta49Client",
    "ScraperFatura",

    # Banco Inter
    "BancoInterClient",
]


def __getattr__(name: str):
    """
    Lazy loading de atributos para evitar problemas de importação circular.
    """
    if name == "GeminiService":
        from services.gemini_service import GeminiService
        return GeminiService

    elif name == "ExtratorBoleto":
        from services.extrator_boleto import ExtratorBoleto
        return ExtratorBoleto

    elif name in ("Conta49Client", "ScraperFatura"):
        from services.conta49 import Conta49Client, ScraperFatura
        return Conta49Client if name == "Conta49Client" else ScraperFatura

    elif name == "BancoInterClient":
        from services.banco_inter import BancoInterClient
        return BancoInterClient

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
