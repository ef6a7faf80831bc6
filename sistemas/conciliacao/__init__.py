# sistemas/conciliacao/__init__.py
"""
Conciliação de pagamentos: Conta49 -> Banco Inter

- Cobranças pendentes pagas por PIX copia e cola
- Guias e boletos lidos por IA e pagos pelo código de barras
- Estado de idempotência no banco (documentos e eventos de pagamento)
"""

from sistemas.conciliacao.router import router

__all__ = ["router"]
