# services/exceptions.py
"""
Exceções do Assistente Financeiro

- AuthError: falha de credencial/sessão (aborta a execução inteira)
- FetchError: payload ausente ou malformado de uma listagem
- ExtractionError: resposta inválida do leitor de documentos
- PaymentError: pagamento rejeitado ou falha de transporte
"""


class AssistenteFinanceiroError(Exception):
    """Erro base do sistema"""
    pass


class AuthError(AssistenteFinanceiroError):
    """Falha de autenticação com Conta49 ou Banco Inter"""
    pass


class FetchError(AssistenteFinanceiroError):
    """Falha ao buscar ou validar dados do serviço contábil"""
    pass


class ExtractionError(AssistenteFinanceiroError):
    """Leitura do boleto retornou conteúdo inválido"""
    pass


class PaymentError(AssistenteFinanceiroError):
    """Pagamento rejeitado antes ou durante a submissão"""

    def __init__(self, message: str, item_id: str = None):
        self.item_id = item_id
        super().__init__(message)
