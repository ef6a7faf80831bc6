# services/banco_inter/models.py
"""
Modelos de dados da API Banking do Banco Inter.

O destinatário de um PIX é uma união discriminada pelo campo `tipo`:
CHAVE, DADOS_BANCARIOS ou PIX_COPIA_E_COLA. Exatamente um formato é
enviado por pagamento; o pydantic rejeita payloads híbridos.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from services.exceptions import PaymentError
from utils.timezone import hoje_local_iso

# Valores monetários trafegam como número no JSON do Inter
Valor = Annotated[
    Decimal,
    Field(gt=0),
    PlainSerializer(lambda v: float(round(v, 2)), return_type=float),
]


class _ModeloInter(BaseModel):
    """Base: atributos em snake_case, JSON em camelCase (padrão do Inter)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==========================================
# Autenticação
# ==========================================

class TokenInter(BaseModel):
    """Resposta do /oauth/v2/token"""
    access_token: str
    token_type: str = "Bearer"
    scope: str = ""
    expires_in: int = 0


# ==========================================
# PIX
# ==========================================

class DestinatarioChave(_ModeloInter):
    tipo: Literal["CHAVE"] = "CHAVE"
    chave: str = Field(..., min_length=1)


class InstituicaoFinanceira(_ModeloInter):
    ispb: str = Field(..., min_length=8, max_length=8)


class DestinatarioDadosBancarios(_ModeloInter):
    tipo: Literal["DADOS_BANCARIOS"] = "DADOS_BANCARIOS"
    nome: str
    conta_corrente: str
    tipo_conta: Literal["CONTA_CORRENTE", "CONTA_POUPANCA"]
    cpf_cnpj: str
    agencia: str
    instituicao_financeira: InstituicaoFinanceira


class DestinatarioPixCopiaECola(_ModeloInter):
    tipo: Literal["PIX_COPIA_E_COLA"] = "PIX_COPIA_E_COLA"
    pix_copia_e_cola: str = Field(..., min_length=1)


Destinatario = Annotated[
    Union[DestinatarioChave, DestinatarioDadosBancarios, DestinatarioPixCopiaECola],
    Field(discriminator="tipo"),
]


class PagamentoPix(_ModeloInter):
    """Corpo do POST /banking/v2/pix"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    valor: Valor
    descricao: str = ""
    # Sem data informada, paga hoje (calendário local)
    data_pagamento: str = Field(default_factory=hoje_local_iso)
    destinatario: Destinatario

    @field_validator("data_pagamento")
    @classmethod
    def validar_data(cls, v: str) -> str:
        date.fromisoformat(v)
        return v


class RespostaPagamentoPix(_ModeloInter):
    """Resposta do POST /banking/v2/pix. codigoSolicitacao rastreia o pedido."""
    tipo_retorno: Optional[str] = None
    codigo_solicitacao: Optional[str] = None
    data_pagamento: Optional[str] = None
    data_operacao: Optional[str] = None


def criar_pagamento_pix_chave(
    valor: Decimal,
    chave: str,
    descricao: str,
    data_pagamento: Optional[str] = None,
) -> PagamentoPix:
    """PIX para uma chave (CPF/CNPJ, e-mail, telefone ou aleatória)."""
    extras = {"data_pagamento": data_pagamento} if data_pagamento else {}
    return PagamentoPix(
        valor=valor,
        descricao=descricao,
        destinatario=DestinatarioChave(chave=chave),
        **extras,
    )


def criar_pagamento_pix_copia_e_cola(
    valor: Decimal,
    codigo: str,
    descricao: str,
    data_pagamento: Optional[str] = None,
) -> PagamentoPix:
    """PIX a partir do código copia e cola (BR Code)."""
    extras = {"data_pagamento": data_pagamento} if data_pagamento else {}
    return PagamentoPix(
        valor=valor,
        descricao=descricao,
        destinatario=DestinatarioPixCopiaECola(pix_copia_e_cola=codigo),
        **extras,
    )


def criar_pagamento_pix_dados_bancarios(
    valor: Decimal,
    nome: str,
    conta_corrente: str,
    tipo_conta: str,
    cpf_cnpj: str,
    agencia: str,
    ispb: str,
    descricao: str,
    data_pagamento: Optional[str] = None,
) -> PagamentoPix:
    """PIX por agência/conta."""
    extras = {"data_pagamento": data_pagamento} if data_pagamento else {}
    return PagamentoPix(
        valor=valor,
        descricao=descricao,
        destinatario=DestinatarioDadosBancarios(
            nome=nome,
            conta_corrente=conta_corrente,
            tipo_conta=tipo_conta,
            cpf_cnpj=cpf_cnpj,
            agencia=agencia,
            instituicao_financeira=InstituicaoFinanceira(ispb=ispb),
        ),
        **extras,
    )


# ==========================================
# Boleto
# ==========================================

_SEPARADORES = re.compile(r"[\s\-]")
_VALOR_DUAS_CASAS = re.compile(r"^[0-9]+\.[0-9]{2}$")


class Boleto(BaseModel):
    """
    Dados de pagamento de uma guia/boleto.

    Qualquer campo pode ser "" quando o leitor não o encontrou; o pagamento
    só é submetido com os três preenchidos.
    """
    model_config = ConfigDict(frozen=True)

    payment_code: str = ""
    value: str = ""
    expiration_date: str = ""

    @field_validator("payment_code")
    @classmethod
    def validar_codigo(cls, v: str) -> str:
        codigo = _SEPARADORES.sub("", v)
        if codigo and not re.fullmatch(r"[0-9]{48}", codigo):
            raise ValueError(f"payment_code deve ter exatamente 48 dígitos (recebido {len(codigo)})")
        return codigo

    @field_validator("value")
    @classmethod
    def validar_valor(cls, v: str) -> str:
        v = v.strip()
        if v and not _VALOR_DUAS_CASAS.match(v):
            raise ValueError("value deve ser decimal com 2 casas (ex: 123.45)")
        return v

    @field_validator("expiration_date")
    @classmethod
    def validar_vencimento(cls, v: str) -> str:
        v = v.strip()
        if v:
            date.fromisoformat(v)
        return v

    @property
    def completo(self) -> bool:
        return bool(self.payment_code and self.value and self.expiration_date)


class PagamentoBoleto(BaseModel):
    """Corpo do POST /banking/v2/pagamento"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cod_barra_linha_digitavel: str = Field(..., alias="codBarraLinhaDigitavel", min_length=1)
    valor_pagar: Valor = Field(..., alias="valorPagar")
    data_vencimento: str = Field(..., alias="dataVencimento")

    @classmethod
    def de_boleto(cls, boleto: Boleto, item_id: str = None) -> "PagamentoBoleto":
        """Converte um Boleto validado; recusa campos vazios antes da submissão."""
        if not boleto.completo:
            faltando = [
                nome for nome in ("payment_code", "value", "expiration_date")
                if not getattr(boleto, nome)
            ]
            raise PaymentError(
                f"Boleto incompleto, campos vazios: {', '.join(faltando)}",
                item_id=item_id,
            )
        return cls(
            cod_barra_linha_digitavel=boleto.payment_code,
            valor_pagar=Decimal(boleto.value),
            data_vencimento=boleto.expiration_date,
        )
