# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Converte as linhas brutas do roster em `RegistroRoster` validados.

Linhas sem documento, nome ou sobrenome são descartadas silenciosamente:
são entrada inválida, não falhas de reconciliação.
"""

import logging
from typing import Dict, Optional

from controle_acesso.nucleo.utils import TIPO_DOCUMENTO_PADRAO, TIPOS_DOCUMENTO, Estado
from controle_acesso.sincronizar.definitions import (
    ESTADOS_ATIVOS,
    MapeamentoColunas,
    RegistroRoster,
)

logger = logging.getLogger(__name__)


def _celula(linha: Dict[str, str], mapeamento: MapeamentoColunas, campo: str) -> str:
    rotulo = mapeamento.get(campo)
    if rotulo is None:
        return ""
    valor = linha.get(rotulo)
    return "" if valor is None else str(valor).strip()


def normalizar_tipo_documento(bruto: str) -> str:
    """Tipo em maiúsculas; vazio ou fora da lista vira 'CC'."""
    tipo = (bruto or "").strip().upper()
    return tipo if tipo in TIPOS_DOCUMENTO else TIPO_DOCUMENTO_PADRAO


def traduzir_estado(bruto: str) -> Estado:
    """
    Traduz o estado do roster. Sinônimos de matrícula vigente resultam em
    ativo, qualquer outro valor preenchido em inativo e a célula vazia em ativo.
    """
    estado = (bruto or "").strip().upper()
    if not estado:
        return Estado.ATIVO
    if estado in ESTADOS_ATIVOS:
        return Estado.ATIVO
    return Estado.INATIVO


def normalizar_linha(
    linha: Dict[str, str], mapeamento: MapeamentoColunas, numero_linha: int
) -> Optional[RegistroRoster]:
    """
    Extrai e valida os campos de uma linha do roster.

    Args:
        linha: A linha bruta, rótulo da coluna -> valor da célula.
        mapeamento: O resultado de `detectar_colunas`.
        numero_linha: Posição da linha na planilha (o cabeçalho é a linha 1).

    Returns:
        O registro normalizado, ou None quando faltam campos obrigatórios.
    """
    documento = _celula(linha, mapeamento, "documento")
    nome = _celula(linha, mapeamento, "nome")
    sobrenome = _celula(linha, mapeamento, "sobrenome")
    if not documento or not nome or not sobrenome:
        logger.debug("Linha %d descartada: campos obrigatórios vazios.", numero_linha)
        return None

    tipo_bruto = _celula(linha, mapeamento, "tipo_documento")
    tipo_documento = normalizar_tipo_documento(tipo_bruto)
    if tipo_bruto and tipo_documento != tipo_bruto.upper():
        logger.warning(
            "Linha %d: tipo de documento '%s' desconhecido, usando '%s'.",
            numero_linha,
            tipo_bruto,
            tipo_documento,
        )

    estado_bruto = _celula(linha, mapeamento, "estado")
    estado = traduzir_estado(estado_bruto)
    if estado_bruto and estado is Estado.INATIVO:
        logger.warning(
            "Linha %d: estado '%s' não reconhecido como ativo; será 'inactivo'.",
            numero_linha,
            estado_bruto,
        )

    return RegistroRoster(
        documento=documento,
        tipo_documento=tipo_documento,
        nome_completo=f"{nome} {sobrenome}".strip(),
        estado=estado,
        numero_linha=numero_linha,
    )
