# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Detecção das colunas do roster a partir dos rótulos do cabeçalho.
"""

import logging
from typing import Iterable, List, Optional, Set

from fuzzywuzzy import fuzz

from controle_acesso.nucleo.exceptions import ErroColunasObrigatorias
from controle_acesso.sincronizar.definitions import (
    CAMPOS_OBRIGATORIOS,
    LIMIAR_SIMILARIDADE_CABECALHO,
    SINONIMOS_COLUNAS,
    MapeamentoColunas,
)

logger = logging.getLogger(__name__)


def _por_conteudo(
    rotulos: List[str], sinonimos: Iterable[str], usados: Set[str]
) -> Optional[str]:
    """Primeiro sinônimo (na ordem declarada) contido em algum rótulo livre."""
    for sinonimo in sinonimos:
        alvo = sinonimo.lower()
        for rotulo in rotulos:
            if rotulo not in usados and alvo in rotulo.lower():
                return rotulo
    return None


def _por_similaridade(
    rotulos: List[str], sinonimos: Iterable[str], usados: Set[str]
) -> Optional[str]:
    """Rótulo livre mais parecido com algum sinônimo, se acima do limiar."""
    melhor_rotulo = None
    maior_pontuacao = LIMIAR_SIMILARIDADE_CABECALHO - 1
    for rotulo in rotulos:
        if rotulo in usados:
            continue
        texto = rotulo.strip().lower()
        pontuacao = max(fuzz.ratio(texto, s.lower()) for s in sinonimos)
        # Estritamente maior: em caso de empate vence a coluna mais à esquerda
        if pontuacao > maior_pontuacao:
            maior_pontuacao = pontuacao
            melhor_rotulo = rotulo
    return melhor_rotulo


def detectar_colunas(cabecalho: Iterable[str]) -> MapeamentoColunas:
    """
    Descobre qual coluna do roster fornece cada campo lógico.

    Args:
        cabecalho: Os rótulos das colunas, na ordem em que aparecem. Um
            dicionário (a primeira linha do roster) também é aceito; suas
            chaves são usadas como rótulos.

    Returns:
        O mapeamento campo -> rótulo. Campos não detectados ficam ausentes;
        cabe a `validar_mapeamento` decidir se isso é fatal.
    """
    rotulos = [str(r) for r in cabecalho]
    usados: Set[str] = set()
    mapeamento: MapeamentoColunas = {}

    for campo, sinonimos in SINONIMOS_COLUNAS.items():
        rotulo = _por_conteudo(rotulos, sinonimos, usados)
        if rotulo is None:
            rotulo = _por_similaridade(rotulos, sinonimos, usados)
            if rotulo is not None:
                logger.info(
                    "Coluna '%s' aceita por similaridade para o campo '%s'.",
                    rotulo,
                    campo,
                )
        if rotulo is not None:
            mapeamento[campo] = rotulo  # type: ignore[literal-required]
            usados.add(rotulo)

    return mapeamento


def validar_mapeamento(mapeamento: MapeamentoColunas) -> MapeamentoColunas:
    """Exige as colunas obrigatórias; o tipo de documento é opcional."""
    ausentes = [campo for campo in CAMPOS_OBRIGATORIOS if campo not in mapeamento]
    if ausentes:
        raise ErroColunasObrigatorias(ausentes)
    if "tipo_documento" not in mapeamento:
        logger.warning(
            "Coluna 'Tipo de Documento' não detectada; será usado 'CC' por padrão."
        )
    logger.info("Colunas detectadas: %s", dict(mapeamento))
    return mapeamento
