# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""Remoção de linhas repetidas do roster pela chave documento + tipo."""

from typing import Dict, Iterable, List

from controle_acesso.nucleo.utils import ChavePessoa
from controle_acesso.sincronizar.definitions import RegistroRoster


def remover_duplicados(registros: Iterable[RegistroRoster]) -> List[RegistroRoster]:
    """Mantém a primeira ocorrência de cada chave, preservando a ordem de entrada."""
    unicos: Dict[ChavePessoa, RegistroRoster] = {}
    for registro in registros:
        unicos.setdefault(registro.chave, registro)
    return list(unicos.values())
