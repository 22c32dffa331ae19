# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Pacote de infraestrutura do controle de acesso: modelos, repositórios,
configuração e a fronteira transacional usada pela sincronização.
"""

from controle_acesso.nucleo.armazem import ArmazemPessoas, UnidadeTrabalho
from controle_acesso.nucleo.exceptions import (
    ErroArtefato,
    ErroColunasObrigatorias,
    ErroConectividade,
    ErroConfiguracao,
    ErroEntradaRoster,
    ErroFonteIndisponivel,
    ErroNucleoAcesso,
    ErroSincronizacaoInterrompida,
)
from controle_acesso.nucleo.utils import ChavePessoa, Estado, RegistroPessoa

__all__ = [
    "ArmazemPessoas",
    "UnidadeTrabalho",
    "ChavePessoa",
    "Estado",
    "RegistroPessoa",
    "ErroNucleoAcesso",
    "ErroConfiguracao",
    "ErroFonteIndisponivel",
    "ErroEntradaRoster",
    "ErroColunasObrigatorias",
    "ErroConectividade",
    "ErroArtefato",
    "ErroSincronizacaoInterrompida",
]
