# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Pacote da sincronização do roster de aprendizes com o controle de acesso.

Expõe a `FachadaSincronizacao` como ponto de entrada principal e os tipos
de dados necessários para quem consome o resultado de uma execução.
"""

from .definitions import (
    CasoReconciliacao,
    ProgressoSincronizacao,
    RegistroRoster,
    Resultado,
    ResultadoSincronizacao,
    ResumoExecucao,
)
from .facade import FachadaSincronizacao
from .fontes import FonteCSV, FonteMemoria, FontePlanilhaExcel, FonteRoster
from .orquestrador import OrquestradorSincronizacao

__all__ = [
    "FachadaSincronizacao",
    "OrquestradorSincronizacao",
    "FonteRoster",
    "FonteCSV",
    "FontePlanilhaExcel",
    "FonteMemoria",
    "CasoReconciliacao",
    "ProgressoSincronizacao",
    "RegistroRoster",
    "Resultado",
    "ResultadoSincronizacao",
    "ResumoExecucao",
]
