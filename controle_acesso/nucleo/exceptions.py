# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""Exceções customizadas para o núcleo de sincronização do controle de acesso."""

from typing import Iterable, Optional


class ErroNucleoAcesso(Exception):
    """Classe base para exceções neste pacote."""

    # Preenchido pelo orquestrador quando o log de erro da execução é gravado
    caminho_log_erro: Optional[str] = None


class ErroConfiguracao(ErroNucleoAcesso):
    """Arquivo de configuração ou variável de ambiente inválida."""


class ErroFonteIndisponivel(ErroNucleoAcesso):
    """O roster não pôde ser obtido (arquivo ausente, ilegível ou formato não suportado)."""


class ErroEntradaRoster(ErroNucleoAcesso):
    """O roster foi lido, mas seu conteúdo não permite a sincronização."""


class ErroColunasObrigatorias(ErroEntradaRoster):
    """Uma ou mais colunas obrigatórias não foram detectadas no cabeçalho."""

    def __init__(self, campos_ausentes: Iterable[str]):
        self.campos_ausentes = list(campos_ausentes)
        super().__init__(
            "Não foi possível detectar as colunas obrigatórias: "
            + ", ".join(self.campos_ausentes)
        )


class ErroConectividade(ErroNucleoAcesso):
    """O banco de dados do controle de acesso não respondeu antes da sincronização."""


class ErroArtefato(ErroNucleoAcesso):
    """Falha ao gravar um dos artefatos de auditoria da execução."""


class ErroSincronizacaoInterrompida(ErroNucleoAcesso):
    """
    A execução foi abortada depois de iniciar o processamento dos registros.
    Os artefatos parciais (quando puderam ser gravados) ficam disponíveis em
    `caminhos_parciais`.
    """

    def __init__(self, mensagem: str, caminhos_parciais: Optional[dict] = None):
        super().__init__(mensagem)
        self.caminhos_parciais = caminhos_parciais or {}
