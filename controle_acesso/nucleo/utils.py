# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Tipos de dados compartilhados pelo núcleo e funções utilitárias de
manipulação de arquivos e texto.
"""
import csv
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Sequence

from controle_acesso.nucleo.exceptions import ErroArtefato

# --- Tipos de Dados ---


class Estado(str, Enum):
    """Estado de uma pessoa no controle de acesso."""

    ATIVO = "activo"
    INATIVO = "inactivo"


TIPOS_DOCUMENTO = ("CC", "CE", "TI", "PA", "NIT")
TIPO_DOCUMENTO_PADRAO = "CC"

PERMISSAO_CONCEDIDA = "ACCESO PERMITIDO"
PERMISSAO_NEGADA = "ACCESO DENEGADO"


class ChavePessoa(NamedTuple):
    """Chave natural de uma pessoa: documento + tipo de documento."""

    documento: str
    tipo_documento: str


@dataclass(frozen=True)
class RegistroPessoa:
    """Fotografia de uma pessoa persistida, desacoplada da sessão do banco."""

    id: int
    documento: str
    tipo_documento: str
    nome: str
    estado: str
    rol: Optional[str] = None

    @property
    def chave(self) -> ChavePessoa:
        return ChavePessoa(self.documento, self.tipo_documento)


def permissao_para(estado: Optional[str]) -> str:
    """Traduz um estado na permissão de acesso correspondente."""
    return PERMISSAO_CONCEDIDA if estado == Estado.ATIVO.value else PERMISSAO_NEGADA


# --- Arquivos ---


def carimbo_tempo(momento: datetime) -> str:
    """Carimbo usado nos nomes dos artefatos (seguro para sistemas de arquivos)."""
    return momento.strftime("%Y-%m-%dT%H-%M-%S")


def formatar_data_hora(momento: datetime) -> str:
    return momento.strftime("%d/%m/%Y %H:%M:%S")


def salvar_csv(
    cabecalho: Sequence[str], linhas: Iterable[Sequence], caminho_arquivo: Path
) -> Path:
    """Salva um cabeçalho e uma lista de linhas em um arquivo CSV."""
    try:
        caminho_arquivo.parent.mkdir(parents=True, exist_ok=True)
        with open(caminho_arquivo, "w", newline="", encoding="utf-8") as arquivo_csv:
            escritor = csv.writer(arquivo_csv)
            escritor.writerow(cabecalho)
            escritor.writerows(linhas)
        return caminho_arquivo
    except (OSError, csv.Error) as e:
        raise ErroArtefato(f"Erro ao salvar CSV em '{caminho_arquivo}': {e}") from e


def salvar_texto(conteudo: str, caminho_arquivo: Path) -> Path:
    """Grava um arquivo de texto UTF-8, criando o diretório se necessário."""
    try:
        caminho_arquivo.parent.mkdir(parents=True, exist_ok=True)
        caminho_arquivo.write_text(conteudo, encoding="utf-8")
        return caminho_arquivo
    except OSError as e:
        raise ErroArtefato(f"Erro ao salvar '{caminho_arquivo}': {e}") from e
