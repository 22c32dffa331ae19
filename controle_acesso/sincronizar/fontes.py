# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Define as estratégias para obter o roster de diferentes fontes (CSV, Excel,
memória). Toda fonte entrega uma lista de linhas, cada uma um dicionário
rótulo da coluna -> valor da célula em texto, com o cabeçalho já aplicado.
"""

import abc
import csv
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from controle_acesso.nucleo.exceptions import ErroFonteIndisponivel

logger = logging.getLogger(__name__)

DELIMITADORES_CSV = ",;\t"


class FonteRoster(abc.ABC):
    """Interface abstrata para as fontes do roster."""

    @property
    @abc.abstractmethod
    def descricao(self) -> str:
        """Identificação legível da fonte, usada nos logs."""
        raise NotImplementedError

    @abc.abstractmethod
    def carregar(self) -> List[Dict[str, str]]:
        """Carrega as linhas de dados; levanta ErroFonteIndisponivel se não conseguir."""
        raise NotImplementedError


class FonteMemoria(FonteRoster):
    """Roster já disponível em memória (testes e integrações)."""

    def __init__(self, linhas: Sequence[Dict[str, str]], descricao: str = "memória"):
        self._linhas = [dict(linha) for linha in linhas]
        self._descricao = descricao

    @property
    def descricao(self) -> str:
        return self._descricao

    def carregar(self) -> List[Dict[str, str]]:
        return [dict(linha) for linha in self._linhas]


class FonteCSV(FonteRoster):
    """Carrega o roster de um arquivo CSV com cabeçalho."""

    def __init__(self, caminho: Path):
        self._caminho = Path(caminho)

    @property
    def descricao(self) -> str:
        return str(self._caminho)

    @staticmethod
    def detectar_delimitador(amostra: str) -> str:
        """Escolhe entre vírgula, ponto e vírgula e tabulação."""
        try:
            return csv.Sniffer().sniff(amostra, delimiters=DELIMITADORES_CSV).delimiter
        except csv.Error:
            primeira_linha = amostra.splitlines()[0] if amostra else ""
            return max(DELIMITADORES_CSV, key=primeira_linha.count)

    def carregar(self) -> List[Dict[str, str]]:
        try:
            with open(self._caminho, "r", encoding="utf-8-sig", newline="") as f:
                delimitador = self.detectar_delimitador(f.read(4096))
                f.seek(0)
                leitor = csv.DictReader(f, delimiter=delimitador)
                linhas = [
                    {
                        str(chave).strip(): (valor or "").strip()
                        for chave, valor in linha.items()
                        if chave is not None
                    }
                    for linha in leitor
                ]
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise ErroFonteIndisponivel(
                f"Falha ao ler CSV '{self._caminho}': {e}"
            ) from e
        logger.info("CSV lido: %d linhas em '%s'.", len(linhas), self._caminho)
        return linhas


def _texto_celula(valor: Any) -> str:
    if valor is None:
        return ""
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    if isinstance(valor, datetime):
        return valor.strftime("%Y-%m-%d")
    if isinstance(valor, date):
        return valor.isoformat()
    return str(valor).strip()


class FontePlanilhaExcel(FonteRoster):
    """Carrega o roster da primeira aba de uma planilha .xlsx."""

    def __init__(self, caminho: Path):
        self._caminho = Path(caminho)

    @property
    def descricao(self) -> str:
        return str(self._caminho)

    def carregar(self) -> List[Dict[str, str]]:
        try:
            pasta = load_workbook(self._caminho, read_only=True, data_only=True)
        except (OSError, BadZipFile, InvalidFileException, KeyError, ValueError) as e:
            raise ErroFonteIndisponivel(
                f"Falha ao abrir planilha '{self._caminho}': {e}"
            ) from e

        try:
            if not pasta.worksheets:
                raise ErroFonteIndisponivel(
                    f"A planilha '{self._caminho}' não contém abas."
                )
            valores = pasta.worksheets[0].iter_rows(values_only=True)
            cabecalho_bruto = next(valores, None)
            if cabecalho_bruto is None:
                return []

            # Cabeçalhos vazios recebem um nome posicional
            cabecalho = [
                _texto_celula(c) or f"Columna_{i + 1}"
                for i, c in enumerate(cabecalho_bruto)
            ]
            linhas = []
            for valores_linha in valores:
                celulas = [_texto_celula(v) for v in valores_linha]
                if not any(celulas):
                    continue
                celulas += [""] * (len(cabecalho) - len(celulas))
                linhas.append(dict(zip(cabecalho, celulas)))
        finally:
            pasta.close()

        logger.info("Planilha lida: %d linhas em '%s'.", len(linhas), self._caminho)
        return linhas


def fonte_para_caminho(caminho: Path) -> FonteRoster:
    """Escolhe a estratégia de carregamento pela extensão do arquivo."""
    caminho = Path(caminho)
    if not caminho.exists():
        raise ErroFonteIndisponivel(f"O arquivo não existe: {caminho}")

    extensao = caminho.suffix.lower()
    if extensao in (".csv", ".txt"):
        return FonteCSV(caminho)
    if extensao in (".xlsx", ".xlsm"):
        return FontePlanilhaExcel(caminho)
    raise ErroFonteIndisponivel(
        f"Formato '{extensao or caminho.name}' não suportado. Use .xlsx ou .csv."
    )
