# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Carrega a configuração da sincronização a partir de valores padrão, do
arquivo `./config/sincronizacao.json` e de variáveis de ambiente, nesta
ordem de prioridade crescente.
"""

import json
import os
from pathlib import Path
from typing import Optional, TypedDict

from controle_acesso.nucleo.exceptions import ErroConfiguracao

CAMINHO_CONFIG = Path("./config")
CAMINHO_CONFIG_JSON = CAMINHO_CONFIG / "sincronizacao.json"


class ConfiguracaoSincronizacao(TypedDict):
    """Parâmetros de uma execução da sincronização."""

    url_banco: str
    diretorio_entrada: str
    arquivo_entrada: str
    diretorio_saida: str
    intervalo_progresso: int
    trabalhadores: int
    tempo_limite_segundos: int
    nome_rol_padrao: str
    criar_esquema: bool


PADRAO: ConfiguracaoSincronizacao = {
    "url_banco": "sqlite:///./config/controle_acesso.db",
    "diretorio_entrada": "./uploads",
    "arquivo_entrada": "Reporte de Juicios Evaluativos.xlsx",
    "diretorio_saida": "./reports",
    "intervalo_progresso": 50,
    "trabalhadores": 1,
    "tempo_limite_segundos": 30,
    "nome_rol_padrao": "aprendiz",
    "criar_esquema": False,
}

VARIAVEIS_AMBIENTE = {
    "CONTROLE_ACESSO_URL_BANCO": "url_banco",
    "CONTROLE_ACESSO_DIR_ENTRADA": "diretorio_entrada",
    "CONTROLE_ACESSO_DIR_SAIDA": "diretorio_saida",
    "CONTROLE_ACESSO_TRABALHADORES": "trabalhadores",
    "CONTROLE_ACESSO_CRIAR_ESQUEMA": "criar_esquema",
}

CHAVES_INTEIRAS = {"intervalo_progresso", "trabalhadores", "tempo_limite_segundos"}
CHAVES_BOOLEANAS = {"criar_esquema"}
VERDADEIROS = {"1", "true", "sim", "yes"}
FALSOS = {"0", "false", "nao", "não", "no"}


def _converter(chave: str, valor) -> object:
    if chave in CHAVES_BOOLEANAS:
        if isinstance(valor, bool):
            return valor
        texto = str(valor).strip().lower()
        if texto in VERDADEIROS or texto in FALSOS:
            return texto in VERDADEIROS
        raise ErroConfiguracao(f"Valor inválido para '{chave}': {valor!r}")
    if chave not in CHAVES_INTEIRAS:
        return str(valor)
    try:
        numero = int(valor)
    except (TypeError, ValueError) as e:
        raise ErroConfiguracao(f"Valor inválido para '{chave}': {valor!r}") from e
    if numero < 1:
        raise ErroConfiguracao(f"'{chave}' deve ser maior que zero, recebido {numero}.")
    return numero


def carregar_configuracao(
    caminho_json: Path = CAMINHO_CONFIG_JSON, ambiente: Optional[dict] = None
) -> ConfiguracaoSincronizacao:
    """Monta a configuração efetiva da sincronização."""
    configuracao = dict(PADRAO)

    if caminho_json.exists():
        try:
            with open(caminho_json, "r", encoding="utf-8") as arquivo:
                dados = json.load(arquivo)
        except (OSError, json.JSONDecodeError) as e:
            raise ErroConfiguracao(
                f"Falha ao ler configuração em '{caminho_json}': {e}"
            ) from e
        if not isinstance(dados, dict):
            raise ErroConfiguracao(f"'{caminho_json}' deve conter um objeto JSON.")
        for chave, valor in dados.items():
            if chave in PADRAO:
                configuracao[chave] = _converter(chave, valor)

    ambiente = os.environ if ambiente is None else ambiente
    for variavel, chave in VARIAVEIS_AMBIENTE.items():
        if valor := ambiente.get(variavel):
            configuracao[chave] = _converter(chave, valor)

    return configuracao  # type: ignore[return-value]


def caminho_entrada_padrao(configuracao: ConfiguracaoSincronizacao) -> Path:
    """Caminho do roster usado quando nenhum arquivo é informado."""
    return Path(configuracao["diretorio_entrada"]) / configuracao["arquivo_entrada"]
