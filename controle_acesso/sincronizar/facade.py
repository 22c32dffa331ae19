# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Fornece uma Fachada de alto nível para disparar a sincronização do roster.

Clientes (CLI, agendadores, integrações) devem interagir apenas com
FachadaSincronizacao, que monta o motor do banco, o armazém de pessoas e o
orquestrador a partir da configuração.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from controle_acesso.nucleo.armazem import ArmazemPessoas
from controle_acesso.nucleo.config import (
    ConfiguracaoSincronizacao,
    caminho_entrada_padrao,
    carregar_configuracao,
)
from controle_acesso.nucleo.exceptions import ErroConectividade, ErroNucleoAcesso
from controle_acesso.nucleo.models import (
    arquivo_sqlite,
    criar_fabrica_sessoes,
    criar_motor,
    criar_tabelas,
)
from controle_acesso.sincronizar.definitions import ProgressoSincronizacao
from controle_acesso.sincronizar.fontes import FonteRoster, fonte_para_caminho
from controle_acesso.sincronizar.orquestrador import (
    OrquestradorSincronizacao,
    registrar_erro_fatal,
)
from controle_acesso.sincronizar.reconciliador import Reconciliador

logger = logging.getLogger(__name__)


class FachadaSincronizacao:
    """
    Interface simplificada para a sincronização do controle de acesso.
    """

    def __init__(
        self,
        configuracao: Optional[ConfiguracaoSincronizacao] = None,
        armazem: Optional[ArmazemPessoas] = None,
        ao_progredir: Optional[Callable[[ProgressoSincronizacao], None]] = None,
    ):
        """
        Args:
            configuracao: Configuração efetiva; quando omitida é carregada de
                `./config/sincronizacao.json` e das variáveis de ambiente.
            armazem: Armazém já construído (testes e integrações). Quando
                omitido, o motor é criado a partir de `url_banco` na primeira
                execução.
            ao_progredir: Callback de progresso repassado ao orquestrador.
        """
        self.configuracao = configuracao or carregar_configuracao()
        self._motor = None
        self._armazem = armazem
        self._ao_progredir = ao_progredir
        self.sinal_cancelamento = threading.Event()

    def _obter_armazem(self) -> ArmazemPessoas:
        """
        Monta o motor e o armazém na primeira execução. O esquema só é criado
        quando `criar_esquema` está ativo; sem isso, um arquivo SQLite
        inexistente é tratado como banco inacessível.
        """
        if self._armazem is not None:
            return self._armazem

        motor = criar_motor(
            self.configuracao["url_banco"],
            self.configuracao["tempo_limite_segundos"],
        )
        if self.configuracao["criar_esquema"]:
            try:
                criar_tabelas(motor)
            except SQLAlchemyError as e:
                motor.dispose()
                raise ErroConectividade(f"Erro ao criar o esquema do banco: {e}") from e
            logger.info("Esquema do banco verificado.")
        else:
            arquivo = arquivo_sqlite(motor)
            if arquivo is not None and not arquivo.exists():
                motor.dispose()
                raise ErroConectividade(
                    f"Banco SQLite não encontrado: '{arquivo}'. "
                    "Use --criar-esquema para criar um banco novo."
                )

        self._motor = motor
        self._armazem = ArmazemPessoas(criar_fabrica_sessoes(motor))
        return self._armazem

    def fechar_conexao(self):
        """Libera o pool de conexões criado pela fachada."""
        if self._motor is not None:
            self._motor.dispose()
            self._motor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.fechar_conexao()

    def cancelar(self):
        """Solicita o cancelamento da execução em curso."""
        self.sinal_cancelamento.set()

    def _criar_orquestrador(self) -> OrquestradorSincronizacao:
        armazem = self._obter_armazem()
        return OrquestradorSincronizacao(
            armazem,
            Path(self.configuracao["diretorio_saida"]),
            reconciliador=Reconciliador(armazem, self.configuracao["nome_rol_padrao"]),
            intervalo_progresso=self.configuracao["intervalo_progresso"],
            trabalhadores=self.configuracao["trabalhadores"],
            ao_progredir=self._ao_progredir,
        )

    def sincronizar(
        self, caminho: Optional[Union[str, Path, FonteRoster]] = None
    ) -> Dict[str, Any]:
        """
        Executa a sincronização do roster.

        Args:
            caminho: Arquivo do roster (.xlsx ou .csv) ou uma FonteRoster já
                pronta. Se omitido, usa o arquivo padrão da configuração.

        Returns:
            Em caso de sucesso, `{"sucesso": True, "resumo": ResumoExecucao,
            "caminhos": {...}, "erros_artefatos": [...]}`. Em caso de erro
            fatal, `{"sucesso": False, "erro": str, "tipo_erro": str,
            "caminho_log_erro": str | None}`.
        """
        self.sinal_cancelamento.clear()
        try:
            orquestrador = self._criar_orquestrador()
            if isinstance(caminho, FonteRoster):
                fonte = caminho
            else:
                fonte = fonte_para_caminho(
                    Path(caminho) if caminho else caminho_entrada_padrao(self.configuracao)
                )
            resultado = orquestrador.executar(fonte, self.sinal_cancelamento)
        except ErroNucleoAcesso as e:
            logger.error("Sincronização falhou: %s", e)
            if e.caminho_log_erro is None:
                registrar_erro_fatal(Path(self.configuracao["diretorio_saida"]), e)
            retorno: Dict[str, Any] = {
                "sucesso": False,
                "erro": str(e),
                "tipo_erro": type(e).__name__,
                "caminho_log_erro": e.caminho_log_erro,
            }
            caminhos_parciais = getattr(e, "caminhos_parciais", None)
            if caminhos_parciais:
                retorno["caminhos_parciais"] = caminhos_parciais
            return retorno

        return {
            "sucesso": True,
            "resumo": resultado.resumo,
            "caminhos": {
                "log": resultado.caminho_log,
                "relatorio": resultado.caminho_relatorio,
                "planilha": resultado.caminho_planilha,
            },
            "erros_artefatos": list(resultado.erros_artefatos),
        }
