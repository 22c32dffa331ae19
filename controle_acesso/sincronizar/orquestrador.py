# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Orquestra uma execução completa da sincronização sobre um roster:
leitura, detecção de colunas, normalização, remoção de duplicados,
verificação do banco, reconciliação registro a registro e geração dos
artefatos de auditoria.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from controle_acesso.nucleo.armazem import ArmazemPessoas
from controle_acesso.nucleo.exceptions import (
    ErroArtefato,
    ErroEntradaRoster,
    ErroNucleoAcesso,
    ErroSincronizacaoInterrompida,
)
from controle_acesso.nucleo.utils import carimbo_tempo
from controle_acesso.sincronizar.auditoria import AuditorSincronizacao, gerar_log_erro
from controle_acesso.sincronizar.colunas import detectar_colunas, validar_mapeamento
from controle_acesso.sincronizar.deduplicador import remover_duplicados
from controle_acesso.sincronizar.definitions import (
    ProgressoSincronizacao,
    RegistroRoster,
    ResultadoSincronizacao,
    ResumoExecucao,
)
from controle_acesso.sincronizar.fontes import FonteRoster
from controle_acesso.sincronizar.normalizador import normalizar_linha
from controle_acesso.sincronizar.reconciliador import Reconciliador

logger = logging.getLogger(__name__)

# O cabeçalho ocupa a primeira linha da planilha
PRIMEIRA_LINHA_DADOS = 2


class OrquestradorSincronizacao:
    """
    Executa a sincronização de um roster contra o banco do controle de
    acesso. Cada instância recebe suas dependências explicitamente; nada é
    compartilhado entre execuções além do próprio banco.
    """

    def __init__(
        self,
        armazem: ArmazemPessoas,
        diretorio_saida: Path,
        reconciliador: Optional[Reconciliador] = None,
        intervalo_progresso: int = 50,
        trabalhadores: int = 1,
        ao_progredir: Optional[Callable[[ProgressoSincronizacao], None]] = None,
        relogio: Callable[[], datetime] = datetime.now,
    ):
        self._armazem = armazem
        self._diretorio_saida = Path(diretorio_saida)
        self._reconciliador = reconciliador or Reconciliador(armazem)
        self._intervalo_progresso = max(1, intervalo_progresso)
        self._trabalhadores = max(1, trabalhadores)
        if self._trabalhadores > 1 and not armazem.permite_sessoes_simultaneas:
            # Uma conexão compartilhada misturaria as transações dos registros
            logger.warning(
                "O banco usa uma única conexão compartilhada; ignorando "
                "%d trabalhadores e processando em sequência.",
                self._trabalhadores,
            )
            self._trabalhadores = 1
        self._ao_progredir = ao_progredir
        self._relogio = relogio

    # --- Preparação ---

    @staticmethod
    def preparar_registros(
        linhas: List[Dict[str, str]],
    ) -> Tuple[List[RegistroRoster], Dict[str, int]]:
        """
        Detecta as colunas, normaliza e remove duplicados.

        Returns:
            Os registros únicos e as estatísticas de leitura
            (`linhas_lidas`, `linhas_validas`, `duplicados_removidos`).
        """
        if not linhas:
            raise ErroEntradaRoster("O roster não contém linhas de dados.")

        mapeamento = validar_mapeamento(detectar_colunas(linhas[0].keys()))
        normalizados = []
        for indice, linha in enumerate(linhas):
            registro = normalizar_linha(linha, mapeamento, indice + PRIMEIRA_LINHA_DADOS)
            if registro is not None:
                normalizados.append(registro)

        unicos = remover_duplicados(normalizados)
        estatisticas = {
            "linhas_lidas": len(linhas),
            "linhas_validas": len(normalizados),
            "duplicados_removidos": len(normalizados) - len(unicos),
        }
        logger.info(
            "%d linhas lidas, %d válidas, %d duplicadas removidas; %d registros únicos.",
            estatisticas["linhas_lidas"],
            estatisticas["linhas_validas"],
            estatisticas["duplicados_removidos"],
            len(unicos),
        )
        return unicos, estatisticas

    # --- Execução ---

    def executar(
        self,
        fonte: FonteRoster,
        sinal_cancelamento: Optional[threading.Event] = None,
    ) -> ResultadoSincronizacao:
        """
        Sincroniza um roster completo.

        Raises:
            ErroFonteIndisponivel: O roster não pôde ser lido.
            ErroEntradaRoster: O roster está vazio ou sem colunas obrigatórias.
            ErroConectividade: O banco não respondeu.
            ErroSincronizacaoInterrompida: Falha inesperada durante o
                processamento; log e relatório parciais são gravados.

        Nos três primeiros casos nenhum registro chegou a ser processado.
        """
        inicio = self._relogio()
        carimbo = carimbo_tempo(inicio)
        logger.info("Iniciando sincronização de '%s'.", fonte.descricao)

        try:
            registros, estatisticas = self.preparar_registros(fonte.carregar())
            self._armazem.verificar_conexao()
        except ErroNucleoAcesso as e:
            logger.error("Sincronização abortada: %s", e)
            self.registrar_erro_fatal(e, carimbo)
            raise

        auditor = AuditorSincronizacao()
        try:
            cancelada = self._processar(registros, auditor, sinal_cancelamento)
        except Exception as e:
            logger.exception("Sincronização interrompida após iniciar o processamento.")
            resumo = auditor.resumo(inicio, self._relogio(), **estatisticas)
            parcial = ResultadoSincronizacao(resumo)
            self._gravar_artefatos(auditor, resumo, carimbo, parcial, incluir_planilha=False)
            erro = ErroSincronizacaoInterrompida(
                f"Sincronização interrompida: {e}",
                {"log": parcial.caminho_log, "relatorio": parcial.caminho_relatorio},
            )
            self.registrar_erro_fatal(erro, carimbo)
            raise erro from e

        resumo = auditor.resumo(
            inicio, self._relogio(), cancelada=cancelada, **estatisticas
        )
        resultado = ResultadoSincronizacao(resumo)
        self._gravar_artefatos(auditor, resumo, carimbo, resultado)
        logger.info(
            "Sincronização concluída: %d novos, %d reativados, %d inabilitados, "
            "%d mantidos, %d erros em %.1f s.",
            resumo.novos,
            resumo.reativados,
            resumo.inabilitados,
            resumo.mantidos,
            resumo.erros,
            resumo.duracao_segundos,
        )
        return resultado

    def _notificar(self, processados: int, total: int):
        if processados % self._intervalo_progresso == 0 or processados == total:
            progresso = ProgressoSincronizacao(processados, total)
            logger.info(
                "Progresso: %d/%d (%d%%)", processados, total, progresso.percentual
            )
            if self._ao_progredir is not None:
                self._ao_progredir(progresso)

    def _processar(
        self,
        registros: List[RegistroRoster],
        auditor: AuditorSincronizacao,
        sinal_cancelamento: Optional[threading.Event],
    ) -> bool:
        """Reconcilia os registros; retorna True se a execução foi cancelada."""
        if self._trabalhadores == 1:
            for processados, registro in enumerate(registros, start=1):
                if sinal_cancelamento is not None and sinal_cancelamento.is_set():
                    logger.warning(
                        "Cancelamento solicitado após %d registros.", processados - 1
                    )
                    return True
                auditor.registrar(self._reconciliador.reconciliar(registro))
                self._notificar(processados, len(registros))
            return False
        return self._processar_em_paralelo(registros, auditor, sinal_cancelamento)

    def _processar_em_paralelo(
        self,
        registros: List[RegistroRoster],
        auditor: AuditorSincronizacao,
        sinal_cancelamento: Optional[threading.Event],
    ) -> bool:
        total = len(registros)
        processados = 0
        cancelada = False
        pendentes: set = set()

        def coletar(concluidos: Iterable[Future]):
            nonlocal processados
            for futuro in concluidos:
                auditor.registrar(futuro.result())
                processados += 1
                self._notificar(processados, total)

        with ThreadPoolExecutor(max_workers=self._trabalhadores) as executor:
            for registro in registros:
                if sinal_cancelamento is not None and sinal_cancelamento.is_set():
                    cancelada = True
                    logger.warning("Cancelamento solicitado; aguardando registros em curso.")
                    break
                if len(pendentes) >= self._trabalhadores * 2:
                    concluidos, pendentes = wait(pendentes, return_when=FIRST_COMPLETED)
                    coletar(concluidos)
                pendentes.add(executor.submit(self._reconciliador.reconciliar, registro))
            concluidos, _ = wait(pendentes)
            coletar(concluidos)
        return cancelada

    # --- Artefatos ---

    def _gravar_artefatos(
        self,
        auditor: AuditorSincronizacao,
        resumo: ResumoExecucao,
        carimbo: str,
        resultado: ResultadoSincronizacao,
        incluir_planilha: bool = True,
    ):
        """Grava cada artefato de forma independente; falhas viram mensagens."""
        destino = self._diretorio_saida
        tarefas = [
            (
                "caminho_log",
                lambda: auditor.gerar_log(
                    destino / f"Log_Sincronizacion_{carimbo}.txt", resumo
                ),
            ),
            (
                "caminho_relatorio",
                lambda: auditor.gerar_relatorio_csv(
                    destino / f"Reporte_Cambios_{carimbo}.csv"
                ),
            ),
        ]
        if incluir_planilha:
            tarefas.append(
                (
                    "caminho_planilha",
                    lambda: auditor.gerar_planilha_sincronizada(
                        destino / f"Control_Acceso_Sincronizado_{carimbo}.xlsx", resumo
                    ),
                )
            )

        for atributo, gerar in tarefas:
            try:
                caminho = gerar()
            except ErroArtefato as e:
                logger.error("%s", e)
                resultado.erros_artefatos.append(str(e))
                continue
            setattr(resultado, atributo, str(caminho))
            logger.info("Artefato gerado: %s", caminho)

    def registrar_erro_fatal(self, erro: ErroNucleoAcesso, carimbo: Optional[str] = None):
        registrar_erro_fatal(self._diretorio_saida, erro, self._relogio(), carimbo)


def registrar_erro_fatal(
    diretorio_saida: Path,
    erro: ErroNucleoAcesso,
    momento: Optional[datetime] = None,
    carimbo: Optional[str] = None,
):
    """Grava `Log_Error_<ts>.txt` e anota o caminho na própria exceção."""
    momento = momento or datetime.now()
    caminho = Path(diretorio_saida) / f"Log_Error_{carimbo or carimbo_tempo(momento)}.txt"
    try:
        gerar_log_erro(caminho, erro, momento)
    except ErroArtefato as e:
        logger.error("Não foi possível gravar o log de erro: %s", e)
        return
    erro.caminho_log_erro = str(caminho)
    logger.info("Log de erro gravado em %s", caminho)
