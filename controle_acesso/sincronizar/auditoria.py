# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Acumula os desfechos da sincronização e gera os artefatos de auditoria:
o log de texto, o relatório CSV de mudanças e a planilha sincronizada.

Falhas ao gravar artefatos levantam `ErroArtefato`, mas nunca desfazem
mutações já confirmadas no banco.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import xlsxwriter
from xlsxwriter.exceptions import XlsxWriterException

from controle_acesso.nucleo.exceptions import ErroArtefato
from controle_acesso.nucleo.utils import formatar_data_hora, salvar_csv, salvar_texto
from controle_acesso.sincronizar.definitions import (
    BALDES,
    Balde,
    Resultado,
    ResumoExecucao,
)

LINHA_DUPLA = "=" * 80

TITULOS_BALDES: Dict[Balde, str] = {
    "novos": "NUEVOS USUARIOS AGREGADOS",
    "reativados": "USUARIOS REACTIVADOS",
    "inabilitados": "USUARIOS INHABILITADOS",
    "mantidos": "USUARIOS MANTENIDOS",
    "erros": "ERRORES",
}

TIPO_RELATORIO: Dict[Balde, str] = {
    "novos": "NUEVO",
    "reativados": "REACTIVADO",
    "inabilitados": "INHABILITADO",
    "erros": "ERROR",
}

CABECALHO_RELATORIO = [
    "Tipo",
    "Fila",
    "Documento",
    "Tipo Documento",
    "Nombre",
    "Acción",
    "Estado Anterior",
    "Estado Nuevo",
    "Permiso",
    "Error",
]


def _linha_log(resultado: Resultado) -> str:
    registro = resultado.registro
    partes = [
        f"{registro.tipo_documento} {registro.documento}",
        registro.nome_completo,
        resultado.acao,
    ]
    if resultado.balde in ("reativados", "inabilitados"):
        partes.append(f"{resultado.estado_anterior} → {resultado.estado_resultante}")
    elif resultado.balde == "mantidos":
        partes.append(str(resultado.estado_resultante))
    partes.append(resultado.permissao)
    if resultado.acessos_encerrados:
        partes.append(f"Accesos cerrados: {resultado.acessos_encerrados}")
    if resultado.mensagem_erro:
        partes.append(f"Error: {resultado.mensagem_erro}")
    return "  - " + " | ".join(partes)


def _secao(titulo: str, resultados: List[Resultado]) -> str:
    if not resultados:
        return f"{titulo}: Ninguno\n"
    linhas = [f"{titulo} ({len(resultados)}):", ""]
    linhas.extend(_linha_log(r) for r in resultados)
    return "\n".join(linhas) + "\n"


class AuditorSincronizacao:
    """
    Coletor dos desfechos de uma execução. `registrar` é seguro para uso
    concorrente; a renderização deve acontecer depois do processamento.
    """

    def __init__(self):
        self._trava = threading.Lock()
        self._resultados: List[Resultado] = []
        self._baldes: Dict[Balde, List[Resultado]] = {b: [] for b in BALDES}

    def registrar(self, resultado: Resultado):
        with self._trava:
            self._resultados.append(resultado)
            self._baldes[resultado.balde].append(resultado)

    @property
    def resultados(self) -> List[Resultado]:
        """Todos os desfechos, na ordem das linhas do roster."""
        with self._trava:
            return sorted(self._resultados, key=lambda r: r.registro.numero_linha)

    def balde(self, nome: Balde) -> List[Resultado]:
        with self._trava:
            return sorted(self._baldes[nome], key=lambda r: r.registro.numero_linha)

    def contagens(self) -> Dict[Balde, int]:
        with self._trava:
            return {nome: len(itens) for nome, itens in self._baldes.items()}

    def resumo(
        self,
        inicio: datetime,
        fim: datetime,
        linhas_lidas: int = 0,
        linhas_validas: int = 0,
        duplicados_removidos: int = 0,
        cancelada: bool = False,
    ) -> ResumoExecucao:
        contagens = self.contagens()
        return ResumoExecucao(
            total=sum(contagens.values()),
            novos=contagens["novos"],
            reativados=contagens["reativados"],
            inabilitados=contagens["inabilitados"],
            mantidos=contagens["mantidos"],
            erros=contagens["erros"],
            inicio=inicio,
            fim=fim,
            linhas_lidas=linhas_lidas,
            linhas_validas=linhas_validas,
            duplicados_removidos=duplicados_removidos,
            cancelada=cancelada,
        )

    # --- Artefatos ---

    def renderizar_log(self, resumo: ResumoExecucao) -> str:
        """Monta o conteúdo do log de texto da execução."""
        situacao = " (CANCELADA)" if resumo.cancelada else ""
        cabecalho = [
            LINHA_DUPLA,
            f"          LOG DE SINCRONIZACIÓN - CONTROL DE ACCESO{situacao}",
            LINHA_DUPLA,
            "",
            f"FECHA/HORA DE INICIO: {formatar_data_hora(resumo.inicio)}",
            f"FECHA/HORA DE FIN:    {formatar_data_hora(resumo.fim)}",
            f"DURACIÓN:             {resumo.duracao_segundos:.1f} segundos",
            "",
            LINHA_DUPLA,
            "                              RESUMEN GENERAL",
            LINHA_DUPLA,
            "",
            f"Filas leídas:                    {resumo.linhas_lidas}",
            f"Filas válidas:                   {resumo.linhas_validas}",
            f"Duplicados eliminados:           {resumo.duplicados_removidos}",
            f"Total registros procesados:      {resumo.total}",
            f"Nuevos usuarios agregados:       {resumo.novos}",
            f"Usuarios reactivados:            {resumo.reativados}",
            f"Usuarios inhabilitados:          {resumo.inabilitados}",
            f"Usuarios mantenidos:             {resumo.mantidos}",
            f"Errores encontrados:             {resumo.erros}",
            "",
            LINHA_DUPLA,
            "                         DETALLE DE OPERACIONES",
            LINHA_DUPLA,
            "",
        ]
        secoes = [_secao(TITULOS_BALDES[b], self.balde(b)) for b in BALDES]
        rodape = [LINHA_DUPLA, "                              FIN DEL LOG", LINHA_DUPLA, ""]
        return "\n".join(cabecalho) + "\n".join(secoes) + "\n" + "\n".join(rodape)

    def gerar_log(self, caminho: Path, resumo: ResumoExecucao) -> Path:
        return salvar_texto(self.renderizar_log(resumo), caminho)

    def linhas_relatorio(self) -> List[List]:
        """Linhas do relatório de mudanças; registros mantidos ficam de fora."""
        linhas = []
        for nome in ("novos", "reativados", "inabilitados", "erros"):
            for r in self.balde(nome):
                linhas.append(
                    [
                        TIPO_RELATORIO[nome],
                        r.registro.numero_linha,
                        r.registro.documento,
                        r.registro.tipo_documento,
                        r.registro.nome_completo,
                        r.acao,
                        r.estado_anterior or "",
                        r.estado_resultante or "",
                        r.permissao,
                        r.mensagem_erro or "",
                    ]
                )
        return linhas

    def gerar_relatorio_csv(self, caminho: Path) -> Path:
        return salvar_csv(CABECALHO_RELATORIO, self.linhas_relatorio(), caminho)

    def gerar_planilha_sincronizada(self, caminho: Path, resumo: ResumoExecucao) -> Path:
        """Grava a planilha com o resumo, as mudanças e o estado final de cada pessoa."""
        try:
            caminho.parent.mkdir(parents=True, exist_ok=True)
            with xlsxwriter.Workbook(str(caminho)) as pasta:
                negrito = pasta.add_format({"bold": True})

                aba = pasta.add_worksheet("Resumen")
                aba.write_row(0, 0, ["RESUMEN DE SINCRONIZACIÓN"], negrito)
                contagens = [
                    ("Total registros procesados", resumo.total),
                    ("Nuevos usuarios agregados", resumo.novos),
                    ("Usuarios reactivados", resumo.reativados),
                    ("Usuarios inhabilitados", resumo.inabilitados),
                    ("Usuarios mantenidos", resumo.mantidos),
                    ("Errores", resumo.erros),
                ]
                for i, linha in enumerate(contagens, start=2):
                    aba.write_row(i, 0, linha)
                aba.set_column(0, 0, 32)

                abas_mudancas: List[tuple] = [
                    ("Nuevos Usuarios", "novos"),
                    ("Usuarios Reactivados", "reativados"),
                    ("Usuarios Inhabilitados", "inabilitados"),
                    ("Errores", "erros"),
                ]
                for titulo, nome in abas_mudancas:
                    itens = self.balde(nome)
                    if itens:
                        self._escrever_aba(
                            pasta,
                            negrito,
                            titulo,
                            ["Documento", "Tipo", "Nombre", "Acción", "Estado Anterior",
                             "Estado Nuevo", "Permiso", "Error"],
                            [
                                [r.registro.documento, r.registro.tipo_documento,
                                 r.registro.nome_completo, r.acao, r.estado_anterior or "",
                                 r.estado_resultante or "", r.permissao, r.mensagem_erro or ""]
                                for r in itens
                            ],
                        )

                self._escrever_aba(
                    pasta,
                    negrito,
                    "Datos Sincronizados",
                    ["Documento", "Tipo", "Nombre", "Estado", "Permiso", "Acción Realizada"],
                    [
                        [r.registro.documento, r.registro.tipo_documento,
                         r.registro.nome_completo, r.estado_resultante or "",
                         r.permissao, r.acao]
                        for r in self.resultados
                    ],
                )
        except (OSError, XlsxWriterException) as e:
            raise ErroArtefato(f"Erro ao gerar planilha em '{caminho}': {e}") from e
        return caminho

    @staticmethod
    def _escrever_aba(pasta, formato_cabecalho, titulo: str, cabecalho: List[str], linhas):
        aba = pasta.add_worksheet(titulo)
        aba.write_row(0, 0, cabecalho, formato_cabecalho)
        for i, linha in enumerate(linhas, start=1):
            aba.write_row(i, 0, linha)
        aba.set_column(0, len(cabecalho) - 1, 18)


def gerar_log_erro(
    caminho: Path, erro: BaseException, momento: Optional[datetime] = None
) -> Path:
    """Grava o log de uma execução abortada por erro fatal."""
    momento = momento or datetime.now()
    conteudo = "\n".join(
        [
            "ERROR EN SINCRONIZACIÓN",
            "=======================",
            f"Fecha/Hora: {formatar_data_hora(momento)}",
            f"Tipo: {type(erro).__name__}",
            f"Error: {erro}",
            "",
        ]
    )
    return salvar_texto(conteudo, caminho)
