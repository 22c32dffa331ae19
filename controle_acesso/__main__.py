# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>

"""
Ponto de entrada de linha de comando da sincronização do roster.

    python -m controle_acesso [arquivo] [--saida DIR] [--banco URL]
                              [--trabalhadores N] [--criar-esquema] [--verbose]

Retorna 0 quando a execução chega ao fim (mesmo com registros em erro) e 1
quando é abortada por um erro fatal.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from controle_acesso.nucleo.config import PADRAO, carregar_configuracao
from controle_acesso.nucleo.exceptions import ErroNucleoAcesso
from controle_acesso.sincronizar.definitions import ResumoExecucao
from controle_acesso.sincronizar.facade import FachadaSincronizacao
from controle_acesso.sincronizar.orquestrador import registrar_erro_fatal


def criar_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="controle_acesso",
        description="Sincroniza o roster de aprendizes com o banco do controle de acesso.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "arquivo",
        nargs="?",
        default=None,
        help="Roster de entrada (.xlsx ou .csv). (Padrão: arquivo da configuração)",
    )
    parser.add_argument(
        "-s", "--saida",
        default=None,
        help="Diretório onde os artefatos da execução serão gravados.",
    )
    parser.add_argument(
        "-b", "--banco",
        default=None,
        help="URL SQLAlchemy do banco do controle de acesso.",
    )
    parser.add_argument(
        "-t", "--trabalhadores",
        type=int,
        default=None,
        help="Quantidade de registros processados em paralelo. (Padrão: 1)",
    )
    parser.add_argument(
        "--criar-esquema",
        action="store_true",
        help="Cria as tabelas ausentes antes de sincronizar (bancos novos).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Exibe mensagens de depuração.",
    )
    return parser


def _tabela_resumo(resumo: ResumoExecucao) -> Table:
    titulo = "Resumo da Sincronização"
    if resumo.cancelada:
        titulo += " (cancelada)"
    tabela = Table(title=titulo)
    tabela.add_column("Categoria", style="cyan", no_wrap=True)
    tabela.add_column("Quantidade", justify="right")
    tabela.add_row("Linhas lidas", str(resumo.linhas_lidas))
    tabela.add_row("Duplicados removidos", str(resumo.duplicados_removidos))
    tabela.add_row("Total processado", str(resumo.total))
    tabela.add_row("[green]Novos[/green]", str(resumo.novos))
    tabela.add_row("[green]Reativados[/green]", str(resumo.reativados))
    tabela.add_row("[yellow]Inabilitados[/yellow]", str(resumo.inabilitados))
    tabela.add_row("Mantidos", str(resumo.mantidos))
    tabela.add_row("[red]Erros[/red]", str(resumo.erros))
    tabela.add_row("Duração (s)", f"{resumo.duracao_segundos:.1f}")
    return tabela


def main(argv: Optional[List[str]] = None) -> int:
    args = criar_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    console = Console()

    try:
        configuracao = carregar_configuracao()
    except ErroNucleoAcesso as e:
        registrar_erro_fatal(Path(args.saida or PADRAO["diretorio_saida"]), e)
        console.print(f"[bold red]ERRO na configuração: {e}[/bold red]")
        if e.caminho_log_erro:
            console.print(f"Log de erro: {e.caminho_log_erro}")
        return 1
    if args.saida:
        configuracao["diretorio_saida"] = args.saida
    if args.banco:
        configuracao["url_banco"] = args.banco
    if args.trabalhadores:
        configuracao["trabalhadores"] = max(1, args.trabalhadores)
    if args.criar_esquema:
        configuracao["criar_esquema"] = True

    with console.status("[cyan]Sincronizando roster...[/]") as status:

        def ao_progredir(progresso):
            status.update(
                f"[cyan]Sincronizando roster... {progresso.processados}/"
                f"{progresso.total} ({progresso.percentual}%)[/]"
            )

        try:
            with FachadaSincronizacao(configuracao, ao_progredir=ao_progredir) as fachada:
                retorno = fachada.sincronizar(args.arquivo)
        except KeyboardInterrupt:
            console.print("[bold yellow]Sincronização interrompida pelo usuário.[/bold yellow]")
            return 1

    if not retorno["sucesso"]:
        console.print(f"[bold red]ERRO: {retorno['erro']}[/bold red]")
        if retorno.get("caminho_log_erro"):
            console.print(f"Log de erro: {retorno['caminho_log_erro']}")
        return 1

    console.print(_tabela_resumo(retorno["resumo"]))
    for nome, caminho in retorno["caminhos"].items():
        if caminho:
            console.print(f"[bold]{nome}:[/bold] {caminho}")
    for mensagem in retorno["erros_artefatos"]:
        console.print(f"[yellow]Aviso: {mensagem}[/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
