# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Fronteira com o banco de dados do controle de acesso usada pela
sincronização.

`ArmazemPessoas` não guarda sessão própria: cada registro do roster é
tratado em uma `UnidadeTrabalho` com sessão exclusiva, confirmada ao final
ou revertida por inteiro se qualquer passo falhar.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from controle_acesso.nucleo.exceptions import ErroConectividade
from controle_acesso.nucleo.models import Base, Pessoa
from controle_acesso.nucleo.repository import (
    RepositorioAcesso,
    RepositorioPessoa,
    RepositorioRol,
)
from controle_acesso.nucleo.utils import ChavePessoa, RegistroPessoa

logger = logging.getLogger(__name__)


def _para_registro(pessoa: Pessoa) -> RegistroPessoa:
    return RegistroPessoa(
        id=pessoa.id,
        documento=pessoa.documento,
        tipo_documento=pessoa.tipo_documento,
        nome=pessoa.nome,
        estado=pessoa.estado,
        rol=pessoa.rol,
    )


class UnidadeTrabalho:
    """Operações sobre uma pessoa, todas dentro da mesma transação."""

    def __init__(self, sessao: Session):
        self._sessao_db = sessao
        self.repo_pessoa = RepositorioPessoa(sessao)
        self.repo_rol = RepositorioRol(sessao)
        self.repo_acesso = RepositorioAcesso(sessao)

    def buscar_pessoa(self, chave: ChavePessoa) -> Optional[RegistroPessoa]:
        pessoa = self.repo_pessoa.por_chave(chave.documento, chave.tipo_documento)
        return _para_registro(pessoa) if pessoa else None

    def buscar_id_rol(self, nome: str) -> Optional[int]:
        rol = self.repo_rol.por_nome(nome)
        return rol.id if rol else None

    def inserir_pessoa(
        self,
        chave: ChavePessoa,
        nome: str,
        estado: str,
        id_rol: Optional[int],
        nome_rol: Optional[str],
    ) -> int:
        """Insere uma nova pessoa e retorna o ID gerado."""
        pessoa = self.repo_pessoa.adicionar(
            {
                "documento": chave.documento,
                "tipo_documento": chave.tipo_documento,
                "nome": nome,
                "estado": estado,
                "id_rol": id_rol,
                "rol": nome_rol,
            }
        )
        return pessoa.id

    def atualizar_estado(
        self,
        chave: ChavePessoa,
        estado: str,
        nome: Optional[str] = None,
        id_rol: Optional[int] = None,
        nome_rol: Optional[str] = None,
    ):
        """
        Atualiza o estado da pessoa identificada pela chave e, opcionalmente,
        seu nome e papel.
        """
        pessoa = self.repo_pessoa.por_chave(chave.documento, chave.tipo_documento)
        if pessoa is None:
            raise LookupError(
                f"Pessoa {chave.tipo_documento} {chave.documento} não encontrada."
            )
        dados = {"estado": estado}
        if nome is not None:
            dados["nome"] = nome
        if id_rol is not None:
            dados["id_rol"] = id_rol
            dados["rol"] = nome_rol
        self.repo_pessoa.alterar(pessoa, dados)

    def encerrar_acessos_abertos(self, id_pessoa: int) -> int:
        return self.repo_acesso.encerrar_abertos(id_pessoa, datetime.now())


class ArmazemPessoas:
    """Acesso transacional, por pessoa, ao banco do controle de acesso."""

    def __init__(self, fabrica_sessoes: sessionmaker):
        self._fabrica_sessoes = fabrica_sessoes

    @property
    def permite_sessoes_simultaneas(self) -> bool:
        """Falso quando todas as sessões dividem a mesma conexão (StaticPool)."""
        motor = self._fabrica_sessoes.kw.get("bind")
        return motor is None or not isinstance(motor.pool, StaticPool)

    def verificar_conexao(self):
        """
        Executa uma consulta trivial e confere se as tabelas do controle de
        acesso existem; levanta ErroConectividade se algo falhar.
        """
        try:
            with self._fabrica_sessoes() as sessao:
                sessao.execute(text("SELECT 1"))
                inspetor = inspect(sessao.connection())
                ausentes = [
                    tabela
                    for tabela in Base.metadata.tables
                    if not inspetor.has_table(tabela)
                ]
        except SQLAlchemyError as e:
            raise ErroConectividade(f"Erro de conexão com o banco: {e}") from e
        if ausentes:
            raise ErroConectividade(
                f"Tabelas ausentes no banco: {', '.join(sorted(ausentes))}"
            )
        logger.info("Conexão com o banco de dados verificada.")

    @contextmanager
    def unidade_de_trabalho(self) -> Iterator[UnidadeTrabalho]:
        """
        Abre uma sessão exclusiva; confirma se o bloco terminar sem erros e
        reverte todas as alterações caso contrário.
        """
        sessao = self._fabrica_sessoes()
        try:
            yield UnidadeTrabalho(sessao)
            sessao.commit()
        except BaseException:
            sessao.rollback()
            raise
        finally:
            sessao.close()
