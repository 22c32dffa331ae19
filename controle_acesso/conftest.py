# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""Fixtures compartilhadas pelos testes da sincronização."""

from datetime import datetime
from typing import Optional

import pytest

from controle_acesso.nucleo.armazem import ArmazemPessoas
from controle_acesso.nucleo.models import (
    Acesso,
    Pessoa,
    Rol,
    criar_fabrica_sessoes,
    criar_motor,
    criar_tabelas,
)

# --- Fixtures Reutilizáveis ---


@pytest.fixture
def motor():
    """Banco SQLite em memória, com as tabelas criadas, isolado por teste."""
    motor = criar_motor("sqlite://")
    criar_tabelas(motor)
    yield motor
    motor.dispose()


@pytest.fixture
def fabrica_sessoes(motor):
    return criar_fabrica_sessoes(motor)


@pytest.fixture
def armazem(fabrica_sessoes):
    return ArmazemPessoas(fabrica_sessoes)


@pytest.fixture
def semear(fabrica_sessoes):
    """
    Retorna uma função que insere pessoas (e, opcionalmente, um acesso aberto)
    diretamente no banco. O papel 'aprendiz' é criado na primeira chamada.
    """

    def _semear(
        documento: str,
        estado: str,
        nome: str = "Pessoa Teste",
        tipo_documento: str = "CC",
        rol: Optional[str] = "aprendiz",
        acesso_aberto: bool = False,
    ) -> int:
        with fabrica_sessoes() as sessao:
            papel = sessao.query(Rol).filter_by(nome="aprendiz").one_or_none()
            if papel is None:
                papel = Rol(nome="aprendiz")
                sessao.add(papel)
                sessao.flush()
            pessoa = Pessoa(
                documento=documento,
                tipo_documento=tipo_documento,
                nome=nome,
                estado=estado,
                id_rol=papel.id if rol else None,
                rol=rol,
            )
            sessao.add(pessoa)
            sessao.flush()
            if acesso_aberto:
                sessao.add(
                    Acesso(
                        id_pessoa=pessoa.id,
                        data_entrada=datetime(2025, 3, 10, 7, 30),
                        estado="activo",
                    )
                )
            sessao.commit()
            return pessoa.id

    return _semear


@pytest.fixture
def papel_aprendiz(fabrica_sessoes):
    """Garante a existência do papel padrão sem criar pessoas."""
    with fabrica_sessoes() as sessao:
        papel = Rol(nome="aprendiz")
        sessao.add(papel)
        sessao.commit()
        return papel.id


@pytest.fixture
def consultar(fabrica_sessoes):
    """Função auxiliar para ler uma pessoa pela chave em uma sessão nova."""

    def _consultar(documento: str, tipo_documento: str = "CC") -> Optional[Pessoa]:
        with fabrica_sessoes() as sessao:
            return (
                sessao.query(Pessoa)
                .filter_by(documento=documento, tipo_documento=tipo_documento)
                .one_or_none()
            )

    return _consultar
