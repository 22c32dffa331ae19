# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Base genérica dos repositórios. Todas as operações trabalham dentro da
sessão recebida e no máximo executam `flush`; confirmar ou reverter é
responsabilidade da unidade de trabalho que abriu a sessão.
"""

from typing import Any, Dict, Generic, Optional, Self, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session as DBSession

from controle_acesso.nucleo.models import Base

MODELO = TypeVar("MODELO", bound=Base)


class RepositorioBase(Generic[MODELO]):
    """
    Operações comuns sobre um modelo mapeado.

    Os filtros usam os nomes dos atributos Python (`documento`, `data_saida`),
    não os nomes das colunas no banco.
    """

    def __init__(self: Self, sessao: DBSession, modelo: Type[MODELO]):
        self._sessao_db = sessao
        self._modelo = modelo

    def _condicoes(self, filtros: Dict[str, Any]) -> list:
        condicoes = []
        for atributo, valor in filtros.items():
            if valor is None:
                condicoes.append(getattr(self._modelo, atributo).is_(None))
            else:
                condicoes.append(getattr(self._modelo, atributo) == valor)
        return condicoes

    def adicionar(self: Self, dados: Dict[str, Any]) -> MODELO:
        """Cria a instância e envia o INSERT para obter a chave gerada."""
        item_db = self._modelo(**dados)
        self._sessao_db.add(item_db)
        self._sessao_db.flush()
        return item_db

    def primeiro(self: Self, **filtros: Any) -> Optional[MODELO]:
        """Primeiro registro que atende a todos os filtros de igualdade."""
        consulta = select(self._modelo).where(*self._condicoes(filtros)).limit(1)
        return self._sessao_db.scalars(consulta).first()

    def alterar(self: Self, item_db: MODELO, campos: Dict[str, Any]) -> MODELO:
        """Aplica os campos a uma instância já carregada nesta sessão."""
        for atributo, valor in campos.items():
            setattr(item_db, atributo, valor)
        self._sessao_db.flush()
        return item_db

    def alterar_onde(self: Self, valores: Dict[str, Any], **filtros: Any) -> int:
        """UPDATE em massa; retorna a quantidade de linhas afetadas."""
        resultado = self._sessao_db.execute(
            update(self._modelo)
            .where(*self._condicoes(filtros))
            .values(**valores)
            .execution_options(synchronize_session=False)
        )
        return resultado.rowcount or 0
