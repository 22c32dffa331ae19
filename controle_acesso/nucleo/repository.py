# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Repositórios das tabelas do controle de acesso usadas pela sincronização.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from controle_acesso.nucleo.crud import RepositorioBase
from controle_acesso.nucleo.models import Acesso, Pessoa, Rol

ESTADO_ACESSO_FINALIZADO = "finalizado"


class RepositorioPessoa(RepositorioBase[Pessoa]):
    """Pessoas, identificadas pela chave natural documento + tipo."""

    def __init__(self, sessao: Session):
        super().__init__(sessao, Pessoa)

    def por_chave(self, documento: str, tipo_documento: str) -> Optional[Pessoa]:
        """Busca uma pessoa pela chave natural, qualquer que seja seu estado."""
        return self.primeiro(documento=documento, tipo_documento=tipo_documento)


class RepositorioRol(RepositorioBase[Rol]):
    def __init__(self, sessao: Session):
        super().__init__(sessao, Rol)

    def por_nome(self, nome: str) -> Optional[Rol]:
        return self.primeiro(nome=nome)


class RepositorioAcesso(RepositorioBase[Acesso]):
    """Sessões de entrada; uma sessão está aberta enquanto não tem saída."""

    def __init__(self, sessao: Session):
        super().__init__(sessao, Acesso)

    def encerrar_abertos(self, id_pessoa: int, momento: datetime) -> int:
        """Finaliza todos os acessos sem saída da pessoa. Retorna quantos foram fechados."""
        return self.alterar_onde(
            {"data_saida": momento, "estado": ESTADO_ACESSO_FINALIZADO},
            id_pessoa=id_pessoa,
            data_saida=None,
        )
