# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Núcleo da sincronização: compara cada registro do roster com a pessoa
persistida de mesma chave, classifica o par em um dos casos da tabela e
aplica a mutação correspondente em uma única transação.

    Caso | Roster   | Banco    | Ação
    -----+----------+----------+--------------------------------------------
      1  | ativo    | ausente  | insere a pessoa com o papel padrão
      2  | ativo    | ativo    | nenhuma (mantido)
      3  | inativo  | ativo    | inativa e encerra os acessos abertos
      4  | inativo  | inativo  | nenhuma (mantido)
      5  | ativo    | inativo  | reativa e atualiza o nome
      0  | qualquer outra combinação | erro, sem mutação
"""

import logging
from typing import Optional

from controle_acesso.nucleo.armazem import ArmazemPessoas, UnidadeTrabalho
from controle_acesso.nucleo.utils import Estado, RegistroPessoa
from controle_acesso.sincronizar.definitions import (
    AcaoRealizada,
    CasoReconciliacao,
    RegistroRoster,
    Resultado,
)

logger = logging.getLogger(__name__)

ACAO_EM_FALHA = {
    CasoReconciliacao.NOVO: "INSERTAR",
    CasoReconciliacao.INABILITADO: "INHABILITAR",
    CasoReconciliacao.REATIVADO: "REACTIVAR",
    CasoReconciliacao.NAO_CLASSIFICADO: "CONSULTAR",
}


def _estado_persistido(pessoa: RegistroPessoa) -> str:
    return (pessoa.estado or "").strip().lower()


def classificar_caso(
    estado_roster: Estado, pessoa: Optional[RegistroPessoa]
) -> CasoReconciliacao:
    """Aplica a tabela de casos a um estado do roster e à pessoa persistida."""
    if pessoa is None:
        if estado_roster is Estado.ATIVO:
            return CasoReconciliacao.NOVO
        return CasoReconciliacao.NAO_CLASSIFICADO

    estado_banco = _estado_persistido(pessoa)
    tabela = {
        (Estado.ATIVO, Estado.ATIVO.value): CasoReconciliacao.ATIVO_MANTIDO,
        (Estado.INATIVO, Estado.ATIVO.value): CasoReconciliacao.INABILITADO,
        (Estado.INATIVO, Estado.INATIVO.value): CasoReconciliacao.INATIVO_MANTIDO,
        (Estado.ATIVO, Estado.INATIVO.value): CasoReconciliacao.REATIVADO,
    }
    return tabela.get((estado_roster, estado_banco), CasoReconciliacao.NAO_CLASSIFICADO)


class Reconciliador:
    """Reconcilia registros do roster, um por transação."""

    def __init__(self, armazem: ArmazemPessoas, nome_rol_padrao: str = "aprendiz"):
        self._armazem = armazem
        self._nome_rol_padrao = nome_rol_padrao

    def reconciliar(self, registro: RegistroRoster) -> Resultado:
        """
        Classifica e aplica o caso de um registro. Nunca levanta exceção:
        qualquer falha vira um `Resultado` com `sucesso=False` e as
        alterações do registro são revertidas.
        """
        caso = CasoReconciliacao.NAO_CLASSIFICADO
        estado_anterior: Optional[str] = None
        try:
            with self._armazem.unidade_de_trabalho() as uow:
                pessoa = uow.buscar_pessoa(registro.chave)
                estado_anterior = pessoa.estado if pessoa else None
                caso = classificar_caso(registro.estado, pessoa)
                resultado = self._aplicar(uow, caso, registro, pessoa)
        except Exception as e:  # isolamento por registro
            logger.exception(
                "Erro ao sincronizar %s %s (linha %d)",
                registro.tipo_documento,
                registro.documento,
                registro.numero_linha,
            )
            acao: AcaoRealizada = ACAO_EM_FALHA.get(caso, "CONSULTAR")  # type: ignore[assignment]
            return Resultado(
                registro=registro,
                caso=caso,
                acao=acao,
                sucesso=False,
                estado_anterior=estado_anterior,
                estado_resultante=estado_anterior,
                mensagem_erro=str(e) or type(e).__name__,
            )

        logger.debug(
            "%s %s: caso %d, %s",
            registro.tipo_documento,
            registro.documento,
            resultado.caso,
            resultado.acao,
        )
        return resultado

    def _aplicar(
        self,
        uow: UnidadeTrabalho,
        caso: CasoReconciliacao,
        registro: RegistroRoster,
        pessoa: Optional[RegistroPessoa],
    ) -> Resultado:
        if caso is CasoReconciliacao.NOVO:
            return self._inserir(uow, registro)

        if pessoa is None or caso is CasoReconciliacao.NAO_CLASSIFICADO:
            estado_banco = pessoa.estado if pessoa else "N/A"
            return Resultado(
                registro=registro,
                caso=CasoReconciliacao.NAO_CLASSIFICADO,
                acao="CASO_NO_CONTEMPLADO",
                sucesso=False,
                estado_anterior=pessoa.estado if pessoa else None,
                estado_resultante=pessoa.estado if pessoa else None,
                mensagem_erro=(
                    f"Estado Excel: {registro.estado.value}, Estado BD: {estado_banco}"
                ),
            )

        if caso in (CasoReconciliacao.ATIVO_MANTIDO, CasoReconciliacao.INATIVO_MANTIDO):
            return Resultado(
                registro=registro,
                caso=caso,
                acao="MANTENER",
                sucesso=True,
                estado_anterior=pessoa.estado,
                estado_resultante=_estado_persistido(pessoa),
            )

        if caso is CasoReconciliacao.INABILITADO:
            uow.atualizar_estado(registro.chave, Estado.INATIVO.value)
            encerrados = uow.encerrar_acessos_abertos(pessoa.id)
            if encerrados:
                logger.info(
                    "%d acesso(s) aberto(s) encerrado(s) para %s %s.",
                    encerrados,
                    registro.tipo_documento,
                    registro.documento,
                )
            return Resultado(
                registro=registro,
                caso=caso,
                acao="INHABILITADO",
                sucesso=True,
                estado_anterior=pessoa.estado,
                estado_resultante=Estado.INATIVO.value,
                acessos_encerrados=encerrados,
            )

        # Caso 5: reativação
        id_rol = None
        if pessoa.rol is None:
            id_rol = uow.buscar_id_rol(self._nome_rol_padrao)
        uow.atualizar_estado(
            registro.chave,
            Estado.ATIVO.value,
            nome=registro.nome_completo,
            id_rol=id_rol,
            nome_rol=self._nome_rol_padrao if id_rol is not None else None,
        )
        return Resultado(
            registro=registro,
            caso=caso,
            acao="REACTIVADO",
            sucesso=True,
            estado_anterior=pessoa.estado,
            estado_resultante=Estado.ATIVO.value,
        )

    def _inserir(self, uow: UnidadeTrabalho, registro: RegistroRoster) -> Resultado:
        id_rol = uow.buscar_id_rol(self._nome_rol_padrao)
        if id_rol is None:
            logger.warning(
                "Papel '%s' não encontrado; %s %s será inserido sem papel.",
                self._nome_rol_padrao,
                registro.tipo_documento,
                registro.documento,
            )
        uow.inserir_pessoa(
            registro.chave,
            registro.nome_completo,
            Estado.ATIVO.value,
            id_rol,
            self._nome_rol_padrao if id_rol is not None else None,
        )
        return Resultado(
            registro=registro,
            caso=CasoReconciliacao.NOVO,
            acao="INSERTADO",
            sucesso=True,
            estado_resultante=Estado.ATIVO.value,
        )
