# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Define tipos de dados, constantes e estruturas para o subpacote de
sincronização do roster. Centralizar essas definições torna o código mais
legível e fácil de manter.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Literal, NamedTuple, Optional, Tuple, TypedDict

from controle_acesso.nucleo.utils import ChavePessoa, Estado, permissao_para

# Campos lógicos que o detector de colunas procura no cabeçalho
CampoRoster = Literal["tipo_documento", "documento", "nome", "sobrenome", "estado"]


class MapeamentoColunas(TypedDict, total=False):
    """Campo lógico -> rótulo da coluna no roster. Campos ausentes não foram detectados."""

    tipo_documento: str
    documento: str
    nome: str
    sobrenome: str
    estado: str


# A ordem das chaves é a ordem de resolução dos campos; a ordem dos
# sinônimos é a ordem de preferência dentro de cada campo.
SINONIMOS_COLUNAS: Dict[str, Tuple[str, ...]] = {
    "tipo_documento": ("Tipo de Documento", "Tipo Documento", "Tipo", "Tipo Doc"),
    "documento": (
        "Número de Documento",
        "Documento",
        "Número Documento",
        "Numero de Documento",
    ),
    "nome": ("Nombre", "Nombres"),
    "sobrenome": ("Apellidos", "Apellido"),
    "estado": ("Estado", "Estado Actual"),
}

CAMPOS_OBRIGATORIOS: Tuple[str, ...] = ("documento", "nome", "sobrenome", "estado")

# Pontuação mínima (fuzzywuzzy) para aceitar um cabeçalho por aproximação
LIMIAR_SIMILARIDADE_CABECALHO = 90

# Estados do roster que dão direito a acesso; qualquer outro valor não vazio é inativo
ESTADOS_ATIVOS = frozenset(
    {
        "EN FORMACION",
        "EN FORMACIÓN",
        "FORMACION",
        "FORMACIÓN",
        "ACTIVO",
        "ACTIVA",
        "VIGENTE",
        "EN CURSO",
        "MATRICULADO",
        "REGULAR",
    }
)


@dataclass(frozen=True)
class RegistroRoster:
    """Uma linha do roster já validada e normalizada."""

    documento: str
    tipo_documento: str
    nome_completo: str
    estado: Estado
    numero_linha: int

    @property
    def chave(self) -> ChavePessoa:
        return ChavePessoa(self.documento, self.tipo_documento)


class CasoReconciliacao(IntEnum):
    """Classificação de um registro do roster contra o estado persistido."""

    NAO_CLASSIFICADO = 0
    NOVO = 1
    ATIVO_MANTIDO = 2
    INABILITADO = 3
    INATIVO_MANTIDO = 4
    REATIVADO = 5


# Ação registrada na auditoria. As três primeiras são ações concluídas; as
# demais identificam a operação que falhou.
AcaoRealizada = Literal[
    "INSERTADO",
    "MANTENER",
    "INHABILITADO",
    "REACTIVADO",
    "INSERTAR",
    "INHABILITAR",
    "REACTIVAR",
    "CONSULTAR",
    "CASO_NO_CONTEMPLADO",
]

# Baldes da auditoria
Balde = Literal["novos", "reativados", "inabilitados", "mantidos", "erros"]
BALDES: Tuple[Balde, ...] = ("novos", "reativados", "inabilitados", "mantidos", "erros")


@dataclass(frozen=True)
class Resultado:
    """Desfecho da reconciliação de um registro."""

    registro: RegistroRoster
    caso: CasoReconciliacao
    acao: AcaoRealizada
    sucesso: bool
    estado_anterior: Optional[str] = None
    estado_resultante: Optional[str] = None
    mensagem_erro: Optional[str] = None
    acessos_encerrados: int = 0

    @property
    def permissao(self) -> str:
        return permissao_para(self.estado_resultante)

    @property
    def balde(self) -> Balde:
        if not self.sucesso:
            return "erros"
        return {
            CasoReconciliacao.NOVO: "novos",
            CasoReconciliacao.REATIVADO: "reativados",
            CasoReconciliacao.INABILITADO: "inabilitados",
            CasoReconciliacao.ATIVO_MANTIDO: "mantidos",
            CasoReconciliacao.INATIVO_MANTIDO: "mantidos",
        }.get(self.caso, "erros")


class ProgressoSincronizacao(NamedTuple):
    """Evento de progresso enviado ao callback do orquestrador."""

    processados: int
    total: int

    @property
    def percentual(self) -> int:
        return round(self.processados * 100 / self.total) if self.total else 100


@dataclass(frozen=True)
class ResumoExecucao:
    """Contagens de uma execução; imutável depois de criado."""

    total: int
    novos: int
    reativados: int
    inabilitados: int
    mantidos: int
    erros: int
    inicio: datetime
    fim: datetime
    linhas_lidas: int = 0
    linhas_validas: int = 0
    duplicados_removidos: int = 0
    cancelada: bool = False

    @property
    def duracao_segundos(self) -> float:
        return (self.fim - self.inicio).total_seconds()


@dataclass
class ResultadoSincronizacao:
    """Resumo da execução e localização dos artefatos gerados."""

    resumo: ResumoExecucao
    caminho_log: Optional[str] = None
    caminho_relatorio: Optional[str] = None
    caminho_planilha: Optional[str] = None
    erros_artefatos: List[str] = field(default_factory=list)
