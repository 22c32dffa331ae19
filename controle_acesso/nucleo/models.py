# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""
Define os modelos SQLAlchemy que mapeiam as tabelas do sistema de controle
de acesso usadas pela sincronização: Roles, Personas e Accesos.

As tabelas pertencem ao sistema de controle de acesso e já existem em
produção; os nomes das colunas seguem o esquema original (em espanhol),
enquanto os atributos Python seguem a nomenclatura do projeto.
"""
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from controle_acesso.nucleo.exceptions import ErroConfiguracao


class Base(DeclarativeBase):
    """Base declarativa para os modelos do SQLAlchemy."""


class Rol(Base):
    """Representa um papel atribuível a uma pessoa (aprendiz, instructor...)."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column("id_rol", Integer, primary_key=True)
    nome: Mapped[str] = mapped_column(
        "nombre_rol", String(50), unique=True, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Rol(id={self.id}, nome='{self.nome}')>"


class Pessoa(Base):
    """Representa uma pessoa conhecida pelo controle de acesso."""

    __tablename__ = "personas"

    id: Mapped[int] = mapped_column("id_persona", Integer, primary_key=True)
    nome: Mapped[str] = mapped_column("nombre", String(255), nullable=False)
    documento: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    tipo_documento: Mapped[str] = mapped_column(
        String(5), nullable=False, default="CC"
    )
    id_rol: Mapped[Optional[int]] = mapped_column(
        ForeignKey("roles.id_rol", ondelete="SET NULL"), nullable=True
    )
    rol: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    estado: Mapped[str] = mapped_column(
        String(20), nullable=False, default="activo", index=True
    )
    data_registro: Mapped[datetime] = mapped_column(
        "fecha_registro", DateTime, default=datetime.now
    )
    data_atualizacao: Mapped[datetime] = mapped_column(
        "fecha_actualizacion", DateTime, default=datetime.now, onupdate=datetime.now
    )

    acessos: Mapped[List["Acesso"]] = relationship(
        back_populates="pessoa", lazy="select", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("documento", "tipo_documento", name="uk_documento_tipo"),
    )

    def __repr__(self) -> str:
        return (
            f"<Pessoa(id={self.id}, documento='{self.tipo_documento} {self.documento}', "
            f"estado='{self.estado}')>"
        )


class Acesso(Base):
    """Registro de entrada de uma pessoa; aberto enquanto `data_saida` for nula."""

    __tablename__ = "accesos"

    id: Mapped[int] = mapped_column("id_acceso", Integer, primary_key=True)
    id_pessoa: Mapped[int] = mapped_column(
        "id_persona",
        ForeignKey("personas.id_persona", ondelete="CASCADE"),
        index=True,
    )
    data_entrada: Mapped[datetime] = mapped_column(
        "fecha_entrada", DateTime, nullable=False, default=datetime.now
    )
    data_saida: Mapped[Optional[datetime]] = mapped_column(
        "fecha_salida", DateTime, nullable=True, index=True
    )
    estado: Mapped[str] = mapped_column(String(20), nullable=False, default="activo")

    pessoa: Mapped["Pessoa"] = relationship(back_populates="acessos", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Acesso(id={self.id}, id_pessoa={self.id_pessoa}, "
            f"estado='{self.estado}', saida={self.data_saida})>"
        )


def _argumentos_tempo_limite(backend: str, driver: str, segundos: int) -> Dict[str, Any]:
    """
    Parâmetros de conexão que limitam a duração de cada comando no servidor.
    Drivers não listados aqui ficam só com o `pool_timeout`.
    """
    if backend == "postgresql" and driver in ("psycopg2", "psycopg"):
        return {
            "connect_timeout": segundos,
            "options": f"-c statement_timeout={segundos * 1000}",
        }
    if backend in ("mysql", "mariadb") and driver in ("pymysql", "mysqldb"):
        return {
            "connect_timeout": segundos,
            "read_timeout": segundos,
            "write_timeout": segundos,
        }
    return {}


def criar_motor(url_banco: str, tempo_limite_segundos: int = 30) -> Engine:
    """
    Cria o motor do banco de dados. Para SQLite o tempo limite é a espera por
    travas; para PostgreSQL e MySQL também vale como limite de cada comando,
    além da espera por uma conexão do pool.
    """
    try:
        url = make_url(url_banco)
        backend = url.get_backend_name()
        if backend == "sqlite":
            argumentos = {"timeout": tempo_limite_segundos, "check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                return create_engine(url, connect_args=argumentos, poolclass=StaticPool)
            return create_engine(url, connect_args=argumentos)

        return create_engine(
            url,
            pool_pre_ping=True,
            pool_timeout=tempo_limite_segundos,
            connect_args=_argumentos_tempo_limite(
                backend, url.get_driver_name(), tempo_limite_segundos
            ),
        )
    except (ArgumentError, ImportError) as e:
        raise ErroConfiguracao(f"URL de banco inválida '{url_banco}': {e}") from e


def arquivo_sqlite(motor: Engine) -> Optional[Path]:
    """Arquivo de um banco SQLite local; None para outros bancos ou memória."""
    if motor.url.get_backend_name() != "sqlite" or motor.url.database in (None, "", ":memory:"):
        return None
    return Path(motor.url.database)


def criar_fabrica_sessoes(motor: Engine) -> sessionmaker:
    """Retorna a fábrica de sessões ligada ao motor informado."""
    return sessionmaker(
        bind=motor, autocommit=False, autoflush=False, expire_on_commit=False
    )


def criar_tabelas(motor: Engine):
    """Cria as tabelas que não existirem (uso local e testes)."""
    Base.metadata.create_all(bind=motor)
