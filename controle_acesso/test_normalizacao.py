import pytest

from controle_acesso.nucleo.exceptions import ErroColunasObrigatorias
from controle_acesso.nucleo.utils import Estado
from controle_acesso.sincronizar.colunas import detectar_colunas, validar_mapeamento
from controle_acesso.sincronizar.deduplicador import remover_duplicados
from controle_acesso.sincronizar.definitions import RegistroRoster
from controle_acesso.sincronizar.normalizador import (
    normalizar_linha,
    normalizar_tipo_documento,
    traduzir_estado,
)

CABECALHO_PADRAO = [
    "Tipo de Documento",
    "Número de Documento",
    "Nombre",
    "Apellidos",
    "Estado",
]

MAPEAMENTO_PADRAO = {
    "tipo_documento": "Tipo de Documento",
    "documento": "Número de Documento",
    "nome": "Nombre",
    "sobrenome": "Apellidos",
    "estado": "Estado",
}


def _linha(documento="1001", tipo="CC", nome="Ana", sobrenome="Gómez", estado="EN FORMACION"):
    return {
        "Tipo de Documento": tipo,
        "Número de Documento": documento,
        "Nombre": nome,
        "Apellidos": sobrenome,
        "Estado": estado,
    }


def _registro(documento, tipo="CC", linha=2, estado=Estado.ATIVO, nome="Ana Gómez"):
    return RegistroRoster(documento, tipo, nome, estado, linha)


class TestDeteccaoColunas:
    """Testa a associação dos rótulos do cabeçalho aos campos lógicos."""

    def test_cabecalho_padrao_do_relatorio(self):
        assert detectar_colunas(CABECALHO_PADRAO) == MAPEAMENTO_PADRAO

    def test_coluna_ja_usada_nao_e_reaproveitada(self):
        """'Tipo de Documento' contém 'Documento', mas pertence ao tipo."""
        mapeamento = detectar_colunas(
            ["Tipo de Documento", "Documento", "Nombres", "Apellido", "Estado Actual"]
        )
        assert mapeamento["tipo_documento"] == "Tipo de Documento"
        assert mapeamento["documento"] == "Documento"
        assert mapeamento["nome"] == "Nombres"
        assert mapeamento["sobrenome"] == "Apellido"
        assert mapeamento["estado"] == "Estado Actual"

    def test_ordem_das_colunas_nao_altera_resultado(self):
        assert detectar_colunas(list(reversed(CABECALHO_PADRAO))) == MAPEAMENTO_PADRAO

    def test_aceita_dicionario_da_primeira_linha(self):
        assert detectar_colunas(_linha()) == MAPEAMENTO_PADRAO

    def test_comparacao_ignora_maiusculas(self):
        mapeamento = detectar_colunas(["NUMERO DE DOCUMENTO", "NOMBRE", "APELLIDOS", "ESTADO"])
        assert mapeamento["documento"] == "NUMERO DE DOCUMENTO"
        assert mapeamento["estado"] == "ESTADO"

    def test_erro_de_digitacao_aceito_por_similaridade(self):
        mapeamento = detectar_colunas(["Documento", "Nombre", "Apellidos", "Estdo"])
        assert mapeamento["estado"] == "Estdo"

    def test_rotulo_muito_diferente_nao_e_aceito(self):
        mapeamento = detectar_colunas(["Documento", "Nombre", "Apellidos", "Situacion"])
        assert "estado" not in mapeamento

    def test_deteccao_e_deterministica(self):
        cabecalho = ["Ficha", "Documento", "Nombre", "Apellidos", "Estdo", "Observaciones"]
        primeiro = detectar_colunas(cabecalho)
        assert all(detectar_colunas(cabecalho) == primeiro for _ in range(5))

    def test_validacao_lista_campos_ausentes(self):
        with pytest.raises(ErroColunasObrigatorias) as excinfo:
            validar_mapeamento(detectar_colunas(["Documento", "Nombre"]))
        assert excinfo.value.campos_ausentes == ["sobrenome", "estado"]

    def test_tipo_documento_e_opcional(self):
        mapeamento = {k: v for k, v in MAPEAMENTO_PADRAO.items() if k != "tipo_documento"}
        assert validar_mapeamento(mapeamento) == mapeamento


class TestNormalizador:
    """Testa a conversão de linhas brutas em RegistroRoster."""

    @pytest.mark.parametrize(
        "bruto, esperado",
        [
            ("EN FORMACION", Estado.ATIVO),
            ("en formación", Estado.ATIVO),
            ("  Matriculado ", Estado.ATIVO),
            ("", Estado.ATIVO),
            (None, Estado.ATIVO),
            ("CANCELADO", Estado.INATIVO),
            ("RETIRO VOLUNTARIO", Estado.INATIVO),
            ("xyz", Estado.INATIVO),
        ],
    )
    def test_traducao_de_estado(self, bruto, esperado):
        assert traduzir_estado(bruto) is esperado

    @pytest.mark.parametrize(
        "bruto, esperado",
        [("ce", "CE"), (" TI ", "TI"), ("NIT", "NIT"), ("", "CC"), ("DNI", "CC")],
    )
    def test_tipo_de_documento(self, bruto, esperado):
        assert normalizar_tipo_documento(bruto) == esperado

    def test_linha_completa(self):
        registro = normalizar_linha(
            _linha(documento=" 1001 ", tipo="ti"), MAPEAMENTO_PADRAO, 7
        )
        assert registro == RegistroRoster("1001", "TI", "Ana Gómez", Estado.ATIVO, 7)
        assert registro.chave == ("1001", "TI")

    def test_estado_em_branco_vira_ativo(self):
        registro = normalizar_linha(_linha(estado=""), MAPEAMENTO_PADRAO, 2)
        assert registro.estado is Estado.ATIVO

    def test_tipo_ausente_usa_padrao(self):
        mapeamento = {k: v for k, v in MAPEAMENTO_PADRAO.items() if k != "tipo_documento"}
        registro = normalizar_linha(_linha(tipo="CE"), mapeamento, 2)
        assert registro.tipo_documento == "CC"

    @pytest.mark.parametrize("campo", ["documento", "nome", "sobrenome"])
    def test_linha_sem_campo_obrigatorio_e_descartada(self, campo):
        assert normalizar_linha(_linha(**{campo: "  "}), MAPEAMENTO_PADRAO, 2) is None


class TestDeduplicador:
    """Testa a remoção de registros repetidos pela chave documento + tipo."""

    def test_primeira_ocorrencia_vence(self):
        primeiro = _registro("1001", linha=2, estado=Estado.ATIVO)
        repetido = _registro("1001", linha=5, estado=Estado.INATIVO)
        assert remover_duplicados([primeiro, repetido]) == [primeiro]

    def test_mesmo_documento_com_tipos_diferentes_sao_pessoas_distintas(self):
        cc = _registro("1001", tipo="CC")
        ti = _registro("1001", tipo="TI", linha=3)
        assert remover_duplicados([cc, ti]) == [cc, ti]

    def test_ordem_de_entrada_preservada(self):
        registros = [_registro(str(d), linha=i) for i, d in enumerate([30, 10, 20, 10, 30], 2)]
        assert [r.documento for r in remover_duplicados(registros)] == ["30", "10", "20"]

    def test_entrada_vazia(self):
        assert remover_duplicados([]) == []
