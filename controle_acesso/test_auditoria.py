import csv
import threading
from datetime import datetime
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from controle_acesso.nucleo.exceptions import ErroArtefato, ErroFonteIndisponivel
from controle_acesso.nucleo.utils import Estado
from controle_acesso.sincronizar.auditoria import (
    CABECALHO_RELATORIO,
    AuditorSincronizacao,
    gerar_log_erro,
)
from controle_acesso.sincronizar.definitions import (
    CasoReconciliacao,
    RegistroRoster,
    Resultado,
)

INICIO = datetime(2025, 6, 1, 8, 0, 0)
FIM = datetime(2025, 6, 1, 8, 0, 12)


def _resultado(documento, caso, acao, sucesso=True, anterior=None, resultante=None,
               erro=None, linha=2):
    estado = Estado.INATIVO if caso is CasoReconciliacao.INABILITADO else Estado.ATIVO
    registro = RegistroRoster(documento, "CC", f"Pessoa {documento}", estado, linha)
    return Resultado(registro, caso, acao, sucesso, anterior, resultante, erro)


@pytest.fixture
def auditor():
    """Auditor com um desfecho de cada balde, registrados fora de ordem."""
    auditor = AuditorSincronizacao()
    auditor.registrar(_resultado("5", CasoReconciliacao.ATIVO_MANTIDO, "MANTENER",
                                 anterior="activo", resultante="activo", linha=6))
    auditor.registrar(_resultado("1", CasoReconciliacao.NOVO, "INSERTADO",
                                 resultante="activo", linha=2))
    auditor.registrar(_resultado("3", CasoReconciliacao.INABILITADO, "INHABILITADO",
                                 anterior="activo", resultante="inactivo", linha=4))
    auditor.registrar(_resultado("2", CasoReconciliacao.REATIVADO, "REACTIVADO",
                                 anterior="inactivo", resultante="activo", linha=3))
    auditor.registrar(_resultado("4", CasoReconciliacao.NOVO, "INSERTAR", sucesso=False,
                                 erro="database is locked", linha=5))
    return auditor


class TestAuditor:
    """Testa o acúmulo dos desfechos e o resumo da execução."""

    def test_contagens_e_resumo(self, auditor):
        resumo = auditor.resumo(INICIO, FIM, linhas_lidas=7, linhas_validas=6,
                                duplicados_removidos=1)

        assert (resumo.novos, resumo.reativados, resumo.inabilitados) == (1, 1, 1)
        assert (resumo.mantidos, resumo.erros, resumo.total) == (1, 1, 5)
        assert resumo.duracao_segundos == 12.0
        assert resumo.duplicados_removidos == 1

    def test_resultados_ordenados_pela_linha(self, auditor):
        assert [r.registro.numero_linha for r in auditor.resultados] == [2, 3, 4, 5, 6]

    def test_falha_sempre_vai_para_erros(self, auditor):
        assert [r.registro.documento for r in auditor.balde("erros")] == ["4"]
        assert [r.registro.documento for r in auditor.balde("novos")] == ["1"]

    def test_registro_concorrente(self):
        auditor = AuditorSincronizacao()

        def registrar_lote(inicio):
            for i in range(inicio, inicio + 200):
                auditor.registrar(_resultado(str(i), CasoReconciliacao.NOVO, "INSERTADO",
                                             resultante="activo", linha=i))

        threads = [threading.Thread(target=registrar_lote, args=(n * 200,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert auditor.contagens()["novos"] == 800


class TestArtefatos:
    """Testa o conteúdo do log, do relatório CSV e da planilha."""

    def test_log_contem_resumo_e_secoes(self, auditor):
        log = auditor.renderizar_log(auditor.resumo(INICIO, FIM))

        assert "FECHA/HORA DE INICIO: 01/06/2025 08:00:00" in log
        assert "Nuevos usuarios agregados:       1" in log
        assert "NUEVOS USUARIOS AGREGADOS (1):" in log
        assert "activo → inactivo" in log
        assert "Error: database is locked" in log
        assert "FIN DEL LOG" in log

    def test_secao_vazia_indica_ninguno(self):
        log = AuditorSincronizacao().renderizar_log(AuditorSincronizacao().resumo(INICIO, FIM))
        assert "USUARIOS REACTIVADOS: Ninguno" in log

    def test_relatorio_csv_exclui_mantidos(self, auditor, tmp_path):
        caminho = auditor.gerar_relatorio_csv(tmp_path / "Reporte_Cambios.csv")

        with open(caminho, encoding="utf-8", newline="") as f:
            linhas = list(csv.reader(f))
        assert linhas[0] == CABECALHO_RELATORIO
        assert [linha[0] for linha in linhas[1:]] == ["NUEVO", "REACTIVADO", "INHABILITADO", "ERROR"]
        assert all(linha[2] != "5" for linha in linhas[1:])
        inabilitado = linhas[3]
        assert inabilitado[6:9] == ["activo", "inactivo", "ACCESO DENEGADO"]

    def test_planilha_sincronizada(self, auditor, tmp_path):
        caminho = auditor.gerar_planilha_sincronizada(
            tmp_path / "saida" / "Control.xlsx", auditor.resumo(INICIO, FIM)
        )

        pasta = load_workbook(caminho)
        assert pasta.sheetnames == [
            "Resumen",
            "Nuevos Usuarios",
            "Usuarios Reactivados",
            "Usuarios Inhabilitados",
            "Errores",
            "Datos Sincronizados",
        ]
        dados = list(pasta["Datos Sincronizados"].iter_rows(values_only=True))
        assert len(dados) == 6
        assert dados[1][:5] == ("1", "CC", "Pessoa 1", "activo", "ACCESO PERMITIDO")

    def test_planilha_omite_abas_vazias(self, tmp_path):
        auditor = AuditorSincronizacao()
        auditor.registrar(_resultado("1", CasoReconciliacao.NOVO, "INSERTADO",
                                     resultante="activo"))
        caminho = auditor.gerar_planilha_sincronizada(
            tmp_path / "Control.xlsx", auditor.resumo(INICIO, FIM)
        )

        assert load_workbook(caminho).sheetnames == [
            "Resumen", "Nuevos Usuarios", "Datos Sincronizados"
        ]

    def test_falha_de_escrita_vira_erro_de_artefato(self, auditor, tmp_path):
        with patch("controle_acesso.nucleo.utils.Path.write_text", side_effect=OSError("negado")):
            with pytest.raises(ErroArtefato, match="negado"):
                auditor.gerar_log(tmp_path / "log.txt", auditor.resumo(INICIO, FIM))

    def test_log_de_erro_fatal(self, tmp_path):
        caminho = gerar_log_erro(
            tmp_path / "Log_Error.txt", ErroFonteIndisponivel("arquivo sumiu"), INICIO
        )

        conteudo = caminho.read_text(encoding="utf-8")
        assert "Tipo: ErroFonteIndisponivel" in conteudo
        assert "Error: arquivo sumiu" in conteudo
        assert "01/06/2025 08:00:00" in conteudo
