"""
Testes do orquestrador de importação e do leitor de arquivos.
"""

import pytest

from metas_vendas.io.upload_processor import MENSAGEM_FALHA, UploadProcessor, contar_linhas, rotulo_mes
from metas_vendas.io.workbook_loader import PlanilhaIlegivelError, PlanilhaLoader, _detect_sep
from metas_vendas.models import UploadConfig
from metas_vendas.parsing.cells import to_grid

CORTE = UploadConfig(selected_month=3, selected_year=2025)


def test_processar_modelo_simplificado(planilha_simplificada):
    resultado = UploadProcessor().processar(planilha_simplificada, "modelo.xlsx", CORTE)
    assert resultado.success, resultado.error
    dados = resultado.data
    assert dados.formato == "simplified_template"
    assert dados.sheets_found == ("Historico", "Equipe")
    assert dados.years_available == (2024, 2025)
    assert dados.selected_month == "Mar-25"
    assert dados.kpis.annual_realized == 363000
    assert dados.kpis.total_sales_count == 15

    corpo = resultado.to_dict()
    assert corpo["success"] is True
    assert corpo["data"]["kpis"]["currentMonthName"] == "Março"


def test_processar_formato_legado(planilha_legado):
    processor = UploadProcessor()
    resultado = processor.processar(planilha_legado, "legado.xlsx", CORTE)
    assert resultado.success, resultado.error
    dados = resultado.data
    assert dados.formato == "legacy_format"
    assert dados.kpis.annual_goal == 390000
    assert dados.kpis.annual_realized == 360000
    assert dados.kpis.atingimento == pytest.approx(92.3)
    assert len(dados.team) == 3
    assert dados.years_available == (2023, 2024, 2025)


def test_processar_csv():
    conteudo = "Mês;2024;2025\nJaneiro;1.000,50;2.000\nFevereiro;1.500;\n".encode("utf-8")
    resultado = UploadProcessor().processar(conteudo, "dados.csv", UploadConfig(2, 2025))
    assert resultado.success, resultado.error
    dados = resultado.data
    assert dados.sheets_found == ("Dados",)
    assert [(r.month, r.revenue) for r in dados.historical_data] == [("Jan", 1000.5), ("Fev", 1500.0)]
    assert [(r.month, r.revenue) for r in dados.current_year_data] == [("Jan", 2000.0)]
    mensagens = [a["Mensagem"] for a in resultado.avisos]
    assert "Nenhum vendedor detectado na planilha" in mensagens


def test_processar_arquivo_corrompido_retorna_falha():
    processor = UploadProcessor()
    resultado = processor.processar(b"isto nao e um xlsx", "quebrado.xlsx", CORTE)
    assert not resultado.success
    assert resultado.data is None
    assert resultado.error == MENSAGEM_FALHA
    assert resultado.to_dict() == {"success": False, "error": MENSAGEM_FALHA}
    assert processor.validation_logger.filtrar("ERRO")


def test_processar_limpa_log_entre_importacoes(planilha_simplificada):
    processor = UploadProcessor()
    processor.processar(b"", "vazio.xlsx", CORTE)
    assert processor.validation_logger.filtrar("ERRO")
    processor.processar(planilha_simplificada, "modelo.xlsx", CORTE)
    assert not processor.validation_logger.filtrar("ERRO")


def test_processar_guarda_analise_da_ultima_importacao(planilha_legado):
    processor = UploadProcessor()
    resultado = processor.processar(planilha_legado, "legado.xlsx", CORTE)
    assert resultado.success, resultado.error
    assert [a.year for a in processor.analise.anos] == [2023, 2024, 2025]
    mensagens = [a["Mensagem"] for a in resultado.avisos]
    assert all(aviso in mensagens for aviso in processor.analise.avisos)

    processor.processar(b"isto nao e um xlsx", "quebrado.xlsx", CORTE)
    assert processor.analise is None


def test_loader_rejeita_extensao_e_vazio():
    loader = PlanilhaLoader()
    with pytest.raises(PlanilhaIlegivelError):
        loader.carregar_bytes(b"abc", "dados.pdf")
    with pytest.raises(PlanilhaIlegivelError):
        loader.carregar_bytes(b"", "dados.xlsx")


def test_detect_sep():
    assert _detect_sep(b"a;b;c\n1;2;3") == (";", "utf-8-sig")
    assert _detect_sep(b"a\tb\n1\t2")[0] == "\t"
    assert _detect_sep(b"a,b\n1,2")[0] == ","
    assert _detect_sep(b"unica")[0] == ","


def test_contar_linhas_e_rotulo():
    sheets = {"A": to_grid([["h"], ["x"], [None], ["y"]]), "B": to_grid([["h"]])}
    assert contar_linhas(sheets) == 2
    assert rotulo_mes(12, 2025) == "Dez-25"
    assert rotulo_mes(1, 2030) == "Jan-30"
