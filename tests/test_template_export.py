"""
Testes das planilhas geradas para download.
"""

import io
from datetime import date

from openpyxl import load_workbook

from metas_vendas.core.goal_calculator import MetasCalculator
from metas_vendas.io.template_export import gerar_planilha_normalizada, gerar_planilha_pgv, gerar_template_vazio
from metas_vendas.io.upload_processor import UploadProcessor
from metas_vendas.io.workbook_loader import PlanilhaLoader
from metas_vendas.models import (
    CalculatedGoal,
    RevenueIndex,
    RosterMember,
    Salesperson,
    UploadConfig,
    WeeklyRecord,
)
from metas_vendas.parsing.legacy_parser import LegacyParser
from metas_vendas.parsing.simplified_parser import SimplifiedParser
from metas_vendas.utils.logging import ValidationLogger
from metas_vendas.utils.styling import PALETTE, match_group

CORTE = UploadConfig(selected_month=3, selected_year=2025)


def _abrir(conteudo):
    return load_workbook(io.BytesIO(conteudo))


def test_template_vazio_abas_e_parse():
    conteudo = gerar_template_vazio()
    wb = _abrir(conteudo)
    assert wb.sheetnames == ["Historico", "Equipe", "Vendas"]
    assert wb["Historico"]["A1"].font.bold

    sheets = PlanilhaLoader().carregar_bytes(conteudo, "modelo.xlsx").sheets
    series = SimplifiedParser().parse(sheets, UploadConfig(selected_month=12, selected_year=2022))
    assert [r.month for r in series.current_year_data] == ["Jan", "Fev", "Mar"]
    assert [m.name for m in series.team] == ["João Silva", "Maria Santos"]


def test_planilha_normalizada_reimportada(planilha_simplificada):
    processor = UploadProcessor()
    original = processor.processar(planilha_simplificada, "modelo.xlsx", CORTE).data

    conteudo = gerar_planilha_normalizada(original)
    assert _abrir(conteudo).sheetnames == ["Historico", "Equipe", "Resumo"]

    reimportado = processor.processar(conteudo, "normalizada.xlsx", CORTE)
    assert reimportado.success, reimportado.error
    dados = reimportado.data
    assert dados.formato == "simplified_template"
    assert dados.historical_data == original.historical_data
    assert dados.current_year_data == original.current_year_data
    assert [(m.name, m.active) for m in dados.team] == [("João Silva", True), ("Maria Santos", False)]
    assert dados.kpis.annual_goal == original.kpis.annual_goal


def test_planilha_pgv_layout_e_totais():
    vendedores = [
        Salesperson(id="1", name="Ana Souza", hire_date=date(2020, 1, 1)),
        Salesperson(id="2", name="Bruno Lima", hire_date=date(2020, 1, 1)),
    ]
    calc = MetasCalculator(RevenueIndex(), vendedores, hoje=date(2025, 3, 1))
    goals = calc.calcular_metas_equipe(3, 2025, team_monthly_goal=40000)
    team = [
        RosterMember(
            "1",
            "ANA SOUZA",
            total_revenue=12000,
            weeks=(WeeklyRecord(1, 6000), WeeklyRecord(2, 6000)),
        )
    ]

    conteudo = gerar_planilha_pgv(goals, 3, 2025, team=team)
    wb = _abrir(conteudo)
    assert wb.sheetnames == ["Mar-25"]
    ws = wb["Mar-25"]

    cabecalho = [c.value for c in ws[1]]
    assert cabecalho[:4] == ["#", "CONSULTOR COMERCIAL", "Previsto Diário", "Previsto Semanal"]
    assert cabecalho[4:6] == ["Semana 1", "%"]
    assert cabecalho[-3:] == ["Resultado", "Meta", "Resultado %"]
    assert ws["D2"].value == "Dias úteis:"

    ana = [c.value for c in ws[3]]
    assert ana[1] == "Ana Souza"
    assert ana[4] == 6000 and ana[5] == "120%"
    assert ana[-3:] == [12000, 20000, "60%"]

    total = [c.value for c in ws[ws.max_row]]
    assert total[1] == "TOTAL"
    assert total[-2] == 40000

    assert ws.cell(row=3, column=5).fill.start_color.rgb.endswith(PALETTE[1])


def test_planilha_pgv_relida_pelo_parser_legado():
    goals = [
        CalculatedGoal(str(i), nome, 10000, 2500, 500, "Distribuição igual", False, 12)
        for i, nome in enumerate(["Ana Souza", "Bruno Lima", "Carla Dias"], start=1)
    ]
    conteudo = gerar_planilha_pgv(goals, 3, 2025)
    sheets = PlanilhaLoader().carregar_bytes(conteudo, "pgv.xlsx").sheets

    series = LegacyParser(validation_logger=ValidationLogger()).parse(sheets, CORTE)
    assert [m.name for m in series.team] == ["Ana Souza", "Bruno Lima", "Carla Dias"]
    assert all(m.monthly_goal == 10000 for m in series.team)
    assert all(len(m.weeks) == 4 for m in series.team)


def test_match_group():
    assert match_group("Previsto Semanal") == "previsto"
    assert match_group("Semana 2") == "semana"
    assert match_group("Resultado %") == "realizado"
    assert match_group("CONSULTOR") is None
