"""
Testes dos parsers de planilha (modelo simplificado e formato legado).
"""

from datetime import date

from conftest import linhas_geral, linhas_mensal, montar_xlsx

from metas_vendas.io.workbook_loader import PlanilhaLoader
from metas_vendas.models import UploadConfig
from metas_vendas.parsing.cells import to_grid
from metas_vendas.parsing.legacy_parser import LegacyParser
from metas_vendas.parsing.series import aplicar_corte, mesclar_equipe, mesclar_registros
from metas_vendas.parsing.simplified_parser import SimplifiedParser
from metas_vendas.models import MonthlyRecord, RosterMember
from metas_vendas.utils.logging import ValidationLogger

CORTE = UploadConfig(selected_month=3, selected_year=2025)


def _carregar(conteudo):
    return PlanilhaLoader().carregar_bytes(conteudo, "planilha.xlsx").sheets


# ----------------------------------------------------------------------
# Corte temporal
# ----------------------------------------------------------------------
def test_aplicar_corte():
    registros = [
        MonthlyRecord("Dez", 2024, 10),
        MonthlyRecord("Mar", 2025, 20),
        MonthlyRecord("Abr", 2025, 30),
        MonthlyRecord("Jan", 2026, 40),
    ]
    historico, corrente = aplicar_corte(registros, 3, 2025)
    assert [r.chave for r in historico] == [(2024, 12), (2026, 1)]
    assert [r.chave for r in corrente] == [(2025, 3)]


def test_mesclar_registros_substitui_mesmo_mes_e_acrescenta_novos():
    existentes = [MonthlyRecord("Jan", 2024, 10), MonthlyRecord("Fev", 2024, 20)]
    novos = [MonthlyRecord("Fev", 2024, 25), MonthlyRecord("Mar", 2024, 30)]
    mesclados = mesclar_registros(existentes, novos)
    assert [(r.chave, r.revenue) for r in mesclados] == [
        ((2024, 1), 10),
        ((2024, 2), 25),
        ((2024, 3), 30),
    ]


def test_mesclar_equipe_por_nome_sem_caixa():
    existente = [RosterMember(id="1", name="Ana Souza"), RosterMember(id="2", name="Bruno")]
    nova = [RosterMember(id="9", name="ANA SOUZA", active=False), RosterMember(id="3", name="Carla")]
    mesclada = mesclar_equipe(existente, nova)
    assert [m.name for m in mesclada] == ["ANA SOUZA", "Bruno", "Carla"]
    assert not mesclada[0].active


# ----------------------------------------------------------------------
# Modelo simplificado
# ----------------------------------------------------------------------
def test_simplificado_series_e_equipe(planilha_simplificada):
    vlog = ValidationLogger()
    series = SimplifiedParser(validation_logger=vlog).parse(_carregar(planilha_simplificada), CORTE)

    assert len(series.historical_data) == 12
    assert all(r.year == 2024 for r in series.historical_data)
    assert [r.month for r in series.current_year_data] == ["Jan", "Fev", "Mar"]
    assert series.current_year_data[0].revenue == 120000
    assert series.current_year_data[0].goal == 138000
    assert series.years_available == [2024, 2025]

    nomes = [m.name for m in series.team]
    assert nomes == ["João Silva", "Maria Santos"], "linhas '//' não entram na equipe"
    joao, maria = series.team
    assert joao.active and not maria.active
    assert joao.total_revenue == 30000
    assert joao.monthly_goal == 35000
    assert joao.total_sales_count == 10
    assert series.mentorship_start_date is None


def test_simplificado_colunas_fora_de_ordem_e_linha_invalida():
    grid = to_grid(
        [
            ["Faturamento", "Ano", "Mês"],
            [1000, 2024, "Janeiro"],
            [2000, 2024, "Mês 13"],
            [3000, "abc", "Março"],
            [4000, 2025, 2],
        ]
    )
    vlog = ValidationLogger()
    series = SimplifiedParser(validation_logger=vlog).parse({"Historico": grid}, CORTE)

    assert [r.chave for r in series.historical_data] == [(2024, 1)]
    assert series.historical_data[0].revenue == 1000
    assert [r.chave for r in series.current_year_data] == [(2025, 2)]
    assert len(vlog.filtrar("AVISO")) == 2
    assert series.team == ()


def test_simplificado_data_mentoria():
    grid = to_grid(
        [
            ["Início Mentoria", date(2024, 7, 1)],
            ["Mês", "Ano", "Faturamento"],
            ["Jan", 2024, 100],
        ]
    )
    series = SimplifiedParser().parse({"Historico": grid}, CORTE)
    assert series.mentorship_start_date == date(2024, 7, 1)
    assert len(series.historical_data) == 1


# ----------------------------------------------------------------------
# Formato legado
# ----------------------------------------------------------------------
def test_legado_ponta_a_ponta(planilha_legado):
    vlog = ValidationLogger()
    series = LegacyParser(validation_logger=vlog).parse(_carregar(planilha_legado), CORTE)

    # 2023 e 2024 completos no histórico; 2025 só até março
    assert len(series.historical_data) == 24
    assert {r.year for r in series.historical_data} == {2023, 2024}
    assert [r.chave for r in series.current_year_data] == [(2025, 1), (2025, 2), (2025, 3)]
    assert not any(r.year == 2025 and r.month_number > 3 for r in series.historical_data)

    # meta só no ano de corte
    assert all(r.goal == 0 for r in series.historical_data)
    assert sum(r.goal for r in series.current_year_data) == 390000
    assert sum(r.revenue for r in series.current_year_data) == 360000

    # equipe vem da aba do mês de corte (Mar-25), não da Fev-25
    assert [m.name for m in series.team] == ["Ana Souza", "Bruno Lima", "Carla Dias"]
    ana = series.team[0]
    assert ana.total_revenue == 20000
    assert ana.monthly_goal == 20000
    assert [w.revenue for w in ana.weeks] == [6000, 5000, 4000, 5000]
    assert all(w.goal == 5000 for w in ana.weeks)


def test_legado_aba_mensal_anterior_ao_corte():
    sheets = _carregar(montar_xlsx([("Geral", linhas_geral()), ("Fev-25", linhas_mensal())]))
    vlog = ValidationLogger()
    series = LegacyParser(validation_logger=vlog).parse(sheets, CORTE)
    assert len(series.team) == 3
    assert any("Fev-25" in e["Mensagem"] for e in vlog.filtrar("INFO"))


def test_legado_sem_resultado_soma_semanas():
    grid = to_grid(
        [
            ["Vendedor", "Semana 1", "Semana 2", "Meta"],
            ["Ana", 100, 200, 600],
            ["Dias úteis: 5", "", "", ""],
            ["Total", 100, 200, 600],
            ["Depois do total", 1, 1, 1],
        ]
    )
    series = LegacyParser().parse({"Mar-25": grid}, CORTE)
    assert len(series.team) == 1
    ana = series.team[0]
    assert ana.total_revenue == 300
    assert [w.goal for w in ana.weeks] == [300, 300]


def test_legado_sem_abas_reconheciveis():
    vlog = ValidationLogger()
    series = LegacyParser(validation_logger=vlog).parse({}, CORTE)
    assert series.historical_data == () and series.team == ()
    assert len(vlog.filtrar("AVISO")) == 2
