"""
Testes dos KPIs da importação e da análise de qualidade dos dados.
"""

from datetime import date

import pytest

from metas_vendas.core.data_analysis import analisar_dados, nomes_parecidos
from metas_vendas.core.kpi_calculator import KpiCalculator, crescimento_percentual
from metas_vendas.models import MonthlyRecord, RosterMember

HISTORICO = (
    MonthlyRecord("Jan", 2024, 100),
    MonthlyRecord("Fev", 2024, 100),
    MonthlyRecord("Mar", 2024, 100),
    MonthlyRecord("Abr", 2024, 500),
)
CORRENTE = (
    MonthlyRecord("Jan", 2025, 120, 150),
    MonthlyRecord("Fev", 2025, 130, 150),
    MonthlyRecord("Fev", 2025, 999, 999),
)


def test_kpis_basicos():
    team = (RosterMember("1", "Ana", total_sales_count=5), RosterMember("2", "Bia", total_sales_count=5))
    kpis = KpiCalculator().calcular(HISTORICO, CORRENTE, team, 2, 2025)

    # duplicata de Fev/2025 ignorada (primeira vence)
    assert kpis.annual_goal == 300
    assert kpis.annual_realized == 250
    # mesmos meses do ano anterior: Jan + Fev 2024 = 200
    assert kpis.last_year_growth == 25.0
    assert kpis.average_ticket == 25.0
    assert kpis.total_sales_count == 10
    assert kpis.atingimento == pytest.approx(83.3)
    assert kpis.current_month_name == "Fevereiro"
    assert kpis.mentorship_growth == 0.0


def test_kpis_sem_dados():
    kpis = KpiCalculator().calcular((), (), (), 1, 2025)
    assert kpis.annual_goal == 0 and kpis.annual_realized == 0
    assert kpis.last_year_growth == 0 and kpis.average_ticket == 0
    assert kpis.atingimento == 0


def test_crescimento_mentoria():
    # antes de Mar/2024: 200; de Mar/2024 até Fev/2025: 100 + 500 + 120 + 130 = 850
    crescimento = KpiCalculator.crescimento_mentoria(HISTORICO, CORRENTE, date(2024, 3, 15), 2, 2025)
    assert crescimento == pytest.approx(325.0)


def test_crescimento_mentoria_sem_base():
    assert KpiCalculator.crescimento_mentoria(HISTORICO, CORRENTE, date(2023, 1, 1), 2, 2025) == 0.0


def test_crescimento_percentual():
    assert crescimento_percentual(150, 100) == 50.0
    assert crescimento_percentual(100, 0) == 0.0
    assert crescimento_percentual(1, 3) == -66.7


def test_nomes_parecidos():
    assert nomes_parecidos("João Silva", "joao silva")
    assert nomes_parecidos("Ana", "Ana Paula")
    assert nomes_parecidos("Marcos", "Marcio")
    assert not nomes_parecidos("Ana", "Bruno")
    assert not nomes_parecidos("", "Bruno")


def test_analisar_dados_avisos():
    historico = [MonthlyRecord("Jan", 2023, 0)] + [
        MonthlyRecord(m, 2024, 10) for m in ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
                                              "Jul", "Ago", "Set", "Out", "Nov", "Dez")
    ]
    team = [RosterMember("1", "Ana Souza"), RosterMember("2", "ana souza"), RosterMember("3", "Bruno")]
    analise = analisar_dados(historico, CORRENTE, team, ano_referencia=2025)

    assert [a.year for a in analise.anos] == [2023, 2024, 2025]
    assert analise.total_meses == 1 + 12 + 2
    assert "2023: apenas 1 meses com dados (esperado: 12)" in analise.avisos
    assert "2023: faturamento total é zero" in analise.avisos
    assert not any(a.startswith("2024") or a.startswith("2025") for a in analise.avisos)
    assert analise.nomes_duplicados == (("Ana Souza", "ana souza"),)

    corpo = analise.to_dict()
    assert corpo["totalMonths"] == 15
    assert corpo["potentialDuplicateNames"] == [{"name1": "Ana Souza", "name2": "ana souza"}]


def test_analisar_dados_sem_equipe():
    analise = analisar_dados(HISTORICO, (), (), ano_referencia=2024)
    assert "Nenhum vendedor detectado na planilha" in analise.avisos
