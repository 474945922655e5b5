"""
Testes da consolidação do faturamento mensal.
"""

from datetime import date

from metas_vendas.core.revenue_aggregator import HistoricoAggregator, indice_para_dataframe
from metas_vendas.models import MonthlyRecord, SaleRecord


def test_precedencia_das_fontes():
    """Histórico: última ocorrência vence; ano corrente: primeira vence; vendas substituem."""
    historico = [
        MonthlyRecord("Jan", 2024, 100),
        MonthlyRecord("Jan", 2024, 150),
        MonthlyRecord("Fev", 2024, 200),
    ]
    corrente = [
        MonthlyRecord("Mar", 2025, 1000),
        MonthlyRecord("Mar", 2025, 9999),
    ]
    vendas = [
        SaleRecord(amount=700, sale_date=date(2025, 3, 5)),
        SaleRecord(amount=500, sale_date=date(2025, 3, 20)),
    ]
    indice = HistoricoAggregator().construir_indice(historico, corrente, vendas)

    assert indice.get(2024, 1) == 150
    assert indice.get(2024, 2) == 200
    # soma das vendas (1200) substitui o valor importado (1000)
    assert indice.get(2025, 3) == 1200
    assert len(indice) == 3


def test_vendas_de_mes_sem_importacao():
    vendas = [{"amount": "300", "sale_date": "2025-04-10"}, {"amount": 200, "sale_date": "15/04/2025"}]
    indice = HistoricoAggregator().construir_indice(vendas=vendas)
    assert indice.get(2025, 4) == 500
    assert indice.previous_year(2026, 4) == 500


def test_registros_em_dicionario_e_meses_invalidos():
    historico = [
        {"month": "Mar", "year": 2024, "revenue": 10},
        {"month": "abril", "year": "2024", "revenue": 20},
        {"month": "???", "year": 2024, "revenue": 30},
        {"month": 5, "year": 2024, "revenue": 40},
        {"month": "Jun", "year": None, "revenue": 50},
    ]
    indice = HistoricoAggregator().construir_indice(historico)
    assert indice.year_data(2024) == {3: 10.0, 4: 20.0, 5: 40.0}


def test_vendas_invalidas_sao_ignoradas():
    vendas = [
        {"amount": "abc", "sale_date": "2025-01-01"},
        {"amount": 100, "sale_date": None},
        {"amount": 50, "sale_date": date(2025, 1, 2)},
    ]
    assert HistoricoAggregator().agrupar_vendas(vendas) == {(2025, 1): 50.0}


def test_indice_vazio():
    indice = HistoricoAggregator().construir_indice()
    assert len(indice) == 0
    assert indice.get(2025, 1) == 0.0
    assert not indice.has_year(2025)


def test_indice_para_dataframe():
    indice = HistoricoAggregator().construir_indice([MonthlyRecord("Fev", 2024, 200), MonthlyRecord("Jan", 2024, 100)])
    df = indice_para_dataframe(indice)
    assert list(df["mes"]) == [1, 2]
    assert list(df["faturamento"]) == [100.0, 200.0]
    assert list(df["mes_nome"]) == ["Jan", "Fev"]
