"""
Regras de negócio sobre as séries já interpretadas.

Responsável por:
- Consolidar o faturamento mensal de planilha e vendas lançadas
- Calcular metas da equipe e de cada vendedor
- Calcular os KPIs e a análise de qualidade da importação
"""

from .data_analysis import AnaliseDados, analisar_dados
from .goal_calculator import MetasCalculator, calcular_ramp_up, calcular_tenure_meses
from .kpi_calculator import KpiCalculator
from .revenue_aggregator import HistoricoAggregator, indice_para_dataframe

__all__ = [
    "AnaliseDados",
    "analisar_dados",
    "MetasCalculator",
    "calcular_ramp_up",
    "calcular_tenure_meses",
    "KpiCalculator",
    "HistoricoAggregator",
    "indice_para_dataframe",
]
