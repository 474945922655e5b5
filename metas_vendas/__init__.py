"""
Metas de vendas: ingestão de planilhas de faturamento e cálculo de metas.
"""

__version__ = "1.0.0"
