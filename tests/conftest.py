"""
Fixtures compartilhadas: planilhas montadas em memória com openpyxl.
"""

import io
import os
import sys
from datetime import date

import pytest
from openpyxl import Workbook

# Adicionar o diretório raiz ao path para importar o pacote e o adapter
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from metas_vendas.models import Salesperson  # noqa: E402

MESES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


def montar_xlsx(abas):
    """
    Monta um .xlsx em memória.

    Args:
        abas: Lista de (nome da aba, linhas)

    Returns:
        Bytes do arquivo
    """
    wb = Workbook()
    wb.remove(wb.active)
    for nome, linhas in abas:
        ws = wb.create_sheet(nome)
        for linha in linhas:
            ws.append(list(linha))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def linhas_geral():
    """Aba Geral: anos 2023-2025 na horizontal, meta prevista na última coluna."""
    linhas = [["Mês", 2023, 2024, 2025, "Meta Prevista"]]
    for idx, mes in enumerate(MESES):
        receita_2025 = 120000 if idx < 3 else None
        linhas.append([mes, 100000, 110000, receita_2025, 130000])
    linhas.append(["Total", 1200000, 1320000, 360000, 1560000])
    return linhas


def linhas_mensal():
    """Aba mensal no layout PGV com três vendedores e a linha TOTAL."""
    cabecalho = ["#", "CONSULTOR COMERCIAL", "Previsto Diário", "Previsto Semanal"]
    for w in range(1, 5):
        cabecalho += [f"Semana {w}", "%"]
    cabecalho += ["Resultado", "Meta", "Resultado %"]
    return [
        cabecalho,
        [1, "Ana Souza", 1000, 5000, 6000, "120%", 5000, "100%", 4000, "80%", 5000, "100%", 20000, 20000, "100%"],
        [2, "Bruno Lima", 1000, 5000, 3000, "60%", 4000, "80%", 5000, "100%", 6000, "120%", 18000, 20000, "90%"],
        [3, "Carla Dias", 1000, 5000, 5000, "100%", 5000, "100%", 5000, "100%", 5000, "100%", 20000, 20000, "100%"],
        ["", "TOTAL", 3000, 15000, 14000, "", 14000, "", 14000, "", 16000, "", 58000, 60000, "97%"],
    ]


@pytest.fixture
def planilha_legado():
    return montar_xlsx(
        [
            ("Geral", linhas_geral()),
            ("Fev-25", linhas_mensal()[:2]),
            ("Mar-25", linhas_mensal()),
        ]
    )


@pytest.fixture
def planilha_simplificada():
    historico = [["Mês", "Ano", "Faturamento", "Meta"]]
    for ano, base in ((2024, 100000), (2025, 120000)):
        for idx, mes in enumerate(MESES):
            historico.append([mes, ano, base + idx * 1000, round(base * 1.15)])
    historico.append([])
    historico.append(["// comentário do modelo"])
    equipe = [
        ["Nome", "Ativo", "Faturamento", "Meta", "Vendas"],
        ["João Silva", "Sim", 30000, 35000, 10],
        ["Maria Santos", "Não", 20000, 25000, 5],
        ["// exemplo"],
    ]
    return montar_xlsx([("Historico", historico), ("Equipe", equipe)])


@pytest.fixture
def vendedores():
    return [
        Salesperson(id="1", name="Ana", hire_date=date(2023, 1, 10)),
        Salesperson(id="2", name="Bruno", hire_date=date(2023, 6, 1)),
        Salesperson(id="3", name="Carla", hire_date=date(2025, 3, 5)),
    ]
