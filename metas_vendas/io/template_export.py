"""
Geração das planilhas para download: modelo vazio, planilha normalizada
(dados já interpretados, prontos para reenvio) e aba PGV do mês.
"""

import io
from typing import Dict, List, Optional, Sequence

from openpyxl import Workbook

from ..models import MESES_CODIGOS, CalculatedGoal, ParsedWorkbook, RosterMember
from ..utils.normalization import normalizar_chave
from ..utils.styling import apply_group_fills_to_sheet, set_column_widths, style_header_row

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _salvar(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _nova_aba(wb: Workbook, titulo: str, linhas: Sequence[Sequence], larguras: Sequence[int]):
    # o Workbook novo já traz uma aba vazia: reaproveitá-la na primeira chamada
    if len(wb.sheetnames) == 1 and wb.active.max_row == 1 and wb.active["A1"].value is None:
        ws = wb.active
        ws.title = titulo
    else:
        ws = wb.create_sheet(titulo)
    for linha in linhas:
        ws.append(list(linha))
    set_column_widths(ws, larguras)
    style_header_row(ws)
    return ws


def _percentual(valor: float, base: float) -> str:
    return f"{valor / base * 100:.0f}%" if base > 0 else "0%"


def gerar_template_vazio() -> bytes:
    """
    Gera o modelo simplificado vazio com exemplos e instruções.

    Returns:
        Bytes do arquivo .xlsx com as abas Historico, Equipe e Vendas
    """
    wb = Workbook()
    _nova_aba(
        wb,
        "Historico",
        [
            ["Mês", "Ano", "Faturamento"],
            ["Janeiro", 2022, 150000],
            ["Fevereiro", 2022, 165000],
            ["Março", 2022, 180000],
            [],
            ["// Preencha todos os meses de cada ano"],
            ["// A meta será calculada automaticamente (Histórico + 15%)"],
        ],
        [12, 8, 15],
    )
    _nova_aba(
        wb,
        "Equipe",
        [
            ["Nome", "Email", "Telefone", "Data Admissão", "Ativo"],
            ["João Silva", "joao@email.com", "11999999999", "01/03/2023", "Sim"],
            ["Maria Santos", "maria@email.com", "11988888888", "15/06/2023", "Sim"],
            [],
            ["// Liste todos os vendedores da equipe"],
            ["// Ativo: Sim ou Não"],
        ],
        [20, 25, 15, 15, 8],
    )
    _nova_aba(
        wb,
        "Vendas",
        [
            ["Data", "Valor", "Vendedor", "Cliente", "Novo Cliente", "Produto"],
            ["15/01/2025", 5000, "João Silva", "Empresa ABC", "Sim", "Consultoria"],
            ["18/01/2025", 3500, "Maria Santos", "Empresa XYZ", "Não", "Treinamento"],
            [],
            ["// Opcional: detalhe de vendas individuais"],
        ],
        [12, 12, 18, 20, 12, 15],
    )
    return _salvar(wb)


def gerar_planilha_normalizada(parsed: ParsedWorkbook) -> bytes:
    """
    Gera a planilha normalizada a partir de uma importação, no modelo
    simplificado, para o usuário conferir e reenviar.

    O histórico junta as duas séries, ordena por período e mantém a primeira
    ocorrência de cada mês.

    Args:
        parsed: Resultado da importação

    Returns:
        Bytes do arquivo .xlsx com as abas Historico, Equipe e Resumo
    """
    todos = sorted(
        list(parsed.historical_data) + list(parsed.current_year_data),
        key=lambda r: r.chave,
    )
    vistos = set()
    unicos = []
    for r in todos:
        if r.chave in vistos:
            continue
        vistos.add(r.chave)
        unicos.append(r)

    wb = Workbook()
    _nova_aba(
        wb,
        "Historico",
        [["Mês", "Ano", "Faturamento", "Meta"]] + [[r.month, r.year, r.revenue, r.goal] for r in unicos],
        [12, 8, 15, 15],
    )
    _nova_aba(
        wb,
        "Equipe",
        [["Nome", "Faturamento Atual", "Meta Mensal", "Ativo"]]
        + [[m.name, m.total_revenue, m.monthly_goal, "Sim" if m.active else "Não"] for m in parsed.team],
        [25, 18, 15, 8],
    )

    kpis = parsed.kpis
    _nova_aba(
        wb,
        "Resumo",
        [
            ["Resumo dos Dados Importados", ""],
            ["", ""],
            ["Período Selecionado", parsed.selected_month or "N/A"],
            ["Anos Disponíveis", ", ".join(str(a) for a in parsed.years_available)],
            ["", ""],
            ["KPIs Calculados", ""],
            ["Meta Anual", kpis.annual_goal],
            ["Realizado Anual", kpis.annual_realized],
            ["Crescimento vs Ano Anterior", f"{kpis.last_year_growth}%"],
            ["Crescimento Pós-Mentoria", f"{kpis.mentorship_growth}%"],
            ["", ""],
            ["Estatísticas", ""],
            ["Total de Meses com Dados", len(unicos)],
            ["Total de Vendedores", len(parsed.team)],
            ["Vendedores Ativos", sum(1 for m in parsed.team if m.active)],
        ],
        [30, 20],
    )
    return _salvar(wb)


def gerar_planilha_pgv(
    goals: Sequence[CalculatedGoal],
    month: int,
    year: int,
    team: Sequence[RosterMember] = (),
    weeks_in_month: int = 4,
    working_days_per_week: Optional[Sequence[int]] = None,
) -> bytes:
    """
    Gera a aba PGV (painel de gestão à vista) do mês.

    Layout: "#", "CONSULTOR COMERCIAL", "Previsto Diário", "Previsto
    Semanal", pares ("Semana n", "%"), "Resultado", "Meta", "Resultado %";
    linha de dias úteis; uma linha por vendedor; linha TOTAL.

    Args:
        goals: Metas calculadas dos vendedores
        month: Mês (1-12)
        year: Ano
        team: Equipe com o realizado semanal (casada pelo nome)
        weeks_in_month: Número de semanas exibidas
        working_days_per_week: Dias úteis por semana (padrão: 5 em todas)

    Returns:
        Bytes do arquivo .xlsx com uma aba "Mmm-AA"
    """
    dias = list(working_days_per_week or [5] * weeks_in_month)
    realizado: Dict[str, RosterMember] = {normalizar_chave(m.name): m for m in team}

    cabecalho: List = ["#", "CONSULTOR COMERCIAL", "Previsto Diário", "Previsto Semanal"]
    for w in range(1, weeks_in_month + 1):
        cabecalho += [f"Semana {w}", "%"]
    cabecalho += ["Resultado", "Meta", "Resultado %"]

    linha_dias: List = ["", "", "", "Dias úteis:"]
    for w in range(weeks_in_month):
        linha_dias += [dias[w] if w < len(dias) else 5, ""]
    linha_dias += ["", "", ""]

    linhas = [cabecalho, linha_dias]
    totais_semana = [0.0] * weeks_in_month
    total_resultado = 0.0
    total_meta = 0.0
    for idx, goal in enumerate(goals, start=1):
        membro = realizado.get(normalizar_chave(goal.salesperson_name))
        semanas = {s.week: s.revenue for s in membro.weeks} if membro else {}
        resultado = membro.total_revenue if membro else 0.0

        linha: List = [idx, goal.salesperson_name, goal.daily_goal, goal.weekly_goal]
        for w in range(1, weeks_in_month + 1):
            receita = semanas.get(w, 0.0)
            totais_semana[w - 1] += receita
            linha += [receita, _percentual(receita, goal.weekly_goal)]
        linha += [resultado, goal.monthly_goal, _percentual(resultado, goal.monthly_goal)]
        linhas.append(linha)
        total_resultado += resultado
        total_meta += goal.monthly_goal

    linha_total: List = ["", "TOTAL", "", ""]
    for total in totais_semana:
        linha_total += [total, ""]
    linha_total += [total_resultado, total_meta, _percentual(total_resultado, total_meta)]
    linhas.append(linha_total)

    wb = Workbook()
    titulo = f"{MESES_CODIGOS[month - 1]}-{year % 100:02d}"
    ws = _nova_aba(
        wb,
        titulo,
        linhas,
        [4, 25, 14, 14] + [12, 6] * weeks_in_month + [14, 14, 10],
    )
    apply_group_fills_to_sheet(ws, header_row=1, first_data_row=3)
    return _salvar(wb)
