"""
Módulo de estilização de planilhas Excel.
Contém funções para aplicar cores e formatação nas planilhas exportadas
(modelo vazio, planilha normalizada e aba PGV).
"""

from typing import Iterable, Optional

from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .normalization import normalize_text


def light_fill(rgb_hex: str) -> PatternFill:
    """
    Cria um PatternFill com cor clara (pastel).

    Args:
        rgb_hex: Código hexadecimal da cor sem '#' (ex: 'E3F2FD')

    Returns:
        PatternFill configurado com a cor especificada.
    """
    return PatternFill(start_color=rgb_hex, end_color=rgb_hex, fill_type="solid")


# Paleta suave (pastéis, claras) para coloração de grupos de colunas
PALETTE = [
    "E3F2FD",  # azul claríssimo
    "E8F5E9",  # verde claríssimo
    "FFF8E1",  # amarelo claríssimo
    "F3E5F5",  # lilás claríssimo
    "E0F7FA",  # ciano claríssimo
    "FBE9E7",  # pêssego claríssimo
]

HEADER_FILL = "DDE3EA"

# Grupo → padrões de identificação de coluna (qualquer substring no cabeçalho)
GROUP_PATTERNS = {
    "previsto": ["PREVISTO"],
    "semana": ["SEMANA"],
    "meta": ["META"],
    "realizado": ["RESULTADO", "FATURAMENTO", "REALIZADO"],
}


def match_group(header: str) -> Optional[str]:
    """
    Identifica a qual grupo de padrões um cabeçalho de coluna pertence.

    Args:
        header: Nome do cabeçalho da coluna

    Returns:
        Nome do grupo encontrado ou None se não houver correspondência.
    """
    h = normalize_text(header)
    for group, patterns in GROUP_PATTERNS.items():
        for p in patterns:
            if p in h:
                return group
    return None


def style_header_row(ws, row: int = 1):
    """Aplica negrito e fundo neutro à linha de cabeçalho."""
    fill = light_fill(HEADER_FILL)
    bold = Font(bold=True)
    for c in range(1, ws.max_column + 1):
        cell = ws.cell(row=row, column=c)
        if cell.value is None:
            continue
        cell.font = bold
        cell.fill = fill


def apply_group_fills_to_sheet(ws, header_row: int = 1, first_data_row: Optional[int] = None):
    """
    Pinta as colunas do mesmo grupo (previsto/semana/meta/realizado) com a
    mesma cor clara, abaixo do cabeçalho. Não altera valores.

    Args:
        ws: Worksheet do openpyxl a ser estilizada
        header_row: Linha (1-based) do cabeçalho
        first_data_row: Primeira linha pintada (padrão: linha seguinte ao cabeçalho)
    """
    col_group = {}
    for c in range(1, ws.max_column + 1):
        cell = ws.cell(row=header_row, column=c)
        group = match_group(str(cell.value) if cell.value is not None else "")
        if group:
            col_group[c] = group

    if not col_group:
        return

    color_for_group = {}
    for idx, g in enumerate(GROUP_PATTERNS):
        color_for_group[g] = light_fill(PALETTE[idx % len(PALETTE)])

    inicio = first_data_row or header_row + 1
    for c, g in col_group.items():
        fill = color_for_group[g]
        for r in range(inicio, ws.max_row + 1):
            ws.cell(row=r, column=c).fill = fill


def set_column_widths(ws, widths: Iterable[int]):
    """Define a largura das colunas a partir da primeira."""
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width
