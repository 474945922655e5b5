"""
Células de planilha e normalização de valores.

Toda célula lida da planilha é convertida em uma variante fixa (vazia,
número, texto ou data) antes de chegar aos parsers. As funções de
normalização nunca levantam exceção: valores não reconhecidos viram None.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

from ..models import MESES_CODIGOS, MESES_NOMES
from ..utils.normalization import normalizar_chave


@dataclass(frozen=True)
class EmptyCell:
    pass


@dataclass(frozen=True)
class NumberCell:
    value: float
    is_bool: bool = False


@dataclass(frozen=True)
class TextCell:
    text: str


@dataclass(frozen=True)
class DateCell:
    value: date


Cell = Union[EmptyCell, NumberCell, TextCell, DateCell]
Grid = List[List[Cell]]

EMPTY = EmptyCell()

# Datas seriais do Excel (sistema 1900, já considerando o bug de 29/02/1900)
_EXCEL_EPOCH = date(1899, 12, 30)
_EXCEL_SERIAL_MAX = 2958465

_MESES_CHAVES = [normalizar_chave(m) for m in MESES_NOMES]
_CODIGOS_CHAVES = [c.lower() for c in MESES_CODIGOS]

_RE_NUMERO = re.compile(r"^\d+(\.\d+)?$")
_RE_MILHAR_PONTO = re.compile(r"^\d{1,3}(\.\d{3})+$")
_RE_DATA_BR = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2}|\d{4})$")
_RE_DATA_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_RE_PRIMEIRA_PALAVRA = re.compile(r"[a-z]+")

_NEGATIVOS = {"nao", "no", "false", "0", "n", "falso"}


def to_cell(raw) -> Cell:
    """Converte um valor bruto (openpyxl, pandas ou texto) em uma variante de célula."""
    if raw is None or isinstance(raw, EmptyCell):
        return EMPTY
    if isinstance(raw, (NumberCell, TextCell, DateCell)):
        return raw
    if isinstance(raw, bool):
        return NumberCell(1.0 if raw else 0.0, is_bool=True)
    if isinstance(raw, datetime):
        return DateCell(raw.date())
    if isinstance(raw, date):
        return DateCell(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return EMPTY
        return NumberCell(float(raw))
    try:
        # numpy / pandas escalares
        if hasattr(raw, "item"):
            return to_cell(raw.item())
    except (TypeError, ValueError):
        pass
    texto = str(raw).replace("\u00a0", " ").strip()
    if not texto or texto.lower() in ("nan", "nat", "none"):
        return EMPTY
    return TextCell(texto)


def to_grid(linhas: Sequence[Sequence]) -> Grid:
    """Converte uma matriz de valores brutos em uma grade de células."""
    return [[to_cell(v) for v in linha] for linha in linhas]


def cell_at(grid: Grid, linha: int, coluna: int) -> Cell:
    """Acesso tolerante: posições fora da grade retornam célula vazia."""
    if linha < 0 or coluna < 0 or linha >= len(grid):
        return EMPTY
    row = grid[linha]
    if coluna >= len(row):
        return EMPTY
    return row[coluna]


def is_empty(cell: Cell) -> bool:
    return isinstance(cell, EmptyCell)


def cell_text(cell: Cell) -> str:
    """Representação textual da célula (vazia para EmptyCell)."""
    if isinstance(cell, TextCell):
        return cell.text
    if isinstance(cell, NumberCell):
        v = cell.value
        return str(int(v)) if float(v).is_integer() else str(v)
    if isinstance(cell, DateCell):
        return cell.value.strftime("%d/%m/%Y")
    return ""


# ----------------------------------------------------------------------
# Valores monetários
# ----------------------------------------------------------------------
def parse_valor_monetario(cell) -> Optional[float]:
    """
    Converte uma célula em valor monetário.

    Aceita números e textos no padrão brasileiro ("R$ 1.234,56", "1234,5",
    "(500,00)"). Ponto é separador de milhar quando vem junto de vírgula ou
    quando forma grupos de três dígitos; vírgula é separador decimal.

    Returns:
        Valor numérico ou None se não reconhecido.
    """
    cell = to_cell(cell)
    if isinstance(cell, NumberCell):
        return None if cell.is_bool else cell.value
    if not isinstance(cell, TextCell):
        return None

    s = cell.text.replace("R$", "").replace("r$", "")
    s = s.replace(" ", "").replace("\u00a0", "")
    if not s:
        return None
    negativo = s.startswith("-") or s.startswith("(")
    s = s.strip("()").lstrip("-+")

    if "." in s and "," in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", "") if s.count(",") > 1 else s.replace(",", ".")
    elif "." in s:
        if s.count(".") > 1 or _RE_MILHAR_PONTO.match(s):
            s = s.replace(".", "")

    if not _RE_NUMERO.match(s):
        return None
    valor = float(s)
    return -valor if negativo else valor


def valor_monetario_ou_zero(cell) -> float:
    valor = parse_valor_monetario(cell)
    return valor if valor is not None else 0.0


# ----------------------------------------------------------------------
# Anos
# ----------------------------------------------------------------------
def parse_ano(cell, quatro_digitos: bool = False) -> Optional[int]:
    """
    Interpreta uma célula como ano plausível (2000..2100).

    Aceita números inteiros e textos com exatamente 2 ou 4 dígitos; anos de
    2 dígitos viram 2000 + aa. Com `quatro_digitos=True` apenas anos
    completos são aceitos.
    """
    cell = to_cell(cell)
    if isinstance(cell, NumberCell):
        if cell.is_bool or not float(cell.value).is_integer():
            return None
        texto = str(int(cell.value))
    elif isinstance(cell, TextCell):
        texto = cell.text.strip()
    else:
        return None

    if not texto.isdigit():
        return None
    if len(texto) == 4:
        ano = int(texto)
    elif len(texto) == 2 and not quatro_digitos:
        ano = 2000 + int(texto)
    else:
        return None
    return ano if 2000 <= ano <= 2100 else None


# ----------------------------------------------------------------------
# Meses
# ----------------------------------------------------------------------
def resolver_mes(token: str) -> Optional[int]:
    """
    Resolve um texto já normalizado para o número do mês (1..12).

    Primeiro por correspondência exata com nome completo ou abreviação de 3
    letras; depois por prefixo (texto é prefixo do nome completo, ou palavra
    igual à abreviação).
    """
    token = token.strip().rstrip(".")
    if not token:
        return None
    if token in _MESES_CHAVES:
        return _MESES_CHAVES.index(token) + 1
    if token in _CODIGOS_CHAVES:
        return _CODIGOS_CHAVES.index(token) + 1

    m = _RE_PRIMEIRA_PALAVRA.match(token)
    if not m:
        return None
    palavra = m.group(0)
    if len(palavra) < 3:
        return None
    for idx, nome in enumerate(_MESES_CHAVES):
        if nome == palavra or nome.startswith(palavra):
            return idx + 1
    if palavra in _CODIGOS_CHAVES:
        return _CODIGOS_CHAVES.index(palavra) + 1
    return None


def parse_mes(cell) -> Optional[str]:
    """Interpreta uma célula como rótulo de mês e retorna o código canônico ('Jan'..'Dez')."""
    cell = to_cell(cell)
    if not isinstance(cell, TextCell):
        return None
    numero = resolver_mes(normalizar_chave(cell.text))
    return MESES_CODIGOS[numero - 1] if numero else None


def parse_numero_mes(cell) -> Optional[int]:
    """Como `parse_mes`, mas aceita também números inteiros 1..12."""
    cell = to_cell(cell)
    if isinstance(cell, TextCell) and cell.text.strip().isdigit():
        cell = NumberCell(float(cell.text.strip()))
    if isinstance(cell, NumberCell) and not cell.is_bool:
        v = cell.value
        if float(v).is_integer() and 1 <= int(v) <= 12:
            return int(v)
        return None
    codigo = parse_mes(cell)
    return MESES_CODIGOS.index(codigo) + 1 if codigo else None


# ----------------------------------------------------------------------
# Datas
# ----------------------------------------------------------------------
def parse_data(cell) -> Optional[date]:
    """
    Interpreta uma célula como data: data nativa, número serial do Excel,
    texto "dd/mm/aa", "dd/mm/aaaa" ou ISO "aaaa-mm-dd".
    """
    cell = to_cell(cell)
    if isinstance(cell, DateCell):
        return cell.value
    if isinstance(cell, NumberCell):
        if cell.is_bool or not 1 <= cell.value <= _EXCEL_SERIAL_MAX:
            return None
        return _EXCEL_EPOCH + timedelta(days=int(cell.value))
    if not isinstance(cell, TextCell):
        return None

    texto = cell.text.strip()
    m = _RE_DATA_BR.match(texto)
    if m:
        dia, mes, ano = int(m.group(1)), int(m.group(2)), m.group(3)
        ano_int = 2000 + int(ano) if len(ano) == 2 else int(ano)
        try:
            return date(ano_int, mes, dia)
        except ValueError:
            return None
    m = _RE_DATA_ISO.match(texto)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
    return None


# ----------------------------------------------------------------------
# Flags
# ----------------------------------------------------------------------
def is_valor_negativo(cell) -> bool:
    """Indica se a célula contém uma negativa explícita ("Não", "No", "false", "0", False)."""
    cell = to_cell(cell)
    if isinstance(cell, NumberCell):
        return cell.value == 0
    if isinstance(cell, TextCell):
        return normalizar_chave(cell.text) in _NEGATIVOS
    return False
