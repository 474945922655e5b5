"""
Regras compartilhadas sobre séries importadas: corte temporal, leitura da
data de início da mentoria e mescla de uma importação com a anterior.
"""

from datetime import date
from typing import Iterable, Optional, Tuple

from ..models import MonthlyRecord, RosterMember
from .cells import Grid, cell_at, parse_data
from .table_locator import PALAVRAS_MENTORIA, TableLocator


def dentro_do_corte(registro: MonthlyRecord, mes_corte: int, ano_corte: int) -> bool:
    """Meses do ano de corte posteriores ao mês de corte ainda não ocorreram."""
    return not (registro.year == ano_corte and registro.month_number > mes_corte)


def aplicar_corte(
    registros: Iterable[MonthlyRecord], mes_corte: int, ano_corte: int
) -> Tuple[Tuple[MonthlyRecord, ...], Tuple[MonthlyRecord, ...]]:
    """
    Separa os registros em (histórico, ano corrente) segundo o corte.

    Registros do ano de corte com mês <= corte vão para o ano corrente; os de
    mês posterior são descartados de ambas as saídas; todos os demais anos
    vão para o histórico.

    Returns:
        Tupla (historico, corrente), ambos preservando a ordem de entrada
    """
    validos = tuple(r for r in registros if dentro_do_corte(r, mes_corte, ano_corte))
    historico = tuple(r for r in validos if r.year != ano_corte)
    corrente = tuple(r for r in validos if r.year == ano_corte)
    return historico, corrente


def ler_data_mentoria(grid: Grid, locator: TableLocator) -> Optional[date]:
    """
    Procura um rótulo de mentoria ("Mentoria", "Início Ment.") na janela da
    grade e lê a data na célula à direita ou, na falta dela, logo abaixo.
    """
    posicao = locator.localizar_celula(PALAVRAS_MENTORIA)
    if posicao is None:
        return None
    linha, col = posicao
    for lin, c in ((linha, col + 1), (linha + 1, col)):
        data = parse_data(cell_at(grid, lin, c))
        # seriais pequenos (ex: um ano 2024 lido como serial) caem antes de 2000
        if data is not None and data.year >= 2000:
            return data
    return None


def mesclar_registros(
    existentes: Iterable[MonthlyRecord], novos: Iterable[MonthlyRecord]
) -> Tuple[MonthlyRecord, ...]:
    """
    Mescla duas séries por (ano, mês): o registro novo substitui o existente
    na mesma posição e os meses inéditos entram no fim.
    """
    mesclados = list(existentes)
    posicoes = {r.chave: i for i, r in enumerate(mesclados)}
    for registro in novos:
        if registro.chave in posicoes:
            mesclados[posicoes[registro.chave]] = registro
        else:
            posicoes[registro.chave] = len(mesclados)
            mesclados.append(registro)
    return tuple(mesclados)


def mesclar_equipe(
    existente: Iterable[RosterMember], nova: Iterable[RosterMember]
) -> Tuple[RosterMember, ...]:
    """Mescla equipes pelo nome, sem diferenciar maiúsculas."""
    mesclada = list(existente)
    posicoes = {m.name.lower(): i for i, m in enumerate(mesclada)}
    for membro in nova:
        chave = membro.name.lower()
        if chave in posicoes:
            mesclada[posicoes[chave]] = membro
        else:
            posicoes[chave] = len(mesclada)
            mesclada.append(membro)
    return tuple(mesclada)
