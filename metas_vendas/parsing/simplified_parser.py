"""
Parser do modelo simplificado de planilha (abas "Historico" e "Equipe").
"""

import logging
from typing import Dict, Optional, Tuple

from ..config import ParametrosMetas
from ..models import MESES_CODIGOS, MonthlyRecord, ParsedSeries, RosterMember, UploadConfig
from ..utils.logging import ValidationLogger
from ..utils.normalization import normalizar_chave
from .cells import (
    Grid,
    TextCell,
    cell_at,
    cell_text,
    is_empty,
    is_valor_negativo,
    parse_ano,
    parse_numero_mes,
    parse_valor_monetario,
    valor_monetario_ou_zero,
)
from .series import aplicar_corte, ler_data_mentoria
from .table_locator import (
    LAYOUT_SIMPLIFICADO_PADRAO,
    PALAVRAS_ANO,
    PALAVRAS_ATIVO,
    PALAVRAS_FATURAMENTO,
    PALAVRAS_MES,
    PALAVRAS_META,
    PALAVRAS_NOME,
    PALAVRAS_VENDAS,
    TableLocator,
)

logger = logging.getLogger(__name__)

ABAS_HISTORICO = ("historico",)
ABAS_EQUIPE = ("equipe", "time", "vendedores")

PREFIXO_COMENTARIO = "//"


def encontrar_aba(sheets: Dict[str, Grid], nomes: Tuple[str, ...]) -> Optional[str]:
    """Retorna o nome original da primeira aba cujo nome normalizado está em `nomes`."""
    for nome in sheets:
        if normalizar_chave(nome) in nomes:
            return nome
    return None


def _eh_comentario(grid: Grid, linha: int) -> bool:
    for cell in grid[linha]:
        if is_empty(cell):
            continue
        return isinstance(cell, TextCell) and cell.text.startswith(PREFIXO_COMENTARIO)
    return False


def _linha_vazia(grid: Grid, linha: int) -> bool:
    return all(is_empty(c) for c in grid[linha])


class SimplifiedParser:
    """
    Lê o modelo simplificado: "Historico" (mês, ano, faturamento, meta, em
    qualquer ordem) e "Equipe" (nome, ativo e colunas opcionais).
    """

    def __init__(
        self,
        parametros: Optional[ParametrosMetas] = None,
        validation_logger: Optional[ValidationLogger] = None,
    ):
        self.parametros = parametros or ParametrosMetas()
        self.validation_logger = validation_logger or ValidationLogger()

    def _locator(self, grid: Grid, nome_aba: str) -> TableLocator:
        return TableLocator(
            grid,
            max_linhas=self.parametros.max_linhas_busca,
            max_colunas=self.parametros.max_colunas_busca,
            validation_logger=self.validation_logger,
            nome_aba=nome_aba,
        )

    def parse(self, sheets: Dict[str, Grid], config: UploadConfig) -> ParsedSeries:
        """
        Interpreta as abas do modelo simplificado.

        Args:
            sheets: Grades por nome de aba
            config: Mês/ano de corte

        Returns:
            ParsedSeries com histórico, ano corrente, equipe e data de mentoria
        """
        nome_hist = encontrar_aba(sheets, ABAS_HISTORICO)
        registros: Tuple[MonthlyRecord, ...] = ()
        mentoria = None
        if nome_hist is not None:
            grid = sheets[nome_hist]
            locator = self._locator(grid, nome_hist)
            registros = self._ler_historico(grid, locator, nome_hist)
            mentoria = ler_data_mentoria(grid, locator)
        else:
            self.validation_logger.aviso("Aba Historico não encontrada")

        historico, corrente = aplicar_corte(registros, config.selected_month, config.selected_year)

        team: Tuple[RosterMember, ...] = ()
        nome_eq = encontrar_aba(sheets, ABAS_EQUIPE)
        if nome_eq is not None:
            grid = sheets[nome_eq]
            locator = self._locator(grid, nome_eq)
            team = self._ler_equipe(grid, locator, nome_eq)
            if mentoria is None:
                mentoria = ler_data_mentoria(grid, locator)
        else:
            self.validation_logger.info("Aba Equipe não encontrada; equipe vazia")

        logger.info(
            "[PARSER] Modelo simplificado: %d meses históricos, %d no ano corrente, %d vendedores",
            len(historico), len(corrente), len(team),
        )
        return ParsedSeries(
            historical_data=historico,
            current_year_data=corrente,
            team=team,
            mentorship_start_date=mentoria,
        )

    # ------------------------------------------------------------------
    # Historico
    # ------------------------------------------------------------------
    def _ler_historico(self, grid: Grid, locator: TableLocator, nome_aba: str) -> Tuple[MonthlyRecord, ...]:
        cabecalho = locator.localizar_linha_cabecalho(PALAVRAS_MES + PALAVRAS_ANO)
        if cabecalho is None:
            return ()

        padrao = LAYOUT_SIMPLIFICADO_PADRAO
        col_mes = locator.localizar_coluna(cabecalho, PALAVRAS_MES, padrao["mes"], campo="mes")
        col_ano = locator.localizar_coluna(cabecalho, PALAVRAS_ANO, padrao["ano"], campo="ano")
        col_fat = locator.localizar_coluna(
            cabecalho, PALAVRAS_FATURAMENTO, padrao["faturamento"],
            excluir=PALAVRAS_META, ignorar_colunas=(col_mes, col_ano), campo="faturamento",
        )
        col_meta = locator.localizar_coluna(
            cabecalho, PALAVRAS_META, padrao["meta"],
            ignorar_colunas=(col_mes, col_ano, col_fat), campo="meta",
        )

        candidatos = (
            self._ler_linha_historico(grid, linha, col_mes, col_ano, col_fat, col_meta, nome_aba)
            for linha in range(cabecalho + 1, len(grid))
        )
        return tuple(r for r in candidatos if r is not None)

    def _ler_linha_historico(
        self, grid: Grid, linha: int, col_mes: int, col_ano: int, col_fat: int, col_meta: int, nome_aba: str
    ) -> Optional[MonthlyRecord]:
        if _linha_vazia(grid, linha) or _eh_comentario(grid, linha):
            return None

        contexto = {"aba": nome_aba, "linha": linha + 1}
        mes = parse_numero_mes(cell_at(grid, linha, col_mes))
        if mes is None:
            self.validation_logger.aviso(
                f"Mês inválido: {cell_text(cell_at(grid, linha, col_mes))!r}", contexto
            )
            return None
        ano = parse_ano(cell_at(grid, linha, col_ano))
        if ano is None:
            self.validation_logger.aviso(
                f"Ano inválido: {cell_text(cell_at(grid, linha, col_ano))!r}", contexto
            )
            return None

        return MonthlyRecord(
            month=MESES_CODIGOS[mes - 1],
            year=ano,
            revenue=valor_monetario_ou_zero(cell_at(grid, linha, col_fat)),
            goal=valor_monetario_ou_zero(cell_at(grid, linha, col_meta)),
        )

    # ------------------------------------------------------------------
    # Equipe
    # ------------------------------------------------------------------
    def _ler_equipe(self, grid: Grid, locator: TableLocator, nome_aba: str) -> Tuple[RosterMember, ...]:
        cabecalho = locator.localizar_linha_cabecalho(PALAVRAS_NOME)
        if cabecalho is None:
            return ()

        col_nome = locator.localizar_coluna(
            cabecalho, PALAVRAS_NOME, LAYOUT_SIMPLIFICADO_PADRAO["nome"], campo="nome"
        )
        # colunas opcionais: sem cabeçalho, não há valor
        col_ativo = locator.buscar_coluna(cabecalho, PALAVRAS_ATIVO)
        col_fat = locator.buscar_coluna(
            cabecalho, PALAVRAS_FATURAMENTO, excluir=PALAVRAS_META, ignorar_colunas=(col_nome,)
        )
        col_meta = locator.buscar_coluna(cabecalho, PALAVRAS_META, ignorar_colunas=(col_nome,))
        col_vendas = locator.buscar_coluna(cabecalho, PALAVRAS_VENDAS, ignorar_colunas=(col_nome,))

        membros = []
        for linha in range(cabecalho + 1, len(grid)):
            nome = cell_text(cell_at(grid, linha, col_nome)).strip()
            if not nome or nome.startswith(PREFIXO_COMENTARIO):
                continue
            ativo = True
            if col_ativo is not None:
                ativo = not is_valor_negativo(cell_at(grid, linha, col_ativo))
            vendas = 0
            if col_vendas is not None:
                qtd = parse_valor_monetario(cell_at(grid, linha, col_vendas))
                vendas = int(qtd) if qtd and qtd > 0 else 0
            membros.append(
                RosterMember(
                    id=str(linha),
                    name=nome,
                    active=ativo,
                    total_revenue=(
                        valor_monetario_ou_zero(cell_at(grid, linha, col_fat)) if col_fat is not None else 0.0
                    ),
                    monthly_goal=(
                        valor_monetario_ou_zero(cell_at(grid, linha, col_meta)) if col_meta is not None else 0.0
                    ),
                    total_sales_count=vendas,
                )
            )
        return tuple(membros)
