"""
Parser do formato legado: aba "Geral" com os anos dispostos na horizontal e
uma aba por mês ("Dez-25", "Mar-24", ...) com a equipe e as semanas.
"""

import logging
import re
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from ..config import ParametrosMetas
from ..models import (
    MonthlyRecord,
    ParsedSeries,
    RosterMember,
    UploadConfig,
    WeeklyRecord,
)
from ..utils.logging import ValidationLogger
from ..utils.normalization import normalizar_chave
from .cells import (
    Grid,
    NumberCell,
    cell_at,
    cell_text,
    is_empty,
    is_valor_negativo,
    parse_mes,
    parse_valor_monetario,
    valor_monetario_ou_zero,
)
from .series import aplicar_corte, ler_data_mentoria
from .simplified_parser import encontrar_aba
from .tab_name import AbaMensal, listar_abas_mensais
from .table_locator import (
    LAYOUT_LEGADO_PADRAO,
    PALAVRAS_ATIVO,
    PALAVRAS_NOME,
    TableLocator,
    primeira_estrategia,
)

logger = logging.getLogger(__name__)

MAX_MESES = 12

# Nomes que são cabeçalhos ou rodapés, nunca vendedores
PALAVRAS_TITULO = {"total", "nome", "consultor", "consultores", "vendedor", "vendedores", "meta", "equipe"}

_RE_NOME_SIMPLES = re.compile(r"^[A-Za-zÀ-ÿ ]+$")
_RE_TEM_LETRA = re.compile(r"[A-Za-zÀ-ÿ]")


def _primeiro_texto(grid: Grid, linha: int) -> str:
    if linha >= len(grid):
        return ""
    for cell in grid[linha]:
        if not is_empty(cell):
            return normalizar_chave(cell_text(cell))
    return ""


def _eh_titulo(nome: str) -> bool:
    chave = normalizar_chave(nome).rstrip(":")
    if not chave:
        return True
    if chave.startswith("dias uteis"):
        return True
    return chave.split()[0].rstrip(":") in PALAVRAS_TITULO


def escolher_aba_mensal(abas: List[Tuple[str, AbaMensal]], mes: int, ano: int) -> Optional[str]:
    """
    Escolhe a aba mensal da equipe.

    Ordem: (1) aba exatamente do mês/ano de corte; (2) a mais recente anterior
    ao corte; (3) a primeira aba mensal da planilha.

    Args:
        abas: Lista (nome, AbaMensal) na ordem da planilha
        mes: Mês de corte
        ano: Ano de corte
    """
    if not abas:
        return None
    alvo = (ano, mes)
    for nome, aba in abas:
        if aba.chave == alvo:
            return nome
    anteriores = [(aba.chave, nome) for nome, aba in abas if aba.chave <= alvo]
    if anteriores:
        return max(anteriores, key=lambda t: t[0])[1]
    return abas[0][0]


class LegacyParser:
    """
    Lê o formato legado de planilha (aba Geral + abas mensais).
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
        Interpreta uma planilha no formato legado.

        Args:
            sheets: Grades por nome de aba, na ordem da planilha
            config: Mês/ano de corte

        Returns:
            ParsedSeries no mesmo formato do modelo simplificado
        """
        abas_mensais = listar_abas_mensais(sheets.keys())

        registros: Tuple[MonthlyRecord, ...] = ()
        mentoria: Optional[date] = None
        nome_geral = self._escolher_aba_geral(sheets, abas_mensais)
        if nome_geral is not None:
            registros, mentoria = self._ler_geral(sheets[nome_geral], nome_geral, config)
        else:
            self.validation_logger.aviso("Aba Geral não encontrada")

        historico, corrente = aplicar_corte(registros, config.selected_month, config.selected_year)

        team: Tuple[RosterMember, ...] = ()
        nome_mensal = escolher_aba_mensal(abas_mensais, config.selected_month, config.selected_year)
        if nome_mensal is not None:
            aba = dict(abas_mensais)[nome_mensal]
            if aba.chave != (config.selected_year, config.selected_month):
                self.validation_logger.info(
                    f"Fallback aplicado: aba mensal {nome_mensal!r} usada para a equipe",
                    {"corte": f"{config.selected_month:02d}/{config.selected_year}"},
                )
            team = self._ler_aba_mensal(sheets[nome_mensal], nome_mensal)
        else:
            self.validation_logger.aviso("Nenhuma aba mensal encontrada; equipe vazia")

        logger.info(
            "[LEGADO] Geral=%r equipe=%r: %d meses históricos, %d no ano corrente, %d vendedores",
            nome_geral, nome_mensal, len(historico), len(corrente), len(team),
        )
        return ParsedSeries(
            historical_data=historico,
            current_year_data=corrente,
            team=team,
            mentorship_start_date=mentoria,
        )

    # ------------------------------------------------------------------
    # Aba Geral
    # ------------------------------------------------------------------
    def _escolher_aba_geral(
        self, sheets: Dict[str, Grid], abas_mensais: List[Tuple[str, AbaMensal]]
    ) -> Optional[str]:
        nome = encontrar_aba(sheets, ("geral",))
        if nome is not None:
            return nome
        mensais = {n for n, _ in abas_mensais}
        for candidato in sheets:
            if candidato not in mensais:
                self.validation_logger.info(f"Fallback aplicado: aba {candidato!r} usada como Geral")
                return candidato
        return None

    def _ler_geral(
        self, grid: Grid, nome_aba: str, config: UploadConfig
    ) -> Tuple[Tuple[MonthlyRecord, ...], Optional[date]]:
        locator = self._locator(grid, nome_aba)
        mentoria = ler_data_mentoria(grid, locator)

        encontrado = locator.localizar_linha_anos()
        if encontrado is None:
            self.validation_logger.aviso("Linha de anos não encontrada", {"aba": nome_aba})
            return (), mentoria
        linha_anos, colunas_ano = encontrado

        col_mes = primeira_estrategia(
            [
                ("coluna de mês na linha seguinte aos anos", lambda: locator.localizar_coluna_mes(linha_anos + 1)),
                ("coluna de mês na posição padrão", lambda: LAYOUT_LEGADO_PADRAO["mes_geral"]),
            ],
            self.validation_logger,
            {"aba": nome_aba, "campo": "mes"},
        )

        linhas_meta = [l for l in range(linha_anos - 2, linha_anos + 3) if l >= 0]
        pos_meta = locator.localizar_celula(("meta", "prev"), linhas_meta, exigir_todas=True)
        col_meta = pos_meta[1] if pos_meta else None

        registros = []
        for linha, mes in self._linhas_de_meses(grid, linha_anos + 1, col_mes, nome_aba):
            meta = valor_monetario_ou_zero(cell_at(grid, linha, col_meta)) if col_meta is not None else 0.0
            for col, ano in colunas_ano.items():
                valor = parse_valor_monetario(cell_at(grid, linha, col))
                meta_ano = meta if ano == config.selected_year else 0.0
                if valor is None and meta_ano <= 0:
                    continue
                registros.append(
                    MonthlyRecord(month=mes, year=ano, revenue=valor or 0.0, goal=meta_ano)
                )
        return tuple(registros), mentoria

    def _linhas_de_meses(
        self, grid: Grid, inicio: int, col_mes: int, nome_aba: str
    ) -> Iterator[Tuple[int, str]]:
        """Percorre as linhas de meses até 12 meses ou uma linha "Total"."""
        encontrados = 0
        for linha in range(inicio, len(grid)):
            if encontrados >= MAX_MESES:
                break
            if _primeiro_texto(grid, linha).startswith("total"):
                break
            mes = parse_mes(cell_at(grid, linha, col_mes))
            if mes is None:
                if not all(is_empty(c) for c in grid[linha]):
                    self.validation_logger.aviso(
                        f"Linha sem mês reconhecido: {cell_text(cell_at(grid, linha, col_mes))!r}",
                        {"aba": nome_aba, "linha": linha + 1},
                    )
                continue
            encontrados += 1
            yield linha, mes

    # ------------------------------------------------------------------
    # Aba mensal (equipe)
    # ------------------------------------------------------------------
    def _ler_aba_mensal(self, grid: Grid, nome_aba: str) -> Tuple[RosterMember, ...]:
        locator = self._locator(grid, nome_aba)
        padrao = LAYOUT_LEGADO_PADRAO

        cabecalho = locator.localizar_linha_cabecalho(PALAVRAS_NOME)
        if cabecalho is None:
            return ()

        col_nome = locator.localizar_coluna(cabecalho, PALAVRAS_NOME, padrao["nome"], campo="nome")
        semanas = locator.localizar_colunas_semanais(cabecalho)
        metas_semanais = locator.localizar_colunas_meta_semanal(cabecalho)
        col_resultado = locator.localizar_coluna(
            cabecalho, ("resultado", "realizado", "total"), padrao["resultado"],
            excluir=("%",), campo="resultado",
        )
        col_meta = locator.localizar_coluna(
            cabecalho, ("meta",), padrao["meta"],
            excluir=("semana", "%"), ignorar_colunas=metas_semanais, campo="meta",
        )
        col_ativo = locator.buscar_coluna(cabecalho, PALAVRAS_ATIVO)
        col_vendas = locator.buscar_coluna(cabecalho, ("qtd", "quantidade"))

        contexto = {"aba": nome_aba}
        membros = []
        for linha in range(cabecalho + 1, len(grid)):
            nome = cell_text(cell_at(grid, linha, col_nome)).strip()
            if not nome or not _RE_TEM_LETRA.search(nome):
                continue
            if _eh_titulo(nome):
                if normalizar_chave(nome).startswith("total"):
                    break
                continue

            valores_semana = [valor_monetario_ou_zero(cell_at(grid, linha, c)) for c in semanas]
            indice = cell_at(grid, linha, col_nome - 1) if col_nome > 0 else None
            tem_indice = isinstance(indice, NumberCell) and not indice.is_bool
            if not (tem_indice or any(v > 0 for v in valores_semana) or _RE_NOME_SIMPLES.match(nome)):
                self.validation_logger.aviso(f"Linha ignorada na equipe: {nome!r}", dict(contexto, linha=linha + 1))
                continue

            meta_mensal = valor_monetario_ou_zero(cell_at(grid, linha, col_meta))
            membros.append(
                RosterMember(
                    id=str(linha),
                    name=nome,
                    active=(
                        not is_valor_negativo(cell_at(grid, linha, col_ativo))
                        if col_ativo is not None
                        else True
                    ),
                    total_revenue=(
                        valor_monetario_ou_zero(cell_at(grid, linha, col_resultado)) or sum(valores_semana)
                    ),
                    monthly_goal=meta_mensal,
                    weeks=self._montar_semanas(grid, linha, valores_semana, metas_semanais, meta_mensal),
                    total_sales_count=self._ler_qtd(grid, linha, col_vendas),
                )
            )
        return tuple(membros)

    @staticmethod
    def _montar_semanas(
        grid: Grid, linha: int, valores: List[float], metas_semanais: List[int], meta_mensal: float
    ) -> Tuple[WeeklyRecord, ...]:
        if not valores:
            return ()
        if len(metas_semanais) == len(valores):
            metas = [valor_monetario_ou_zero(cell_at(grid, linha, c)) for c in metas_semanais]
        else:
            metas = [meta_mensal / len(valores)] * len(valores)
        return tuple(
            WeeklyRecord(week=i + 1, revenue=v, goal=m)
            for i, (v, m) in enumerate(zip(valores, metas))
        )

    @staticmethod
    def _ler_qtd(grid: Grid, linha: int, col: Optional[int]) -> int:
        if col is None:
            return 0
        qtd = parse_valor_monetario(cell_at(grid, linha, col))
        return int(qtd) if qtd and qtd > 0 else 0
