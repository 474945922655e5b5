"""
Localizador heurístico de tabelas em grades de células.

As planilhas de origem são mantidas à mão e não seguem esquema fixo. Cada
busca é uma cadeia de estratégias em ordem de prioridade: a primeira que
encontrar algo vence e, se nenhuma encontrar, usa-se a posição padrão do
layout conhecido.
"""

import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..utils.logging import ValidationLogger
from ..utils.normalization import normalizar_chave
from .cells import DateCell, Grid, TextCell, cell_at, is_empty, parse_ano, parse_mes

T = TypeVar("T")

Estrategia = Callable[[], Optional[T]]

# Palavras-chave por campo semântico (já normalizadas)
PALAVRAS_MES = ("mes", "month")
PALAVRAS_ANO = ("ano", "year")
PALAVRAS_FATURAMENTO = ("faturamento", "receita", "realizado", "resultado", "revenue", "valor")
PALAVRAS_META = ("meta", "goal", "previsto")
PALAVRAS_NOME = ("nome", "consultor", "vendedor", "name")
PALAVRAS_ATIVO = ("ativo", "active", "status")
PALAVRAS_VENDAS = ("qtd", "quantidade", "vendas", "sales")
PALAVRAS_SEMANA = ("semana",)
PALAVRAS_MENTORIA = ("mentoria", "inicio ment")

# Faixa de datas em cabeçalho de semana: "01 a 07/12", "8-14", "15 até 21/03"
RE_FAIXA_DATAS = re.compile(r"\b\d{1,2}\s*(?:a|ate|-)\s*\d{1,2}(?:/\d{1,2})?\b")

# Layout da aba mensal (PGV): #, CONSULTOR, Previsto Diário, Previsto Semanal,
# pares (Semana n, %), Resultado, Meta, Resultado %
LAYOUT_LEGADO_PADRAO = {
    "indice": 0,
    "nome": 1,
    "previsto_diario": 2,
    "previsto_semanal": 3,
    "semanas": [4, 6, 8, 10],
    "resultado": 12,
    "meta": 13,
    "mes_geral": 0,
}

LAYOUT_SIMPLIFICADO_PADRAO = {
    "mes": 0,
    "ano": 1,
    "faturamento": 2,
    "meta": 3,
    "nome": 0,
}

MAX_SEMANAS = 5
MAX_COLUNAS_ANO = 20


def primeira_estrategia(
    estrategias: Sequence[Tuple[str, Estrategia]],
    validation_logger: Optional[ValidationLogger] = None,
    contexto: Optional[Dict] = None,
) -> Optional[T]:
    """
    Executa as estratégias em ordem e retorna o primeiro resultado não nulo.

    Quando a estratégia vencedora não é a primeira, registra o fallback no
    log de validação.

    Args:
        estrategias: Lista de (nome, função sem argumentos)
        validation_logger: Log opcional para registrar fallbacks
        contexto: Contexto adicional para o log
    """
    for posicao, (nome, estrategia) in enumerate(estrategias):
        resultado = estrategia()
        if resultado is not None:
            if posicao > 0 and validation_logger is not None:
                validation_logger.info(f"Fallback aplicado: {nome}", contexto)
            return resultado
    return None


def _texto_normalizado(cell) -> str:
    if isinstance(cell, TextCell):
        return normalizar_chave(cell.text)
    return ""


def contem_palavra_celula(cell, palavras: Iterable[str]) -> bool:
    texto = _texto_normalizado(cell)
    return bool(texto) and any(p in texto for p in palavras)


def eh_cabecalho_semanal(cell) -> bool:
    texto = _texto_normalizado(cell)
    if not texto:
        return False
    return any(p in texto for p in PALAVRAS_SEMANA) or bool(RE_FAIXA_DATAS.search(texto))


class TableLocator:
    """
    Localiza linhas de cabeçalho e colunas semânticas numa janela da grade.

    Args:
        grid: Grade de células da aba
        max_linhas: Número de linhas varridas a partir do topo
        max_colunas: Número de colunas varridas a partir da esquerda
        validation_logger: Log opcional de fallbacks
        nome_aba: Usado apenas no contexto dos logs
    """

    def __init__(
        self,
        grid: Grid,
        max_linhas: int = 10,
        max_colunas: int = 20,
        validation_logger: Optional[ValidationLogger] = None,
        nome_aba: str = "",
    ):
        self.grid = grid
        self.max_linhas = max_linhas
        self.max_colunas = max_colunas
        self.validation_logger = validation_logger
        self.nome_aba = nome_aba

    # ------------------------------------------------------------------
    # Janela
    # ------------------------------------------------------------------
    def _linhas(self) -> range:
        return range(min(len(self.grid), self.max_linhas))

    def _colunas(self, linha: int) -> range:
        if linha < 0 or linha >= len(self.grid):
            return range(0)
        return range(min(len(self.grid[linha]), self.max_colunas))

    def _contexto(self, **extra) -> Dict:
        ctx = {"aba": self.nome_aba}
        ctx.update(extra)
        return ctx

    # ------------------------------------------------------------------
    # Linha de anos (aba Geral)
    # ------------------------------------------------------------------
    def _buscar_linha_anos(self, min_anos: int) -> Optional[Tuple[int, Dict[int, int]]]:
        for linha in self._linhas():
            anos: Dict[int, int] = {}
            vistos = set()
            for col in self._colunas(linha):
                ano = parse_ano(cell_at(self.grid, linha, col), quatro_digitos=True)
                if ano is None or ano in vistos:
                    continue
                vistos.add(ano)
                anos[col] = ano
                if len(anos) >= MAX_COLUNAS_ANO:
                    break
            if len(anos) >= min_anos:
                return linha, anos
        return None

    def localizar_linha_anos(self, min_anos: int = 2) -> Optional[Tuple[int, Dict[int, int]]]:
        """
        Encontra a primeira linha com pelo menos `min_anos` células de ano com
        4 dígitos.

        Returns:
            (índice da linha, {coluna: ano}) ou None. Cada ano é associado à
            primeira coluna em que aparece.
        """
        return primeira_estrategia(
            [
                ("linha com anos", lambda: self._buscar_linha_anos(min_anos)),
                ("linha com um único ano", lambda: self._buscar_linha_anos(1) if min_anos > 1 else None),
            ],
            self.validation_logger,
            self._contexto(campo="linha_anos"),
        )

    # ------------------------------------------------------------------
    # Linha de cabeçalho
    # ------------------------------------------------------------------
    def _buscar_linha_por_palavra(self, palavras: Iterable[str]) -> Optional[int]:
        palavras = tuple(palavras)
        for linha in self._linhas():
            for col in self._colunas(linha):
                if contem_palavra_celula(cell_at(self.grid, linha, col), palavras):
                    return linha
        return None

    def _linha_mais_preenchida(self) -> Optional[int]:
        melhor, melhor_qtd = None, 0
        for linha in range(min(len(self.grid), 5)):
            qtd = sum(1 for c in self.grid[linha] if not is_empty(c))
            if qtd > melhor_qtd:
                melhor, melhor_qtd = linha, qtd
        return melhor

    def localizar_linha_cabecalho(self, palavras: Iterable[str]) -> Optional[int]:
        """
        Encontra a linha de cabeçalho: primeira linha com alguma palavra-chave
        ou, como fallback, a linha mais preenchida entre as 5 primeiras.
        """
        palavras = tuple(palavras)
        return primeira_estrategia(
            [
                ("cabeçalho por palavra-chave", lambda: self._buscar_linha_por_palavra(palavras)),
                ("linha mais preenchida entre as 5 primeiras", self._linha_mais_preenchida),
            ],
            self.validation_logger,
            self._contexto(campo="cabecalho"),
        )

    # ------------------------------------------------------------------
    # Colunas
    # ------------------------------------------------------------------
    def buscar_coluna(
        self,
        linha: int,
        palavras: Iterable[str],
        excluir: Iterable[str] = (),
        ignorar_colunas: Iterable[int] = (),
    ) -> Optional[int]:
        palavras = tuple(palavras)
        excluir = tuple(excluir)
        ignorar = set(ignorar_colunas)
        for col in self._colunas(linha):
            if col in ignorar:
                continue
            cell = cell_at(self.grid, linha, col)
            if contem_palavra_celula(cell, palavras) and not contem_palavra_celula(cell, excluir):
                return col
        return None

    def localizar_coluna(
        self,
        linha: int,
        palavras: Iterable[str],
        default: Optional[int] = None,
        excluir: Iterable[str] = (),
        ignorar_colunas: Iterable[int] = (),
        campo: str = "",
    ) -> Optional[int]:
        """
        Encontra a coluna cujo cabeçalho (na linha dada) contém alguma das
        palavras-chave; se nenhuma for encontrada, retorna `default`.
        """
        palavras = tuple(palavras)
        return primeira_estrategia(
            [
                (
                    f"coluna '{campo}' por palavra-chave",
                    lambda: self.buscar_coluna(linha, palavras, excluir, ignorar_colunas),
                ),
                (f"coluna '{campo}' na posição padrão {default}", lambda: default),
            ],
            self.validation_logger,
            self._contexto(campo=campo, linha=linha),
        )

    def localizar_coluna_mes(self, linha: int) -> Optional[int]:
        """Primeira coluna da linha cujo valor é um rótulo de mês."""
        for col in self._colunas(linha):
            if parse_mes(cell_at(self.grid, linha, col)) is not None:
                return col
        return None

    def localizar_celula(
        self,
        palavras: Iterable[str],
        linhas: Optional[Iterable[int]] = None,
        exigir_todas: bool = False,
    ) -> Optional[Tuple[int, int]]:
        """
        Encontra a primeira célula (linha, coluna) cujo texto contém as
        palavras-chave (qualquer uma ou, com `exigir_todas`, todas).
        """
        palavras = tuple(palavras)
        linhas = list(linhas) if linhas is not None else list(self._linhas())
        for linha in linhas:
            for col in self._colunas(linha):
                texto = _texto_normalizado(cell_at(self.grid, linha, col))
                if not texto:
                    continue
                if exigir_todas:
                    achou = all(p in texto for p in palavras)
                else:
                    achou = any(p in texto for p in palavras)
                if achou:
                    return linha, col
        return None

    # ------------------------------------------------------------------
    # Colunas semanais
    # ------------------------------------------------------------------
    def _semanais_na_linha(self, linha: int, aceitar_datas: bool = False) -> Optional[List[int]]:
        colunas = []
        for col in self._colunas(linha):
            cell = cell_at(self.grid, linha, col)
            if contem_palavra_celula(cell, PALAVRAS_META) or contem_palavra_celula(cell, ("total",)):
                continue
            if eh_cabecalho_semanal(cell) or (aceitar_datas and isinstance(cell, DateCell)):
                colunas.append(col)
                if len(colunas) >= MAX_SEMANAS:
                    break
        return colunas or None

    def localizar_colunas_semanais(self, linha_cabecalho: int) -> List[int]:
        """
        Encontra as colunas de faturamento semanal: por palavra "semana" ou
        faixa de datas no cabeçalho, depois na linha secundária logo abaixo e,
        por fim, nas posições padrão do layout legado.
        """
        resultado = primeira_estrategia(
            [
                ("semanas no cabeçalho", lambda: self._semanais_na_linha(linha_cabecalho)),
                (
                    "semanas na linha secundária",
                    lambda: self._semanais_na_linha(linha_cabecalho + 1, aceitar_datas=True),
                ),
                ("semanas nas posições padrão", lambda: list(LAYOUT_LEGADO_PADRAO["semanas"])),
            ],
            self.validation_logger,
            self._contexto(campo="semanas", linha=linha_cabecalho),
        )
        return list(resultado or [])

    def localizar_colunas_meta_semanal(self, linha_cabecalho: int) -> List[int]:
        """Colunas de meta semanal ("Meta Semana 1", "Meta 01 a 07"), se existirem."""
        colunas = []
        for col in self._colunas(linha_cabecalho):
            cell = cell_at(self.grid, linha_cabecalho, col)
            if contem_palavra_celula(cell, ("meta",)) and eh_cabecalho_semanal(cell):
                colunas.append(col)
        return colunas[:MAX_SEMANAS]
