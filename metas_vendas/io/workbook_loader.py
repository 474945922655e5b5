"""
Módulo para carregar a planilha enviada (bytes em memória) como grades de
células por aba.
Suporta Excel (.xlsx/.xlsm, via openpyxl) e CSV (via pandas, uma única aba
"Dados").
"""

import io
import logging
import zipfile
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..parsing.cells import Grid, is_empty, to_grid
from ..utils.logging import ValidationLogger

logger = logging.getLogger(__name__)

EXTENSOES_EXCEL = (".xlsx", ".xlsm")
EXTENSOES_CSV = (".csv",)
ABA_CSV = "Dados"


class PlanilhaIlegivelError(Exception):
    """Arquivo corrompido ou que não é uma planilha: a importação inteira é abortada."""


@dataclass(frozen=True)
class PlanilhaCarregada:
    sheet_names: Tuple[str, ...]
    sheets: Dict[str, Grid]


def _aparar(linhas) -> Grid:
    """Converte em grade removendo células vazias à direita e linhas vazias no fim."""
    grid = to_grid(linhas)
    aparada = []
    for linha in grid:
        fim = len(linha)
        while fim > 0 and is_empty(linha[fim - 1]):
            fim -= 1
        aparada.append(linha[:fim])
    while aparada and not aparada[-1]:
        aparada.pop()
    return aparada


def _detect_sep(conteudo: bytes, encodings=("utf-8-sig", "utf-8", "latin1")):
    """Detecta separador e encoding pela primeira linha do arquivo."""
    for enc in encodings:
        try:
            first = conteudo.decode(enc).splitlines()[0] if conteudo else ""
        except UnicodeDecodeError:
            continue
        counts = {
            ",": first.count(","),
            ";": first.count(";"),
            "\t": first.count("\t"),
        }
        sep = max(counts, key=lambda k: (counts[k], 1 if k == ";" else 0))
        if counts[sep] == 0:
            sep = ","
        return sep, enc
    return ",", encodings[-1]


class PlanilhaLoader:
    """
    Classe para carregar a planilha enviada pelo usuário.
    """

    def __init__(self, validation_logger: Optional[ValidationLogger] = None):
        """
        Inicializa o PlanilhaLoader.

        Args:
            validation_logger: Instância opcional de ValidationLogger para registrar avisos/erros
        """
        self.validation_logger = validation_logger

    def carregar_bytes(self, conteudo: bytes, nome_arquivo: str) -> PlanilhaCarregada:
        """
        Lê o conteúdo do arquivo e devolve as grades de todas as abas.

        Args:
            conteudo: Bytes do arquivo
            nome_arquivo: Nome original (a extensão decide o leitor)

        Returns:
            PlanilhaCarregada com nomes das abas na ordem original

        Raises:
            PlanilhaIlegivelError: Arquivo vazio, corrompido ou de tipo não suportado
        """
        if not conteudo:
            raise PlanilhaIlegivelError("Arquivo vazio")

        nome = (nome_arquivo or "").lower()
        if nome.endswith(EXTENSOES_CSV):
            return self._carregar_csv(conteudo)
        if nome.endswith(EXTENSOES_EXCEL) or not nome:
            return self._carregar_excel(conteudo)
        raise PlanilhaIlegivelError(f"Extensão não suportada: {nome_arquivo}")

    def _carregar_excel(self, conteudo: bytes) -> PlanilhaCarregada:
        try:
            wb = load_workbook(io.BytesIO(conteudo), data_only=True, read_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
            logger.warning("[PARSER] Planilha ilegível: %s", e)
            raise PlanilhaIlegivelError(str(e)) from e

        try:
            sheets = {}
            for ws in wb.worksheets:
                sheets[ws.title] = _aparar(ws.iter_rows(values_only=True))
        finally:
            wb.close()

        logger.info("[PARSER] Excel carregado: %d abas (%s)", len(sheets), ", ".join(sheets))
        return PlanilhaCarregada(sheet_names=tuple(sheets), sheets=sheets)

    def _carregar_csv(self, conteudo: bytes) -> PlanilhaCarregada:
        sep, enc = _detect_sep(conteudo)
        try:
            df = pd.read_csv(
                io.BytesIO(conteudo),
                sep=sep,
                encoding=enc,
                header=None,
                dtype=str,
                keep_default_na=False,
                engine="python",
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            logger.warning("[PARSER] CSV ilegível: %s", e)
            raise PlanilhaIlegivelError(str(e)) from e

        if self.validation_logger is not None:
            self.validation_logger.info(
                "CSV lido como aba única", {"aba": ABA_CSV, "separador": sep, "encoding": enc}
            )
        grid = _aparar(df.values.tolist())
        return PlanilhaCarregada(sheet_names=(ABA_CSV,), sheets={ABA_CSV: grid})
