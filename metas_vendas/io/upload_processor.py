"""
Orquestrador da importação de planilhas.
Encadeia leitura do arquivo, detecção do dialeto, parser e KPIs e devolve um
resultado discriminado (sucesso com dados ou falha com mensagem).
"""

import logging
from typing import Dict, Optional

from ..config import ParametrosMetas
from ..core.data_analysis import AnaliseDados, analisar_dados
from ..core.kpi_calculator import KpiCalculator
from ..models import MESES_CODIGOS, ParsedSeries, ParsedWorkbook, UploadConfig, UploadResult
from ..parsing.cells import Grid, is_empty
from ..parsing.format_detector import Formato, detectar_formato
from ..parsing.legacy_parser import LegacyParser
from ..parsing.simplified_parser import SimplifiedParser
from ..utils.logging import ValidationLogger
from .workbook_loader import PlanilhaCarregada, PlanilhaIlegivelError, PlanilhaLoader

logger = logging.getLogger(__name__)

MENSAGEM_FALHA = "Erro ao processar o arquivo. Verifique se o formato está correto."


def contar_linhas(sheets: Dict[str, Grid]) -> int:
    """Linhas não vazias de todas as abas, descontando um cabeçalho por aba."""
    total = 0
    for grid in sheets.values():
        preenchidas = sum(1 for linha in grid if any(not is_empty(c) for c in linha))
        total += max(preenchidas - 1, 0)
    return total


def rotulo_mes(mes: int, ano: int) -> str:
    """Rótulo curto do período, no mesmo padrão das abas mensais ("Mar-25")."""
    return f"{MESES_CODIGOS[mes - 1]}-{ano % 100:02d}"


class UploadProcessor:
    """
    Processa uma planilha enviada e produz o UploadResult.

    Args:
        parametros: Parâmetros de negócio (janela de busca do localizador)
        validation_logger: Log de validação compartilhado pelos parsers
        loader: Leitor de arquivo (injetável nos testes)
    """

    def __init__(
        self,
        parametros: Optional[ParametrosMetas] = None,
        validation_logger: Optional[ValidationLogger] = None,
        loader: Optional[PlanilhaLoader] = None,
    ):
        self.parametros = parametros or ParametrosMetas()
        self.validation_logger = validation_logger or ValidationLogger()
        self.loader = loader or PlanilhaLoader(self.validation_logger)
        self.kpi_calculator = KpiCalculator()
        # análise pós-importação do último arquivo processado com sucesso
        self.analise: Optional[AnaliseDados] = None

    def processar(self, conteudo: bytes, nome_arquivo: str, config: UploadConfig) -> UploadResult:
        """
        Processa o arquivo enviado.

        Args:
            conteudo: Bytes do arquivo
            nome_arquivo: Nome original do arquivo
            config: Mês/ano de corte

        Returns:
            UploadResult de sucesso com ParsedWorkbook, ou de falha sem dados parciais
        """
        self.validation_logger.clear()
        self.analise = None
        try:
            planilha = self.loader.carregar_bytes(conteudo, nome_arquivo)
            parsed = self._interpretar(planilha, config)
        except PlanilhaIlegivelError as e:
            self.validation_logger.erro(f"Planilha ilegível: {e}", {"arquivo": nome_arquivo})
            return UploadResult.falha(MENSAGEM_FALHA)
        except Exception:
            logger.exception("[PARSER] Falha inesperada ao processar %s", nome_arquivo)
            self.validation_logger.erro("Falha inesperada no processamento", {"arquivo": nome_arquivo})
            return UploadResult.falha(MENSAGEM_FALHA)

        return UploadResult.ok(parsed, self.validation_logger.filtrar("AVISO"))

    def _interpretar(self, planilha: PlanilhaCarregada, config: UploadConfig) -> ParsedWorkbook:
        formato = detectar_formato(planilha.sheet_names)
        logger.info("[PARSER] Formato detectado: %s (%d abas)", formato.value, len(planilha.sheet_names))

        if formato == Formato.SIMPLIFIED_TEMPLATE:
            parser = SimplifiedParser(self.parametros, self.validation_logger)
        else:
            parser = LegacyParser(self.parametros, self.validation_logger)
        series: ParsedSeries = parser.parse(planilha.sheets, config)

        kpis = self.kpi_calculator.calcular(
            series.historical_data,
            series.current_year_data,
            series.team,
            config.selected_month,
            config.selected_year,
            series.mentorship_start_date,
        )

        analise = analisar_dados(
            series.historical_data, series.current_year_data, series.team, config.selected_year
        )
        for aviso in analise.avisos:
            self.validation_logger.aviso(aviso, {"origem": "analise"})
        self.analise = analise

        return ParsedWorkbook(
            sheets_found=planilha.sheet_names,
            row_count=contar_linhas(planilha.sheets),
            kpis=kpis,
            historical_data=series.historical_data,
            current_year_data=series.current_year_data,
            team=series.team,
            years_available=tuple(series.years_available),
            mentorship_start_date=series.mentorship_start_date,
            selected_month=rotulo_mes(config.selected_month, config.selected_year),
            formato=formato.value,
        )
