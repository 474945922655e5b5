"""
Entrada e saída de planilhas.

Responsável por:
- Ler o arquivo enviado (Excel ou CSV) como grades de células
- Orquestrar a importação e devolver um resultado discriminado
- Gerar as planilhas para download (modelo, normalizada e PGV)
"""

from .template_export import gerar_planilha_normalizada, gerar_planilha_pgv, gerar_template_vazio
from .upload_processor import MENSAGEM_FALHA, UploadProcessor
from .workbook_loader import PlanilhaCarregada, PlanilhaIlegivelError, PlanilhaLoader

__all__ = [
    "gerar_planilha_normalizada",
    "gerar_planilha_pgv",
    "gerar_template_vazio",
    "MENSAGEM_FALHA",
    "UploadProcessor",
    "PlanilhaCarregada",
    "PlanilhaIlegivelError",
    "PlanilhaLoader",
]
