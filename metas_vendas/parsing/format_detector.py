"""
Detecção do dialeto da planilha a partir dos nomes das abas.
"""

from enum import Enum
from typing import Iterable


class Formato(str, Enum):
    SIMPLIFIED_TEMPLATE = "simplified_template"
    LEGACY_FORMAT = "legacy_format"


_NOMES_HISTORICO = {"historico", "histórico"}


def detectar_formato(sheet_names: Iterable[str]) -> Formato:
    """
    Classifica a planilha em um dos dois dialetos suportados.

    Uma aba chamada "Historico"/"Histórico" (sem diferenciar maiúsculas)
    indica o modelo simplificado; qualquer outra combinação é tratada como
    o formato legado (aba "Geral" + abas mensais).
    """
    for nome in sheet_names:
        if str(nome).strip().lower() in _NOMES_HISTORICO:
            return Formato.SIMPLIFIED_TEMPLATE
    return Formato.LEGACY_FORMAT
