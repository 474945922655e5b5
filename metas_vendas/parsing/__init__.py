"""
Pacote de leitura de planilhas heterogêneas.

Responsável por:
- Converter células brutas em variantes tipadas
- Reconhecer nomes de abas mensais e o dialeto da planilha
- Localizar cabeçalhos e colunas por heurística com posições padrão
- Interpretar o modelo simplificado e o formato legado
"""

from .format_detector import Formato, detectar_formato
from .legacy_parser import LegacyParser
from .simplified_parser import SimplifiedParser
from .tab_name import AbaMensal, parse_nome_aba
from .table_locator import TableLocator

__all__ = [
    "Formato",
    "detectar_formato",
    "LegacyParser",
    "SimplifiedParser",
    "AbaMensal",
    "parse_nome_aba",
    "TableLocator",
]
