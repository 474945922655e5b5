"""
Módulo de normalização de dados.
Contém funções para normalização de texto e cálculo de atingimento de metas.
"""

import unicodedata

import pandas as pd


def _vazio(s) -> bool:
    if s is None:
        return True
    try:
        return bool(pd.isna(s))
    except (TypeError, ValueError):
        return False


def remover_acentos(s: str) -> str:
    """Remove diacríticos mantendo apenas caracteres ASCII."""
    return unicodedata.normalize("NFKD", s).encode("ASCII", "ignore").decode("ASCII")


def normalize_text(s):
    """
    Normaliza uma string removendo acentos, BOM e espaços extras.

    Args:
        s: String ou valor a ser normalizado (pode ser NaN)

    Returns:
        String normalizada em maiúsculas, sem acentos e sem espaços extras.
        Retorna string vazia se o valor for NaN.

    Exemplos:
        >>> normalize_text("José da Silva")
        'JOSE DA SILVA'
        >>> normalize_text("\\ufeffHistórico")
        'HISTORICO'
        >>> normalize_text(pd.NA)
        ''
    """
    if _vazio(s):
        return ""
    # Remover BOM (Byte Order Mark) se presente
    s = str(s).replace("\ufeff", "")
    s = remover_acentos(s)
    return " ".join(s.strip().upper().split())


def normalizar_chave(s) -> str:
    """
    Versão minúscula de `normalize_text`, usada para comparar nomes de abas,
    cabeçalhos e rótulos de mês.

    Exemplos:
        >>> normalizar_chave("  Início  Mentoria ")
        'inicio mentoria'
    """
    return normalize_text(s).lower()


def calcular_atingimento(realizado, meta):
    """
    Calcula o atingimento de uma meta com tratamento correto para meta zero.

    A lógica é:
    - Se meta == 0 e realizado > 0: retorna 1.0 (superou a meta)
    - Se meta == 0 e realizado == 0: retorna 0.0
    - Se meta > 0: retorna realizado / meta

    Args:
        realizado: Valor realizado (pode ser None, NaN ou número)
        meta: Valor da meta (pode ser None, NaN ou número)

    Returns:
        Float representando o atingimento. Retorna 0.0 para entradas inválidas.

    Exemplos:
        >>> calcular_atingimento(100, 50)
        2.0
        >>> calcular_atingimento(10, 0)
        1.0
    """
    try:
        realizado = 0.0 if _vazio(realizado) else float(realizado)
        meta = 0.0 if _vazio(meta) else float(meta)
    except (TypeError, ValueError):
        return 0.0

    if meta == 0:
        return 1.0 if realizado > 0 else 0.0
    return realizado / meta
