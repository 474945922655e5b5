"""
Parser de nomes de abas mensais ("Dez-25", "dezembro/2025", "MAR_2024").
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..models import MESES_CODIGOS, MESES_NOMES
from ..utils.normalization import normalizar_chave

_RE_ABA = re.compile(r"^([a-z]{3,})[\s\-/_]+(\d{2,4})$")

_ABREVIACOES = [c.lower() for c in MESES_CODIGOS]
_NOMES = [normalizar_chave(n) for n in MESES_NOMES]


@dataclass(frozen=True, order=True)
class AbaMensal:
    year: int
    month: int

    @property
    def chave(self) -> Tuple[int, int]:
        return (self.year, self.month)


def _resolver_token_mes(token: str) -> Optional[int]:
    # 1) prefixo de 3 letras; 2) nome completo exato; 3) prefixo de 4 letras do nome
    for idx, abrev in enumerate(_ABREVIACOES):
        if token.startswith(abrev):
            return idx + 1
    for idx, nome in enumerate(_NOMES):
        if token == nome:
            return idx + 1
    for idx, nome in enumerate(_NOMES):
        if len(token) >= 4 and token[:4] == nome[:4]:
            return idx + 1
    return None


def parse_nome_aba(nome) -> Optional[AbaMensal]:
    """
    Interpreta o nome de uma aba como (mês, ano).

    Args:
        nome: Nome da aba (ex: "Dez-25", "dezembro/2025")

    Returns:
        AbaMensal com mês 1..12 e ano de 4 dígitos, ou None se o nome não
        seguir o padrão "<mês><separador><ano>".
    """
    chave = normalizar_chave(nome)
    m = _RE_ABA.match(chave)
    if not m:
        return None

    mes = _resolver_token_mes(m.group(1))
    if mes is None:
        return None

    ano_txt = m.group(2)
    if len(ano_txt) == 2:
        ano = 2000 + int(ano_txt)
    elif len(ano_txt) == 4:
        ano = int(ano_txt)
    else:
        return None
    return AbaMensal(year=ano, month=mes)


def listar_abas_mensais(nomes: Iterable[str]) -> List[Tuple[str, AbaMensal]]:
    """Retorna (nome, AbaMensal) para cada aba com nome mensal válido, na ordem original."""
    resultado = []
    for nome in nomes:
        aba = parse_nome_aba(nome)
        if aba is not None:
            resultado.append((nome, aba))
    return resultado
