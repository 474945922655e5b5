"""
Análise da planilha já interpretada, com avisos de qualidade para o usuário
conferir antes de confirmar a importação.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import MonthlyRecord, RosterMember
from ..utils.normalization import normalizar_chave


@dataclass(frozen=True)
class AnoAnalisado:
    year: int
    months: int
    total_revenue: float


@dataclass(frozen=True)
class AnaliseDados:
    anos: Tuple[AnoAnalisado, ...]
    total_meses: int
    nomes_duplicados: Tuple[Tuple[str, str], ...]
    avisos: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {
            "yearsWithData": [
                {"year": a.year, "months": a.months, "totalRevenue": a.total_revenue}
                for a in self.anos
            ],
            "totalMonths": self.total_meses,
            "potentialDuplicateNames": [
                {"name1": n1, "name2": n2} for n1, n2 in self.nomes_duplicados
            ],
            "warnings": list(self.avisos),
        }


def _chave_nome(nome: str) -> str:
    return re.sub(r"[^a-z0-9]", "", normalizar_chave(nome))


def nomes_parecidos(nome1: str, nome2: str) -> bool:
    """
    Dois nomes são possíveis duplicatas quando, normalizados, são iguais, um
    contém o outro, ou têm tamanhos próximos (até 2) e o mesmo prefixo de 3
    letras.
    """
    a, b = _chave_nome(nome1), _chave_nome(nome2)
    if not a or not b:
        return False
    if a == b or a in b or b in a:
        return True
    return abs(len(a) - len(b)) <= 2 and (a.startswith(b[:3]) or b.startswith(a[:3]))


def analisar_dados(
    historico: Sequence[MonthlyRecord],
    corrente: Sequence[MonthlyRecord],
    team: Sequence[RosterMember],
    ano_referencia: Optional[int] = None,
) -> AnaliseDados:
    """
    Levanta avisos sobre a planilha interpretada.

    Args:
        historico: Série histórica
        corrente: Série do ano corrente
        team: Equipe lida
        ano_referencia: Anos anteriores a este devem ter 12 meses (padrão: ano atual)

    Returns:
        AnaliseDados com o resumo por ano e a lista de avisos
    """
    ano_referencia = ano_referencia or date.today().year
    todos = list(historico) + list(corrente)

    meses_por_ano: Dict[int, set] = {}
    receita_por_ano: Dict[int, float] = {}
    for r in todos:
        meses_por_ano.setdefault(r.year, set()).add(r.month)
        receita_por_ano[r.year] = receita_por_ano.get(r.year, 0.0) + r.revenue

    anos = tuple(
        AnoAnalisado(year=ano, months=len(meses_por_ano[ano]), total_revenue=receita_por_ano[ano])
        for ano in sorted(meses_por_ano)
    )

    avisos: List[str] = []
    for a in anos:
        if a.months < 12 and a.year < ano_referencia:
            avisos.append(f"{a.year}: apenas {a.months} meses com dados (esperado: 12)")
        if a.total_revenue == 0:
            avisos.append(f"{a.year}: faturamento total é zero")

    if not team and todos:
        avisos.append("Nenhum vendedor detectado na planilha")

    duplicados = tuple(
        (team[i].name, team[j].name)
        for i in range(len(team))
        for j in range(i + 1, len(team))
        if nomes_parecidos(team[i].name, team[j].name)
    )
    if duplicados:
        avisos.append(f"{len(duplicados)} possível(is) nome(s) duplicado(s) detectado(s)")

    return AnaliseDados(
        anos=anos,
        total_meses=sum(a.months for a in anos),
        nomes_duplicados=duplicados,
        avisos=tuple(avisos),
    )
