"""
Calcula os indicadores da importação: meta e realizado anuais, crescimento
sobre o ano anterior e crescimento pós-mentoria.
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models import MESES_NOMES, Kpis, MonthlyRecord, RosterMember
from ..utils.normalization import calcular_atingimento


def deduplicar_por_chave(registros: Iterable[MonthlyRecord]) -> List[MonthlyRecord]:
    """Mantém apenas a primeira ocorrência de cada (ano, mês)."""
    vistos = set()
    unicos = []
    for r in registros:
        if r.chave in vistos:
            continue
        vistos.add(r.chave)
        unicos.append(r)
    return unicos


def crescimento_percentual(atual: float, anterior: float) -> float:
    """(atual - anterior) / anterior em %, com 1 casa; 0 quando não há base."""
    if anterior <= 0:
        return 0.0
    return round((atual - anterior) / anterior * 100, 1)


class KpiCalculator:
    """
    Calcula os KPIs a partir das séries já recortadas pelo parser.
    """

    def calcular(
        self,
        historico: Sequence[MonthlyRecord],
        corrente: Sequence[MonthlyRecord],
        team: Sequence[RosterMember],
        selected_month: int,
        selected_year: int,
        mentorship_start: Optional[date] = None,
    ) -> Kpis:
        """
        Calcula os indicadores da importação.

        Args:
            historico: Série histórica (anos diferentes do corrente)
            corrente: Série do ano corrente até o mês de corte
            team: Equipe lida da planilha
            selected_month: Mês de corte (1-12)
            selected_year: Ano de corte
            mentorship_start: Data de início da mentoria, se houver

        Returns:
            Kpis com percentuais arredondados em 1 casa decimal
        """
        corrente_unico = deduplicar_por_chave(corrente)
        annual_goal = round(sum(r.goal for r in corrente_unico), 2)
        annual_realized = round(sum(r.revenue for r in corrente_unico), 2)

        total_vendas = sum(m.total_sales_count for m in team)
        ticket = round(annual_realized / total_vendas, 2) if total_vendas > 0 else 0.0

        return Kpis(
            annual_goal=annual_goal,
            annual_realized=annual_realized,
            last_year_growth=self.crescimento_ano_anterior(historico, corrente_unico, selected_year),
            mentorship_growth=self.crescimento_mentoria(
                historico, corrente, mentorship_start, selected_month, selected_year
            ),
            current_month_name=MESES_NOMES[selected_month - 1],
            average_ticket=ticket,
            total_sales_count=total_vendas,
            active_customers=0,
            atingimento=round(calcular_atingimento(annual_realized, annual_goal) * 100, 1),
        )

    @staticmethod
    def crescimento_ano_anterior(
        historico: Sequence[MonthlyRecord], corrente: Sequence[MonthlyRecord], selected_year: int
    ) -> float:
        """
        Compara o realizado do ano corrente com o ano anterior restrito aos
        mesmos meses presentes no ano corrente.
        """
        meses = {r.month for r in corrente}
        if not meses:
            return 0.0
        anterior = sum(
            r.revenue
            for r in deduplicar_por_chave(historico)
            if r.year == selected_year - 1 and r.month in meses
        )
        atual = sum(r.revenue for r in corrente)
        return crescimento_percentual(atual, anterior)

    @staticmethod
    def crescimento_mentoria(
        historico: Sequence[MonthlyRecord],
        corrente: Sequence[MonthlyRecord],
        mentorship_start: Optional[date],
        selected_month: int,
        selected_year: int,
    ) -> float:
        """
        Soma o faturamento antes do mês de início da mentoria e do início até
        o corte, e retorna o crescimento percentual entre as duas somas.
        """
        if mentorship_start is None:
            return 0.0
        inicio: Tuple[int, int] = (mentorship_start.year, mentorship_start.month)
        corte = (selected_year, selected_month)

        serie = deduplicar_por_chave(list(historico) + list(corrente))
        antes = sum(r.revenue for r in serie if r.chave < inicio)
        depois = sum(r.revenue for r in serie if inicio <= r.chave <= corte)
        if antes <= 0 or depois <= 0:
            return 0.0
        return crescimento_percentual(depois, antes)
