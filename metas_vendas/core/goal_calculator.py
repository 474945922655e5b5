"""
Cálculo de metas por vendedor.

A meta da equipe no mês é o faturamento do mesmo mês no ano anterior com o
crescimento configurado; sem histórico, a meta é zero. A meta de cada
vendedor parte da divisão igual entre os ativos, com os overrides de valor
fixo e de percentual, e recebe o multiplicador de ramp-up por tempo de casa.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..config import ParametrosMetas
from ..models import (
    CalculatedGoal,
    RevenueIndex,
    Salesperson,
    TeamGoal,
    TeamGoalSummary,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RampUp:
    multiplicador: float
    em_ramp_up: bool
    percentual: int


def calcular_tenure_meses(salesperson: Salesperson, hoje: Optional[date] = None) -> int:
    """
    Meses inteiros entre a admissão e o desligamento (ou hoje).

    Considera apenas ano e mês: (Δano * 12 + Δmês), nunca negativo.
    """
    fim = salesperson.termination_date or hoje or date.today()
    inicio = salesperson.hire_date
    meses = (fim.year - inicio.year) * 12 + (fim.month - inicio.month)
    return max(0, meses)


def calcular_ramp_up(tenure_meses: int, parametros: Optional[ParametrosMetas] = None) -> RampUp:
    """
    Multiplicador de ramp-up pelo tempo de casa.

    Faixas padrão: < 1 mês → 50%, < 2 meses → 75%, < 3 meses → 100% (ainda
    contado como ramp-up), a partir de 3 meses → 100% sem ramp-up.
    """
    faixas = (parametros or ParametrosMetas()).ramp_up
    for limite, percentual in faixas:
        if tenure_meses < limite:
            return RampUp(percentual / 100, True, percentual)
    return RampUp(1.0, False, 100)


def _formatar_percentual(valor: float) -> str:
    return str(int(valor)) if float(valor).is_integer() else str(valor)


class MetasCalculator:
    """
    Calcula metas da equipe e de cada vendedor a partir do índice de
    faturamento e do cadastro de vendedores.

    Args:
        indice: RevenueIndex consolidado
        salespeople: Cadastro de vendedores (ativos e inativos)
        parametros: Parâmetros de negócio (crescimento, ramp-up, semanas, dias úteis)
        hoje: Data de referência para o tempo de casa (padrão: hoje)
    """

    def __init__(
        self,
        indice: RevenueIndex,
        salespeople: Iterable[Salesperson],
        parametros: Optional[ParametrosMetas] = None,
        hoje: Optional[date] = None,
    ):
        self.indice = indice
        self.salespeople: List[Salesperson] = list(salespeople)
        self.parametros = parametros or ParametrosMetas()
        self.hoje = hoje or date.today()

    @property
    def ativos(self) -> List[Salesperson]:
        return [s for s in self.salespeople if s.is_active]

    def calcular_meta_equipe(self, month: int, year: int) -> TeamGoal:
        """
        Meta mensal da equipe: faturamento do mesmo mês no ano anterior com o
        crescimento configurado. Sem faturamento anterior, a meta é zero.
        """
        anterior = self.indice.previous_year(year, month)
        if anterior > 0:
            return TeamGoal(
                goal=anterior * (1 + self.parametros.growth_rate),
                source="historical",
                previous_year_revenue=anterior,
            )
        return TeamGoal(goal=0.0, source="no_data", previous_year_revenue=0.0)

    def calcular_meta_vendedor(
        self,
        salesperson: Salesperson,
        month: int,
        year: int,
        weeks_in_month: Optional[int] = None,
        working_days_per_week: Optional[int] = None,
        team_monthly_goal: Optional[float] = None,
    ) -> CalculatedGoal:
        """
        Calcula a meta de um vendedor.

        Regra aplicada, em ordem: valor fixo (override > 0), percentual sobre
        a cota igual (override > 0) ou cota igual. O ramp-up é aplicado nos
        três casos.

        Args:
            salesperson: Vendedor
            month: Mês (1-12)
            year: Ano
            weeks_in_month: Semanas no mês (padrão dos parâmetros)
            working_days_per_week: Dias úteis por semana (padrão dos parâmetros)
            team_monthly_goal: Meta da equipe informada manualmente

        Returns:
            CalculatedGoal com metas mensal, semanal e diária
        """
        if weeks_in_month is not None and weeks_in_month <= 0:
            raise ValueError(f"Semanas no mês inválidas: {weeks_in_month}")
        if working_days_per_week is not None and working_days_per_week <= 0:
            raise ValueError(f"Dias úteis por semana inválidos: {working_days_per_week}")
        semanas = weeks_in_month or self.parametros.weeks_in_month
        dias = working_days_per_week or self.parametros.working_days_per_week

        tenure = calcular_tenure_meses(salesperson, self.hoje)
        ramp = calcular_ramp_up(tenure, self.parametros)

        meta_equipe = (
            team_monthly_goal
            if team_monthly_goal is not None
            else self.calcular_meta_equipe(month, year).goal
        )
        cota = meta_equipe / (len(self.ativos) or 1)

        valor_fixo = salesperson.goal_override_value
        percentual = salesperson.goal_override_percent
        if valor_fixo and valor_fixo > 0:
            base = valor_fixo
            regra = "Valor fixo"
        elif percentual and percentual > 0:
            base = cota * (percentual / 100)
            regra = f"{_formatar_percentual(percentual)}% da base"
        else:
            base = cota
            regra = "Distribuição igual"

        if ramp.em_ramp_up:
            regra = f"{regra} ({ramp.percentual}% ramp-up)"

        mensal = base * ramp.multiplicador
        semanal = mensal / semanas
        return CalculatedGoal(
            salesperson_id=salesperson.id,
            salesperson_name=salesperson.name,
            monthly_goal=mensal,
            weekly_goal=semanal,
            daily_goal=semanal / dias,
            rule_applied=regra,
            is_ramp_up=ramp.em_ramp_up,
            tenure_months=tenure,
            ramp_up_percent=ramp.percentual if ramp.em_ramp_up else None,
        )

    def calcular_metas_equipe(
        self,
        month: int,
        year: int,
        weeks_in_month: Optional[int] = None,
        working_days_per_week: Optional[int] = None,
        team_monthly_goal: Optional[float] = None,
    ) -> List[CalculatedGoal]:
        """Metas de todos os vendedores ativos."""
        if team_monthly_goal is None:
            team_monthly_goal = self.calcular_meta_equipe(month, year).goal
        return [
            self.calcular_meta_vendedor(
                s, month, year, weeks_in_month, working_days_per_week, team_monthly_goal
            )
            for s in self.ativos
        ]

    def resumo_metas_equipe(
        self,
        month: int,
        year: int,
        weeks_in_month: Optional[int] = None,
        working_days_per_week: Optional[int] = None,
        team_monthly_goal: Optional[float] = None,
    ) -> TeamGoalSummary:
        """
        Resumo das metas da equipe no período.

        Returns:
            TeamGoalSummary com as metas individuais e os totais
        """
        goals: Sequence[CalculatedGoal] = self.calcular_metas_equipe(
            month, year, weeks_in_month, working_days_per_week, team_monthly_goal
        )
        total_mensal = sum(g.monthly_goal for g in goals)
        qtd_ativos = len(self.ativos)
        resumo = TeamGoalSummary(
            goals=tuple(goals),
            total_monthly_goal=total_mensal,
            total_weekly_goal=sum(g.weekly_goal for g in goals),
            total_daily_goal=sum(g.daily_goal for g in goals),
            active_salespeople_count=qtd_ativos,
            ramp_up_count=sum(1 for g in goals if g.is_ramp_up),
            average_goal=total_mensal / (qtd_ativos or 1),
        )
        logger.info(
            "[METAS] %02d/%d: %d vendedores ativos, meta total %.2f (%d em ramp-up)",
            month, year, qtd_ativos, total_mensal, resumo.ramp_up_count,
        )
        return resumo
